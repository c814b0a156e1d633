"""
Генерация коротких стабильных идентификаторов сообщений.

Один и тот же алгоритм используется экстрактором (ключи каталога) и
рантаймом (поиск перевода), поэтому его нельзя менять без пересборки
всех каталогов.
"""

import base64
import hashlib
from typing import Optional

# U+001F никогда не встречается в тексте сообщений
UNIT_SEPARATOR = "\u001f"

ID_LENGTH = 6


def generate_message_id(message: str, context: Optional[str] = None) -> str:
    """
    Вычисляет id сообщения по тексту и контексту.

    sha256(message + U+001F + context) -> base64 -> первые 6 символов.
    Пустой контекст и None эквивалентны. Комментарий для переводчика
    в id не участвует.

    Args:
        message: Исходный текст сообщения
        context: Контекст (msgctxt), опционально

    Returns:
        Идентификатор из 6 символов алфавита base64
    """
    payload = message + UNIT_SEPARATOR + (context or "")
    digest = hashlib.sha256(payload.encode("utf-8")).digest()
    return base64.b64encode(digest).decode("ascii")[:ID_LENGTH]
