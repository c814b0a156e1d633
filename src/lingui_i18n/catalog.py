"""
Catalog - управление каталогами переводов.

Исходный каталог хранится в gettext PO (babel): {path}.po
    msgid    - исходный текст сообщения
    msgctxt  - context
    #.       - comment для переводчика
    #:       - места использования (файл:строка)

Скомпилированный каталог для рантайма: {path}.json
Формат: {"<id>": "translated_string", ...}, где id = generate_message_id(msgid, msgctxt).

Поддерживает:
- Merge извлечённых сообщений с существующими переводами
- Компиляцию PO -> JSON
- Статистику покрытия переводами
"""

import json
import logging
import re
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from babel.messages.catalog import Catalog, Message
from babel.messages.pofile import read_po, write_po

from .errors import I18nError
from .extractor import MessageRecord
from .message_id import generate_message_id
from .scanner import unique_messages

logger = logging.getLogger(__name__)

LOCALE_PLACEHOLDER = "{locale}"
PO_SUFFIX = ".po"
JSON_SUFFIX = ".json"


def load_messages(path: Path) -> Dict[str, str]:
    """
    Загружает скомпилированный каталог {id: перевод}.

    Raises:
        FileNotFoundError: файла нет
        I18nError: содержимое - не объект строк
    """
    path = Path(path)
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict) or not all(
            isinstance(key, str) and isinstance(value, str) for key, value in data.items()):
        raise I18nError(f"compiled catalog must map ids to strings: {path}")
    return data


def _message_key(message: Message) -> Tuple[str, Optional[str]]:
    return message.id, message.context or None


def _obsolete_key(message_id: str, context: Optional[str]):
    return (message_id, context) if context else message_id


def _pop_obsolete(catalog: Catalog, message_id: str, context: Optional[str]) -> Optional[Message]:
    """Извлекает сообщение из obsolete (формат ключа зависит от версии babel)."""
    for key, message in list(catalog.obsolete.items()):
        if message.id == message_id and (message.context or None) == context:
            return catalog.obsolete.pop(key)
    return None


class MessageCatalog:
    """
    Каталоги одного шаблона пути для всех локалей.

    Args:
        path_template: Путь без расширения, содержащий {locale}
            (например, project/src/locales/{locale})
        source_locale: Локаль исходных текстов; её msgstr заполняется msgid
    """

    def __init__(self, path_template: str, source_locale: str = "en"):
        if LOCALE_PLACEHOLDER not in str(path_template):
            raise I18nError(f"catalog path must contain {LOCALE_PLACEHOLDER}: {path_template}")
        self.path_template = str(path_template)
        self.source_locale = source_locale

    def po_path(self, locale: str) -> Path:
        return Path(self.path_template.replace(LOCALE_PLACEHOLDER, locale) + PO_SUFFIX)

    def json_path(self, locale: str) -> Path:
        return Path(self.path_template.replace(LOCALE_PLACEHOLDER, locale) + JSON_SUFFIX)

    # ── PO ──

    def load(self, locale: str) -> Catalog:
        """Загружает PO-каталог локали или создаёт пустой."""
        path = self.po_path(locale)
        if not path.exists():
            return Catalog(locale=locale, fuzzy=False)
        with open(path, "rb") as f:
            return read_po(f, locale=locale)

    def save(self, locale: str, catalog: Catalog):
        path = self.po_path(locale)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "wb") as f:
            write_po(f, catalog, width=0)

    def merge_records(self, locale: str, records: Sequence[MessageRecord],
                      clean: bool = False) -> Tuple[int, int, int]:
        """
        Мержит извлечённые сообщения с каталогом локали.

        Переводы существующих сообщений сохраняются, места и комментарии
        обновляются. Сообщения, которых больше нет в коде, переносятся
        в obsolete (#~) или удаляются при clean=True.

        Returns:
            (new_count, existing_count, obsolete_count)
        """
        catalog = self.load(locale)
        is_source = locale == self.source_locale
        new_count = 0
        existing_count = 0
        seen = set()

        for item in unique_messages(records):
            locations = [(origin.file, origin.line) for origin in item.origins]
            auto_comments = [item.comment] if item.comment else []
            seen.add((item.message, item.context or None))

            current = catalog.get(item.message, context=item.context)
            if current is None:
                revived = _pop_obsolete(catalog, item.message, item.context or None)
                string = revived.string if revived is not None else ""
                if is_source and not string:
                    string = item.message
                catalog.add(item.message, string, locations=locations,
                            auto_comments=auto_comments, context=item.context)
                new_count += 1
            else:
                current.locations = locations
                current.auto_comments = auto_comments
                if is_source and not current.string:
                    current.string = item.message
                existing_count += 1

        obsolete_count = 0
        for message in list(catalog):
            if not message.id or _message_key(message) in seen:
                continue
            obsolete_count += 1
            catalog.delete(message.id, context=message.context)
            if not clean:
                catalog.obsolete[_obsolete_key(message.id, message.context)] = message
        if clean:
            catalog.obsolete.clear()

        self.save(locale, catalog)
        logger.info("Каталог %s: новых %d, существующих %d, устаревших %d",
                    locale, new_count, existing_count, obsolete_count)
        return new_count, existing_count, obsolete_count

    # ── Компиляция ──

    def compile(self, locale: str) -> Dict[str, str]:
        """
        Компилирует PO в JSON {id: перевод}.

        Пустые и fuzzy переводы пропускаются - рантайм покажет исходный текст.
        """
        catalog = self.load(locale)
        compiled: Dict[str, str] = {}
        for message in catalog:
            if not message.id or not isinstance(message.id, str):
                continue
            if message.fuzzy or not isinstance(message.string, str) or not message.string:
                continue
            compiled[generate_message_id(message.id, message.context)] = message.string

        path = self.json_path(locale)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(compiled, f, ensure_ascii=False, indent=2, sort_keys=True)
        logger.info("Скомпилировано %d сообщений -> %s", len(compiled), path)
        return compiled

    def load_messages(self, locale: str) -> Dict[str, str]:
        """Скомпилированный каталог локали; пустой, если он ещё не собран."""
        path = self.json_path(locale)
        if not path.exists():
            logger.debug("Скомпилированный каталог %s не найден", path)
            return {}
        return load_messages(path)

    # ── Статистика ──

    def get_stats(self, locale: str) -> Dict:
        """
        Возвращает статистику покрытия переводами.

        Returns:
            Dict: total, translated, fuzzy, missing, obsolete, coverage (%)
        """
        catalog = self.load(locale)
        messages = [message for message in catalog if message.id]
        total = len(messages)
        fuzzy = sum(1 for message in messages if message.fuzzy)
        translated = sum(1 for message in messages if message.string and not message.fuzzy)

        return {
            "total": total,
            "translated": translated,
            "fuzzy": fuzzy,
            "missing": total - translated,
            "obsolete": len(catalog.obsolete),
            "coverage": round(translated / total * 100, 1) if total else 0.0,
        }

    def list_locales(self) -> List[str]:
        """Локали, для которых уже есть PO-файл."""
        parts = Path(self.path_template + PO_SUFFIX).parts
        index = next(i for i, part in enumerate(parts) if LOCALE_PLACEHOLDER in part)
        base = Path(*parts[:index]) if index else Path(".")
        relative = "/".join(parts[index:])

        pattern = relative.replace(LOCALE_PLACEHOLDER, "*")
        regex = re.compile(
            re.escape(relative).replace(re.escape(LOCALE_PLACEHOLDER), "(?P<locale>[^/]+)")
        )
        locales = set()
        for path in base.glob(pattern):
            match = regex.fullmatch(path.relative_to(base).as_posix())
            if match:
                locales.add(match.group("locale"))
        return sorted(locales)


def load_all(catalogs: Sequence[MessageCatalog], locale: str) -> Mapping[str, str]:
    """Объединяет скомпилированные каталоги локали (поздние перекрывают ранние)."""
    merged: Dict[str, str] = {}
    for catalog in catalogs:
        merged.update(catalog.load_messages(locale))
    return merged
