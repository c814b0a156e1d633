"""
Плюрализация: сборка ICU plural-шаблона и выбор CLDR-категории.

build_plural_message() используется и экстрактором (статически), и
рантаймом (с реальным числом), поэтому формат строки фиксирован:
    {num, plural, one {# item} other {# items}}
"""

import logging
from decimal import Decimal
from functools import lru_cache
from typing import Callable, Mapping, Optional, Union

from babel import Locale
from babel.core import UnknownLocaleError

logger = logging.getLogger(__name__)

Number = Union[int, float, Decimal]

PLURAL_ARGUMENT = "num"

CLDR_CATEGORIES = ("zero", "one", "two", "few", "many", "other")


def build_plural_message(variations: Mapping[object, str]) -> str:
    """
    Собирает ICU plural-сообщение из набора вариантов.

    Порядок селекторов сохраняется как в исходном словаре, перед каждым
    селектором ровно один пробел.

    Args:
        variations: {селектор: текст}, селектор - CLDR-категория или '=N'

    Returns:
        Строка вида '{num, plural, one {...} other {...}}'
    """
    options = "".join(f" {selector} {{{text}}}" for selector, text in variations.items())
    return f"{{{PLURAL_ARGUMENT}, plural,{options}}}"


def is_exact_selector(selector: str) -> bool:
    """Проверяет, что селектор имеет вид '=N'."""
    if not selector.startswith("="):
        return False
    try:
        Decimal(selector[1:])
    except ArithmeticError:
        return False
    return True


def matches_exact(selector: str, num: Number) -> bool:
    """'=N' совпадает, только если num численно равно N."""
    return is_exact_selector(selector) and Decimal(selector[1:]) == Decimal(str(num))


def _always_other(_num: Number) -> str:
    return "other"


@lru_cache(maxsize=64)
def _rule_for(locale: str, ordinal: bool) -> Callable[[Number], str]:
    tag = (locale or "").replace("-", "_")
    try:
        parsed = Locale.parse(tag)
    except (UnknownLocaleError, ValueError, TypeError) as exc:
        logger.debug("Нет CLDR-правил для локали %r (%s), категория всегда 'other'", locale, exc)
        return _always_other
    return parsed.ordinal_form if ordinal else parsed.plural_form


def plural_category(num: Number, locale: Optional[str], ordinal: bool = False) -> str:
    """
    Возвращает CLDR-категорию числа для локали.

    Неизвестная локаль (например, 'default') всегда даёт 'other'.
    """
    return _rule_for(locale or "", ordinal)(num)


def format_number(num: Number) -> str:
    """Десятичная запись числа для подстановки вместо '#'."""
    if isinstance(num, float) and num.is_integer():
        return str(int(num))
    return str(num)
