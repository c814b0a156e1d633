"""
lingui_i18n - Извлечение сообщений и рантайм переводов для Svelte/JS проектов.

Модули:
- message_id: Детерминированный id сообщения (message + context)
- plural: Сборка ICU plural-сообщений и выбор CLDR-категории
- descriptors: Варианты дескрипторов и маркеры msg / msg_plural / define_plural
- formatter: ICU-форматтер текстов каталога
- runtime: Разрешение дескриптора в строку, фасад I18n
- store: Наблюдаемое состояние локали и каталога
- parsers, ast_nodes: Разбор .svelte и JS/TS в структурное AST
- extractor: Распознавание размеченных сообщений
- scanner: Пакетное извлечение по проекту
- catalog: PO-каталоги (babel) и скомпилированный JSON
- config: lingui.yaml
- manager: CLI extract -> compile -> stats
"""

from typing import Mapping, Optional

from .descriptors import (
    BareMessage,
    PluralMessage,
    StructuredMessage,
    TemplateMessage,
    define_plural,
    msg,
    msg_plural,
)
from .errors import (
    ConfigError,
    ExtractionError,
    I18nError,
    MessageDescriptorError,
    MessageFormatError,
    MissingMessageError,
    SourceParseError,
)
from .message_id import generate_message_id
from .runtime import I18n, resolve, resolve_plural
from .store import LocaleState, LocaleStore

__all__ = [
    "BareMessage", "PluralMessage", "StructuredMessage", "TemplateMessage",
    "define_plural", "msg", "msg_plural",
    "ConfigError", "ExtractionError", "I18nError", "MessageDescriptorError",
    "MessageFormatError", "MissingMessageError", "SourceParseError",
    "generate_message_id", "I18n", "resolve", "resolve_plural",
    "LocaleState", "LocaleStore",
    "i18n", "set_locale", "get_locale", "t", "plural",
]

# Экземпляр по умолчанию для кода без собственного LocaleStore
i18n = I18n()


def set_locale(locale: str, messages: Optional[Mapping[str, str]] = None) -> None:
    """Устанавливает текущую локаль и её каталог."""
    i18n.activate(locale, messages)


def get_locale() -> str:
    """Возвращает текущую локаль."""
    return i18n.locale


t = i18n.t
plural = i18n.plural
