"""
Рантайм: разрешение дескриптора в строку для активной локали.

resolve() и resolve_plural() - чистые функции от (дескриптор, локаль,
каталог): вычислить id -> найти перевод -> иначе исходный текст ->
подставить аргументы / выбрать plural-форму.

I18n - фасад над LocaleStore для кода приложения:

    i18n = I18n(LocaleStore("en"))
    i18n.t("hello")
    i18n.t(("hello ", ""), name)
    i18n.t({"message": "right", "context": "direction"})
    i18n.plural(count, {"one": "# item", "other": "# items"})
"""

from typing import Any, Mapping, Optional

from .descriptors import (
    BareMessage,
    MessageDescriptor,
    PluralMessage,
    StructuredMessage,
    TemplateMessage,
    coerce_descriptor,
)
from .errors import MessageDescriptorError
from .formatter import format_message
from .message_id import generate_message_id
from .plural import PLURAL_ARGUMENT, Number
from .store import DerivedStore, LocaleStore


def lookup(message: str, context: Optional[str], messages: Mapping[str, str]) -> str:
    """Перевод по id(message, context) или исходный текст, если перевода нет (или он пуст)."""
    translation = messages.get(generate_message_id(message, context))
    return translation if translation else message


def resolve(descriptor: MessageDescriptor, locale: str, messages: Mapping[str, str],
            num: Optional[Number] = None) -> str:
    """
    Разрешает дескриптор в строку.

    Args:
        descriptor: Один из вариантов MessageDescriptor
        locale: Активная локаль
        messages: Каталог {id: перевод}
        num: Число для PluralMessage

    Returns:
        Переведённая (или исходная) строка

    Raises:
        MessageDescriptorError: plural без числа или неизвестный вариант
    """
    if isinstance(descriptor, BareMessage):
        return format_message(lookup(descriptor.text, None, messages), None, locale)

    if isinstance(descriptor, StructuredMessage):
        # comment на поиск не влияет
        template = lookup(descriptor.message, descriptor.context, messages)
        return format_message(template, None, locale)

    if isinstance(descriptor, TemplateMessage):
        template = lookup(descriptor.message, None, messages)
        return format_message(template, descriptor.values, locale)

    if isinstance(descriptor, PluralMessage):
        if num is None:
            raise MessageDescriptorError("plural message requires a number")
        template = lookup(descriptor.message, None, messages)
        return format_message(template, {PLURAL_ARGUMENT: num}, locale)

    raise MessageDescriptorError(f"unsupported message descriptor: {descriptor!r}")


def resolve_plural(num: Number, variations: Mapping[str, str], locale: str,
                   messages: Mapping[str, str]) -> str:
    """Выбирает plural-форму для num с учётом перевода."""
    return resolve(PluralMessage(variations), locale, messages, num=num)


class I18n:
    """Функции перевода, привязанные к LocaleStore."""

    def __init__(self, store: Optional[LocaleStore] = None):
        self.store = store or LocaleStore()
        # Производные store: значение - функция перевода, публикуется при смене локали
        self.t_store = DerivedStore(self.store, lambda _state: self.t)
        self.plural_store = DerivedStore(self.store, lambda _state: self.plural)

    def t(self, descriptor: Any, *args: Any) -> str:
        """
        Переводит строку, шаблон (куски + аргументы) или MessageDescriptor.

        Raises:
            MessageDescriptorError: словарь без message, несовпадение числа кусков и аргументов
        """
        state = self.store.current()
        return resolve(coerce_descriptor(descriptor, *args), state.locale, state.messages)

    gt = t

    def plural(self, num: Number, variations: Mapping[str, str]) -> str:
        """Переводит набор plural-вариантов для числа num."""
        state = self.store.current()
        return resolve_plural(num, variations, state.locale, state.messages)

    g_plural = plural

    def subscribe(self, callback):
        """Подписка на функцию перевода: callback(t) сразу и после каждой смены локали."""
        return self.t_store.subscribe(callback)

    @property
    def locale(self) -> str:
        return self.store.locale

    def activate(self, locale: str, messages: Optional[Mapping[str, str]] = None) -> None:
        self.store.activate(locale, messages)
