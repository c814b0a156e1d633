"""
Дескрипторы сообщений и функции разметки для экстракции.

Закрытый набор вариантов:
- BareMessage       - готовая строка
- TemplateMessage   - куски литерала + позиционные аргументы
- StructuredMessage - {message, context?, comment?}
- PluralMessage     - {селектор: текст}

Вариант выбирается при создании (coerce_descriptor), а не угадывается
при каждом разрешении.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple, Union

from .errors import MessageDescriptorError
from .plural import build_plural_message


def build_template_message(chunks: Sequence[str]) -> str:
    """
    Восстанавливает канонический текст шаблона: куски, склеенные через {0}, {1}, ...

    Тот же алгоритм использует экстрактор для tagged template literal,
    поэтому id совпадают.
    """
    if not chunks:
        raise MessageDescriptorError("template must contain at least one literal chunk")
    message = chunks[0]
    for index, chunk in enumerate(chunks[1:]):
        message += f"{{{index}}}{chunk}"
    return message


@dataclass(frozen=True)
class BareMessage:
    """Строка без аргументов."""
    text: str


@dataclass(frozen=True)
class TemplateMessage:
    """Шаблон: len(chunks) == len(args) + 1."""
    chunks: Tuple[str, ...]
    args: Tuple[Any, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "chunks", tuple(self.chunks))
        object.__setattr__(self, "args", tuple(self.args))
        if len(self.chunks) != len(self.args) + 1:
            raise MessageDescriptorError(
                f"template has {len(self.chunks)} literal chunks for {len(self.args)} "
                f"arguments, expected {len(self.args) + 1}"
            )

    @property
    def message(self) -> str:
        return build_template_message(self.chunks)

    @property
    def values(self) -> Dict[str, Any]:
        return {str(index): arg for index, arg in enumerate(self.args)}


@dataclass(frozen=True)
class StructuredMessage:
    """
    MessageDescriptor с контекстом и комментарием.

    context участвует в id (одинаковый текст с разным контекстом - разные
    записи каталога), comment - только подсказка переводчику.
    """
    message: str
    context: Optional[str] = None
    comment: Optional[str] = None

    def __post_init__(self):
        if not isinstance(self.message, str):
            raise MessageDescriptorError("MessageDescriptor should contain a message property")


@dataclass(frozen=True)
class PluralMessage:
    """Варианты плюрализации в исходном порядке."""
    variations: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self):
        if not self.variations:
            raise MessageDescriptorError("plural variations must not be empty")
        object.__setattr__(self, "variations", MappingProxyType(dict(self.variations)))

    @property
    def message(self) -> str:
        return build_plural_message(self.variations)


MessageDescriptor = Union[BareMessage, TemplateMessage, StructuredMessage, PluralMessage]


def structured_from_mapping(data: Mapping[str, Any]) -> StructuredMessage:
    """Строит StructuredMessage из словаря {'message': ..., 'context': ..., 'comment': ...}."""
    if "message" not in data or data["message"] is None:
        raise MessageDescriptorError("MessageDescriptor should contain a message property")
    return StructuredMessage(
        message=data["message"],
        context=data.get("context"),
        comment=data.get("comment"),
    )


def coerce_descriptor(descriptor: Any, *args: Any) -> MessageDescriptor:
    """
    Приводит то, что передал код приложения, к одному из вариантов.

    - str без аргументов             -> BareMessage
    - Mapping с ключом message       -> StructuredMessage
    - последовательность строк + args -> TemplateMessage
    - готовый дескриптор              -> как есть

    Raises:
        MessageDescriptorError: словарь без message, лишние аргументы и т.п.
    """
    if isinstance(descriptor, (BareMessage, TemplateMessage, StructuredMessage, PluralMessage)):
        if args:
            raise MessageDescriptorError(f"{type(descriptor).__name__} does not take arguments")
        return descriptor
    if isinstance(descriptor, str):
        if args:
            raise MessageDescriptorError(
                "plain string does not take arguments, pass the literal chunks instead: "
                f"t(({descriptor!r}, ...), *args)"
            )
        return BareMessage(descriptor)
    if isinstance(descriptor, Mapping):
        if args:
            raise MessageDescriptorError("MessageDescriptor does not take arguments")
        return structured_from_mapping(descriptor)
    if isinstance(descriptor, (list, tuple)) and all(isinstance(c, str) for c in descriptor):
        return TemplateMessage(tuple(descriptor), args)
    raise MessageDescriptorError(f"unsupported message descriptor: {descriptor!r}")


def msg(descriptor: Any, *args: Any) -> Union[StructuredMessage, Mapping[str, Any], str]:
    """
    Помечает сообщение для экстракции, не переводя его.

    Структурированный дескриптор возвращается как есть (его можно позже
    передать в t()); шаблон склеивается со значениями аргументов в
    обычную строку.
    """
    if isinstance(descriptor, StructuredMessage):
        return descriptor
    if isinstance(descriptor, Mapping):
        if "message" not in descriptor:
            raise MessageDescriptorError("MessageDescriptor should contain a message property")
        return descriptor
    if isinstance(descriptor, str):
        if args:
            raise MessageDescriptorError("plain string does not take arguments")
        return descriptor
    template = TemplateMessage(tuple(descriptor), args)
    parts = [template.chunks[0]]
    for arg, chunk in zip(template.args, template.chunks[1:]):
        parts.append(str(arg))
        parts.append(chunk)
    return "".join(parts)


def msg_plural(variations: Mapping[str, str]) -> Mapping[str, str]:
    """Помечает набор plural-вариантов для экстракции и возвращает его без изменений."""
    return variations


define_plural = msg_plural
