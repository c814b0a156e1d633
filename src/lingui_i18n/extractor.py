"""
Extractor - извлекает размеченные сообщения из исходников компонентов и скриптов.

Распознаваемые формы (имена функций/тегов настраиваются):
1. Tagged template:   $t`Hello ${name}`          -> 'Hello {0}'
2. Structured call:   msg({message, context, comment})
3. Plural call:       $plural(count, {one: '# item', other: '# items'})
                      definePlural({one: '# item', other: '# items'})
4. Inline component:  <T msg="hello" ctx="direction" cmt="..."/>  (только .svelte)

id записи считается тем же generate_message_id(), что и в рантайме,
поэтому каталог, собранный экстрактором, находится рантаймом.

extract() не пишет в лог и не бросает исключения: ошибка файла
возвращается в ExtractResult, а решение (залогировать и продолжить)
принимает вызывающий код (ProjectScanner).
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from .ast_nodes import Node, walk
from .descriptors import build_template_message
from .errors import ExtractionError, MissingMessageError
from .message_id import generate_message_id
from .parsers import TYPESCRIPT_EXTENSIONS, parse_script, parse_template, preprocess, script_dialect
from .plural import build_plural_message


@dataclass(frozen=True)
class Origin:
    """Место вызова: файл, строка (с 1), колонка (с 0)."""
    file: str
    line: int
    column: int


@dataclass(frozen=True)
class MessageRecord:
    """Извлечённое сообщение."""
    id: str
    message: str
    context: Optional[str] = None
    comment: Optional[str] = None
    origin: Optional[Origin] = None

    @classmethod
    def create(cls, message: str, context: Optional[str] = None,
               comment: Optional[str] = None, origin: Optional[Origin] = None) -> "MessageRecord":
        """id вычисляется только из message и context."""
        return cls(
            id=generate_message_id(message, context),
            message=message,
            context=context,
            comment=comment,
            origin=origin,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ExtractResult:
    """Результат обработки одного файла."""
    filename: str
    records: List[MessageRecord] = field(default_factory=list)
    error: Optional[ExtractionError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class TagConfig:
    """Имена, по которым распознаются вызовы."""
    message_tags: Tuple[str, ...] = ()
    plural_tags: Tuple[str, ...] = ()             # варианты во 2-м аргументе
    plural_definition_tags: Tuple[str, ...] = ()  # варианты в 1-м аргументе
    component_names: Tuple[str, ...] = ()

    def merged(self, **overrides: Sequence[str]) -> "TagConfig":
        values = {key: tuple(value) for key, value in overrides.items() if value is not None}
        return TagConfig(**{**asdict(self), **values})


SVELTE_TAGS = TagConfig(
    message_tags=("$t", "msg"),
    plural_tags=("$plural",),
    plural_definition_tags=("definePlural", "msgPlural"),
    component_names=("T",),
)

SCRIPT_TAGS = TagConfig(
    message_tags=("g", "gt", "msg"),
    plural_tags=("gPlural",),
    plural_definition_tags=("definePlural", "msgPlural"),
)


# ══════════════════════════════════════════════════
#  Распознавание форм
# ══════════════════════════════════════════════════

def _identifier_name(node: Optional[Node]) -> Optional[str]:
    if node is not None and node.type == "Identifier":
        return node.get("name")
    return None


def _string_literal(node: Optional[Node]) -> Optional[str]:
    if node is not None and node.type == "Literal" and isinstance(node.get("value"), str):
        return node.get("value")
    return None


def _property_key(prop: Node) -> Optional[str]:
    """Ключ свойства объекта: идентификатор, строка или число (как в исходнике)."""
    key = prop.get("key")
    if key is None:
        return None
    if key.type == "Identifier":
        return key.get("name")
    if key.type == "Literal":
        value = key.get("value")
        if isinstance(value, str):
            return value
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return key.get("raw") or str(value)
    return None


def _static_properties(obj: Node) -> Optional[List[Tuple[str, Node]]]:
    """
    Свойства объектного литерала в исходном порядке.

    None - если объект динамический (spread, вычисляемые ключи, методы).
    """
    result = []
    for prop in obj.get("properties") or []:
        if prop.type != "Property" or prop.get("computed") or prop.get("kind", "init") != "init":
            return None
        key = _property_key(prop)
        if key is None:
            return None
        result.append((key, prop.get("value")))
    return result


def _template_chunk(element: Node) -> str:
    value = element.get("value") or {}
    cooked = value.get("cooked")
    return cooked if isinstance(cooked, str) else value.get("raw", "")


class MessageCollector:
    """
    Обходит дерево (pre-order, слева направо) и собирает MessageRecord.

    visit_<Type> вызывается для каждого узла соответствующего типа.
    """

    def __init__(self, filename: str, tags: TagConfig):
        self.filename = filename
        self.tags = tags
        self.records: List[MessageRecord] = []

    def collect(self, root: Node) -> List[MessageRecord]:
        for node in walk(root):
            visitor = getattr(self, f"visit_{node.type}", None)
            if visitor is not None:
                visitor(node)
        return self.records

    def _origin(self, node: Node) -> Origin:
        return Origin(self.filename, node.line, node.column)

    def _add(self, node: Node, message: str, context: Optional[str] = None,
             comment: Optional[str] = None) -> None:
        self.records.append(MessageRecord.create(message, context, comment, self._origin(node)))

    def _missing_message(self, node: Node) -> MissingMessageError:
        return MissingMessageError("MessageDescriptor should contain a message property",
                                   self.filename, node.line, node.column)

    # ── Tagged template ──

    def visit_TaggedTemplateExpression(self, node: Node) -> None:
        if _identifier_name(node.get("tag")) not in self.tags.message_tags:
            return
        quasi = node.get("quasi")
        chunks = [_template_chunk(element) for element in quasi.get("quasis") or []]
        # позиция - начало шаблонного литерала
        self._add(quasi, build_template_message(chunks))

    # ── Вызовы ──

    def visit_CallExpression(self, node: Node) -> None:
        name = _identifier_name(node.get("callee"))
        if name is None:
            return
        arguments = node.get("arguments") or []
        if name in self.tags.message_tags:
            self._structured_call(node, arguments)
        if name in self.tags.plural_tags:
            self._plural_call(node, arguments, 1)
        if name in self.tags.plural_definition_tags:
            self._plural_call(node, arguments, 0)

    def _structured_call(self, node: Node, arguments: List[Node]) -> None:
        if not arguments or arguments[0].type != "ObjectExpression":
            return
        properties = _static_properties(arguments[0])
        if properties is None:
            return
        values = dict(properties)
        if "message" not in values:
            raise self._missing_message(node)

        message = _string_literal(values["message"])
        if message is None:
            return
        if not message:
            raise self._missing_message(node)
        context = comment = None
        if "context" in values:
            context = _string_literal(values["context"])
            if context is None:
                return
        if "comment" in values:
            comment = _string_literal(values["comment"])
            if comment is None:
                return
        self._add(node, message, context, comment)

    def _plural_call(self, node: Node, arguments: List[Node], index: int) -> None:
        if len(arguments) <= index or arguments[index].type != "ObjectExpression":
            return
        properties = _static_properties(arguments[index])
        if not properties:
            return
        variations: Dict[str, str] = {}
        for selector, value in properties:
            text = _string_literal(value)
            if text is None:
                return
            variations[selector] = text
        # число при экстракции не нужно
        self._add(node, build_plural_message(variations))

    # ── <T msg="..."/> ──

    def visit_InlineComponent(self, node: Node) -> None:
        if node.get("name") not in self.tags.component_names:
            return
        attributes: Dict[str, Any] = {}
        for attribute in node.get("attributes") or []:
            if attribute.type != "Attribute":
                return
            attributes[attribute.get("name")] = attribute.get("value")

        if "msg" not in attributes:
            raise self._missing_message(node)
        static = {}
        for name in ("msg", "ctx", "cmt"):
            if name not in attributes:
                continue
            value = attributes[name]
            if not isinstance(value, list) or len(value) > 1 or \
                    (value and value[0].type != "Text"):
                return
            static[name] = value[0].get("data") if value else ""
        if not static["msg"]:
            raise self._missing_message(node)
        self._add(node, static["msg"], static.get("ctx"), static.get("cmt"))


# ══════════════════════════════════════════════════
#  Экстракторы диалектов
# ══════════════════════════════════════════════════

Emit = Callable[[MessageRecord], Any]


class BaseExtractor:
    """Общая часть: match() по расширению, extract() с изоляцией ошибок файла."""

    name = "base"
    extensions: Tuple[str, ...] = ()
    default_tags = TagConfig()

    def __init__(self, tags: Optional[TagConfig] = None):
        self.tags = tags or self.default_tags

    def match(self, filename: str) -> bool:
        return str(filename).endswith(self.extensions)

    def parse(self, filename: str, source: str) -> Node:
        raise NotImplementedError

    def extract(self, filename: str, source: str, emit: Optional[Emit] = None,
                context: Optional[Mapping[str, Any]] = None) -> ExtractResult:
        """
        Извлекает сообщения из одного файла.

        При ошибке разбора или обхода файл не даёт ни одной записи, а ошибка
        возвращается в ExtractResult.error. emit вызывается только для
        успешно обработанного файла. context (опции вызывающего кода,
        как в lingui) принимается для совместимости и не используется.
        """
        filename = str(filename)
        try:
            tree = self.parse(filename, source)
            records = MessageCollector(filename, self.tags).collect(tree)
        except ExtractionError as exc:
            if not exc.filename:
                exc.filename = filename
            return ExtractResult(filename, [], exc)
        except Exception as exc:
            error = ExtractionError(f"{type(exc).__name__}: {exc}", filename)
            error.__cause__ = exc
            return ExtractResult(filename, [], error)

        if emit is not None:
            for record in records:
                emit(record)
        return ExtractResult(filename, records)


class SvelteExtractor(BaseExtractor):
    """Компоненты .svelte: разметка + <script> + выражения в {...}."""

    name = "svelte"
    extensions = (".svelte",)
    default_tags = SVELTE_TAGS

    def parse(self, filename: str, source: str) -> Node:
        return parse_template(preprocess(source), filename)


class ScriptExtractor(BaseExtractor):
    """Модули JavaScript (.js, .mjs, .cjs) и TypeScript (.ts, .mts, .cts)."""

    name = "script"
    extensions = (".js", ".mjs", ".cjs") + TYPESCRIPT_EXTENSIONS
    default_tags = SCRIPT_TAGS

    def parse(self, filename: str, source: str) -> Node:
        return parse_script(source, filename, dialect=script_dialect(filename))


def default_extractors() -> List[BaseExtractor]:
    return [SvelteExtractor(), ScriptExtractor()]


def find_extractor(filename: str, extractors: Sequence[BaseExtractor]) -> Optional[BaseExtractor]:
    """Первый экстрактор, принимающий файл, или None."""
    for extractor in extractors:
        if extractor.match(filename):
            return extractor
    return None
