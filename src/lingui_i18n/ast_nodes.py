"""
Минимальный структурный интерфейс узла AST.

Распознаватели работают только с Node(type, fields, line, column), поэтому
не зависят от конкретного парсера. Синтаксическое дерево tree-sitter
конвертируется в Node:

- узлы, нужные распознавателям, получают форму ESTree
  (CallExpression, TaggedTemplateExpression, TemplateLiteral,
  ObjectExpression, Property, Literal, Identifier);
- остальные сохраняют тип tree-sitter и хранят детей в поле children
  в порядке исходника.

Позиции пересчитываются во внешние координаты файла (для фрагментов,
вырезанных из .svelte): строки с 1, колонки с 0 в символах.
"""

import bisect
import re
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

# (строка фрагмента, колонка фрагмента) -> (строка файла, колонка файла)
Placement = Callable[[int, int], Tuple[int, int]]

_COMMENT_TYPES = frozenset(("comment", "html_comment"))
_IDENTIFIER_TYPES = frozenset(("identifier", "property_identifier", "shorthand_property_identifier"))

_ESCAPE_RE = re.compile(
    r"\\(u\{[0-9A-Fa-f]+\}|u[0-9A-Fa-f]{4}|x[0-9A-Fa-f]{2}|[0-3][0-7]{0,2}|[4-7][0-7]?|\r\n|[\s\S])"
)
_SIMPLE_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "b": "\b", "f": "\f", "v": "\v"}
_LINE_TERMINATORS = frozenset(("\n", "\r", "\r\n", "\u2028", "\u2029"))


class Node:
    """Узел AST: тип, поля (дочерние узлы и скаляры), позиция начала."""

    __slots__ = ("type", "fields", "line", "column")

    def __init__(self, type: str, fields: Optional[Dict[str, Any]] = None,
                 line: int = 0, column: int = 0):
        self.type = type
        self.fields = fields if fields is not None else {}
        self.line = line
        self.column = column

    def get(self, name: str, default: Any = None) -> Any:
        return self.fields.get(name, default)

    def children(self) -> Iterator["Node"]:
        """Дочерние узлы в порядке полей, слева направо."""
        for value in self.fields.values():
            if isinstance(value, Node):
                yield value
            elif isinstance(value, list):
                for item in value:
                    if isinstance(item, Node):
                        yield item

    def __repr__(self) -> str:
        return f"Node({self.type!r}, line={self.line}, column={self.column})"


def walk(root: Node) -> Iterator[Node]:
    """Обход в глубину, pre-order, дети слева направо."""
    stack: List[Node] = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(list(node.children())))


def shifted_placement(line: int, column: int, prefix: int = 0) -> Placement:
    """
    Пересчёт позиций фрагмента, начинающегося в (line, column) файла.

    prefix - число символов, добавленных перед фрагментом при разборе
    (например, открывающая скобка вокруг выражения).
    """
    def place(frag_line: int, frag_column: int) -> Tuple[int, int]:
        if frag_line == 1:
            return line, column + frag_column - prefix
        return line + frag_line - 1, frag_column

    return place


def _identity(frag_line: int, frag_column: int) -> Tuple[int, int]:
    return frag_line, frag_column


class SourceText:
    """Текст фрагмента: байты для tree-sitter и пересчёт байтовых смещений в позиции."""

    def __init__(self, text: str):
        self.text = text
        self.data = text.encode("utf-8", "surrogatepass")
        self._line_starts = [0] + [m.end() for m in re.finditer("\n", text)]
        self._char_at: Optional[List[int]] = None
        if len(self.data) != len(text):
            self._char_at = []
            for index, ch in enumerate(text):
                self._char_at.extend([index] * len(ch.encode("utf-8", "surrogatepass")))
            self._char_at.append(len(text))

    def char_offset(self, byte: int) -> int:
        return byte if self._char_at is None else self._char_at[byte]

    def position(self, byte: int) -> Tuple[int, int]:
        """(строка с 1, колонка с 0) для байтового смещения."""
        offset = self.char_offset(byte)
        index = bisect.bisect_right(self._line_starts, offset) - 1
        return index + 1, offset - self._line_starts[index]

    def slice(self, start: int, end: int) -> str:
        return self.data[start:end].decode("utf-8", "surrogatepass")


# ══════════════════════════════════════════════════
#  Значения литералов
# ══════════════════════════════════════════════════

def cook_escapes(raw: str, template: bool = False) -> Optional[str]:
    """
    Значение строки JS по её исходному тексту (без кавычек).

    Returns:
        Строка или None, если escape-последовательность недопустима
        (для шаблонного литерала это cooked = undefined)
    """
    invalid = False

    def replace(match: "re.Match") -> str:
        nonlocal invalid
        body = match.group(1)
        if body.startswith("u{"):
            code = int(body[2:-1], 16)
            if code > 0x10FFFF:
                invalid = True
                return ""
            return chr(code)
        if len(body) > 1 and body[0] in "ux":
            return chr(int(body[1:], 16))
        if body in _LINE_TERMINATORS:
            return ""
        if body[0] in "01234567":
            if body == "0":
                return "\0"
            if template:
                invalid = True
                return ""
            return chr(int(body, 8))
        if body in ("u", "x") or (template and body in ("8", "9")):
            invalid = True
            return ""
        return _SIMPLE_ESCAPES.get(body, body)

    cooked = _ESCAPE_RE.sub(replace, raw)
    if invalid:
        return None
    if any("\ud800" <= ch <= "\udfff" for ch in cooked):
        # \uD83D\uDE00 -> одна кодовая точка
        try:
            cooked = cooked.encode("utf-16", "surrogatepass").decode("utf-16")
        except UnicodeDecodeError:
            pass
    return cooked


def _number_value(raw: str) -> Optional[float]:
    text = raw.replace("_", "").rstrip("n")
    try:
        if text[:2].lower() in ("0x", "0o", "0b"):
            return int(text, 0)
        if text.isdigit():
            return int(text)
        return float(text)
    except ValueError:
        return None


# ══════════════════════════════════════════════════
#  tree-sitter -> Node
# ══════════════════════════════════════════════════

def named_children(ts_node: Any) -> List[Any]:
    """Именованные дети узла tree-sitter без комментариев."""
    return [child for child in ts_node.named_children if child.type not in _COMMENT_TYPES]


class TreeConverter:
    """
    Конвертирует дерево tree-sitter в Node.

    convert_<type> задаёт форму ESTree для узлов, которые читают
    распознаватели; остальные узлы конвертируются обобщённо.
    """

    def __init__(self, source: SourceText, place: Placement = _identity):
        self.source = source
        self.place = place

    def _position(self, byte: int) -> Tuple[int, int]:
        return self.place(*self.source.position(byte))

    def _text(self, ts_node: Any) -> str:
        return self.source.slice(ts_node.start_byte, ts_node.end_byte)

    def convert(self, ts_node: Any) -> Node:
        line, column = self._position(ts_node.start_byte)
        handler = getattr(self, f"convert_{ts_node.type}", None)
        if ts_node.type in _IDENTIFIER_TYPES:
            node_type, fields = "Identifier", {"name": self._text(ts_node)}
        elif handler is not None:
            node_type, fields = handler(ts_node)
        else:
            node_type, fields = ts_node.type, {"children": self.convert_all(named_children(ts_node))}
        return Node(node_type, fields, line, column)

    def convert_all(self, ts_nodes: List[Any]) -> List[Node]:
        return [self.convert(ts_node) for ts_node in ts_nodes]

    # ── Литералы ──

    def convert_string(self, ts_node: Any):
        raw = self._text(ts_node)
        body = raw[1:-1]
        value = cook_escapes(body)
        return "Literal", {"value": body if value is None else value, "raw": raw}

    def convert_number(self, ts_node: Any):
        raw = self._text(ts_node)
        return "Literal", {"value": _number_value(raw), "raw": raw}

    def convert_template_string(self, ts_node: Any):
        quasis: List[Node] = []
        expressions: List[Node] = []
        start = ts_node.start_byte + 1
        for child in ts_node.named_children:
            if child.type != "template_substitution":
                continue
            quasis.append(self._template_element(start, child.start_byte))
            expressions.extend(self.convert_all(named_children(child)))
            start = child.end_byte
        quasis.append(self._template_element(start, ts_node.end_byte - 1))
        return "TemplateLiteral", {"quasis": quasis, "expressions": expressions}

    def _template_element(self, start: int, end: int) -> Node:
        raw = self.source.slice(start, end).replace("\r\n", "\n").replace("\r", "\n")
        line, column = self._position(start)
        value = {"cooked": cook_escapes(raw, template=True), "raw": raw}
        return Node("TemplateElement", {"value": value}, line, column)

    # ── Вызовы ──

    def convert_call_expression(self, ts_node: Any):
        function = ts_node.child_by_field_name("function")
        arguments = ts_node.child_by_field_name("arguments")
        callee = self.convert(function) if function is not None else None
        if arguments is not None and arguments.type == "template_string":
            return "TaggedTemplateExpression", {"tag": callee, "quasi": self.convert(arguments)}
        args = self.convert_all(named_children(arguments)) if arguments is not None else []
        return "CallExpression", {"callee": callee, "arguments": args}

    # ── Объекты ──

    def convert_object(self, ts_node: Any):
        return "ObjectExpression", {"properties": [self._property(child) for child in named_children(ts_node)]}

    def _property(self, ts_node: Any) -> Node:
        if ts_node.type == "pair":
            key = ts_node.child_by_field_name("key")
            value = ts_node.child_by_field_name("value")
            line, column = self._position(ts_node.start_byte)
            fields = {
                "key": self.convert(key),
                "value": self.convert(value) if value is not None else None,
                "computed": key.type == "computed_property_name",
                "kind": "init",
            }
            return Node("Property", fields, line, column)
        if ts_node.type == "shorthand_property_identifier":
            key = self.convert(ts_node)
            fields = {"key": key, "value": self.convert(ts_node), "computed": False,
                      "kind": "init", "shorthand": True}
            return Node("Property", fields, key.line, key.column)
        # spread, методы, геттеры - динамические свойства
        return self.convert(ts_node)


def from_parser(ts_node: Any, source: SourceText, place: Placement = _identity) -> Node:
    """Конвертирует узел tree-sitter (и его поддерево) в Node."""
    return TreeConverter(source, place).convert(ts_node)
