"""
Парсеры исходников двух диалектов.

- Скрипты (.js/.mjs/.cjs, .ts/.mts/.cts): tree-sitter с грамматиками
  javascript и typescript (ES2020+: ?., ??, классы с полями, TS-аннотации).
- Шаблоны (.svelte): preprocess() вырезает <style> и HTML-комментарии
  (с сохранением смещений), parse_template() разбирает разметку на
  Script / MustacheTag / Element / InlineComponent / Attribute, а все
  встроенные выражения отдаёт tree-sitter. Компонент с
  <script lang="ts"> разбирается грамматикой typescript целиком.

Результат - дерево ast_nodes.Node с позициями в координатах файла
(строки с 1, колонки с 0).
"""

import bisect
import re
import threading
from functools import lru_cache
from typing import Any, List, Optional, Tuple

import tree_sitter_javascript
import tree_sitter_typescript
from tree_sitter import Language, Parser

from .ast_nodes import Node, Placement, SourceText, from_parser, shifted_placement
from .errors import SourceParseError

JAVASCRIPT = "javascript"
TYPESCRIPT = "typescript"
TYPESCRIPT_EXTENSIONS = (".ts", ".mts", ".cts")

_GRAMMARS = {
    JAVASCRIPT: tree_sitter_javascript.language,
    TYPESCRIPT: tree_sitter_typescript.language_typescript,
}

_STYLE_RE = re.compile(r"<style\b[^>]*>.*?</style\s*>", re.IGNORECASE | re.DOTALL)
_COMMENT_RE = re.compile(r"<!--.*?-->", re.DOTALL)
_TS_SCRIPT_RE = re.compile(r"<script\b[^>]*\blang\s*=\s*[\"']?(?:ts|typescript)\b", re.IGNORECASE)
_TAG_NAME_RE = re.compile(r"[A-Za-z][\w.:-]*")
_ATTR_NAME_RE = re.compile(r"[^\s=/>\"'{}]+")
_BLOCK_KEYWORD_RE = re.compile(r"[#:@/]\s*([A-Za-z]+)")

VOID_ELEMENTS = frozenset((
    "area", "base", "br", "col", "embed", "hr", "img", "input", "link",
    "meta", "param", "source", "track", "wbr", "!doctype",
))


# ══════════════════════════════════════════════════
#  Скрипты
# ══════════════════════════════════════════════════

_local = threading.local()


@lru_cache(maxsize=None)
def _language(dialect: str) -> Language:
    try:
        grammar = _GRAMMARS[dialect]
    except KeyError:
        raise ValueError(f"unknown script dialect: {dialect!r}") from None
    return Language(grammar())


def _parser(dialect: str) -> Parser:
    """Парсер tree-sitter текущего потока (Parser нельзя делить между потоками)."""
    parsers = getattr(_local, "parsers", None)
    if parsers is None:
        parsers = _local.parsers = {}
    if dialect not in parsers:
        parsers[dialect] = Parser(_language(dialect))
    return parsers[dialect]


def script_dialect(filename: str) -> str:
    return TYPESCRIPT if str(filename).endswith(TYPESCRIPT_EXTENSIONS) else JAVASCRIPT


def _syntax_error(root: Any, source: SourceText, filename: str, place: Placement) -> SourceParseError:
    """Первый ошибочный или пропущенный узел дерева (pre-order)."""
    stack = [root]
    while stack:
        node = stack.pop()
        if node.type == "ERROR" or node.is_missing:
            line, column = place(*source.position(node.start_byte))
            if node.is_missing:
                reason = f"missing {node.type!r}"
            else:
                snippet = source.slice(node.start_byte, node.end_byte).strip().split("\n")[0][:30]
                reason = f"unexpected {snippet!r}" if snippet else "unexpected end of input"
            return SourceParseError(reason, filename, line, column)
        if node.has_error:
            stack.extend(reversed(node.children))
    line, column = place(1, 0)
    return SourceParseError("syntax error", filename, line, column)


def parse_script(source: str, filename: str = "", place: Optional[Placement] = None,
                 dialect: str = JAVASCRIPT) -> Node:
    """
    Разбирает JS/TS-модуль.

    Raises:
        SourceParseError: в исходнике есть синтаксическая ошибка
    """
    place = place or shifted_placement(1, 0)
    text = SourceText(source)
    tree = _parser(dialect).parse(text.data)
    root = tree.root_node
    if root.has_error:
        raise _syntax_error(root, text, filename, place)
    return from_parser(root, text, place)


def _single_child(node: Optional[Node], node_type: str) -> Optional[Node]:
    children = node.get("children") if node is not None else None
    if not children or len(children) != 1 or children[0].type != node_type:
        return None
    return children[0]


def parse_expression(text: str, filename: str, line: int, column: int,
                     dialect: str = JAVASCRIPT) -> Node:
    """Разбирает одиночное выражение, начинающееся в (line, column) файла."""
    if not text.strip():
        raise SourceParseError("empty expression", filename, line, column)
    # Скобки, чтобы '{...}' разбиралось как объект, а не как блок
    program = parse_script(f"({text}\n)", filename, shifted_placement(line, column, prefix=1), dialect)
    statement = _single_child(program, "expression_statement")
    wrapped = _single_child(statement, "parenthesized_expression")
    inner = wrapped.get("children") if wrapped is not None else None
    if not inner or len(inner) != 1:
        raise SourceParseError("expected a single expression", filename, line, column)
    return inner[0]


# ══════════════════════════════════════════════════
#  Лексические помощники для JS внутри разметки
# ══════════════════════════════════════════════════

def _skip_string(source: str, i: int) -> int:
    quote = source[i]
    i += 1
    while i < len(source):
        ch = source[i]
        if ch == "\\":
            i += 2
            continue
        if ch == quote:
            return i + 1
        i += 1
    raise SourceParseError("unterminated string literal")


def _skip_template_literal(source: str, i: int) -> int:
    i += 1
    while i < len(source):
        ch = source[i]
        if ch == "\\":
            i += 2
            continue
        if ch == "`":
            return i + 1
        if source.startswith("${", i):
            i = find_closing_brace(source, i + 2) + 1
            continue
        i += 1
    raise SourceParseError("unterminated template literal")


def find_closing_brace(source: str, start: int) -> int:
    """
    Индекс '}', закрывающего выражение, которое начинается с start.

    Учитывает строки, шаблонные литералы (с вложенными ${}), комментарии
    и вложенные скобки.
    """
    depth = 0
    i = start
    while i < len(source):
        ch = source[i]
        if ch in ("'", '"'):
            i = _skip_string(source, i)
            continue
        if ch == "`":
            i = _skip_template_literal(source, i)
            continue
        if source.startswith("//", i):
            newline = source.find("\n", i)
            i = len(source) if newline < 0 else newline
            continue
        if source.startswith("/*", i):
            end = source.find("*/", i + 2)
            if end < 0:
                break
            i = end + 2
            continue
        if ch in "{([":
            depth += 1
        elif ch in "})]":
            if depth == 0:
                if ch == "}":
                    return i
                raise SourceParseError(f"unexpected {ch!r}")
            depth -= 1
        i += 1
    raise SourceParseError("unterminated expression")


def _find_top_level(source: str, start: int, end: int, pattern: "re.Pattern") -> int:
    """Первое совпадение pattern на нулевой глубине скобок в source[start:end]."""
    depth = 0
    i = start
    while i < end:
        ch = source[i]
        if ch in ("'", '"'):
            i = _skip_string(source, i)
            continue
        if ch == "`":
            i = _skip_template_literal(source, i)
            continue
        if ch in "{([":
            depth += 1
        elif ch in "})]":
            depth -= 1
        elif depth == 0 and pattern.match(source, i, end):
            return i
        i += 1
    return -1


# ══════════════════════════════════════════════════
#  Шаблоны
# ══════════════════════════════════════════════════

def _blank(match: "re.Match") -> str:
    return re.sub(r"[^\n]", " ", match.group(0))


def preprocess(source: str) -> str:
    """
    Убирает из шаблона <style> и HTML-комментарии.

    Вырезанное заменяется пробелами с сохранением переводов строк, поэтому
    позиции остального кода не меняются.
    """
    source = _COMMENT_RE.sub(_blank, source)
    return _STYLE_RE.sub(_blank, source)


_AS_RE = re.compile(r"\s+as\b")
_THEN_RE = re.compile(r"\s+(?:then|catch)\b")


class _TemplateParser:
    """Разбор разметки компонента в дерево Node."""

    def __init__(self, source: str, filename: str):
        self.source = source
        self.filename = filename
        self.pos = 0
        self.dialect = TYPESCRIPT if _TS_SCRIPT_RE.search(source) else JAVASCRIPT
        self._line_starts = [0] + [m.end() for m in re.finditer(r"\n", source)]
        self.root = Node("Fragment", {"children": []}, 1, 0)
        self._stack: List[Node] = [self.root]

    # ── Позиции и ошибки ──

    def _position(self, offset: int) -> Tuple[int, int]:
        index = bisect.bisect_right(self._line_starts, offset) - 1
        return index + 1, offset - self._line_starts[index]

    def _error(self, reason: str, offset: Optional[int] = None) -> SourceParseError:
        line, column = self._position(self.pos if offset is None else offset)
        return SourceParseError(reason, self.filename, line, column)

    def _append(self, node: Node) -> None:
        self._stack[-1].fields["children"].append(node)

    def _closing_brace(self, start: int) -> int:
        try:
            return find_closing_brace(self.source, start)
        except SourceParseError as exc:
            raise self._error(str(exc), start - 1) from None

    # ── Главный цикл ──

    def parse(self) -> Node:
        source = self.source
        while self.pos < len(source):
            ch = source[self.pos]
            if ch == "<" and source.startswith("</", self.pos):
                self._close_tag()
            elif ch == "<" and source.startswith("<!", self.pos):
                end = source.find(">", self.pos)
                self.pos = len(source) if end < 0 else end + 1
            elif ch == "<" and _TAG_NAME_RE.match(source, self.pos + 1):
                self._open_tag()
            elif ch == "{":
                self._append(self._mustache())
            else:
                self.pos += 1

        if len(self._stack) > 1:
            unclosed = self._stack[-1]
            raise SourceParseError(f"<{unclosed.get('name')}> was left open",
                                   self.filename, unclosed.line, unclosed.column)
        return self.root

    # ── Теги ──

    def _open_tag(self) -> None:
        start = self.pos
        line, column = self._position(start)
        name = _TAG_NAME_RE.match(self.source, start + 1).group(0)
        self.pos = start + 1 + len(name)
        attributes, self_closing = self._attributes()

        if name.lower() == "script":
            if self_closing:
                self._append(Node("Script", {"attributes": attributes, "content": None}, line, column))
            else:
                self._script(attributes, line, column)
            return

        kind = "InlineComponent" if name[0].isupper() or "." in name else "Element"
        node = Node(kind, {"name": name, "attributes": attributes, "children": []}, line, column)
        self._append(node)
        if not self_closing and name.lower() not in VOID_ELEMENTS:
            self._stack.append(node)

    def _close_tag(self) -> None:
        start = self.pos
        end = self.source.find(">", start)
        if end < 0:
            raise self._error("unterminated closing tag")
        name = self.source[start + 2:end].strip()
        self.pos = end + 1
        for depth in range(len(self._stack) - 1, 0, -1):
            if self._stack[depth].get("name") == name:
                del self._stack[depth:]
                return
        raise self._error(f"</{name}> attempted to close an element that was not open", start)

    def _attributes(self) -> Tuple[List[Node], bool]:
        source = self.source
        attributes: List[Node] = []
        while True:
            while self.pos < len(source) and source[self.pos].isspace():
                self.pos += 1
            if self.pos >= len(source):
                raise self._error("unterminated tag")
            if source.startswith("/>", self.pos):
                self.pos += 2
                return attributes, True
            if source[self.pos] == ">":
                self.pos += 1
                return attributes, False
            if source[self.pos] == "{":
                attributes.append(self._shorthand_attribute())
                continue

            match = _ATTR_NAME_RE.match(source, self.pos)
            if not match:
                raise self._error(f"unexpected character {source[self.pos]!r} in tag")
            line, column = self._position(self.pos)
            name = match.group(0)
            self.pos = match.end()
            value = True
            if source.startswith("=", self.pos):
                self.pos += 1
                value = self._attribute_value()
            attributes.append(Node("Attribute", {"name": name, "value": value}, line, column))

    def _shorthand_attribute(self) -> Node:
        start = self.pos
        end = self._closing_brace(start + 1)
        line, column = self._position(start)
        inner = self.source[start + 1:end]
        self.pos = end + 1
        stripped = inner.strip()
        if stripped.startswith("..."):
            offset = start + 1 + inner.index("...") + 3
            expression = self._expression(self.source[offset:end], offset)
            return Node("Spread", {"expression": expression}, line, column)
        expression = self._expression(inner, start + 1)
        tag = Node("MustacheTag", {"kind": "expression", "expression": expression}, line, column)
        return Node("Attribute", {"name": stripped, "value": [tag]}, line, column)

    def _attribute_value(self) -> List[Node]:
        source = self.source
        if self.pos >= len(source):
            raise self._error("unterminated attribute")
        quote = source[self.pos] if source[self.pos] in ("'", '"') else ""
        if quote:
            self.pos += 1

        chunks: List[Node] = []
        text_start = self.pos
        while self.pos < len(source):
            ch = source[self.pos]
            if quote and ch == quote:
                break
            if not quote and (ch.isspace() or ch == ">" or source.startswith("/>", self.pos)):
                break
            if ch == "{":
                self._text_chunk(chunks, text_start, self.pos)
                chunks.append(self._mustache())
                text_start = self.pos
                if not quote:
                    break
                continue
            self.pos += 1
        else:
            if quote:
                raise self._error("unterminated attribute value")

        self._text_chunk(chunks, text_start, self.pos)
        if quote:
            self.pos += 1
        return chunks

    def _text_chunk(self, chunks: List[Node], start: int, end: int) -> None:
        if end > start:
            line, column = self._position(start)
            chunks.append(Node("Text", {"data": self.source[start:end]}, line, column))

    # ── <script> ──

    def _script(self, attributes: List[Node], line: int, column: int) -> None:
        match = re.compile(r"</script\s*>", re.IGNORECASE).search(self.source, self.pos)
        if not match:
            raise self._error("<script> was left open")
        content_start = self.pos
        content = self.source[content_start:match.start()]
        self.pos = match.end()
        content_line, content_column = self._position(content_start)
        program = parse_script(content, self.filename,
                               shifted_placement(content_line, content_column), self.dialect)
        self._append(Node("Script", {"attributes": attributes, "content": program}, line, column))

    # ── {...} ──

    def _expression(self, text: str, offset: int) -> Node:
        line, column = self._position(offset)
        return parse_expression(text, self.filename, line, column, self.dialect)

    def _mustache(self) -> Node:
        start = self.pos
        end = self._closing_brace(start + 1)
        self.pos = end + 1
        line, column = self._position(start)
        inner_start = start + 1
        while inner_start < end and self.source[inner_start].isspace():
            inner_start += 1

        keyword = _BLOCK_KEYWORD_RE.match(self.source, inner_start, end)
        if not keyword:
            expression = self._expression(self.source[inner_start:end], inner_start)
            return Node("MustacheTag", {"kind": "expression", "expression": expression}, line, column)

        sigil = self.source[inner_start]
        word = keyword.group(1)
        rest = keyword.end()
        kind = f"{sigil}{word}"
        expression = None

        if sigil == ":" and word == "else":
            if_match = re.compile(r"\s+if\b").match(self.source, rest, end)
            if if_match:
                kind = ":else if"
                expression = self._expression(self.source[if_match.end():end], if_match.end())
        elif sigil == "#" and word == "each":
            as_index = _find_top_level(self.source, rest, end, _AS_RE)
            stop = end if as_index < 0 else as_index
            expression = self._expression(self.source[rest:stop], rest)
        elif sigil == "#" and word == "await":
            then_index = _find_top_level(self.source, rest, end, _THEN_RE)
            stop = end if then_index < 0 else then_index
            expression = self._expression(self.source[rest:stop], rest)
        elif (sigil == "#" and word in ("if", "key")) or \
                (sigil == "@" and word in ("html", "render")):
            expression = self._expression(self.source[rest:end], rest)
        elif sigil == "@" and word == "const":
            const_line, const_column = self._position(keyword.start(1))
            expression = parse_script(self.source[keyword.start(1):end], self.filename,
                                      shifted_placement(const_line, const_column), self.dialect)

        return Node("MustacheTag", {"kind": kind, "expression": expression}, line, column)


def parse_template(source: str, filename: str = "") -> Node:
    """
    Разбирает разметку компонента (после preprocess) в дерево Node.

    Raises:
        SourceParseError: незакрытые теги, несбалансированные выражения,
            ошибки разбора встроенного JS
    """
    return _TemplateParser(source, filename).parse()
