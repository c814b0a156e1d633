"""
Форматирование ICU MessageFormat-сообщений из каталога.

Поддерживается подмножество, которое порождают экстрактор и переводчики:
- аргументы {name} / {0}
- {n, plural, [offset:k] =N {...} one {...} other {...}} и '#'
- {n, selectordinal, ...}
- {v, select, key {...} other {...}}
- экранирование апострофом ('' -> ', '{...}' -> литерал)

Подстановка однопроходная: значения аргументов никогда не разбираются
повторно как шаблон.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from functools import lru_cache
from typing import Any, Mapping, Optional, Tuple

from .errors import MessageFormatError
from .plural import format_number, matches_exact, plural_category

logger = logging.getLogger(__name__)

_NAME_STOP = set(" \t\r\n,{}#'")


@dataclass(frozen=True)
class _Pound:
    pass


@dataclass(frozen=True)
class _Argument:
    name: str
    source: str


@dataclass(frozen=True)
class _Plural:
    name: str
    source: str
    options: Tuple[Tuple[str, tuple], ...]
    offset: int = 0
    ordinal: bool = False


@dataclass(frozen=True)
class _Select:
    name: str
    source: str
    options: Tuple[Tuple[str, tuple], ...]


class _Parser:
    """Рекурсивный спуск по тексту сообщения."""

    def __init__(self, text: str):
        self.text = text
        self.pos = 0

    def parse(self) -> tuple:
        nodes = self._message(in_plural=False)
        if self.pos < len(self.text):
            raise self._error("unexpected '}'")
        return nodes

    # ── Вспомогательные ──

    def _error(self, reason: str) -> MessageFormatError:
        return MessageFormatError(f"{reason} at position {self.pos}", self.text, self.pos)

    def _peek(self, offset: int = 0) -> str:
        index = self.pos + offset
        return self.text[index] if index < len(self.text) else ""

    def _skip_ws(self) -> None:
        while self.pos < len(self.text) and self.text[self.pos].isspace():
            self.pos += 1

    def _expect(self, char: str) -> None:
        if self._peek() != char:
            found = repr(self._peek()) if self._peek() else "end of message"
            raise self._error(f"expected {char!r}, found {found}")
        self.pos += 1

    def _read_name(self) -> str:
        start = self.pos
        while self.pos < len(self.text) and self.text[self.pos] not in _NAME_STOP:
            self.pos += 1
        return self.text[start:self.pos]

    # ── Грамматика ──

    def _message(self, in_plural: bool) -> tuple:
        nodes = []
        buf = []

        def flush():
            if buf:
                nodes.append("".join(buf))
                buf.clear()

        while self.pos < len(self.text):
            ch = self.text[self.pos]
            if ch == "{":
                flush()
                nodes.append(self._argument(in_plural))
            elif ch == "}":
                break
            elif ch == "#" and in_plural:
                flush()
                nodes.append(_Pound())
                self.pos += 1
            elif ch == "'":
                buf.append(self._quoted(in_plural))
            else:
                buf.append(ch)
                self.pos += 1
        flush()
        return tuple(nodes)

    def _quoted(self, in_plural: bool) -> str:
        nxt = self._peek(1)
        if nxt == "'":
            self.pos += 2
            return "'"
        if not (nxt in ("{", "}") or (nxt == "#" and in_plural)):
            self.pos += 1
            return "'"

        # '{...}' - литерал до следующего одиночного апострофа
        self.pos += 1
        chars = []
        while self.pos < len(self.text):
            ch = self.text[self.pos]
            if ch == "'":
                if self._peek(1) == "'":
                    chars.append("'")
                    self.pos += 2
                    continue
                self.pos += 1
                break
            chars.append(ch)
            self.pos += 1
        return "".join(chars)

    def _argument(self, in_plural: bool):
        start = self.pos
        self._expect("{")
        self._skip_ws()
        name = self._read_name()
        if not name:
            raise self._error("empty argument name")
        self._skip_ws()

        if self._peek() == "}":
            self.pos += 1
            return _Argument(name, self.text[start:self.pos])

        self._expect(",")
        self._skip_ws()
        kind = self._read_name()
        self._skip_ws()

        if kind in ("plural", "selectordinal"):
            self._expect(",")
            offset = self._offset() if kind == "plural" else 0
            options = self._options(in_plural=True)
            self._expect("}")
            return _Plural(name, self.text[start:self.pos], options,
                           offset=offset, ordinal=kind == "selectordinal")

        if kind == "select":
            self._expect(",")
            options = self._options(in_plural=in_plural)
            self._expect("}")
            return _Select(name, self.text[start:self.pos], options)

        if not kind:
            raise self._error("missing argument type")

        # number, date, time и т.п. - стиль пропускаем, выводим str(value)
        if self._peek() == ",":
            self._skip_balanced()
        self._expect("}")
        return _Argument(name, self.text[start:self.pos])

    def _offset(self) -> int:
        self._skip_ws()
        if not self.text.startswith("offset:", self.pos):
            return 0
        self.pos += len("offset:")
        self._skip_ws()
        start = self.pos
        while self._peek().isdigit():
            self.pos += 1
        if start == self.pos:
            raise self._error("invalid plural offset")
        return int(self.text[start:self.pos])

    def _options(self, in_plural: bool) -> Tuple[Tuple[str, tuple], ...]:
        options = []
        while True:
            self._skip_ws()
            if self._peek() in ("}", ""):
                break
            selector = self._read_name()
            if not selector:
                raise self._error("expected selector")
            self._skip_ws()
            self._expect("{")
            body = self._message(in_plural)
            self._expect("}")
            options.append((selector, body))
        if not options:
            raise self._error("expected at least one option")
        return tuple(options)

    def _skip_balanced(self) -> None:
        depth = 0
        while self.pos < len(self.text):
            ch = self.text[self.pos]
            if ch == "{":
                depth += 1
            elif ch == "}":
                if depth == 0:
                    return
                depth -= 1
            self.pos += 1
        raise self._error("unexpected end of message")


@lru_cache(maxsize=1024)
def parse_message(text: str) -> tuple:
    """
    Разбирает ICU-сообщение в кортеж узлов.

    Raises:
        MessageFormatError: при синтаксической ошибке
    """
    return _Parser(text).parse()


def _to_number(name: str, value: Any):
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float, Decimal)):
        return value
    try:
        return Decimal(str(value))
    except InvalidOperation:
        raise MessageFormatError(f"plural argument {name!r} is not a number: {value!r}") from None


def _pick(options, key: str):
    for selector, body in options:
        if selector == key:
            return body
    return None


def _render(nodes: tuple, values: Mapping[str, Any], locale: Optional[str], pound) -> str:
    out = []
    for node in nodes:
        if isinstance(node, str):
            out.append(node)
        elif isinstance(node, _Pound):
            out.append(format_number(pound) if pound is not None else "#")
        elif node.name not in values:
            out.append(node.source)
        elif isinstance(node, _Argument):
            out.append(str(values[node.name]))
        elif isinstance(node, _Select):
            body = _pick(node.options, str(values[node.name]))
            if body is None:
                body = _pick(node.options, "other")
            out.append(_render(body, values, locale, pound) if body is not None else "")
        else:
            num = _to_number(node.name, values[node.name])
            body = None
            # =N проверяются раньше категорий
            for selector, option in node.options:
                if matches_exact(selector, num):
                    body = option
                    break
            shifted = num - node.offset if node.offset else num
            if body is None:
                category = plural_category(shifted, locale, ordinal=node.ordinal)
                body = _pick(node.options, category)
            if body is None:
                body = _pick(node.options, "other")
            out.append(_render(body, values, locale, shifted) if body is not None else "")
    return "".join(out)


def format_message(text: str, values: Optional[Mapping[str, Any]] = None,
                   locale: Optional[str] = None) -> str:
    """
    Форматирует сообщение каталога.

    Некорректный ICU-текст не роняет вызывающий код: пишется warning и
    возвращается исходная строка.

    Args:
        text: Шаблон сообщения (перевод или исходный текст)
        values: Значения аргументов
        locale: Активная локаль (для plural-категорий)

    Returns:
        Готовая строка
    """
    if not any(ch in text for ch in "{}'"):
        return text
    try:
        nodes = parse_message(text)
    except MessageFormatError as exc:
        logger.warning("Сообщение не разобрано как ICU (%s): %r", exc, text)
        return text
    try:
        return _render(nodes, values or {}, locale, None)
    except MessageFormatError as exc:
        logger.warning("Сообщение не отформатировано (%s): %r", exc, text)
        return text
