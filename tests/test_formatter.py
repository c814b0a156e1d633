import logging

import pytest

from lingui_i18n.errors import MessageFormatError
from lingui_i18n.formatter import format_message, parse_message


def test_plain_text_is_returned_untouched():
    assert format_message("hello") == "hello"


def test_positional_and_named_arguments():
    assert format_message("hello {0}", {"0": "John"}) == "hello John"
    assert format_message("{greeting}, {name}!", {"greeting": "Hi", "name": "Ann"}) == "Hi, Ann!"


def test_missing_argument_is_kept_verbatim():
    assert format_message("hello {0}", {}) == "hello {0}"


def test_argument_values_are_not_reparsed():
    assert format_message("hello {0}", {"0": "{1} {num, plural, other {#}}"}) == \
        "hello {1} {num, plural, other {#}}"


def test_plural_uses_locale_category():
    text = "{num, plural, one {There is # item.} other {There are # items.}}"
    assert format_message(text, {"num": 1}, "en") == "There is 1 item."
    assert format_message(text, {"num": 5}, "en") == "There are 5 items."
    assert format_message(text, {"num": 1}, "ja") == "There are 1 items."


def test_exact_selector_wins_over_category():
    text = "{num, plural, one {one item} =1 {exactly one} other {# items}}"
    assert format_message(text, {"num": 1}, "en") == "exactly one"
    assert format_message(text, {"num": 2}, "en") == "2 items"


def test_missing_category_falls_back_to_other():
    text = "{num, plural, other {# 件があります。}}"
    assert format_message(text, {"num": 1}, "en") == "1 件があります。"


def test_missing_category_without_other_renders_empty():
    assert format_message("[{num, plural, one {one}}]", {"num": 3}, "en") == "[]"


def test_plural_offset():
    text = "{num, plural, offset:1 =0 {nobody} =1 {just you} one {you and # other} other {you and # others}}"
    assert format_message(text, {"num": 0}, "en") == "nobody"
    assert format_message(text, {"num": 1}, "en") == "just you"
    assert format_message(text, {"num": 2}, "en") == "you and 1 other"
    assert format_message(text, {"num": 4}, "en") == "you and 3 others"


def test_selectordinal():
    text = "{num, selectordinal, one {#st} two {#nd} few {#rd} other {#th}}"
    assert [format_message(text, {"num": n}, "en") for n in (1, 2, 3, 4, 11)] == \
        ["1st", "2nd", "3rd", "4th", "11th"]


def test_select():
    text = "{gender, select, female {she} male {he} other {they}}"
    assert format_message(text, {"gender": "female"}) == "she"
    assert format_message(text, {"gender": "unknown"}) == "they"


def test_nested_arguments_inside_plural():
    text = "{num, plural, one {{name} has # cat} other {{name} has # cats}}"
    assert format_message(text, {"num": 2, "name": "Ann"}, "en") == "Ann has 2 cats"


def test_pound_outside_plural_is_literal():
    assert format_message("item #{0}", {"0": 3}) == "item #3"


def test_apostrophe_escaping():
    assert format_message("it''s {0}", {"0": "ok"}) == "it's ok"
    assert format_message("'{literal}' {0}", {"0": "x"}) == "{literal} x"
    assert format_message("don't") == "don't"


def test_typed_argument_style_is_ignored():
    assert format_message("{count, number, integer} left", {"count": 7}) == "7 left"


def test_malformed_message_logs_warning_and_returns_text(caplog):
    with caplog.at_level(logging.WARNING, logger="lingui_i18n.formatter"):
        assert format_message("broken {num, plural, one {x}", {"num": 1}) == "broken {num, plural, one {x}"
    assert "ICU" in caplog.text


@pytest.mark.parametrize("text", ["{", "}", "{}", "{num, plural, }", "{num, plural, one x}"])
def test_parse_errors(text):
    with pytest.raises(MessageFormatError):
        parse_message(text)


def test_non_numeric_plural_argument_logs_warning_and_returns_text(caplog):
    text = "{num, plural, other {# items}}"
    with caplog.at_level(logging.WARNING, logger="lingui_i18n.formatter"):
        assert format_message(text, {"num": "many"}, "en") == text
    assert "many" in caplog.text
