import pytest

from lingui_i18n.message_id import ID_LENGTH, generate_message_id


@pytest.mark.parametrize(
    "message, context, expected",
    [
        ("hello", None, "WfCysZ"),
        ("hello {0}", None, "6uab1l"),
        ("right", "direction", "d1wX4r"),
        ("right", "correct", "7RmZ+T"),
    ],
)
def test_known_ids(message, context, expected):
    assert generate_message_id(message, context) == expected


def test_id_is_deterministic_and_short():
    first = generate_message_id("There are # items.")
    assert first == generate_message_id("There are # items.")
    assert len(first) == ID_LENGTH


def test_empty_context_equals_missing_context():
    assert generate_message_id("hello", "") == generate_message_id("hello")
    assert generate_message_id("hello", None) == generate_message_id("hello")


def test_context_changes_id():
    assert generate_message_id("right", "direction") != generate_message_id("right", "correct")
    assert generate_message_id("right", "direction") != generate_message_id("right")


def test_separator_prevents_concatenation_collisions():
    assert generate_message_id("ab", "c") != generate_message_id("a", "bc")


def test_non_ascii_messages():
    assert len(generate_message_id("こんにちは", "挨拶")) == ID_LENGTH
