import pytest

from lingui_i18n.descriptors import BareMessage, PluralMessage, StructuredMessage, TemplateMessage
from lingui_i18n.errors import MessageDescriptorError
from lingui_i18n.message_id import generate_message_id
from lingui_i18n.runtime import I18n, lookup, resolve, resolve_plural
from lingui_i18n.store import LocaleStore

PLURAL_ITEMS = "{num, plural, one {There is # item.} other {There are # items.}}"
ITEMS = {"one": "There is # item.", "other": "There are # items."}


@pytest.fixture
def i18n(store):
    return I18n(store)


def test_returns_source_text_without_catalog(i18n):
    assert i18n.t("hello") == "hello"
    assert i18n.t(("hello ", ""), "John") == "hello John"


def test_translates_bare_message(i18n, ja_messages):
    i18n.activate("ja", ja_messages)
    assert i18n.t("hello") == "こんにちは"


def test_translates_template_with_variable(i18n, ja_messages):
    i18n.activate("ja", ja_messages)
    assert i18n.t(("hello ", ""), "John") == "こんにちは John"


def test_translates_template_with_translated_variable(i18n, ja_messages):
    i18n.activate("ja", ja_messages)
    assert i18n.t(("hello ", ""), i18n.t("John")) == "こんにちは ジョン"


def test_context_selects_translation(i18n, ja_messages):
    i18n.activate("ja", ja_messages)
    assert i18n.t({"message": "right", "context": "direction"}) == "右"
    assert i18n.t({"message": "right", "context": "correct"}) == "正しい"
    assert i18n.t({"message": "right"}) == "right"


def test_comment_does_not_affect_lookup(i18n, ja_messages):
    i18n.activate("ja", ja_messages)
    assert i18n.t({"message": "hello", "comment": "greeting"}) == "こんにちは"
    assert i18n.t({"message": "right", "context": "direction", "comment": "turn"}) == "右"


def test_plural_without_catalog_uses_locale_rules(i18n):
    i18n.activate("en")
    assert i18n.plural(1, ITEMS) == "There is 1 item."
    assert i18n.plural(3, ITEMS) == "There are 3 items."


def test_plural_with_catalog(i18n, ja_messages):
    i18n.activate("ja", ja_messages)
    assert i18n.plural(1, ITEMS) == "1 個のアイテムがあります。"
    assert i18n.plural(7, ITEMS) == "7 個のアイテムがあります。"


def test_plural_default_locale_is_other(i18n):
    assert i18n.locale == "default"
    assert i18n.plural(1, ITEMS) == "There are 1 items."


def test_plural_exact_selector(i18n):
    i18n.activate("en")
    variations = {"=0": "No items.", "one": "One item.", "other": "# items."}
    assert i18n.plural(0, variations) == "No items."
    assert i18n.plural(1, variations) == "One item."
    assert i18n.plural(12, variations) == "12 items."


def test_aliases(i18n, ja_messages):
    i18n.activate("ja", ja_messages)
    assert i18n.gt("hello") == i18n.t("hello")
    assert i18n.g_plural(2, ITEMS) == i18n.plural(2, ITEMS)


def test_invalid_descriptor_raises(i18n):
    with pytest.raises(MessageDescriptorError):
        i18n.t({"context": "direction"})


def test_resolve_is_pure(ja_messages):
    assert resolve(BareMessage("hello"), "ja", ja_messages) == "こんにちは"
    assert resolve(StructuredMessage("right", "direction"), "ja", ja_messages) == "右"
    assert resolve(TemplateMessage(("hello ", ""), ("Ann",)), "ja", ja_messages) == "こんにちは Ann"
    assert resolve(PluralMessage(ITEMS), "en", {}, num=2) == "There are 2 items."
    assert resolve_plural(1, ITEMS, "en", {}) == "There is 1 item."


def test_plural_descriptor_requires_number():
    with pytest.raises(MessageDescriptorError):
        resolve(PluralMessage(ITEMS), "en", {})


def test_lookup_falls_back_to_message():
    messages = {generate_message_id("hello"): "hi"}
    assert lookup("hello", None, messages) == "hi"
    assert lookup("bye", None, messages) == "bye"
    assert lookup(PLURAL_ITEMS, None, {}) == PLURAL_ITEMS


def test_empty_translation_falls_back_to_message():
    messages = {generate_message_id("hello"): ""}
    assert lookup("hello", None, messages) == "hello"


def test_translation_of_argument_values_is_not_reinterpreted(i18n, ja_messages):
    i18n.activate("ja", ja_messages)
    assert i18n.t(("hello ", ""), "{0}") == "こんにちは {0}"


def test_translation_turned_into_plural_falls_back_to_text(i18n, caplog):
    translated = "{0, plural, other {# さん}}"
    i18n.activate("ja", {generate_message_id("hello {0}"): translated})

    assert i18n.t(("hello ", ""), "John") == translated
    assert "John" in caplog.text


def test_locale_switch_changes_results(ja_messages):
    i18n = I18n(LocaleStore("en"))
    assert i18n.t("hello") == "hello"
    i18n.activate("ja", ja_messages)
    assert i18n.t("hello") == "こんにちは"
    i18n.activate("en", {})
    assert i18n.t("hello") == "hello"


def test_subscribe_republishes_translate_function(i18n, ja_messages):
    seen = []
    unsubscribe = i18n.subscribe(lambda t: seen.append(t("hello")))
    i18n.activate("ja", ja_messages)
    unsubscribe()
    i18n.activate("en", {})
    assert seen == ["hello", "こんにちは"]


def test_plural_store_value_is_callable(i18n):
    i18n.activate("en")
    plural = i18n.plural_store.get()
    assert plural(1, ITEMS) == "There is 1 item."
