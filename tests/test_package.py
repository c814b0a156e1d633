import pytest

import lingui_i18n


@pytest.fixture(autouse=True)
def reset_default_instance():
    yield
    lingui_i18n.i18n.store.reset()


def test_module_level_helpers(ja_messages):
    assert lingui_i18n.get_locale() == "en"
    assert lingui_i18n.t("hello") == "hello"

    lingui_i18n.set_locale("ja", ja_messages)
    assert lingui_i18n.get_locale() == "ja"
    assert lingui_i18n.t("hello") == "こんにちは"
    assert lingui_i18n.t(("hello ", ""), "John") == "こんにちは John"
    assert lingui_i18n.plural(2, {"one": "There is # item.", "other": "There are # items."}) == \
        "2 個のアイテムがあります。"


def test_public_names_are_exported():
    for name in lingui_i18n.__all__:
        assert hasattr(lingui_i18n, name)
