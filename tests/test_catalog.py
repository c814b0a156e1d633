import json

import pytest

from lingui_i18n.catalog import MessageCatalog, load_all, load_messages
from lingui_i18n.errors import I18nError
from lingui_i18n.extractor import MessageRecord, Origin
from lingui_i18n.message_id import generate_message_id
from lingui_i18n.runtime import I18n

RECORDS = [
    MessageRecord.create("hello", origin=Origin("src/a.js", 1, 0)),
    MessageRecord.create("right", "direction", "turn", Origin("src/a.js", 2, 4)),
    MessageRecord.create("hello", origin=Origin("src/b.svelte", 3, 7)),
    MessageRecord.create("{num, plural, one {# item} other {# items}}", origin=Origin("src/b.svelte", 4, 0)),
]


@pytest.fixture
def catalog(tmp_path):
    return MessageCatalog(str(tmp_path / "locales" / "{locale}"), source_locale="en")


def _translate(catalog, locale, translations):
    po = catalog.load(locale)
    for (message, context), string in translations.items():
        po.get(message, context=context).string = string
    catalog.save(locale, po)


def test_merge_creates_catalogs(catalog):
    assert catalog.merge_records("en", RECORDS) == (3, 0, 0)
    assert catalog.merge_records("ja", RECORDS) == (3, 0, 0)
    assert catalog.po_path("ja").exists()

    en = catalog.load("en")
    assert en.get("hello").string == "hello"

    ja = catalog.load("ja")
    right = ja.get("right", context="direction")
    assert right.string == ""
    assert right.auto_comments == ["turn"]
    assert right.locations == [("src/a.js", 2)]
    assert ja.get("hello").locations == [("src/a.js", 1), ("src/b.svelte", 3)]


def test_merge_keeps_existing_translations(catalog):
    catalog.merge_records("ja", RECORDS)
    _translate(catalog, "ja", {("hello", None): "こんにちは"})

    assert catalog.merge_records("ja", RECORDS) == (0, 3, 0)
    assert catalog.load("ja").get("hello").string == "こんにちは"


def test_removed_messages_become_obsolete_and_can_return(catalog):
    catalog.merge_records("ja", RECORDS)
    _translate(catalog, "ja", {("right", "direction"): "右"})

    assert catalog.merge_records("ja", RECORDS[:1]) == (0, 1, 2)
    ja = catalog.load("ja")
    assert ja.get("right", context="direction") is None
    assert len(ja.obsolete) == 2
    assert catalog.get_stats("ja")["obsolete"] == 2

    catalog.merge_records("ja", RECORDS)
    assert catalog.load("ja").get("right", context="direction").string == "右"


def test_clean_drops_obsolete_messages(catalog):
    catalog.merge_records("ja", RECORDS)
    assert catalog.merge_records("ja", RECORDS[:1], clean=True) == (0, 1, 2)
    ja = catalog.load("ja")
    assert len(ja.obsolete) == 0
    assert [m.id for m in ja if m.id] == ["hello"]


def test_compile_writes_id_keyed_json(catalog):
    catalog.merge_records("ja", RECORDS)
    _translate(catalog, "ja", {("hello", None): "こんにちは", ("right", "direction"): "右"})

    compiled = catalog.compile("ja")
    assert compiled == {
        generate_message_id("hello"): "こんにちは",
        generate_message_id("right", "direction"): "右",
    }
    on_disk = json.loads(catalog.json_path("ja").read_text(encoding="utf-8"))
    assert on_disk == compiled


def test_compile_skips_fuzzy_translations(catalog):
    catalog.merge_records("ja", RECORDS)
    po = catalog.load("ja")
    hello = po.get("hello")
    hello.string = "こんにちは?"
    hello.flags.add("fuzzy")
    catalog.save("ja", po)

    assert catalog.compile("ja") == {}
    assert catalog.get_stats("ja")["fuzzy"] == 1


def test_compiled_catalog_drives_runtime(catalog):
    catalog.merge_records("ja", RECORDS)
    _translate(catalog, "ja", {
        ("hello", None): "こんにちは",
        ("{num, plural, one {# item} other {# items}}", None): "{num, plural, other {# 個}}",
    })
    catalog.compile("ja")

    i18n = I18n()
    i18n.activate("ja", catalog.load_messages("ja"))
    assert i18n.t("hello") == "こんにちは"
    assert i18n.t({"message": "right", "context": "direction"}) == "right"
    assert i18n.plural(3, {"one": "# item", "other": "# items"}) == "3 個"


def test_stats(catalog):
    catalog.merge_records("ja", RECORDS)
    _translate(catalog, "ja", {("hello", None): "こんにちは"})

    stats = catalog.get_stats("ja")
    assert stats == {
        "total": 3,
        "translated": 1,
        "fuzzy": 0,
        "missing": 2,
        "obsolete": 0,
        "coverage": 33.3,
    }


def test_stats_for_missing_catalog(catalog):
    assert catalog.get_stats("fr")["total"] == 0
    assert catalog.get_stats("fr")["coverage"] == 0.0


def test_list_locales(catalog):
    assert catalog.list_locales() == []
    catalog.merge_records("ja", RECORDS)
    catalog.merge_records("en", RECORDS)
    assert catalog.list_locales() == ["en", "ja"]


def test_list_locales_with_locale_directory(tmp_path):
    catalog = MessageCatalog(str(tmp_path / "{locale}" / "messages"))
    catalog.merge_records("de", RECORDS)
    assert catalog.list_locales() == ["de"]


def test_template_requires_locale_placeholder(tmp_path):
    with pytest.raises(I18nError):
        MessageCatalog(str(tmp_path / "messages"))


def test_load_messages_validates_content(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text(json.dumps({"abc": 1}), encoding="utf-8")
    with pytest.raises(I18nError):
        load_messages(path)


def test_load_messages_for_uncompiled_locale_is_empty(catalog):
    assert catalog.load_messages("ja") == {}


def test_load_all_merges_catalogs(tmp_path):
    first = MessageCatalog(str(tmp_path / "a" / "{locale}"))
    second = MessageCatalog(str(tmp_path / "b" / "{locale}"))
    first.json_path("ja").parent.mkdir(parents=True)
    second.json_path("ja").parent.mkdir(parents=True)
    first.json_path("ja").write_text(json.dumps({"x": "1", "y": "2"}), encoding="utf-8")
    second.json_path("ja").write_text(json.dumps({"y": "3"}), encoding="utf-8")

    assert dict(load_all([first, second], "ja")) == {"x": "1", "y": "3"}
