"""Shared pytest fixtures for catalog, runtime and extraction tests."""

from __future__ import annotations

import textwrap

import pytest

from lingui_i18n.message_id import generate_message_id
from lingui_i18n.store import LocaleStore

PLURAL_ITEMS = "{num, plural, one {There is # item.} other {There are # items.}}"

# Message and context share one key here, separated by a pipe.
JA_SOURCE_CATALOG = {
    "hello": "こんにちは",
    "hello {0}": "こんにちは {0}",
    "John": "ジョン",
    "right|direction": "右",
    "right|correct": "正しい",
    PLURAL_ITEMS: "{num, plural, one {# 個のアイテムがあります。} other {# 個のアイテムがあります。}}",
    PLURAL_ITEMS + "|messages": "{num, plural, other {# 件があります。}}",
}


def to_id_keys(catalog: dict) -> dict:
    result = {}
    for key, value in catalog.items():
        message, _, context = key.partition("|")
        result[generate_message_id(message, context or None)] = value
    return result


@pytest.fixture
def ja_messages() -> dict:
    return to_id_keys(JA_SOURCE_CATALOG)


@pytest.fixture
def store() -> LocaleStore:
    return LocaleStore("default")


@pytest.fixture
def write_file(tmp_path):
    """Writes a dedented file under tmp_path and returns its path."""

    def _write(relative: str, content: str):
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(content).lstrip("\n"), encoding="utf-8")
        return path

    return _write
