import json

import pytest

from lingui_i18n.manager import build_parser, main
from lingui_i18n.message_id import generate_message_id


@pytest.fixture
def project(write_file, tmp_path, monkeypatch):
    write_file("lingui.yaml", """
        source_locale: en
        locales: [en, ja]
        catalogs:
          - path: src/locales/{locale}
            include: [src]
        max_workers: 2
    """)
    write_file("src/lib/a.js", "export const a = g`hello`;\n")
    write_file("src/routes/+page.svelte", "<p>{$t`page`}</p>\n")
    write_file("src/routes/broken.svelte", "<p>\n")
    monkeypatch.chdir(tmp_path)
    return tmp_path


def test_extract_then_compile(project, capsys):
    assert main(["extract"]) == 0
    assert (project / "src/locales/en.po").exists()
    assert (project / "src/locales/ja.po").exists()
    out = capsys.readouterr().out
    assert "[ja] Новых: 2" in out
    assert "src/routes/broken.svelte" in out

    assert main(["compile"]) == 0
    en = json.loads((project / "src/locales/en.json").read_text(encoding="utf-8"))
    ja = json.loads((project / "src/locales/ja.json").read_text(encoding="utf-8"))
    assert en == {generate_message_id("hello"): "hello", generate_message_id("page"): "page"}
    assert ja == {}


def test_compile_strict_fails_on_missing_translations(project):
    main(["extract"])
    assert main(["compile", "--strict"]) == 1


def test_extract_output_writes_records(project):
    assert main(["extract", "--output", "build/records.json"]) == 0
    data = json.loads((project / "build/records.json").read_text(encoding="utf-8"))
    assert [r["message"] for r in data["records"]] == ["hello", "page"]


def test_extract_clean_removes_obsolete(project, capsys):
    main(["extract"])
    (project / "src/routes/+page.svelte").write_text("<p>static</p>\n", encoding="utf-8")
    capsys.readouterr()

    assert main(["extract", "--clean"]) == 0
    assert "Удалённых: 1" in capsys.readouterr().out
    assert 'msgid "page"' not in (project / "src/locales/ja.po").read_text(encoding="utf-8")


def test_stats(project, capsys):
    main(["extract"])
    capsys.readouterr()
    assert main(["-v", "stats"]) == 0
    out = capsys.readouterr().out
    assert "[EN]" in out and "[JA]" in out
    assert "Покрытие: 100.0%" in out
    assert "Покрытие: 0.0%" in out


def test_stats_without_catalogs(project, capsys):
    assert main(["stats"]) == 0
    assert "не найдены" in capsys.readouterr().out


def test_invalid_config_exits_with_error(project, capsys):
    (project / "lingui.yaml").write_text("locales: [ja]\n", encoding="utf-8")
    assert main(["extract"]) == 1
    assert "Ошибка конфигурации" in capsys.readouterr().err


def test_explicit_config_path(project, tmp_path):
    assert main(["compile", "--config", str(tmp_path / "missing.yaml")]) == 1


def test_no_command_prints_help(capsys):
    assert main([]) == 1
    assert "lingui-i18n" in capsys.readouterr().out


def test_parser_commands():
    args = build_parser().parse_args(["extract", "--clean", "--output", "x.json"])
    assert (args.command, args.clean, args.output) == ("extract", True, "x.json")
