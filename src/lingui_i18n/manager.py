#!/usr/bin/env python3
"""
Manager - CLI для каталогов сообщений.

Команды:
  extract   Извлекает сообщения из исходников и обновляет PO-каталоги
  compile   Компилирует PO-каталоги в JSON для рантайма
  stats     Показывает статистику покрытия переводами

Использование:
  lingui-i18n extract --config lingui.yaml
  lingui-i18n extract --clean --output build/records.json
  lingui-i18n compile --strict
  python -m lingui_i18n.manager stats
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .catalog import MessageCatalog
from .config import I18nConfig
from .errors import ConfigError, I18nError
from .scanner import ProjectScanner

logger = logging.getLogger(__name__)


def _catalogs(config: I18nConfig) -> List[MessageCatalog]:
    return [
        MessageCatalog(config.catalog_template(catalog), config.source_locale)
        for catalog in config.catalogs
    ]


def cmd_extract(args, config: I18nConfig) -> int:
    """Команда: извлечение сообщений и merge с каталогами."""
    print(f"\n🔍 Извлечение сообщений: {config.root}")
    failed = 0

    for catalog_config, catalog in zip(config.catalogs, _catalogs(config)):
        scanner = ProjectScanner(
            config.root,
            extractors=config.extractors(),
            exclude_dirs=catalog_config.exclude,
            max_workers=config.max_workers,
        )
        records = scanner.scan(catalog_config.include)
        report = scanner.generate_report(records)
        failed += len(report["failed_files"])

        print(f"\n{'='*60}")
        print(f"  Каталог: {catalog_config.path}")
        print(f"  Записей: {report['total_records']}, уникальных: {report['unique_messages']}")
        print(f"{'='*60}")
        for filename, count in sorted(report["by_file"].items()):
            print(f"    {filename:<40} {count}")
        for filename in report["failed_files"]:
            print(f"    ⚠️  {filename}: пропущен (ошибка разбора)")

        if args.output:
            scanner.export_records(records, Path(args.output))

        for locale in config.locales:
            new, existing, obsolete = catalog.merge_records(locale, records, clean=args.clean)
            print(f"  [{locale}] Новых: {new}, Существующих: {existing}, "
                  f"{'Удалённых' if args.clean else 'Устаревших'}: {obsolete}")

    if failed:
        print(f"\n  Файлов с ошибками: {failed}")
    return 0


def cmd_compile(args, config: I18nConfig) -> int:
    """Команда: компиляция PO -> JSON."""
    print("\n📦 Компиляция каталогов")
    missing_total = 0

    for catalog in _catalogs(config):
        for locale in config.locales:
            compiled = catalog.compile(locale)
            stats = catalog.get_stats(locale)
            missing_total += stats["missing"]
            print(f"  [{locale}] {len(compiled)} сообщений -> {catalog.json_path(locale)}"
                  f" (без перевода: {stats['missing']})")

    if args.strict and missing_total:
        print(f"\n  ❌ Не переведено сообщений: {missing_total}")
        return 1
    return 0


def cmd_stats(args, config: I18nConfig) -> int:
    """Команда: статистика каталогов."""
    print("\n📊 Статистика переводов")
    for catalog in _catalogs(config):
        locales = catalog.list_locales()
        if not locales:
            print("\n  Каталоги переводов не найдены.")
            print(f"  Шаблон: {catalog.path_template}")
            continue

        print(f"   Шаблон: {catalog.path_template}")
        print(f"   Локали: {', '.join(locales)}\n")
        for locale in locales:
            stats = catalog.get_stats(locale)
            print(f"  [{locale.upper()}]")
            print(f"    Всего: {stats['total']}, Переведено: {stats['translated']}, "
                  f"Fuzzy: {stats['fuzzy']}, Устаревших: {stats['obsolete']}")
            print(f"    Покрытие: {stats['coverage']}%")
            print()
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Строит парсер аргументов."""
    parser = argparse.ArgumentParser(
        prog="lingui-i18n",
        description="Извлечение и компиляция каталогов сообщений",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Примеры:
  lingui-i18n extract
  lingui-i18n extract --clean
  lingui-i18n compile --strict
  lingui-i18n stats
        """
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Отладочный вывод")

    subparsers = parser.add_subparsers(dest="command", help="Команда")

    # === extract ===
    p_extract = subparsers.add_parser("extract", help="Извлечь сообщения")
    p_extract.add_argument("--config", default="", help="Путь к lingui.yaml")
    p_extract.add_argument("--clean", action="store_true",
                           help="Удалить устаревшие сообщения из каталогов")
    p_extract.add_argument("--output", default="",
                           help="JSON-файл для извлечённых записей")

    # === compile ===
    p_compile = subparsers.add_parser("compile", help="Скомпилировать каталоги")
    p_compile.add_argument("--config", default="", help="Путь к lingui.yaml")
    p_compile.add_argument("--strict", action="store_true",
                           help="Код выхода 1, если есть непереведённые сообщения")

    # === stats ===
    p_stats = subparsers.add_parser("stats", help="Статистика каталогов")
    p_stats.add_argument("--config", default="", help="Путь к lingui.yaml")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Точка входа CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s',
    )

    if not args.command:
        parser.print_help()
        return 1

    commands = {
        "extract": cmd_extract,
        "compile": cmd_compile,
        "stats": cmd_stats,
    }

    try:
        config = I18nConfig.load(Path(args.config) if args.config else None)
        return commands[args.command](args, config)
    except ConfigError as exc:
        print(f"Ошибка конфигурации: {exc}", file=sys.stderr)
        return 1
    except I18nError as exc:
        logger.error("%s", exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
