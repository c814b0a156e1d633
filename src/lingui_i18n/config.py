"""
Конфигурация проекта: локали, каталоги, имена тегов экстракторов.

Файл lingui.yaml в корне проекта (аналог lingui.config.js):

    source_locale: en
    locales: [en, ja]
    catalogs:
      - path: src/locales/{locale}
        include: [src/lib, src/routes]
    max_workers: 4
    extractors:
      svelte: {message_tags: ["$t", "msg"]}
      script: {message_tags: ["g", "gt", "msg"]}

Если файла нет - используются значения по умолчанию.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .errors import ConfigError
from .extractor import (
    SCRIPT_TAGS,
    SVELTE_TAGS,
    BaseExtractor,
    ScriptExtractor,
    SvelteExtractor,
    TagConfig,
)

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_NAME = "lingui.yaml"
LOCALE_PLACEHOLDER = "{locale}"

_TAG_KEYS = ("message_tags", "plural_tags", "plural_definition_tags", "component_names")


@dataclass
class CatalogConfig:
    """Один каталог: шаблон пути и исходники, из которых он собирается."""
    path: str = "src/locales/{locale}"
    include: List[str] = field(default_factory=lambda: ["src"])
    exclude: List[str] = field(default_factory=lambda: ["node_modules"])


@dataclass
class I18nConfig:
    """Конфигурация i18n-проекта."""
    source_locale: str = "en"
    locales: List[str] = field(default_factory=lambda: ["en"])
    catalogs: List[CatalogConfig] = field(default_factory=lambda: [CatalogConfig()])
    max_workers: int = 4
    svelte_tags: TagConfig = SVELTE_TAGS
    script_tags: TagConfig = SCRIPT_TAGS
    root: Path = field(default_factory=Path.cwd)

    def __post_init__(self):
        if not self.locales:
            raise ConfigError("'locales' must list at least one locale")
        if self.source_locale not in self.locales:
            raise ConfigError(
                f"source_locale '{self.source_locale}' is not in locales {self.locales}"
            )
        if self.max_workers < 1:
            raise ConfigError("'max_workers' must be >= 1")
        for catalog in self.catalogs:
            if LOCALE_PLACEHOLDER not in catalog.path:
                raise ConfigError(f"catalog path '{catalog.path}' must contain {LOCALE_PLACEHOLDER}")

    # ── Загрузка ──

    @classmethod
    def from_dict(cls, data: Dict[str, Any], root: Optional[Path] = None) -> "I18nConfig":
        """Строит конфиг из словаря (содержимого YAML)."""
        if not isinstance(data, dict):
            raise ConfigError("config must be a mapping")

        catalogs = []
        for raw in data.get("catalogs") or [{}]:
            if not isinstance(raw, dict):
                raise ConfigError("each catalog must be a mapping")
            catalogs.append(CatalogConfig(
                path=str(raw.get("path", CatalogConfig.path)),
                include=_string_list(raw, "include", ["src"]),
                exclude=_string_list(raw, "exclude", ["node_modules"]),
            ))

        extractors = data.get("extractors") or {}
        if not isinstance(extractors, dict):
            raise ConfigError("'extractors' must be a mapping")

        try:
            max_workers = int(data.get("max_workers", 4))
        except (TypeError, ValueError):
            raise ConfigError("'max_workers' must be an integer") from None

        return cls(
            source_locale=str(data.get("source_locale", "en")),
            locales=_string_list(data, "locales", ["en"]),
            catalogs=catalogs,
            max_workers=max_workers,
            svelte_tags=_tags(extractors.get("svelte"), SVELTE_TAGS, "svelte"),
            script_tags=_tags(extractors.get("script"), SCRIPT_TAGS, "script"),
            root=Path(root) if root else Path.cwd(),
        )

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "I18nConfig":
        """
        Загружает конфиг из YAML.

        Args:
            path: Путь к файлу; по умолчанию ./lingui.yaml

        Raises:
            ConfigError: файл не разбирается или содержит неверные значения
        """
        config_path = Path(path) if path else Path.cwd() / DEFAULT_CONFIG_NAME
        if not config_path.exists():
            if path:
                raise ConfigError(f"config file not found: {config_path}")
            logger.debug("Конфиг %s не найден, используются значения по умолчанию", config_path)
            return cls(root=config_path.parent)

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"invalid YAML in {config_path}: {exc}") from exc

        logger.info("Конфигурация загружена из %s", config_path)
        return cls.from_dict(data, root=config_path.parent.resolve())

    # ── Производные значения ──

    def extractors(self) -> List[BaseExtractor]:
        return [SvelteExtractor(self.svelte_tags), ScriptExtractor(self.script_tags)]

    def catalog_template(self, catalog: CatalogConfig) -> str:
        """Абсолютный шаблон пути каталога, ещё с {locale}."""
        return str(self.root / catalog.path)


def _string_list(data: Dict[str, Any], key: str, default: List[str]) -> List[str]:
    value = data.get(key, default)
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ConfigError(f"'{key}' must be a list of strings")
    return list(value)


def _tags(raw: Optional[Dict[str, Any]], base: TagConfig, name: str) -> TagConfig:
    if raw is None:
        return base
    if not isinstance(raw, dict):
        raise ConfigError(f"extractors.{name} must be a mapping")
    unknown = set(raw) - set(_TAG_KEYS)
    if unknown:
        raise ConfigError(f"unknown keys in extractors.{name}: {', '.join(sorted(unknown))}")
    return base.merged(**{key: _string_list(raw, key, []) for key in raw})
