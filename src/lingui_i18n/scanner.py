"""
Scanner - пакетное извлечение сообщений из исходников проекта.

Обходит include-директории, отдаёт каждый файл подходящему экстрактору
(.svelte / .js / .mjs / .cjs / .ts / .mts / .cts), выполняет извлечение в пуле потоков.
Ошибка одного файла логируется и не прерывает обход.

Порядок результата не зависит от планирования потоков: файлы
сортируются по пути, записи внутри файла идут в порядке обхода AST.
"""

import json
import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from .errors import ExtractionError
from .extractor import (
    BaseExtractor,
    ExtractResult,
    MessageRecord,
    Origin,
    default_extractors,
    find_extractor,
)

logger = logging.getLogger(__name__)

DEFAULT_EXCLUDE_DIRS = ["node_modules", ".git", ".svelte-kit", "build", "dist"]


@dataclass
class UniqueMessage:
    """Сообщение с одним id и всеми местами его использования."""
    id: str
    message: str
    context: Optional[str] = None
    comment: Optional[str] = None
    origins: List[Origin] = field(default_factory=list)


def unique_messages(records: Sequence[MessageRecord]) -> List[UniqueMessage]:
    """
    Группирует записи по id в порядке первого появления.

    comment берётся из первой записи, у которой он есть.
    """
    by_id: Dict[str, UniqueMessage] = {}
    for record in records:
        entry = by_id.get(record.id)
        if entry is None:
            entry = by_id[record.id] = UniqueMessage(
                id=record.id,
                message=record.message,
                context=record.context,
                comment=record.comment,
            )
        elif entry.comment is None:
            entry.comment = record.comment
        if record.origin is not None:
            entry.origins.append(record.origin)
    return list(by_id.values())


class ProjectScanner:
    """
    Сканер проекта.

    Args:
        project_root: Корень; пути в Origin считаются относительно него
        extractors: Экстракторы; по умолчанию svelte + script
        exclude_dirs: Имена директорий, которые пропускаются
        max_workers: Размер пула потоков (1 - последовательно)
    """

    def __init__(self, project_root: Path,
                 extractors: Optional[Sequence[BaseExtractor]] = None,
                 exclude_dirs: Optional[List[str]] = None,
                 max_workers: int = 4):
        self.project_root = Path(project_root)
        self.extractors = list(extractors) if extractors else default_extractors()
        self.exclude_dirs = exclude_dirs if exclude_dirs is not None else list(DEFAULT_EXCLUDE_DIRS)
        self.max_workers = max(1, max_workers)
        self.failures: List[ExtractResult] = []

    def scan(self, include: Optional[List[str]] = None) -> List[MessageRecord]:
        """
        Сканирует проект и возвращает все записи (с повторами).

        Args:
            include: Директории или файлы относительно корня; по умолчанию весь проект

        Returns:
            Записи, упорядоченные по пути файла, затем по месту в файле
        """
        files = self._find_files(include or ["."])
        logger.info("Файлов для извлечения: %d", len(files))

        results = self._extract_all(files)
        results.sort(key=lambda result: result.filename)

        self.failures = [result for result in results if not result.ok]
        for result in self.failures:
            logger.warning("Пропущен файл %s: %s", result.filename, result.error)

        records: List[MessageRecord] = []
        for result in results:
            records.extend(result.records)
        logger.info("Извлечено сообщений: %d (ошибок: %d)", len(records), len(self.failures))
        return records

    def _find_files(self, include: List[str]) -> List[Path]:
        """Находит файлы, которые принимает хотя бы один экстрактор."""
        found = set()
        for entry in include:
            base = self.project_root / entry
            if base.is_file():
                candidates = [base]
            elif base.is_dir():
                candidates = [path for path in base.rglob("*") if path.is_file()]
            else:
                logger.warning("Путь не найден: %s", base)
                continue

            for path in candidates:
                parts = path.relative_to(self.project_root).parts
                if any(excluded in parts for excluded in self.exclude_dirs):
                    continue
                if find_extractor(path.name, self.extractors) is not None:
                    found.add(path)
        return sorted(found)

    def _relative_name(self, path: Path) -> str:
        return path.relative_to(self.project_root).as_posix()

    def _extract_file(self, path: Path) -> ExtractResult:
        filename = self._relative_name(path)
        extractor = find_extractor(path.name, self.extractors)
        try:
            source = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            return ExtractResult(filename, [], ExtractionError(f"cannot read file: {exc}", filename))
        logger.debug("Извлечение: %s (%s)", filename, extractor.name)
        return extractor.extract(filename, source)

    def _extract_all(self, files: List[Path]) -> List[ExtractResult]:
        if self.max_workers == 1 or len(files) <= 1:
            return [self._extract_file(path) for path in files]

        results = []
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = {executor.submit(self._extract_file, path): path for path in files}
            for future in as_completed(futures):
                results.append(future.result())
        return results

    # ── Отчёты ──

    def generate_report(self, records: List[MessageRecord]) -> Dict:
        """
        Генерирует отчёт о сканировании.

        Returns:
            Dict со статистикой по файлам
        """
        by_file: Dict[str, int] = {}
        for record in records:
            if record.origin is not None:
                by_file[record.origin.file] = by_file.get(record.origin.file, 0) + 1

        return {
            "total_records": len(records),
            "unique_messages": len(unique_messages(records)),
            "with_context": sum(1 for r in records if r.context),
            "by_file": by_file,
            "failed_files": [result.filename for result in self.failures],
        }

    def export_records(self, records: List[MessageRecord], output_path: Path):
        """Экспортирует извлечённые записи в JSON."""
        data = {
            "meta": {
                "project": str(self.project_root),
                "report": self.generate_report(records),
            },
            "records": [record.to_dict() for record in records],
        }
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2)
        logger.info("Экспортировано %d записей -> %s", len(records), output_path)
