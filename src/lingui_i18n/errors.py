"""
Иерархия исключений lingui_i18n.

Все ошибки пакета наследуются от I18nError, чтобы вызывающий код мог
перехватить их одной веткой except.
"""

from typing import Optional


class I18nError(Exception):
    """Базовая ошибка пакета."""


class MessageDescriptorError(I18nError, ValueError):
    """Некорректный дескриптор сообщения (ошибка программиста)."""


class MessageFormatError(I18nError, ValueError):
    """Текст сообщения не разбирается как ICU MessageFormat."""

    def __init__(self, message: str, text: str = "", position: int = -1):
        super().__init__(message)
        self.text = text
        self.position = position


class ConfigError(I18nError):
    """Некорректная конфигурация."""


class ExtractionError(I18nError):
    """Ошибка извлечения сообщений из одного файла."""

    def __init__(self, message: str, filename: str = "",
                 line: Optional[int] = None, column: Optional[int] = None):
        super().__init__(message)
        self.filename = filename
        self.line = line
        self.column = column

    def __str__(self) -> str:
        base = super().__str__()
        if self.filename and self.line is not None:
            return f"{self.filename}:{self.line}:{self.column or 0}: {base}"
        if self.filename:
            return f"{self.filename}: {base}"
        return base


class SourceParseError(ExtractionError):
    """Исходный файл не удалось разобрать парсером."""


class MissingMessageError(ExtractionError):
    """Литеральный MessageDescriptor без свойства message."""
