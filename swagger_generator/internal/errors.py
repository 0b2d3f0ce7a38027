"""
Ошибки генератора и сбор предупреждений
"""

import logging
from typing import List, Optional

from .types.models import GenerationWarning


logger = logging.getLogger(__name__)


class GeneratorError(Exception):
    """Базовая ошибка генерации"""

    def __init__(self, message: str, location: Optional[str] = None):
        self.message = message
        self.location = location
        super().__init__(f"{location}: {message}" if location else message)


class DocumentError(GeneratorError):
    """Некорректный или неподдерживаемый документ - генерация не начинается"""


class SchemaReferenceError(GeneratorError):
    """Ошибка разрешения ссылок - прерывает весь запуск"""


class UnresolvedReference(SchemaReferenceError):
    """Ссылка указывает на отсутствующий путь"""


class MalformedSchema(UnresolvedReference):
    """Узел схемы не имеет разбираемой структуры"""


class CyclicReference(SchemaReferenceError):
    """Цикл, который нельзя выразить именованным типом"""


class SchemaError(GeneratorError):
    """Неподдерживаемая конструкция схемы - деградирует до unknown"""


class OperationError(GeneratorError):
    """Проблема на уровне операции - элемент пропускается"""


class UnsupportedParameterLocation(OperationError):
    """Параметр в неподдерживаемом месте (cookie и т.п.)"""


class OutputWriteError(GeneratorError):
    """Ошибка записи сгенерированных файлов"""


class Diagnostics:
    """Накопитель нефатальных ошибок одного запуска"""

    def __init__(self):
        self._warnings = []

    def warn(self, error: GeneratorError) -> None:
        logger.warning(str(error))
        self._warnings.append(
            GenerationWarning(
                code=type(error).__name__,
                location=error.location or "",
                message=error.message,
            )
        )

    @property
    def warnings(self) -> List[GenerationWarning]:
        return list(self._warnings)

    def __len__(self):
        return len(self._warnings)
