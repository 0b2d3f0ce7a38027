"""
Сохранение сгенерированных файлов на диск
"""

import logging
import os
import tempfile
from typing import List, Tuple

from .internal.errors import OutputWriteError
from .internal.types.models import Project


logger = logging.getLogger(__name__)


def write_project(project: Project, target_dir: str) -> List[str]:
    """
    Запись всех файлов проекта.

    Каждый файл сначала пишется во временный соседний файл, переименование
    выполняется только после успешной записи всех временных файлов.

    Returns:
        Пути записанных файлов

    Raises:
        OutputWriteError: при любой ошибке файловой системы
    """
    pending: List[Tuple[str, str]] = []

    try:
        for code_file in project.files:
            path = os.path.join(target_dir, code_file.file_name)
            os.makedirs(os.path.dirname(path) or ".", exist_ok=True)

            fd, temp_path = tempfile.mkstemp(
                prefix=f".{os.path.basename(path)}.", dir=os.path.dirname(path) or "."
            )
            pending.append((temp_path, path))
            with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as f:
                f.write(str(code_file))

        for temp_path, path in pending:
            os.replace(temp_path, path)
            logger.debug("Записан файл %s", path)

    except OSError as e:
        for temp_path, _ in pending:
            if os.path.exists(temp_path):
                os.remove(temp_path)
        raise OutputWriteError(f"Не удалось записать файлы: {e}", location=target_dir) from e

    return [path for _, path in pending]
