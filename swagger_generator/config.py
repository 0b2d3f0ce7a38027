"""
Конфигурация для генерации API клиента
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional

import toml


logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = "swagger.toml"
DEFAULT_DIRNAME = "output"


@dataclass
class GeneratorConfig:
    """Конфигурация генератора клиента"""

    url: Optional[str] = None
    dirname: Optional[str] = DEFAULT_DIRNAME
    base_url: Optional[str] = None

    @classmethod
    def from_file(
        cls, config_path: str = CONFIG_FILE_NAME, search_dir: str = None
    ) -> Optional["GeneratorConfig"]:
        """Загрузка конфигурации из файла"""
        # Если указана директория для поиска, ищем конфиг там
        if search_dir and os.path.isdir(search_dir):
            config_in_dir = os.path.join(search_dir, CONFIG_FILE_NAME)
            if os.path.exists(config_in_dir):
                config_path = config_in_dir

        if not os.path.exists(config_path):
            return None

        try:
            config_data = toml.load(config_path)
        except (OSError, toml.TomlDecodeError) as e:
            logger.warning("Не удалось прочитать конфиг %s: %s", config_path, e)
            return None

        return cls(
            url=config_data.get("url"),
            dirname=config_data.get("dirname", DEFAULT_DIRNAME),
            base_url=config_data.get("base_url"),
        )

    def save_to_file(self, config_path: str = CONFIG_FILE_NAME) -> None:
        """Сохранение конфигурации в файл"""
        # toml не сохраняет None, поэтому пустые ключи пропускаются
        config_data = {
            key: value
            for key, value in (
                ("url", self.url),
                ("dirname", self.dirname),
                ("base_url", self.base_url),
            )
            if value is not None
        }

        with open(config_path, "w", encoding="utf-8") as f:
            toml.dump(config_data, f)

    def merge_with_args(self, args) -> "GeneratorConfig":
        """Объединение с аргументами командной строки"""
        return GeneratorConfig(
            url=args.url or self.url,
            dirname=args.dirname or self.dirname,
            base_url=args.base_url or self.base_url,
        )
