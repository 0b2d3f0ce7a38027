import argparse
import logging
import os
import sys
from typing import List, Optional

from swagger_generator.config import DEFAULT_DIRNAME, GeneratorConfig
from swagger_generator.generator import ApiClientGenerator
from swagger_generator.internal.errors import GeneratorError
from swagger_generator.internal.types.models import GenerationResult, GenerationWarning
from swagger_generator.writer import write_project


def _generate_client_core(config: GeneratorConfig) -> GenerationResult:
    """Ядро генерации клиента - только генерация без сохранения"""
    print(f"🚀 Генерация клиента из {config.url}")

    print("📥 Загрузка спецификации...")
    generator = ApiClientGenerator.from_source(config.url, config=config)

    print("⚙️ Генерация кода...")
    return generator.generate()


def _print_warnings(warnings: List[GenerationWarning]):
    if not warnings:
        return

    print(f"⚠️ Предупреждений: {len(warnings)}")
    for warning in warnings:
        print(f"   {warning}")


def _save_project_files(result: GenerationResult, target_path: str):
    """Сохранение файлов проекта"""
    print(f"💾 Сохранение {len(result.project.files)} файлов...")

    write_project(result.project, target_path)

    print("✅ Генерация завершена успешно!")
    print(f"📦 Клиент создан в: {os.path.abspath(target_path)}")


def generate(argv: Optional[List[str]] = None):
    """Команда генерации клиента из Swagger/OpenAPI документа"""
    parser = argparse.ArgumentParser(
        description="Генерация TypeScript/JavaScript клиента из Swagger/OpenAPI"
    )
    parser.add_argument("--url", type=str, help="Путь или URL к спецификации")
    parser.add_argument("--dirname", type=str, help="Директория для генерации клиента")
    parser.add_argument("--base-url", type=str, help="Базовый URL сервиса в клиенте")
    parser.add_argument(
        "--init-config", action="store_true", help="Создать конфиг файл swagger.toml"
    )
    parser.add_argument("--verbose", action="store_true", help="Подробный лог")

    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG)

    # Инициализация конфига
    if args.init_config:
        config = GeneratorConfig(
            url=args.url,
            dirname=args.dirname or DEFAULT_DIRNAME,
            base_url=args.base_url,
        )
        config.save_to_file()
        print("✅ Создан конфиг файл swagger.toml")
        return

    # Загрузка конфига из файла, аргументы имеют приоритет
    file_config = GeneratorConfig.from_file(search_dir=args.dirname)
    if file_config:
        print("📋 Используется конфиг swagger.toml")
        final_config = file_config.merge_with_args(args)
    else:
        final_config = GeneratorConfig(
            url=args.url,
            dirname=args.dirname or DEFAULT_DIRNAME,
            base_url=args.base_url,
        )

    if not final_config.url:
        print("❌ Ошибка: Укажите --url или создайте конфиг с --init-config")
        sys.exit(1)

    print(f"📁 Директория клиента: {final_config.dirname}")

    try:
        result = _generate_client_core(final_config)
        _print_warnings(result.warnings)
        _save_project_files(result, final_config.dirname)
    except GeneratorError as e:
        print(f"❌ Ошибка генерации: {e}")
        sys.exit(1)


if __name__ == "__main__":
    generate()
