"""
Генератор TypeScript/JavaScript клиентов из Swagger/OpenAPI
"""

from .config import GeneratorConfig
from .generator import ApiClientGenerator, generate_client

__all__ = ["ApiClientGenerator", "GeneratorConfig", "generate_client"]
