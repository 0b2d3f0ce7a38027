"""
Главный модуль генератора - чистый интерфейс
"""

import logging
from typing import Any, Dict, Optional

from .config import GeneratorConfig
from .internal.errors import Diagnostics
from .internal.generator.code_emitter import CodeEmitter
from .internal.generator.type_mapper import TypeMapper
from .internal.parser.document import SwaggerDocument
from .internal.parser.loader import load_document
from .internal.parser.operations import OperationExtractor
from .internal.parser.resolver import SchemaResolver
from .internal.types.models import GenerationResult


logger = logging.getLogger(__name__)


class ApiClientGenerator:
    """Чистый интерфейс для генерации API клиентов"""

    def __init__(
        self,
        document: Dict[str, Any],
        base_uri: str = "",
        config: Optional[GeneratorConfig] = None,
    ):
        self.document = SwaggerDocument(document)
        self.base_uri = base_uri
        self.config = config or GeneratorConfig()

    @classmethod
    def from_source(cls, source: str, config: Optional[GeneratorConfig] = None):
        """Генератор для документа из файла или по URL"""
        document, base_uri = load_document(source)
        return cls(document, base_uri=base_uri, config=config)

    def generate(self) -> GenerationResult:
        """
        Генерация проекта клиента.

        Этапы строго последовательны: резолвер полностью строит и замораживает
        реестр до запуска маппера и извлечения операций.

        Raises:
            DocumentError, SchemaReferenceError: структурные ошибки документа
        """
        diagnostics = Diagnostics()

        graph = SchemaResolver(self.document, self.base_uri).resolve()

        mapper = TypeMapper(graph, diagnostics)
        declarations = mapper.declarations()

        operations = OperationExtractor(self.document, graph, diagnostics).extract()

        emitter = CodeEmitter(
            mapper,
            base_url=self.config.base_url or graph.base_url,
            info=graph.info,
            name=self.config.dirname or "output",
        )
        project = emitter.emit(declarations, operations)

        logger.debug("Генерация завершена, предупреждений: %d", len(diagnostics))
        return GenerationResult(project=project, warnings=diagnostics.warnings)


def generate_client(
    document: Dict[str, Any], config: Optional[GeneratorConfig] = None
) -> GenerationResult:
    """Создание API клиента из Swagger/OpenAPI документа"""
    return ApiClientGenerator(document, config=config).generate()
