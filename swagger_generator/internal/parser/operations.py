"""
Извлечение контрактов операций из раздела paths
"""

import logging
import re
from typing import Any, Dict, List, Optional, Set, Tuple

from ..errors import Diagnostics, OperationError, UnsupportedParameterLocation
from ..types.models import OperationDescriptor, ParameterDescriptor, ParameterLocation
from ..types.schema import DocumentVersion, SchemaGraph, SchemaKind, SchemaNode
from ..utils.naming import (
    GLOBAL_NAMES,
    LOCAL_NAMES,
    RUNTIME_NAMES,
    clean_identifier,
    pascal_case,
    unique_name,
)
from .document import SwaggerDocument, pick_media_schema


logger = logging.getLogger(__name__)

_PLACEHOLDER_RE = re.compile(r"\{([^{}]+)\}")

# В OpenAPI 3 эти заголовки задаются не параметрами
_IGNORED_HEADERS = {"accept", "content-type", "authorization"}


class OperationExtractor:
    """Обход операций документа в порядке объявления"""

    def __init__(
        self,
        document: SwaggerDocument,
        graph: SchemaGraph,
        diagnostics: Optional[Diagnostics] = None,
    ):
        self.document = document
        self.graph = graph
        self.diagnostics = diagnostics or Diagnostics()

    def extract(self) -> List[OperationDescriptor]:
        used_names = set(RUNTIME_NAMES) | set(GLOBAL_NAMES)
        operations = []

        for path, method, operation, pointer in self.document.iter_operations():
            descriptor = self._extract_operation(path, method, operation, pointer, used_names)
            logger.debug("Операция %s -> %s", descriptor.pointer, descriptor.name)
            operations.append(descriptor)

        return operations

    @staticmethod
    def derive_name(method: str, path: str) -> str:
        """
        Имя из метода и сегментов пути.

        Examples:
            GET /users        -> getUsers
            GET /users/{id}   -> getUsersById
        """
        parts = []
        for segment in path.split("/"):
            if not segment:
                continue
            match = re.fullmatch(r"\{(.+)\}", segment)
            if match:
                parts.append("By" + pascal_case(match.group(1), fallback="Param"))
            else:
                parts.append(pascal_case(segment, fallback=""))
        return method.lower() + "".join(parts)

    def _operation_name(
        self, operation: Dict[str, Any], method: str, path: str, used: Set[str]
    ) -> str:
        operation_id = operation.get("operationId")
        if isinstance(operation_id, str) and operation_id.strip():
            base = clean_identifier(operation_id.strip(), fallback="operation")
        else:
            base = clean_identifier(self.derive_name(method, path), fallback="operation")

        # Коллизии - числовой суффикс по порядку встречи
        return unique_name(base, used)

    def _extract_operation(
        self,
        path: str,
        method: str,
        operation: Dict[str, Any],
        pointer: str,
        used_names: Set[str],
    ) -> OperationDescriptor:
        location = f"{method.upper()} {path}"
        identifiers = set(LOCAL_NAMES) | set(RUNTIME_NAMES)

        declared_path = {}
        query_params = []
        header_params = []
        form_params = []
        body_schema = None
        body_required = False

        for param, param_pointer in self.document.operation_parameters(path, operation, pointer):
            param_in = param["in"]
            if param_in == "path":
                declared_path[param["name"]] = (param, param_pointer)
            elif param_in == "query":
                query_params.append((param, param_pointer))
            elif param_in == "header":
                if (
                    self.document.version == DocumentVersion.OPENAPI_3
                    and str(param["name"]).lower() in _IGNORED_HEADERS
                ):
                    continue
                header_params.append((param, param_pointer))
            elif param_in == "body" and self.document.version == DocumentVersion.SWAGGER_2:
                body_schema = self._parameter_schema(param, param_pointer)
                body_required = param.get("required") is True
            elif param_in == "formData" and self.document.version == DocumentVersion.SWAGGER_2:
                form_params.append((param, param_pointer))
            else:
                self.diagnostics.warn(
                    UnsupportedParameterLocation(
                        f"Параметр '{param['name']}' в '{param_in}' не поддерживается и пропущен",
                        location=location,
                    )
                )

        path_params = self._path_parameters(path, declared_path, identifiers, location)

        descriptor_query = [
            self._descriptor(param, param_pointer, ParameterLocation.QUERY, identifiers)
            for param, param_pointer in query_params
        ]
        descriptor_header = [
            self._descriptor(param, param_pointer, ParameterLocation.HEADER, identifiers)
            for param, param_pointer in header_params
        ]

        if form_params:
            body_schema, body_required = self._form_body(form_params, pointer)

        request_body = self.document.request_body(operation, pointer)
        if request_body is not None:
            body_obj, body_pointer = request_body
            body_obj = body_obj if isinstance(body_obj, dict) else {}
            media = pick_media_schema(body_obj.get("content"), body_pointer + "/content")
            body_schema = (
                self._schema_at(media[1])
                if media
                else SchemaNode(kind=SchemaKind.ANY, source="#" + body_pointer)
            )
            body_required = body_obj.get("required") is True

        summary = operation.get("summary")
        description = operation.get("description")

        return OperationDescriptor(
            name=self._operation_name(operation, method, path, used_names),
            http_method=method,
            path_template=path,
            path_params=path_params,
            query_params=descriptor_query,
            header_params=descriptor_header,
            body_schema=body_schema,
            body_required=body_required,
            response_schema=self._select_response(operation, pointer, location),
            summary=summary if isinstance(summary, str) else None,
            description=description if isinstance(description, str) else None,
            deprecated=operation.get("deprecated") is True,
        )

    def _path_parameters(
        self,
        path: str,
        declared: Dict[str, Tuple[Dict[str, Any], str]],
        identifiers: Set[str],
        location: str,
    ) -> List[ParameterDescriptor]:
        """Параметры пути в порядке плейсхолдеров шаблона"""
        placeholders = list(dict.fromkeys(_PLACEHOLDER_RE.findall(path)))
        result = []

        for name in placeholders:
            if name in declared:
                param, param_pointer = declared[name]
                result.append(
                    self._descriptor(param, param_pointer, ParameterLocation.PATH, identifiers)
                )
                continue

            self.diagnostics.warn(
                OperationError(
                    f"Параметр пути '{name}' не объявлен, используется string",
                    location=location,
                )
            )
            result.append(
                ParameterDescriptor(
                    name=name,
                    identifier=unique_name(clean_identifier(name), identifiers),
                    location=ParameterLocation.PATH,
                    required=True,
                    schema_node=SchemaNode(kind=SchemaKind.PRIMITIVE, primitive="string"),
                )
            )

        for name in declared:
            if name not in placeholders:
                self.diagnostics.warn(
                    OperationError(
                        f"Параметр пути '{name}' отсутствует в шаблоне и пропущен",
                        location=location,
                    )
                )

        return result

    def _descriptor(
        self,
        param: Dict[str, Any],
        param_pointer: str,
        param_location: ParameterLocation,
        identifiers: Set[str],
    ) -> ParameterDescriptor:
        description = param.get("description")
        return ParameterDescriptor(
            name=param["name"],
            identifier=unique_name(clean_identifier(str(param["name"])), identifiers),
            location=param_location,
            required=param_location == ParameterLocation.PATH or param.get("required") is True,
            schema_node=self._parameter_schema(param, param_pointer),
            description=description if isinstance(description, str) else None,
        )

    def _parameter_schema(self, param: Dict[str, Any], param_pointer: str) -> SchemaNode:
        if "schema" in param:
            return self._schema_at(param_pointer + "/schema")
        if self.document.version == DocumentVersion.SWAGGER_2:
            return self._schema_at(param_pointer)
        media = pick_media_schema(param.get("content"), param_pointer + "/content")
        if media:
            return self._schema_at(media[1])
        return SchemaNode(kind=SchemaKind.ANY, source="#" + param_pointer)

    def _form_body(
        self, form_params: List[Tuple[Dict[str, Any], str]], pointer: str
    ) -> Tuple[SchemaNode, bool]:
        """Параметры formData Swagger 2 собираются в один объект тела"""
        properties = {}
        required = []
        for param, param_pointer in form_params:
            properties[param["name"]] = self._schema_at(param_pointer)
            if param.get("required") is True:
                required.append(param["name"])

        node = SchemaNode(
            kind=SchemaKind.OBJECT,
            properties=properties,
            required=required,
            source=f"#{pointer}/formData",
        )
        return node, bool(required)

    def _select_response(
        self, operation: Dict[str, Any], pointer: str, location: str
    ) -> Optional[SchemaNode]:
        """
        Первый 2xx ответ со схемой по возрастанию кода.

        Явные коды идут раньше 2XX, default не выбирается никогда.
        Предупреждение пишется, если 2xx нет или ни один из них (кроме 204)
        не описывает схему.
        """
        candidates = []
        for status, response, response_pointer in self.document.responses(operation, pointer):
            if status.isdigit() and 200 <= int(status) < 300:
                candidates.append((int(status), response, response_pointer))
            elif status.upper() == "2XX":
                candidates.append((300, response, response_pointer))

        if not candidates:
            self.diagnostics.warn(
                OperationError("Нет успешного (2xx) ответа, тип ответа unknown", location=location)
            )
            return None

        for _, response, response_pointer in sorted(candidates, key=lambda c: c[0]):
            if not isinstance(response, dict):
                continue
            if self.document.version == DocumentVersion.SWAGGER_2:
                if "schema" in response:
                    return self._schema_at(response_pointer + "/schema")
                continue
            media = pick_media_schema(response.get("content"), response_pointer + "/content")
            if media:
                return self._schema_at(media[1])

        # 204 без тела - осознанное отсутствие ответа
        if any(status != 204 for status, _, _ in candidates):
            self.diagnostics.warn(
                OperationError(
                    "Успешный ответ не описывает схему, тип ответа unknown",
                    location=location,
                )
            )
        return None

    def _schema_at(self, pointer: str) -> SchemaNode:
        node = self.graph.inline_node(pointer)
        if node is None:
            raise KeyError(f"Схема #{pointer} не построена резолвером")
        return node


def extract_operations(
    document: SwaggerDocument, graph: SchemaGraph, diagnostics: Optional[Diagnostics] = None
) -> List[OperationDescriptor]:
    return OperationExtractor(document, graph, diagnostics).extract()
