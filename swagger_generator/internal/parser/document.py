"""
Доступ к разделам Swagger/OpenAPI документа
"""

from typing import Any, Dict, Iterator, List, Optional, Tuple
from urllib.parse import unquote

from ..errors import DocumentError, UnresolvedReference
from ..types.schema import DocumentVersion


HTTP_METHODS = ("get", "put", "post", "delete", "options", "head", "patch", "trace")

DEFINITIONS_POINTER = {
    DocumentVersion.SWAGGER_2: "/definitions",
    DocumentVersion.OPENAPI_3: "/components/schemas",
}


def detect_version(document: Any) -> DocumentVersion:
    """Определение версии документа; неподдерживаемая версия - DocumentError"""
    if not isinstance(document, dict):
        raise DocumentError("Корень документа должен быть объектом")

    swagger = document.get("swagger")
    openapi = document.get("openapi")

    if swagger is not None:
        if str(swagger).strip() == "2.0":
            return DocumentVersion.SWAGGER_2
        raise DocumentError(f"Неподдерживаемая версия Swagger: {swagger}")

    if openapi is not None:
        if str(openapi).strip().startswith("3."):
            return DocumentVersion.OPENAPI_3
        raise DocumentError(f"Неподдерживаемая версия OpenAPI: {openapi}")

    raise DocumentError("В документе нет ключа 'swagger' или 'openapi'")


def escape_token(token: str) -> str:
    return token.replace("~", "~0").replace("/", "~1")


def unescape_token(token: str) -> str:
    return unquote(token).replace("~1", "/").replace("~0", "~")


def join_pointer(pointer: str, *tokens: Any) -> str:
    return pointer + "".join("/" + escape_token(str(token)) for token in tokens)


def resolve_pointer(document: Any, pointer: str) -> Any:
    """
    Разрешение JSON pointer ("/definitions/Pet") в документе.

    Raises:
        UnresolvedReference: путь отсутствует в документе
    """
    if pointer in ("", "/"):
        return document

    node = document
    for token in pointer.lstrip("/").split("/"):
        token = unescape_token(token)
        if isinstance(node, dict) and token in node:
            node = node[token]
        elif isinstance(node, list) and token.isdigit() and int(token) < len(node):
            node = node[int(token)]
        else:
            raise UnresolvedReference(
                f"Путь '{pointer}' отсутствует в документе", location=f"#{pointer}"
            )
    return node


def pointer_name(pointer: str) -> str:
    """Последний сегмент указателя - исходное имя схемы"""
    return unescape_token(pointer.rstrip("/").split("/")[-1]) if pointer else ""


class SwaggerDocument:
    """Обертка над разобранным документом"""

    def __init__(self, document: Dict[str, Any]):
        self.raw = document
        self.version = detect_version(document)
        self._validate_sections()

    def _validate_sections(self):
        paths = self.raw.get("paths")
        if not isinstance(paths, dict):
            raise DocumentError("Раздел 'paths' отсутствует или не является объектом")

        definitions = self._definitions_container()
        if definitions is not None and not isinstance(definitions, dict):
            raise DocumentError(
                f"Раздел '{DEFINITIONS_POINTER[self.version]}' не является объектом"
            )

    def _definitions_container(self) -> Optional[Any]:
        if self.version == DocumentVersion.SWAGGER_2:
            return self.raw.get("definitions")
        components = self.raw.get("components")
        if components is None:
            return None
        if not isinstance(components, dict):
            raise DocumentError("Раздел 'components' не является объектом")
        return components.get("schemas")

    @property
    def info(self) -> Dict[str, Any]:
        info = self.raw.get("info")
        return info if isinstance(info, dict) else {}

    @property
    def base_url(self) -> str:
        """Базовый URL сервиса из schemes/host/basePath или servers"""
        if self.version == DocumentVersion.SWAGGER_2:
            host = self.raw.get("host")
            base_path = self.raw.get("basePath") or ""
            if not host:
                return base_path
            schemes = self.raw.get("schemes") or ["https"]
            return f"{schemes[0]}://{host}{base_path}"

        servers = self.raw.get("servers") or []
        if servers and isinstance(servers[0], dict):
            return servers[0].get("url", "") or ""
        return ""

    def definition_pointers(self) -> List[str]:
        """Указатели на все объявленные схемы в порядке документа"""
        container = self._definitions_container() or {}
        base = DEFINITIONS_POINTER[self.version]
        return [join_pointer(base, name) for name in container]

    def iter_operations(self) -> Iterator[Tuple[str, str, Dict[str, Any], str]]:
        """(path, method, operation, pointer) в порядке объявления"""
        for path, path_item in self.raw["paths"].items():
            if not isinstance(path_item, dict):
                raise DocumentError(f"Описание пути '{path}' не является объектом")
            for method, operation in path_item.items():
                if method.lower() not in HTTP_METHODS:
                    continue
                if not isinstance(operation, dict):
                    raise DocumentError(
                        f"Описание операции {method.upper()} {path} не является объектом"
                    )
                yield path, method.lower(), operation, join_pointer("/paths", path, method)

    def path_item_parameters(self, path: str) -> List[Any]:
        return self.raw["paths"][path].get("parameters") or []

    def deref(self, obj: Any, pointer: str) -> Tuple[Any, str]:
        """
        Разыменование не-схемных ссылок (parameters, responses, requestBodies).

        Возвращает объект и указатель, по которому он реально лежит.
        """
        seen = set()
        while isinstance(obj, dict) and "$ref" in obj:
            ref = obj["$ref"]
            if not isinstance(ref, str) or not ref.startswith("#"):
                raise UnresolvedReference(
                    f"Поддерживаются только локальные ссылки, получено: {ref!r}",
                    location=f"#{pointer}",
                )
            if ref in seen:
                raise UnresolvedReference(
                    f"Циклическая ссылка {ref}", location=f"#{pointer}"
                )
            seen.add(ref)
            pointer = ref[1:]
            obj = resolve_pointer(self.raw, pointer)
        return obj, pointer

    def operation_parameters(
        self, path: str, operation: Dict[str, Any], pointer: str
    ) -> List[Tuple[Dict[str, Any], str]]:
        """
        Параметры операции вместе с параметрами пути.

        Параметр операции перекрывает параметр пути с тем же name + in.
        """
        path_pointer = join_pointer("/paths", path, "parameters")
        merged = {}

        sources = [
            (self.path_item_parameters(path), path_pointer),
            (operation.get("parameters") or [], pointer + "/parameters"),
        ]
        for parameters, base in sources:
            for index, raw in enumerate(parameters):
                param, param_pointer = self.deref(raw, f"{base}/{index}")
                if not isinstance(param, dict) or "name" not in param or "in" not in param:
                    raise DocumentError(
                        "Параметр без 'name' или 'in'", location=f"#{param_pointer}"
                    )
                merged[(param["name"], param["in"])] = (param, param_pointer)

        return list(merged.values())

    def request_body(
        self, operation: Dict[str, Any], pointer: str
    ) -> Optional[Tuple[Dict[str, Any], str]]:
        """requestBody OpenAPI 3 после разыменования"""
        if "requestBody" not in operation:
            return None
        return self.deref(operation["requestBody"], pointer + "/requestBody")

    def responses(
        self, operation: Dict[str, Any], pointer: str
    ) -> List[Tuple[str, Dict[str, Any], str]]:
        result = []
        for status, raw in (operation.get("responses") or {}).items():
            response, response_pointer = self.deref(
                raw, join_pointer(pointer + "/responses", status)
            )
            result.append((str(status), response, response_pointer))
        return result


def pick_media_schema(
    content: Dict[str, Any], pointer: str
) -> Optional[Tuple[Any, str]]:
    """Схема из content: сначала application/json, затем любой json, затем первый"""
    if not isinstance(content, dict) or not content:
        return None

    media_types = list(content)
    preferred = (
        [m for m in media_types if m.split(";")[0].strip() == "application/json"]
        + [m for m in media_types if "json" in m]
        + media_types
    )
    for media_type in preferred:
        media = content[media_type]
        if isinstance(media, dict) and "schema" in media:
            return media["schema"], join_pointer(pointer, media_type, "schema")
    return None


def schema_locations(document: SwaggerDocument) -> Iterator[Tuple[Any, str]]:
    """Все встроенные схемы раздела paths с их указателями"""
    for path, method, operation, pointer in document.iter_operations():
        for param, param_pointer in document.operation_parameters(path, operation, pointer):
            if "schema" in param:
                yield param["schema"], param_pointer + "/schema"
            elif document.version == DocumentVersion.SWAGGER_2:
                # В Swagger 2 тип описан прямо в параметре
                yield parameter_as_schema(param), param_pointer
            elif "content" in param:
                media = pick_media_schema(param["content"], param_pointer + "/content")
                if media:
                    yield media

        body = document.request_body(operation, pointer)
        if body and isinstance(body[0], dict):
            body_obj, body_pointer = body
            media = pick_media_schema(body_obj.get("content"), body_pointer + "/content")
            if media:
                yield media

        for status, response, response_pointer in document.responses(operation, pointer):
            if document.version == DocumentVersion.SWAGGER_2:
                if isinstance(response, dict) and "schema" in response:
                    yield response["schema"], response_pointer + "/schema"
            elif isinstance(response, dict):
                media = pick_media_schema(
                    response.get("content"), response_pointer + "/content"
                )
                if media:
                    yield media


_PARAMETER_SCHEMA_KEYS = (
    "type",
    "format",
    "items",
    "enum",
    "default",
    "x-nullable",
    "minimum",
    "maximum",
)


def parameter_as_schema(param: Dict[str, Any]) -> Dict[str, Any]:
    """Схема из типизированного параметра Swagger 2"""
    schema = {key: param[key] for key in _PARAMETER_SCHEMA_KEYS if key in param}
    if "type" not in schema:
        schema["type"] = "string"
    return schema


__all__ = [
    "HTTP_METHODS",
    "SwaggerDocument",
    "detect_version",
    "join_pointer",
    "pick_media_schema",
    "pointer_name",
    "parameter_as_schema",
    "resolve_pointer",
    "schema_locations",
]
