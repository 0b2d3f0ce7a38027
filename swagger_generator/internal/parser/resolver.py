"""
Построение графа схем с разрешением ссылок и циклов
"""

import logging
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urldefrag, urljoin

import jsonref

from ..errors import CyclicReference, MalformedSchema, UnresolvedReference
from ..types.schema import (
    SchemaGraph,
    SchemaKind,
    SchemaNode,
    TypeRegistry,
)
from .document import (
    SwaggerDocument,
    escape_token,
    join_pointer,
    pointer_name,
    resolve_pointer,
    schema_locations,
    unescape_token,
)


logger = logging.getLogger(__name__)

PRIMITIVE_TYPES = {"string", "integer", "number", "boolean", "null", "file"}

# Известные ключевые слова схемы: узел только из них без type - это "any"
SCHEMA_KEYWORDS = {
    "title",
    "description",
    "default",
    "example",
    "examples",
    "deprecated",
    "readOnly",
    "writeOnly",
    "format",
    "nullable",
    "externalDocs",
    "xml",
    "discriminator",
    "not",
    "$schema",
    "$id",
    "$comment",
    "minimum",
    "maximum",
    "exclusiveMinimum",
    "exclusiveMaximum",
    "multipleOf",
    "minLength",
    "maxLength",
    "pattern",
    "minItems",
    "maxItems",
    "uniqueItems",
    "minProperties",
    "maxProperties",
    "contentMediaType",
    "contentEncoding",
}

_COMPOSITES = (
    ("allOf", SchemaKind.ALL_OF),
    ("oneOf", SchemaKind.ONE_OF),
    ("anyOf", SchemaKind.ANY_OF),
)

# Члены этих узлов попадают в псевдоним типа без именованной границы
_STRUCTURAL_KINDS = {kind for _, kind in _COMPOSITES}


class SchemaResolver:
    """
    Резолвер схем документа.

    Ссылки разрешаются лениво в две фазы: при первой встрече путь регистрируется
    заглушкой, затем заглушка заполняется построенным узлом. Повторные встречи
    (в том числе во время заполнения) получают ту же заглушку, поэтому прямые и
    взаимные циклы превращаются в именованные типы.
    """

    def __init__(self, document: SwaggerDocument, base_uri: str = ""):
        self.document = document
        self.base_uri = urldefrag(base_uri)[0] if base_uri else ""
        self.registry = TypeRegistry()
        self._external_documents: Dict[str, Any] = {}
        self._inline: Dict[str, SchemaNode] = {}

    def resolve(self) -> SchemaGraph:
        """Полное построение графа; после него реестр только для чтения"""
        definition_paths = []
        for pointer in self.document.definition_pointers():
            node = self.resolve_ref("#" + pointer)
            definition_paths.append(node.source)

        for schema, pointer in schema_locations(self.document):
            if pointer not in self._inline:
                self._inline[pointer] = self._build(schema, "#" + pointer, "")

        self._check_structural_cycles()
        self.registry.freeze()

        logger.debug(
            "Граф схем построен: %d именованных, %d встроенных",
            len(self.registry),
            len(self._inline),
        )

        return SchemaGraph(
            registry=self.registry,
            version=self.document.version,
            definition_paths=definition_paths,
            inline=dict(self._inline),
            info=self.document.info,
            base_url=self.document.base_url,
        )

    def resolve_ref(self, ref: Any, doc_uri: str = "") -> SchemaNode:
        """
        Канонический узел для ссылки.

        Raises:
            UnresolvedReference: цель ссылки отсутствует
            MalformedSchema: ссылка не строка или цель не разбирается
        """
        path, target_uri, pointer = self._canonical(ref, doc_uri)

        existing = self.registry.get(path)
        if existing is not None:
            return existing

        raw = resolve_pointer(self._document_for(target_uri, path), pointer)

        placeholder = self.registry.register(
            path,
            SchemaNode(kind=SchemaKind.PLACEHOLDER, name=pointer_name(pointer), source=path),
        )
        logger.debug("Зарегистрирована схема %s", path)

        placeholder.fill(self._build(raw, path, target_uri))
        return placeholder

    def _canonical(self, ref: Any, doc_uri: str) -> Tuple[str, str, str]:
        if not isinstance(ref, str):
            raise MalformedSchema(f"$ref должен быть строкой, получено {ref!r}")

        uri, _, fragment = ref.partition("#")
        if uri:
            target_uri = urldefrag(urljoin(doc_uri or self.base_uri, uri))[0]
            if target_uri == self.base_uri:
                target_uri = ""
        else:
            target_uri = doc_uri

        tokens = [t for t in fragment.split("/") if t] if fragment else []
        pointer = "".join("/" + escape_token(unescape_token(t)) for t in tokens)
        if not pointer:
            raise UnresolvedReference(f"Ссылка на корень документа не поддерживается: {ref}")

        return f"{target_uri}#{pointer}", target_uri, pointer

    def _document_for(self, uri: str, path: str) -> Any:
        if not uri:
            return self.document.raw

        if uri not in self._external_documents:
            logger.debug("Загрузка внешнего документа %s", uri)
            try:
                self._external_documents[uri] = jsonref.jsonloader(uri)
            except (OSError, ValueError) as e:
                raise UnresolvedReference(
                    f"Не удалось загрузить внешний документ {uri}: {e}", location=path
                )
        return self._external_documents[uri]

    def _build(self, raw: Any, source: str, doc_uri: str) -> SchemaNode:
        """Построение узла из сырой схемы"""
        if raw is True:
            return SchemaNode(kind=SchemaKind.ANY, source=source)
        if raw is False:
            return SchemaNode(kind=SchemaKind.PRIMITIVE, primitive="never", source=source)
        if not isinstance(raw, dict):
            raise MalformedSchema(
                f"Схема должна быть объектом, получено {type(raw).__name__}",
                location=source,
            )

        description = raw.get("description")
        common = dict(
            source=source,
            nullable=raw.get("nullable") is True or raw.get("x-nullable") is True,
            description=description if isinstance(description, str) else None,
            deprecated=raw.get("deprecated") is True,
        )

        if "$ref" in raw:
            target = self.resolve_ref(raw["$ref"], doc_uri)
            return SchemaNode(kind=SchemaKind.REFERENCE, ref=target.source, **common)

        schema_type = raw.get("type")
        if isinstance(schema_type, list):
            if not all(isinstance(t, str) for t in schema_type):
                raise MalformedSchema(f"Некорректный type: {schema_type!r}", location=source)
            if "null" in schema_type and len(schema_type) > 1:
                common["nullable"] = True
            variants = [t for t in schema_type if t != "null"] or ["null"]
            if len(variants) > 1:
                members = [
                    self._build(dict(raw, type=t), join_pointer(source, "type", i), doc_uri)
                    for i, t in enumerate(variants)
                ]
                return SchemaNode(kind=SchemaKind.ANY_OF, members=members, **common)
            schema_type = variants[0]
        elif schema_type is not None and not isinstance(schema_type, str):
            raise MalformedSchema(f"Некорректный type: {schema_type!r}", location=source)

        for keyword, kind in _COMPOSITES:
            if keyword in raw:
                return self._build_composite(raw, keyword, kind, source, doc_uri, common)

        if "enum" in raw or "const" in raw:
            return self._build_enum(raw, schema_type, source, common)

        if schema_type == "object" or (
            schema_type is None
            and any(key in raw for key in ("properties", "additionalProperties", "required"))
        ):
            return self._build_object(raw, source, doc_uri, common)

        if schema_type == "array" or (schema_type is None and "items" in raw):
            return self._build_array(raw, source, doc_uri, common)

        if schema_type is not None:
            fmt = raw.get("format")
            return SchemaNode(
                kind=SchemaKind.PRIMITIVE,
                primitive=schema_type if schema_type in PRIMITIVE_TYPES else None,
                raw_type=None if schema_type in PRIMITIVE_TYPES else schema_type,
                format=fmt if isinstance(fmt, str) else None,
                **common,
            )

        unknown_keys = [
            key for key in raw if key not in SCHEMA_KEYWORDS and not key.startswith("x-")
        ]
        if unknown_keys:
            raise MalformedSchema(
                "Схема без type, $ref и композиции: " + ", ".join(sorted(unknown_keys)),
                location=source,
            )

        return SchemaNode(kind=SchemaKind.ANY, **common)

    def _build_composite(
        self,
        raw: Dict[str, Any],
        keyword: str,
        kind: SchemaKind,
        source: str,
        doc_uri: str,
        common: Dict[str, Any],
    ) -> SchemaNode:
        members_raw = raw[keyword]
        if not isinstance(members_raw, list):
            raise MalformedSchema(f"{keyword} должен быть списком", location=source)

        members = [
            self._build(member, join_pointer(source, keyword, i), doc_uri)
            for i, member in enumerate(members_raw)
        ]

        # Собственные свойства рядом с allOf - последний член слияния
        if kind == SchemaKind.ALL_OF and "properties" in raw:
            own = {
                key: raw[key]
                for key in ("properties", "required", "additionalProperties")
                if key in raw
            }
            members.append(
                self._build_object(
                    own, source, doc_uri, dict(source=source, nullable=False)
                )
            )

        return SchemaNode(kind=kind, members=members, **common)

    def _build_enum(
        self,
        raw: Dict[str, Any],
        schema_type: Optional[str],
        source: str,
        common: Dict[str, Any],
    ) -> SchemaNode:
        if "enum" in raw:
            values = raw["enum"]
            if not isinstance(values, list):
                raise MalformedSchema("enum должен быть списком", location=source)
        else:
            values = [raw["const"]]

        if None in values:
            common["nullable"] = True
        values = [v for v in values if v is not None]

        if schema_type is None:
            if values and all(isinstance(v, str) for v in values):
                schema_type = "string"
            elif values and all(
                isinstance(v, (int, float)) and not isinstance(v, bool) for v in values
            ):
                schema_type = "number"

        return SchemaNode(
            kind=SchemaKind.ENUM,
            primitive=schema_type,
            enum_values=values,
            **common,
        )

    def _build_object(
        self, raw: Dict[str, Any], source: str, doc_uri: str, common: Dict[str, Any]
    ) -> SchemaNode:
        properties_raw = raw.get("properties") or {}
        if not isinstance(properties_raw, dict):
            raise MalformedSchema("properties должен быть объектом", location=source)

        properties = {
            name: self._build(prop, join_pointer(source, "properties", name), doc_uri)
            for name, prop in properties_raw.items()
        }

        required = raw.get("required") or []
        if not isinstance(required, list):
            raise MalformedSchema("required должен быть списком", location=source)

        additional = None
        additional_raw = raw.get("additionalProperties")
        if additional_raw is True or additional_raw == {}:
            additional = SchemaNode(
                kind=SchemaKind.ANY, source=join_pointer(source, "additionalProperties")
            )
        elif isinstance(additional_raw, dict):
            additional = self._build(
                additional_raw, join_pointer(source, "additionalProperties"), doc_uri
            )

        return SchemaNode(
            kind=SchemaKind.OBJECT,
            properties=properties,
            required=[name for name in required if isinstance(name, str)],
            additional=additional,
            **common,
        )

    def _build_array(
        self, raw: Dict[str, Any], source: str, doc_uri: str, common: Dict[str, Any]
    ) -> SchemaNode:
        items_raw = raw.get("items", {})
        items_source = join_pointer(source, "items")

        if isinstance(items_raw, list):
            # Кортежная форма items - объединение вариантов
            items = SchemaNode(
                kind=SchemaKind.ANY_OF,
                source=items_source,
                members=[
                    self._build(item, join_pointer(items_source, i), doc_uri)
                    for i, item in enumerate(items_raw)
                ],
            )
        else:
            items = self._build(items_raw, items_source, doc_uri)

        return SchemaNode(kind=SchemaKind.ARRAY, items=items, **common)

    def _check_structural_cycles(self) -> None:
        """
        Циклы через псевдонимы, allOf, oneOf и anyOf нельзя выразить именованным типом.

        Raises:
            CyclicReference: найден такой цикл
        """
        edges = {path: self._structural_targets(node) for path, node in self.registry.items()}

        state = {}
        for start in edges:
            if start in state:
                continue
            stack = [(start, iter(edges[start]))]
            trail = [start]
            state[start] = "active"
            while stack:
                path, targets = stack[-1]
                target = next(targets, None)
                if target is None:
                    state[path] = "done"
                    stack.pop()
                    trail.pop()
                    continue
                if state.get(target) == "active":
                    cycle = trail[trail.index(target):] + [target]
                    raise CyclicReference(
                        "Цикл через псевдонимы/композиции: " + " -> ".join(cycle),
                        location=target,
                    )
                if target not in state:
                    state[target] = "active"
                    trail.append(target)
                    stack.append((target, iter(edges.get(target, []))))

    @staticmethod
    def _structural_targets(node: SchemaNode) -> List[str]:
        """Ссылки, достижимые без перехода через объект или массив"""
        targets = []
        pending = [node]
        while pending:
            current = pending.pop(0)
            if current.kind == SchemaKind.REFERENCE:
                targets.append(current.ref)
            elif current.kind in _STRUCTURAL_KINDS:
                pending.extend(current.members)
        return targets


def resolve_document(document: SwaggerDocument, base_uri: str = "") -> SchemaGraph:
    """Построение графа схем документа"""
    return SchemaResolver(document, base_uri).resolve()


__all__ = ["SchemaResolver", "resolve_document"]
