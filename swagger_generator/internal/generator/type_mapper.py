"""
Отображение узлов схем в объявления типов TypeScript
"""

import logging
from typing import Callable, Dict, List, Optional, Tuple

from ..errors import Diagnostics, SchemaError
from ..types.models import DeclarationKind, TsType, TypeDeclaration, TypeField
from ..types.name_resolver import TypeNameResolver
from ..types.schema import SchemaGraph, SchemaKind, SchemaNode


logger = logging.getLogger(__name__)

PRIMITIVE_MAPPING = {
    "string": "string",
    "integer": "number",
    "number": "number",
    "boolean": "boolean",
    "null": "null",
    "file": "Blob",
    "never": "never",
}

# Глобальные имена, которые использует сгенерированный код
RESERVED_TYPE_NAMES = ("Array", "Blob", "Promise", "Record", "AxiosRequestConfig")


class TypeMapper:
    """Маппер схем: узел -> объявление типа или выражение типа"""

    def __init__(self, graph: SchemaGraph, diagnostics: Optional[Diagnostics] = None):
        self.graph = graph
        self.diagnostics = diagnostics or Diagnostics()
        self.names = TypeNameResolver(reserved=RESERVED_TYPE_NAMES)

        self._handlers: Dict[SchemaKind, Callable[[SchemaNode], TsType]] = {
            SchemaKind.PRIMITIVE: self._map_primitive,
            SchemaKind.ARRAY: self._map_array,
            SchemaKind.OBJECT: self._map_object,
            SchemaKind.ENUM: self._map_enum,
            SchemaKind.REFERENCE: self._map_reference,
            SchemaKind.ONE_OF: self._map_union,
            SchemaKind.ANY_OF: self._map_union,
            SchemaKind.ALL_OF: self._map_all_of,
            SchemaKind.ANY: self._map_any,
            SchemaKind.PLACEHOLDER: self._map_placeholder,
        }
        missing = set(SchemaKind) - set(self._handlers)
        if missing:
            raise RuntimeError(f"Нет обработчиков для видов схем: {sorted(missing)}")

        self._assign_names()

    def _assign_names(self) -> None:
        """Имена назначаются всему реестру до отображения тел"""
        for path in self.graph.ordered_paths():
            node = self.graph.registry[path]
            self.names.register(path, node.name or path, node.fingerprint())

    def type_name(self, path: str) -> str:
        return self.names.resolve(path)

    def declarations(self) -> List[TypeDeclaration]:
        """Объявления всех именованных типов в порядке документа"""
        result = []
        emitted = set()

        for path in self.graph.ordered_paths():
            name = self.names.resolve(path)
            if name in emitted:
                # Та же форма под тем же именем - объявление уже есть
                continue
            emitted.add(name)
            result.append(self.declare(self.graph.registry[path], name))

        return result

    def declare(self, node: SchemaNode, name: Optional[str] = None) -> TypeDeclaration:
        """Объявление одного именованного типа"""
        name = name or self.names.resolve(node.source)
        base = dict(
            name=name,
            description=node.description,
            deprecated=node.deprecated,
            source=node.source,
        )

        if not node.nullable and self._is_interface(node):
            try:
                fields, index_type = self._interface_members(node)
            except SchemaError as e:
                self.diagnostics.warn(e)
                return TypeDeclaration(
                    kind=DeclarationKind.ALIAS, type=TsType.unknown(), **base
                )
            return TypeDeclaration(
                kind=DeclarationKind.INTERFACE,
                fields=fields,
                index_type=index_type,
                **base,
            )

        kind = {
            SchemaKind.ENUM: DeclarationKind.ENUM,
            SchemaKind.ONE_OF: DeclarationKind.UNION,
            SchemaKind.ANY_OF: DeclarationKind.UNION,
            SchemaKind.ARRAY: DeclarationKind.ARRAY,
        }.get(node.kind, DeclarationKind.ALIAS)

        return TypeDeclaration(kind=kind, type=self.expression(node), **base)

    def expression(self, node: Optional[SchemaNode]) -> TsType:
        """Выражение типа для узла; неотображаемое - unknown с предупреждением"""
        if node is None:
            return TsType.unknown()

        try:
            result = self._handlers[node.kind](node)
        except SchemaError as e:
            self.diagnostics.warn(e)
            result = TsType.unknown()

        if node.nullable and not result.is_unknown:
            result = result.nullable()
        return result

    def _is_interface(self, node: SchemaNode) -> bool:
        if node.kind == SchemaKind.OBJECT:
            return bool(node.properties)
        if node.kind == SchemaKind.ALL_OF:
            return not self._single_reference(node)
        return False

    @staticmethod
    def _single_reference(node: SchemaNode) -> bool:
        return len(node.members) == 1 and node.members[0].kind == SchemaKind.REFERENCE

    def _interface_members(
        self, node: SchemaNode
    ) -> Tuple[List[TypeField], Optional[TsType]]:
        if node.kind == SchemaKind.OBJECT:
            return self._object_fields(node), self._index_type(node)
        return self._merge_all_of(node)

    def _object_fields(self, node: SchemaNode) -> List[TypeField]:
        return [
            TypeField(
                name=name,
                type=self.expression(prop),
                required=name in node.required,
                description=prop.description,
            )
            for name, prop in node.properties.items()
        ]

    def _index_type(self, node: SchemaNode) -> Optional[TsType]:
        if node.additional is None:
            return None
        # Сигнатура индекса должна вмещать типы всех свойств
        if node.properties:
            return TsType.unknown()
        return self.expression(node.additional)

    def _merge_all_of(
        self, node: SchemaNode
    ) -> Tuple[List[TypeField], Optional[TsType]]:
        """
        Слияние членов allOf в один интерфейс.

        При конфликте имен побеждает более поздний член в порядке документа,
        поле обязательно, если его требует хотя бы один член.
        """
        fields: Dict[str, TypeField] = {}
        required = set()
        index_type = None

        for member in node.members:
            target = member
            while target.kind == SchemaKind.REFERENCE:
                target = self.graph.target(target)

            if target.kind == SchemaKind.OBJECT:
                for field in self._object_fields(target):
                    fields[field.name] = field
                required.update(target.required)
                if target.additional is not None:
                    index_type = TsType.unknown()
            elif target.kind == SchemaKind.ALL_OF:
                merged, merged_index = self._merge_all_of(target)
                for field in merged:
                    fields[field.name] = field
                    if field.required:
                        required.add(field.name)
                if merged_index is not None:
                    index_type = merged_index
            elif target.kind == SchemaKind.ANY:
                continue
            else:
                raise SchemaError(
                    f"Член allOf вида '{target.kind.value}' нельзя слить в интерфейс",
                    location=member.source,
                )

        for field in fields.values():
            field.required = field.name in required

        return list(fields.values()), index_type

    def _map_primitive(self, node: SchemaNode) -> TsType:
        if node.primitive is None:
            raise SchemaError(
                f"Неизвестный тип '{node.raw_type}'", location=node.source
            )
        if node.primitive == "string" and node.format == "binary":
            return TsType.named("Blob")
        return TsType.named(PRIMITIVE_MAPPING[node.primitive])

    def _map_array(self, node: SchemaNode) -> TsType:
        return TsType.array(self.expression(node.items))

    def _map_object(self, node: SchemaNode) -> TsType:
        if not node.properties:
            return TsType.map(self.expression(node.additional))

        fields = self._object_fields(node)
        return TsType.inline_object(
            {field.name: field.type for field in fields},
            [field.name for field in fields if not field.required],
            self._index_type(node),
        )

    def _map_enum(self, node: SchemaNode) -> TsType:
        if not node.enum_values:
            raise SchemaError("Пустой enum", location=node.source)
        return TsType.union([TsType.literal(value) for value in node.enum_values])

    def _map_reference(self, node: SchemaNode) -> TsType:
        return TsType.named(self.names.resolve(node.ref))

    def _map_union(self, node: SchemaNode) -> TsType:
        if not node.members:
            raise SchemaError("Пустой oneOf/anyOf", location=node.source)
        return TsType.union([self.expression(member) for member in node.members])

    def _map_all_of(self, node: SchemaNode) -> TsType:
        if self._single_reference(node):
            return self.expression(node.members[0])

        fields, index_type = self._merge_all_of(node)
        return TsType.inline_object(
            {field.name: field.type for field in fields},
            [field.name for field in fields if not field.required],
            index_type,
        )

    def _map_any(self, node: SchemaNode) -> TsType:
        return TsType.unknown()

    def _map_placeholder(self, node: SchemaNode) -> TsType:
        raise SchemaError("Схема не была заполнена резолвером", location=node.source)
