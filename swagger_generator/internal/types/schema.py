"""
Каноническое представление схем документа
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple

from pydantic import BaseModel


class DocumentVersion(str, Enum):
    SWAGGER_2 = "swagger_2"
    OPENAPI_3 = "openapi_3"


class SchemaKind(str, Enum):
    PRIMITIVE = "primitive"
    ARRAY = "array"
    OBJECT = "object"
    ENUM = "enum"
    REFERENCE = "reference"
    ONE_OF = "one_of"
    ANY_OF = "any_of"
    ALL_OF = "all_of"
    ANY = "any"
    PLACEHOLDER = "placeholder"


# Поля, не влияющие на форму типа
_ANNOTATION_FIELDS = {"name", "source", "description", "deprecated"}


class SchemaNode(BaseModel):
    """Узел схемы - размеченное объединение по kind"""

    kind: SchemaKind
    name: Optional[str] = None
    source: str = ""

    primitive: Optional[str] = None
    format: Optional[str] = None
    raw_type: Optional[str] = None

    properties: Dict[str, "SchemaNode"] = {}
    required: List[str] = []
    additional: Optional["SchemaNode"] = None

    items: Optional["SchemaNode"] = None
    enum_values: List[Any] = []
    members: List["SchemaNode"] = []

    ref: Optional[str] = None
    nullable: bool = False

    description: Optional[str] = None
    deprecated: bool = False

    def fill(self, other: "SchemaNode") -> "SchemaNode":
        """Заполнение зарегистрированной заглушки построенным узлом"""
        for field_name in type(self).model_fields:
            if field_name in ("name", "source"):
                continue
            setattr(self, field_name, getattr(other, field_name))
        return self

    @property
    def is_placeholder(self) -> bool:
        return self.kind == SchemaKind.PLACEHOLDER

    def fingerprint(self) -> str:
        """Структурный отпечаток формы; ссылки остаются путями"""
        return json.dumps(
            self._structure(), sort_keys=True, ensure_ascii=False, default=str
        )

    def _structure(self) -> Dict[str, Any]:
        data = {}
        for field_name in type(self).model_fields:
            if field_name in _ANNOTATION_FIELDS:
                continue
            value = getattr(self, field_name)
            if isinstance(value, SchemaNode):
                value = value._structure()
            elif isinstance(value, dict):
                value = [[k, v._structure()] for k, v in value.items()]
            elif isinstance(value, list):
                value = [v._structure() if isinstance(v, SchemaNode) else v for v in value]
            data[field_name] = value
        return data


SchemaNode.model_rebuild()


class TypeRegistry:
    """Реестр именованных схем: канонический путь -> узел"""

    def __init__(self):
        self._nodes: Dict[str, SchemaNode] = {}
        self._frozen = False

    def register(self, path: str, node: SchemaNode) -> SchemaNode:
        if self._frozen:
            raise RuntimeError(f"Реестр заморожен, регистрация {path} невозможна")
        if path in self._nodes:
            raise KeyError(f"Путь {path} уже зарегистрирован")

        self._nodes[path] = node
        return node

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def get(self, path: str) -> Optional[SchemaNode]:
        return self._nodes.get(path)

    def items(self) -> List[Tuple[str, SchemaNode]]:
        return list(self._nodes.items())

    def __getitem__(self, path: str) -> SchemaNode:
        return self._nodes[path]

    def __contains__(self, path: str) -> bool:
        return path in self._nodes

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._nodes))

    def __len__(self) -> int:
        return len(self._nodes)


@dataclass
class SchemaGraph:
    """Результат работы резолвера"""

    registry: TypeRegistry
    version: DocumentVersion
    definition_paths: List[str] = field(default_factory=list)
    inline: Dict[str, SchemaNode] = field(default_factory=dict)
    info: Dict[str, Any] = field(default_factory=dict)
    base_url: str = ""

    def ordered_paths(self) -> List[str]:
        """Сначала определения в порядке документа, затем остальные ссылки"""
        ordered = [p for p in self.definition_paths if p in self.registry]
        seen = set(ordered)
        ordered.extend(p for p in self.registry if p not in seen)
        return ordered

    def target(self, node: SchemaNode) -> SchemaNode:
        """Узел, на который указывает ссылка"""
        return self.registry[node.ref]

    def inline_node(self, pointer: str) -> Optional[SchemaNode]:
        return self.inline.get(pointer)
