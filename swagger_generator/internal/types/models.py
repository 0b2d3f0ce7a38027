import json
import re
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Union

from pydantic import BaseModel

from .schema import SchemaNode


# Маркеры аннотаций: typed-вариант сохраняет содержимое, untyped - удаляет
ANNOTATION_OPEN = "<%"
ANNOTATION_CLOSE = "%>"

_ANNOTATION_RE = re.compile(
    re.escape(ANNOTATION_OPEN) + r"(.*?)" + re.escape(ANNOTATION_CLOSE), re.DOTALL
)
_IDENTIFIER_RE = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")


def escape_markers(text: str) -> str:
    """Экранирование маркеров внутри строковых литералов и комментариев"""
    return text.replace(ANNOTATION_OPEN, "<\\%").replace(ANNOTATION_CLOSE, "%\\>")


def annotation(text: str) -> str:
    return f"{ANNOTATION_OPEN}{text}{ANNOTATION_CLOSE}"


def project_annotations(text: str, typed: bool) -> str:
    """Проекция аннотированного исходника в typed или untyped вариант"""
    return _ANNOTATION_RE.sub(lambda m: m.group(1) if typed else "", text)


def string_literal(value: str) -> str:
    """Строковый литерал JS в одинарных кавычках"""
    escaped = (
        value.replace("\\", "\\\\")
        .replace("'", "\\'")
        .replace("\n", "\\n")
        .replace("\r", "\\r")
    )
    return "'" + escape_markers(escaped) + "'"


def doc_comment(lines: List[str], indent: str = "") -> str:
    """JSDoc комментарий из строк"""
    lines = [
        escape_markers(line).replace("*/", "*\\/").rstrip() for line in lines
    ]
    while lines and not lines[-1]:
        lines.pop()
    if not lines:
        return ""

    if len(lines) == 1:
        return f"{indent}/** {lines[0]} */\n"

    body = "\n".join(f"{indent} *" + (f" {line}" if line else "") for line in lines)
    return f"{indent}/**\n{body}\n{indent} */\n"


class TsType(BaseModel):
    """Выражение типа TypeScript"""

    value: str = "unknown"
    wrap_name: Optional[str] = None  # array | union | map | object | promise
    members: List["TsType"] = []

    # Для анонимных объектов
    properties: Dict[str, "TsType"] = {}
    optional: List[str] = []

    @classmethod
    def named(cls, value: str) -> "TsType":
        return cls(value=value)

    @classmethod
    def unknown(cls) -> "TsType":
        return cls(value="unknown")

    @classmethod
    def literal(cls, value: Any) -> "TsType":
        if isinstance(value, str):
            return cls(value=string_literal(value))
        return cls(value=json.dumps(value))

    @classmethod
    def array(cls, item: "TsType") -> "TsType":
        return cls(wrap_name="array", members=[item])

    @classmethod
    def promise(cls, item: "TsType") -> "TsType":
        return cls(wrap_name="promise", members=[item])

    @classmethod
    def map(cls, value: "TsType") -> "TsType":
        return cls(wrap_name="map", members=[value])

    @classmethod
    def inline_object(
        cls,
        properties: Dict[str, "TsType"],
        optional: List[str],
        index: Optional["TsType"] = None,
    ) -> "TsType":
        return cls(
            wrap_name="object",
            properties=properties,
            optional=optional,
            members=[index] if index is not None else [],
        )

    @classmethod
    def union(cls, members: List["TsType"]) -> "TsType":
        flat = []
        for member in members:
            if member.wrap_name == "union":
                flat.extend(member.members)
            else:
                flat.append(member)

        # Убираем дубликаты с сохранением порядка
        unique = {}
        for member in flat:
            unique.setdefault(str(member), member)
        flat = list(unique.values())

        if not flat:
            return cls.unknown()
        if len(flat) == 1:
            return flat[0]
        return cls(wrap_name="union", members=flat)

    def nullable(self) -> "TsType":
        return TsType.union([self, TsType(value="null")])

    @property
    def is_unknown(self) -> bool:
        return self.wrap_name is None and self.value == "unknown"

    def references(self) -> Iterator[str]:
        """Все простые имена внутри выражения"""
        if self.wrap_name is None:
            yield self.value
        for member in self.members:
            yield from member.references()
        for value in self.properties.values():
            yield from value.references()

    def __str__(self) -> str:
        if self.wrap_name == "array":
            item = self.members[0]
            if item.wrap_name == "union":
                return f"Array<{item}>"
            return f"{item}[]"

        if self.wrap_name == "promise":
            return f"Promise<{self.members[0]}>"

        if self.wrap_name == "union":
            return " | ".join(map(str, self.members))

        if self.wrap_name == "map":
            return f"{{ [key: string]: {self.members[0]} }}"

        if self.wrap_name == "object":
            parts = [
                f"{property_key(name)}{'?' if name in self.optional else ''}: {value}"
                for name, value in self.properties.items()
            ]
            if self.members:
                parts.append(f"[key: string]: {self.members[0]}")
            return "{ " + "; ".join(parts) + " }" if parts else "{}"

        return self.value


TsType.model_rebuild()


def property_key(name: str) -> str:
    """Имя свойства, при необходимости в кавычках"""
    if _IDENTIFIER_RE.match(name):
        return name
    return string_literal(name)


class TypeField(BaseModel):
    name: str
    type: TsType
    required: bool = False
    description: Optional[str] = None

    def __str__(self) -> str:
        comment = doc_comment(self.description.splitlines(), "  ") if self.description else ""
        optional = "" if self.required else "?"
        return f"{comment}  {property_key(self.name)}{optional}: {self.type};"


class DeclarationKind(str, Enum):
    INTERFACE = "interface"
    ALIAS = "alias"
    ENUM = "enum"
    UNION = "union"
    ARRAY = "array"


class TypeDeclaration(BaseModel):
    """Объявление именованного типа"""

    name: str
    kind: DeclarationKind
    fields: List[TypeField] = []
    index_type: Optional[TsType] = None
    type: Optional[TsType] = None
    description: Optional[str] = None
    deprecated: bool = False
    source: str = ""

    def field(self, name: str) -> Optional[TypeField]:
        for item in self.fields:
            if item.name == name:
                return item
        return None

    def __str__(self) -> str:
        doc_lines = self.description.splitlines() if self.description else []
        if self.deprecated:
            doc_lines.append("@deprecated")
        comment = doc_comment(doc_lines)

        if self.kind != DeclarationKind.INTERFACE:
            return f"{comment}export type {self.name} = {self.type or TsType.unknown()};"

        body = [str(f) for f in self.fields]
        if self.index_type is not None:
            body.append(f"  [key: string]: {self.index_type};")

        if not body:
            return f"{comment}export interface {self.name} {{}}"

        return f"{comment}export interface {self.name} {{\n" + "\n".join(body) + "\n}"


class ParameterLocation(str, Enum):
    PATH = "path"
    QUERY = "query"
    HEADER = "header"
    BODY = "body"


class ParameterDescriptor(BaseModel):
    name: str
    identifier: str
    location: ParameterLocation
    required: bool = False
    schema_node: SchemaNode
    description: Optional[str] = None


class OperationDescriptor(BaseModel):
    """Контракт одной операции"""

    name: str
    http_method: str
    path_template: str

    path_params: List[ParameterDescriptor] = []
    query_params: List[ParameterDescriptor] = []
    header_params: List[ParameterDescriptor] = []

    body_schema: Optional[SchemaNode] = None
    body_required: bool = False
    response_schema: Optional[SchemaNode] = None

    summary: Optional[str] = None
    description: Optional[str] = None
    deprecated: bool = False

    @property
    def pointer(self) -> str:
        return f"{self.http_method.upper()} {self.path_template}"


class Parameter(BaseModel):
    name: str
    var_type: Optional[TsType] = None
    optional: bool = False

    order: int = 0

    def __str__(self):
        if self.var_type is None:
            return self.name
        return self.name + annotation(f"{'?' if self.optional else ''}: {self.var_type}")


class CodeBlock(BaseModel):
    order: int = 0
    code: str = ""

    def __str__(self):
        return self.code.replace("\t", "  ")


class Function(BaseModel):
    name: str
    parameters: List[Parameter] = []
    response: Optional[TsType] = None

    async_def: bool = True
    exported: bool = True

    description: List[str] = []
    deprecated: bool = False

    code: CodeBlock = CodeBlock()
    order: int = 0

    def __str__(self) -> str:
        doc_lines = list(self.description)
        if self.deprecated:
            if doc_lines:
                doc_lines.append("")
            doc_lines.append("@deprecated")

        signature = (
            ("export " if self.exported else "")
            + ("async " if self.async_def else "")
            + f"function {self.name}("
            + ", ".join(map(str, self.parameters))
            + ")"
            + (annotation(f": {self.response}") if self.response else "")
            + " {"
        )

        body = "\n".join(
            f"  {line}" if line else "" for line in str(self.code).split("\n")
        )

        return (doc_comment(doc_lines) + signature + "\n" + body + "\n}").replace(
            "\t", "  "
        )


class CodeFile(BaseModel):
    file_name: str

    header: Optional[str] = None
    imports: List[str] = []
    functions: Dict[str, Function] = {}
    code_blocks: List[CodeBlock] = []

    # None - файл без аннотаций, True/False - проекция аннотированного текста
    typed: Optional[bool] = None

    def __str__(self):
        text = "\n\n".join(
            filter(
                bool,
                [
                    self.header or "",
                    "\n".join(self.imports) if self.imports else "",
                    "\n\n".join(
                        map(
                            str,
                            sorted(
                                self.code_blocks + list(self.functions.values()),
                                key=lambda x: x.order,
                                reverse=True,
                            ),
                        )
                    ),
                ],
            )
        )

        if self.typed is not None:
            text = project_annotations(text, self.typed)

        return text.replace("\t", "  ") + "\n"

    def add_function(self, function: Union[Function, str], **kwargs) -> Function:
        if isinstance(function, str):
            function = Function(name=function, **kwargs)

        self.functions[function.name] = function
        return function

    def add_code_block(self, code_block: Union[CodeBlock, str], **kwargs) -> "CodeFile":
        if isinstance(code_block, str):
            code_block = CodeBlock(code=code_block, **kwargs)

        self.code_blocks.append(code_block)
        return self


class Project(BaseModel):
    name: str
    files: List[CodeFile] = []

    def add_file(self, file_name: Union[CodeFile, str], **kwargs) -> CodeFile:
        code_file = file_name
        if isinstance(file_name, str):
            code_file = CodeFile(file_name=file_name, **kwargs)

        self.files.append(code_file)
        return code_file

    def get_file(self, file_name: str) -> Optional[CodeFile]:
        for code_file in self.files:
            if code_file.file_name == file_name:
                return code_file
        return None


class GenerationWarning(BaseModel):
    code: str
    location: str = ""
    message: str

    def __str__(self):
        if self.location:
            return f"[{self.code}] {self.location}: {self.message}"
        return f"[{self.code}] {self.message}"


class GenerationResult(BaseModel):
    """Результат запуска: файлы проекта и предупреждения"""

    project: Project
    warnings: List[GenerationWarning] = []

    def source(self, file_name: str) -> str:
        code_file = self.project.get_file(file_name)
        if code_file is None:
            raise KeyError(file_name)
        return str(code_file)

    @property
    def declarations_source(self) -> str:
        return self.source("types.ts")

    @property
    def typed_source(self) -> str:
        return self.source("service.ts")

    @property
    def untyped_source(self) -> str:
        return self.source("service.js")
