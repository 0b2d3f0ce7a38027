"""
Генерация файлов клиента: объявления типов и сервис в typed/untyped вариантах
"""

import logging
import re
from typing import Any, Dict, List, Optional

from ..types.models import (
    CodeBlock,
    CodeFile,
    Function,
    OperationDescriptor,
    Parameter,
    ParameterDescriptor,
    Project,
    TsType,
    TypeDeclaration,
    annotation,
    escape_markers,
    string_literal,
)
from .templates import templates
from .type_mapper import TypeMapper


logger = logging.getLogger(__name__)

_PLACEHOLDER_SPLIT_RE = re.compile(r"\{([^{}]+)\}")

DECLARATIONS_FILE = "types.ts"
TYPED_SERVICE_FILE = "service.ts"
UNTYPED_SERVICE_FILE = "service.js"


class CodeEmitter:
    """Генератор исходников клиента из объявлений типов и операций"""

    def __init__(
        self,
        type_mapper: TypeMapper,
        base_url: str = "",
        info: Optional[Dict[str, Any]] = None,
        name: str = "api_client",
    ):
        self.type_mapper = type_mapper
        self.base_url = base_url or ""
        self.info = info or {}
        self.name = name

    def emit(
        self, declarations: List[TypeDeclaration], operations: List[OperationDescriptor]
    ) -> Project:
        project = Project(name=self.name)
        project.add_file(self.declarations_file(declarations))

        # Оба варианта - проекции одного аннотированного исходника
        service = self.service_file(declarations, operations)
        project.add_file(
            service.model_copy(update={"file_name": TYPED_SERVICE_FILE, "typed": True})
        )
        project.add_file(
            service.model_copy(update={"file_name": UNTYPED_SERVICE_FILE, "typed": False})
        )

        logger.debug(
            "Сгенерировано: %d типов, %d функций", len(declarations), len(operations)
        )
        return project

    def header(self) -> str:
        lines = []
        for key in ("title", "version"):
            value = self.info.get(key)
            if isinstance(value, (str, int, float)) and str(value).strip():
                lines.append(f"{key.capitalize()}: {value}")

        description = self.info.get("description")
        if isinstance(description, str) and description.strip():
            lines.append("")
            lines.extend(description.strip().splitlines())

        info_lines = "".join(
            "\n *" + (f" {line.rstrip()}" if line.strip() else "")
            for line in lines
        )
        return templates.header.format(
            info_lines=escape_markers(info_lines).replace("*/", "*\\/")
        )

    def declarations_file(self, declarations: List[TypeDeclaration]) -> CodeFile:
        code_file = CodeFile(file_name=DECLARATIONS_FILE, header=self.header())

        if not declarations:
            code_file.add_code_block(templates.empty_types)
            return code_file

        # Блоки сортируются по убыванию order
        total = len(declarations)
        for index, declaration in enumerate(declarations):
            code_file.add_code_block(str(declaration), order=total - index)

        return code_file

    def service_file(
        self, declarations: List[TypeDeclaration], operations: List[OperationDescriptor]
    ) -> CodeFile:
        code_file = CodeFile(file_name=TYPED_SERVICE_FILE, header=self.header())

        total = len(operations)
        functions = [
            self.service_function(operation, order=total - index)
            for index, operation in enumerate(operations)
        ]

        imports = templates.axios_import
        used_types = self._used_type_names(declarations, functions)
        if used_types:
            imports += templates.types_import.replace("{names}", ", ".join(used_types))
        code_file.imports.append(imports)

        code_file.add_code_block(
            templates.runtime.replace("{base_url}", string_literal(self.base_url)),
            order=total + 1,
        )
        for function in functions:
            code_file.add_function(function)

        return code_file

    def service_function(self, operation: OperationDescriptor, order: int = 0) -> Function:
        """Аннотированная функция сервиса для одной операции"""
        expression = self.type_mapper.expression
        response_type = expression(operation.response_schema)

        body = None
        if operation.body_schema is not None:
            body = Parameter(
                name="body",
                var_type=expression(operation.body_schema),
                optional=not operation.body_required,
            )

        parameters = [self._parameter(param) for param in operation.path_params]
        for required in (True, False):
            if body is not None and (not body.optional) == required:
                parameters.append(body)
            parameters.extend(
                self._parameter(param)
                for param in operation.query_params + operation.header_params
                if param.required == required
            )
        parameters.append(
            Parameter(
                name="config",
                var_type=TsType.named("AxiosRequestConfig"),
                optional=True,
            )
        )

        for index, parameter in enumerate(parameters):
            parameter.order = index

        return Function(
            name=operation.name,
            parameters=parameters,
            response=TsType.promise(response_type),
            description=self._description(operation),
            deprecated=operation.deprecated,
            code=CodeBlock(code=self._function_body(operation, response_type, body)),
            order=order,
        )

    def _parameter(self, param: ParameterDescriptor) -> Parameter:
        return Parameter(
            name=param.identifier,
            var_type=self.type_mapper.expression(param.schema_node),
            optional=not param.required,
        )

    def _function_body(
        self,
        operation: OperationDescriptor,
        response_type: TsType,
        body: Optional[Parameter],
    ) -> str:
        url = self._url_expression(operation)
        if operation.query_params:
            url += f" + buildQuery([{self._pairs(operation.query_params)}])"

        request = [
            "\t...config,",
            f"\tmethod: {string_literal(operation.http_method.upper())},",
            "\turl,",
        ]
        if body is not None:
            request.append("\tdata: body,")
        if operation.header_params:
            request.append(
                "\theaders: buildHeaders(config && config.headers, "
                f"[{self._pairs(operation.header_params)}]),"
            )

        lines = [
            f"const url = {url};",
            f"const response = await client.request{annotation(f'<{response_type}>')}({{",
            *request,
            "});",
            "return response.data;",
        ]
        return "\n".join(lines)

    def _url_expression(self, operation: OperationDescriptor) -> str:
        """Шаблон пути с подстановкой encodeURIComponent(String(arg))"""
        if not operation.path_params:
            return string_literal(operation.path_template)

        identifiers = {param.name: param.identifier for param in operation.path_params}
        parts = _PLACEHOLDER_SPLIT_RE.split(operation.path_template)

        result = []
        for index, part in enumerate(parts):
            if index % 2:
                result.append(f"${{encodeURIComponent(String({identifiers[part]}))}}")
            else:
                escaped = part.replace("\\", "\\\\").replace("`", "\\`").replace("$", "\\$")
                result.append(escape_markers(escaped))

        return "`" + "".join(result) + "`"

    @staticmethod
    def _pairs(params: List[ParameterDescriptor]) -> str:
        return ", ".join(
            f"[{string_literal(param.name)}, {param.identifier}]" for param in params
        )

    @staticmethod
    def _description(operation: OperationDescriptor) -> List[str]:
        lines = []
        if operation.summary:
            lines.extend(operation.summary.strip().splitlines())
        if operation.description and operation.description != operation.summary:
            if lines:
                lines.append("")
            lines.extend(operation.description.strip().splitlines())

        params = operation.path_params + operation.query_params + operation.header_params
        documented = [param for param in params if param.description]
        if documented and lines:
            lines.append("")
        for param in documented:
            first_line = param.description.strip().split("\n")[0]
            lines.append(f"@param {param.identifier} {first_line}".rstrip())

        return lines

    def _used_type_names(
        self, declarations: List[TypeDeclaration], functions: List[Function]
    ) -> List[str]:
        """Имена объявлений, на которые ссылаются функции, в порядке объявлений"""
        referenced = set()
        for function in functions:
            for parameter in function.parameters:
                if parameter.var_type is not None:
                    referenced.update(parameter.var_type.references())
            if function.response is not None:
                referenced.update(function.response.references())

        return [decl.name for decl in declarations if decl.name in referenced]

