"""
Тесты генерации исходников клиента
"""

import re

from swagger_generator.generator import ApiClientGenerator
from swagger_generator.config import GeneratorConfig
from swagger_generator.internal.types.models import project_annotations


def _generate(spec, **config):
    return ApiClientGenerator(spec, config=GeneratorConfig(**config)).generate()


def _function_names(source):
    return re.findall(r"export async function (\w+)\(", source)


UPDATE_ITEM_PATHS = {
    "/items/{id}": {
        "post": {
            "operationId": "updateItem",
            "parameters": [
                {"name": "page", "in": "query", "schema": {"type": "integer"}},
                {"name": "q", "in": "query", "required": True, "schema": {"type": "string"}},
                {"name": "X-Trace", "in": "header", "schema": {"type": "string"}},
                {"name": "id", "in": "path", "required": True, "schema": {"type": "integer"}},
            ],
            "requestBody": {
                "required": True,
                "content": {
                    "application/json": {
                        "schema": {"type": "object", "properties": {"name": {"type": "string"}}}
                    }
                },
            },
            "responses": {"204": {"description": "updated"}},
        }
    }
}


class TestDeclarationsFile:
    """Тесты файла объявлений"""

    def test_petstore_interface(self, petstore_spec):
        """Тест интерфейса Pet"""
        source = _generate(petstore_spec).declarations_source

        assert "export interface Pet {\n  id: number;\n  name: string;\n  tag?: string;\n}" in source
        assert "export type Pets = Pet[];" in source
        assert "export interface Error {" in source

    def test_header_without_timestamp(self, petstore_spec):
        """Тест заголовочного комментария"""
        source = _generate(petstore_spec).declarations_source

        assert source.startswith("/*\n * This file was generated by swagger-generator")
        assert " * Title: Swagger Petstore\n * Version: 1.0.0\n" in source
        assert " * Пример API магазина питомцев\n */" in source

    def test_header_comment_is_escaped(self, make_spec):
        """Тест закрывающей последовательности в описании"""
        spec = make_spec()
        spec["info"]["description"] = "ends */ here"

        source = _generate(spec).declarations_source

        assert "ends *\\/ here" in source

    def test_empty_declarations_is_module(self, make_spec):
        """Тест документа без схем"""
        source = _generate(make_spec()).declarations_source

        assert source.endswith("export {};\n")


class TestServiceFiles:
    """Тесты typed и untyped сервисов"""

    def test_list_pets_typed(self, petstore_spec):
        """Тест typed функции listPets"""
        source = _generate(petstore_spec).typed_source

        assert (
            "export async function listPets(limit?: number, config?: AxiosRequestConfig)"
            ": Promise<Pet[]> {" in source
        )
        assert "  const url = '/pets' + buildQuery([['limit', limit]]);" in source
        assert "  const response = await client.request<Pet[]>({" in source
        assert "    method: 'GET',\n    url,\n  });\n  return response.data;" in source

    def test_list_pets_untyped(self, petstore_spec):
        """Тест untyped функции listPets"""
        source = _generate(petstore_spec).untyped_source

        assert "export async function listPets(limit, config) {" in source
        assert "  const response = await client.request({" in source
        assert "AxiosRequestConfig" not in source
        assert "import type" not in source
        assert "Promise<" not in source

    def test_path_parameter_substitution(self, petstore_spec):
        """Тест подстановки параметра пути"""
        source = _generate(petstore_spec).untyped_source

        assert "  const url = `/pets/${encodeURIComponent(String(petId))}`;" in source

    def test_request_body(self, petstore_spec):
        """Тест тела запроса"""
        source = _generate(petstore_spec).typed_source

        assert (
            "export async function createPets(body: Pet, config?: AxiosRequestConfig)"
            ": Promise<unknown> {" in source
        )
        assert "    method: 'POST',\n    url,\n    data: body,\n  });" in source

    def test_type_imports(self, petstore_spec):
        """Тест импорта только используемых типов"""
        result = _generate(petstore_spec)

        assert "import type { Pet } from './types';" in result.typed_source
        assert result.untyped_source.startswith(result.declarations_source.split("\n\n")[0])
        assert "import axios from 'axios';\n\nexport const BASE_URL" in result.untyped_source

    def test_base_url(self, petstore_spec):
        """Тест базового URL из документа и из конфига"""
        assert "export const BASE_URL = 'http://petstore.swagger.io/v1';" in (
            _generate(petstore_spec).untyped_source
        )
        assert "export const BASE_URL = 'https://api.local';" in (
            _generate(petstore_spec, base_url="https://api.local").untyped_source
        )

    def test_parameter_order(self, make_spec):
        """Тест порядка параметров: путь, обязательные, опциональные, config"""
        result = _generate(make_spec(paths=UPDATE_ITEM_PATHS))

        assert (
            "export async function updateItem(id, body, q, page, xTrace, config) {"
            in result.untyped_source
        )
        assert (
            "export async function updateItem(id: number, body: { name?: string }, q: string, "
            "page?: number, xTrace?: string, config?: AxiosRequestConfig): Promise<unknown> {"
            in result.typed_source
        )

    def test_query_and_headers(self, make_spec):
        """Тест строки запроса и заголовков"""
        source = _generate(make_spec(paths=UPDATE_ITEM_PATHS)).untyped_source

        assert (
            "  const url = `/items/${encodeURIComponent(String(id))}`"
            " + buildQuery([['page', page], ['q', q]]);" in source
        )
        assert "    headers: buildHeaders(config && config.headers, [['X-Trace', xTrace]])," in source

    def test_variants_differ_only_in_annotations(self, petstore_spec, make_spec):
        """Тест эквивалентности typed и untyped вариантов"""
        for spec in (petstore_spec, make_spec(paths=UPDATE_ITEM_PATHS)):
            result = _generate(spec)
            typed, untyped = result.typed_source, result.untyped_source

            assert _function_names(typed) == _function_names(untyped)

            def behavior(source):
                return [
                    line
                    for line in source.splitlines()
                    if line.strip().startswith(("method:", "url", "data:", "headers:", "return", "const url"))
                ]

            assert behavior(typed) == behavior(untyped)

            annotated = result.project.get_file("service.ts").model_copy(update={"typed": None})
            assert project_annotations(str(annotated), False) == untyped
            assert project_annotations(str(annotated), True) == typed

    def test_runtime_helpers(self, petstore_spec):
        """Тест вспомогательных функций рантайма"""
        result = _generate(petstore_spec)

        assert "function buildQuery(params) {" in result.untyped_source
        assert (
            "function buildQuery(params: Array<[string, unknown]>): string {"
            in result.typed_source
        )
        assert "if (value === undefined || value === null) {" in result.untyped_source

    def test_function_doc_comment(self, petstore_spec):
        """Тест JSDoc комментария"""
        source = _generate(petstore_spec).typed_source

        assert (
            "/**\n * List all pets\n *\n"
            " * @param limit How many items to return at one time (max 100)\n */\n"
            "export async function listPets(" in source
        )

    def test_runtime_globals_kept(self, make_spec):
        """Тест функции с operationId String: глобальный String не перекрыт"""
        spec = make_spec(
            paths={
                "/s": {
                    "get": {
                        "operationId": "String",
                        "parameters": [{"name": "q", "in": "query", "schema": {"type": "string"}}],
                        "responses": {"204": {"description": "ok"}},
                    }
                }
            }
        )

        source = _generate(spec).untyped_source

        assert _function_names(source) == ["String2"]
        assert "encodeURIComponent(String(item))" in source

    def test_deprecated_operation(self, make_spec):
        """Тест устаревшей операции"""
        spec = make_spec(
            paths={
                "/old": {
                    "get": {
                        "operationId": "oldCall",
                        "deprecated": True,
                        "responses": {"200": {"description": "ok"}},
                    }
                }
            }
        )

        assert "/** @deprecated */\nexport async function oldCall(config) {" in (
            _generate(spec).untyped_source
        )

    def test_deterministic_output(self, petstore_spec, swagger_petstore_spec):
        """Тест побайтовой повторяемости"""
        for spec in (petstore_spec, swagger_petstore_spec):
            first = _generate(spec)
            second = _generate(spec)

            for code_file in first.project.files:
                assert first.source(code_file.file_name) == second.source(code_file.file_name)

    def test_annotation_markers_in_literals(self, make_spec):
        """Тест маркеров аннотаций внутри строковых литералов"""
        spec = make_spec(
            {"Odd": {"type": "string", "enum": ["<%weird%>"]}},
            paths={
                "/odd": {
                    "get": {
                        "operationId": "getOdd",
                        "parameters": [
                            {"name": "v", "in": "query", "schema": {"$ref": "#/components/schemas/Odd"}}
                        ],
                        "responses": {"200": {"description": "ok"}},
                    }
                }
            },
        )

        result = _generate(spec)

        assert "export async function getOdd(v, config) {" in result.untyped_source
        assert "getOdd(v?: Odd, config?: AxiosRequestConfig)" in result.typed_source
        assert "export type Odd = '<\\%weird%\\>';" in result.declarations_source
