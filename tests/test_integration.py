"""
Интеграционные тесты для генератора
"""

import json
import os
import tempfile

import pytest
import yaml

from swagger_generator.config import GeneratorConfig
from swagger_generator.generator import ApiClientGenerator
from swagger_generator.internal.errors import OutputWriteError
from swagger_generator.writer import write_project


class TestIntegration:
    """Интеграционные тесты"""

    def test_complete_generation_workflow(self):
        """Тест полного процесса генерации"""
        # Комплексная OpenAPI спецификация
        complex_spec = {
            "openapi": "3.0.0",
            "info": {"title": "Complex API", "version": "2.0.0"},
            "components": {
                "schemas": {
                    "User": {
                        "type": "object",
                        "properties": {
                            "id": {"type": "integer"},
                            "username": {"type": "string"},
                            "email": {"type": "string", "format": "email"},
                            "created_at": {"type": "string", "format": "date-time"},
                            "is_active": {"type": "boolean"},
                            "role": {"$ref": "#/components/schemas/UserRole"},
                        },
                        "required": ["id", "username", "email"],
                    },
                    "CreateUserRequest": {
                        "type": "object",
                        "properties": {
                            "username": {"type": "string"},
                            "email": {"type": "string"},
                            "password": {"type": "string"},
                        },
                        "required": ["username", "email", "password"],
                    },
                    "UserRole": {
                        "type": "string",
                        "enum": ["admin", "user", "moderator"],
                    },
                    "LoginResponse": {
                        "type": "object",
                        "properties": {
                            "access_token": {"type": "string"},
                            "token_type": {"type": "string"},
                            "user": {"$ref": "#/components/schemas/User"},
                        },
                    },
                }
            },
            "paths": {
                "/auth/login": {
                    "post": {
                        "tags": ["authentication"],
                        "summary": "User login",
                        "operationId": "login",
                        "requestBody": {
                            "required": True,
                            "content": {
                                "application/json": {
                                    "schema": {
                                        "type": "object",
                                        "properties": {
                                            "username": {"type": "string"},
                                            "password": {"type": "string"},
                                        },
                                        "required": ["username", "password"],
                                    }
                                }
                            },
                        },
                        "responses": {
                            "200": {
                                "description": "Successful login",
                                "content": {
                                    "application/json": {
                                        "schema": {"$ref": "#/components/schemas/LoginResponse"}
                                    }
                                },
                            }
                        },
                    }
                },
                "/users": {
                    "get": {
                        "tags": ["users"],
                        "operationId": "listUsers",
                        "parameters": [
                            {"name": "role", "in": "query", "schema": {"$ref": "#/components/schemas/UserRole"}},
                            {"name": "X-Request-ID", "in": "header", "required": True, "schema": {"type": "string"}},
                        ],
                        "responses": {
                            "200": {
                                "description": "List of users",
                                "content": {
                                    "application/json": {
                                        "schema": {
                                            "type": "array",
                                            "items": {"$ref": "#/components/schemas/User"},
                                        }
                                    }
                                },
                            }
                        },
                    },
                    "post": {
                        "tags": ["users"],
                        "operationId": "createUser",
                        "requestBody": {
                            "required": True,
                            "content": {
                                "application/json": {
                                    "schema": {"$ref": "#/components/schemas/CreateUserRequest"}
                                }
                            },
                        },
                        "responses": {
                            "201": {
                                "description": "User created",
                                "content": {
                                    "application/json": {
                                        "schema": {"$ref": "#/components/schemas/User"}
                                    }
                                },
                            }
                        },
                    },
                },
                "/users/{user_id}": {
                    "delete": {
                        "tags": ["users"],
                        "operationId": "deleteUser",
                        "parameters": [
                            {"name": "user_id", "in": "path", "required": True, "schema": {"type": "integer"}}
                        ],
                        "responses": {"204": {"description": "Deleted"}},
                    }
                },
            },
        }

        result = ApiClientGenerator(complex_spec).generate()

        declarations = result.declarations_source
        assert "export type UserRole = 'admin' | 'user' | 'moderator';" in declarations
        assert "  role?: UserRole;" in declarations
        assert "  user?: User;" in declarations

        typed = result.typed_source
        assert (
            "import type { User, CreateUserRequest, UserRole, LoginResponse } from './types';"
            in typed
        )
        assert (
            "export async function login(body: { username: string; password: string }, "
            "config?: AxiosRequestConfig): Promise<LoginResponse> {" in typed
        )
        assert (
            "export async function listUsers(xRequestID: string, role?: UserRole, "
            "config?: AxiosRequestConfig): Promise<User[]> {" in typed
        )
        assert (
            "export async function deleteUser(user_id: number, config?: AxiosRequestConfig)"
            ": Promise<unknown> {" in typed
        )

        untyped = result.untyped_source
        assert "    method: 'DELETE'," in untyped
        assert (
            "    headers: buildHeaders(config && config.headers, [['X-Request-ID', xRequestID]]),"
            in untyped
        )
        assert result.warnings == []

    def test_file_generation_and_save(self, petstore_spec):
        """Тест генерации и сохранения файлов"""
        result = ApiClientGenerator(petstore_spec).generate()

        with tempfile.TemporaryDirectory() as temp_dir:
            target = os.path.join(temp_dir, "client")
            written = write_project(result.project, target)

            assert sorted(os.listdir(target)) == ["service.js", "service.ts", "types.ts"]
            assert len(written) == 3

            for code_file in result.project.files:
                path = os.path.join(target, code_file.file_name)
                with open(path, "r", encoding="utf-8") as f:
                    assert f.read() == str(code_file)

    def test_write_failure(self, petstore_spec, tmp_path):
        """Тест ошибки записи: файлы не появляются"""
        result = ApiClientGenerator(petstore_spec).generate()

        # Файл на месте директории делает запись невозможной
        blocker = tmp_path / "client"
        blocker.write_text("not a directory", encoding="utf-8")

        with pytest.raises(OutputWriteError):
            write_project(result.project, str(blocker))

        assert blocker.read_text(encoding="utf-8") == "not a directory"

    def test_generation_from_json_file(self, petstore_spec, tmp_path):
        """Тест загрузки документа из JSON файла"""
        path = tmp_path / "petstore.json"
        path.write_text(json.dumps(petstore_spec), encoding="utf-8")

        result = ApiClientGenerator.from_source(str(path)).generate()

        assert "export interface Pet {" in result.declarations_source

    def test_generation_from_yaml_file(self, swagger_petstore_spec, tmp_path):
        """Тест загрузки документа из YAML файла"""
        path = tmp_path / "petstore.yaml"
        path.write_text(yaml.safe_dump(swagger_petstore_spec), encoding="utf-8")

        config = GeneratorConfig(base_url="/api")
        result = ApiClientGenerator.from_source(str(path), config=config).generate()

        assert "export async function findPetsByStatus(status, config) {" in (
            result.untyped_source
        )
        assert "export const BASE_URL = '/api';" in result.untyped_source
