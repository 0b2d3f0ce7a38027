"""
Общие фикстуры тестов
"""

import copy

import pytest

from swagger_generator.internal.errors import Diagnostics
from swagger_generator.internal.generator.type_mapper import TypeMapper
from swagger_generator.internal.parser.document import SwaggerDocument
from swagger_generator.internal.parser.resolver import SchemaResolver


PETSTORE = {
    "openapi": "3.0.0",
    "info": {
        "title": "Swagger Petstore",
        "version": "1.0.0",
        "description": "Пример API магазина питомцев",
    },
    "servers": [{"url": "http://petstore.swagger.io/v1"}],
    "paths": {
        "/pets": {
            "get": {
                "summary": "List all pets",
                "operationId": "listPets",
                "tags": ["pets"],
                "parameters": [
                    {
                        "name": "limit",
                        "in": "query",
                        "description": "How many items to return at one time (max 100)",
                        "required": False,
                        "schema": {"type": "integer", "format": "int32"},
                    }
                ],
                "responses": {
                    "200": {
                        "description": "A paged array of pets",
                        "content": {
                            "application/json": {
                                "schema": {
                                    "type": "array",
                                    "items": {"$ref": "#/components/schemas/Pet"},
                                }
                            }
                        },
                    },
                    "default": {
                        "description": "unexpected error",
                        "content": {
                            "application/json": {
                                "schema": {"$ref": "#/components/schemas/Error"}
                            }
                        },
                    },
                },
            },
            "post": {
                "summary": "Create a pet",
                "operationId": "createPets",
                "tags": ["pets"],
                "requestBody": {
                    "required": True,
                    "content": {
                        "application/json": {
                            "schema": {"$ref": "#/components/schemas/Pet"}
                        }
                    },
                },
                "responses": {"201": {"description": "Null response"}},
            },
        },
        "/pets/{petId}": {
            "get": {
                "summary": "Info for a specific pet",
                "operationId": "showPetById",
                "tags": ["pets"],
                "parameters": [
                    {
                        "name": "petId",
                        "in": "path",
                        "required": True,
                        "description": "The id of the pet to retrieve",
                        "schema": {"type": "string"},
                    }
                ],
                "responses": {
                    "200": {
                        "description": "Expected response to a valid request",
                        "content": {
                            "application/json": {
                                "schema": {"$ref": "#/components/schemas/Pet"}
                            }
                        },
                    }
                },
            }
        },
    },
    "components": {
        "schemas": {
            "Pet": {
                "type": "object",
                "required": ["id", "name"],
                "properties": {
                    "id": {"type": "integer", "format": "int64"},
                    "name": {"type": "string"},
                    "tag": {"type": "string"},
                },
            },
            "Pets": {
                "type": "array",
                "items": {"$ref": "#/components/schemas/Pet"},
            },
            "Error": {
                "type": "object",
                "required": ["code", "message"],
                "properties": {
                    "code": {"type": "integer", "format": "int32"},
                    "message": {"type": "string"},
                },
            },
        }
    },
}


SWAGGER_PETSTORE = {
    "swagger": "2.0",
    "info": {"title": "Swagger Petstore", "version": "1.0.0"},
    "host": "petstore.swagger.io",
    "basePath": "/v2",
    "schemes": ["https", "http"],
    "paths": {
        "/pet": {
            "post": {
                "operationId": "addPet",
                "parameters": [
                    {
                        "in": "body",
                        "name": "body",
                        "required": True,
                        "schema": {"$ref": "#/definitions/Pet"},
                    }
                ],
                "responses": {"405": {"description": "Invalid input"}},
            }
        },
        "/pet/findByStatus": {
            "get": {
                "operationId": "findPetsByStatus",
                "parameters": [
                    {
                        "name": "status",
                        "in": "query",
                        "required": True,
                        "type": "array",
                        "items": {
                            "type": "string",
                            "enum": ["available", "pending", "sold"],
                        },
                        "collectionFormat": "multi",
                    }
                ],
                "responses": {
                    "200": {
                        "description": "successful operation",
                        "schema": {
                            "type": "array",
                            "items": {"$ref": "#/definitions/Pet"},
                        },
                    }
                },
            }
        },
        "/pet/{petId}/uploadImage": {
            "post": {
                "operationId": "uploadFile",
                "consumes": ["multipart/form-data"],
                "parameters": [
                    {
                        "name": "petId",
                        "in": "path",
                        "required": True,
                        "type": "integer",
                        "format": "int64",
                    },
                    {
                        "name": "additionalMetadata",
                        "in": "formData",
                        "required": False,
                        "type": "string",
                    },
                    {
                        "name": "file",
                        "in": "formData",
                        "required": False,
                        "type": "file",
                    },
                ],
                "responses": {
                    "200": {
                        "description": "successful operation",
                        "schema": {"$ref": "#/definitions/ApiResponse"},
                    }
                },
            }
        },
    },
    "definitions": {
        "Category": {
            "type": "object",
            "properties": {
                "id": {"type": "integer", "format": "int64"},
                "name": {"type": "string"},
            },
        },
        "Pet": {
            "type": "object",
            "required": ["name", "photoUrls"],
            "properties": {
                "id": {"type": "integer", "format": "int64"},
                "category": {"$ref": "#/definitions/Category"},
                "name": {"type": "string", "example": "doggie"},
                "photoUrls": {"type": "array", "items": {"type": "string"}},
                "status": {
                    "type": "string",
                    "description": "pet status in the store",
                    "enum": ["available", "pending", "sold"],
                },
            },
        },
        "ApiResponse": {
            "type": "object",
            "properties": {
                "code": {"type": "integer", "format": "int32"},
                "type": {"type": "string"},
                "message": {"type": "string"},
            },
        },
    },
}


@pytest.fixture
def petstore_spec():
    """OpenAPI 3 petstore"""
    return copy.deepcopy(PETSTORE)


@pytest.fixture
def swagger_petstore_spec():
    """Swagger 2.0 petstore"""
    return copy.deepcopy(SWAGGER_PETSTORE)


@pytest.fixture
def make_spec():
    """Фабрика минимального OpenAPI 3 документа"""

    def factory(schemas=None, paths=None):
        spec = {
            "openapi": "3.0.3",
            "info": {"title": "Test API", "version": "0.1.0"},
            "paths": paths or {},
        }
        if schemas is not None:
            spec["components"] = {"schemas": schemas}
        return spec

    return factory


@pytest.fixture
def build_mapper():
    """Фабрика маппера для документа: (mapper, diagnostics)"""

    def factory(spec):
        diagnostics = Diagnostics()
        graph = SchemaResolver(SwaggerDocument(spec)).resolve()
        return TypeMapper(graph, diagnostics), diagnostics

    return factory
