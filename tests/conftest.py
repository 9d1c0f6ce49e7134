"""Shared test fixtures for oasvault tests."""

from pathlib import Path
from typing import cast

import pytest
from rich.console import Console

from oasvault.config import Config, LockConfig, StorageConfig
from oasvault.context import ServiceContext, create_context
from oasvault.document import ApiId, JsonObject, VersionTag, deep_copy, get_at

SAMPLE_API = ApiId("sample-api")
V1 = VersionTag("v1.0.0")
V2 = VersionTag("v1.1.0")
V3 = VersionTag("v2.0.0")


def make_petstore() -> JsonObject:
    """Build a small but complete OpenAPI 3 document.

    ``Pet`` is referenced from three responses and from ``NewPet.allOf``;
    ``PetId`` is a path-level parameter reference; ``apiKey`` is required by
    ``DELETE /pets/{petId}`` only.
    """
    return {
        "openapi": "3.0.3",
        "info": {"title": "Petstore", "version": "1.0.0"},
        "paths": {
            "/pets": {
                "get": {
                    "operationId": "listPets",
                    "parameters": [
                        {
                            "name": "limit",
                            "in": "query",
                            "required": False,
                            "schema": {"type": "integer", "format": "int32"},
                        }
                    ],
                    "responses": {
                        "200": {
                            "description": "A list of pets",
                            "content": {
                                "application/json": {
                                    "schema": {
                                        "type": "array",
                                        "items": {"$ref": "#/components/schemas/Pet"},
                                    }
                                }
                            },
                        }
                    },
                },
                "post": {
                    "operationId": "createPet",
                    "requestBody": {
                        "required": True,
                        "content": {
                            "application/json": {
                                "schema": {"$ref": "#/components/schemas/NewPet"}
                            }
                        },
                    },
                    "responses": {
                        "201": {
                            "description": "Created",
                            "content": {
                                "application/json": {
                                    "schema": {"$ref": "#/components/schemas/Pet"}
                                }
                            },
                        }
                    },
                },
            },
            "/pets/{petId}": {
                "parameters": [{"$ref": "#/components/parameters/PetId"}],
                "get": {
                    "operationId": "getPet",
                    "responses": {
                        "200": {
                            "description": "A pet",
                            "content": {
                                "application/json": {
                                    "schema": {"$ref": "#/components/schemas/Pet"}
                                }
                            },
                        },
                        "404": {"$ref": "#/components/responses/NotFound"},
                    },
                },
                "delete": {
                    "operationId": "deletePet",
                    "security": [{"apiKey": []}],
                    "responses": {"204": {"description": "Deleted"}},
                },
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
                        "status": {"type": "string", "enum": ["available", "sold"]},
                        "owner": {"$ref": "#/components/schemas/Owner"},
                    },
                },
                "NewPet": {
                    "allOf": [
                        {"$ref": "#/components/schemas/Pet"},
                        {"type": "object", "properties": {"tag": {"type": "string"}}},
                    ]
                },
                "Owner": {"type": "object", "properties": {"name": {"type": "string"}}},
                "Error": {
                    "type": "object",
                    "required": ["code"],
                    "properties": {
                        "code": {"type": "integer"},
                        "message": {"type": "string"},
                    },
                },
            },
            "parameters": {
                "PetId": {
                    "name": "petId",
                    "in": "path",
                    "required": True,
                    "schema": {"type": "integer", "format": "int64"},
                }
            },
            "responses": {
                "NotFound": {
                    "description": "Not found",
                    "content": {
                        "application/json": {
                            "schema": {"$ref": "#/components/schemas/Error"}
                        }
                    },
                }
            },
            "securitySchemes": {
                "apiKey": {"type": "apiKey", "in": "header", "name": "X-API-Key"}
            },
        },
    }


# Locations of every "#/components/schemas/Pet" usage in make_petstore(), in
# document order
PET_USAGES = [
    "/paths/~1pets/get/responses/200/content/application~1json/schema/items",
    "/paths/~1pets/post/responses/201/content/application~1json/schema",
    "/paths/~1pets~1{petId}/get/responses/200/content/application~1json/schema",
    "/components/schemas/NewPet/allOf/0",
]


@pytest.fixture
def petstore() -> JsonObject:
    return make_petstore()


@pytest.fixture
def storage_root(tmp_path: Path) -> Path:
    return tmp_path / "data"


@pytest.fixture
def config(storage_root: Path) -> Config:
    """Configuration rooted in a temporary directory with short lock waits."""
    return Config(
        storage=StorageConfig(root=storage_root),
        lock=LockConfig(timeout=1.0, retries=3, retry_interval=0.01),
    )


@pytest.fixture
def ctx(config: Config) -> ServiceContext:
    return create_context(config)


@pytest.fixture
def sample_api(ctx: ServiceContext, petstore: JsonObject) -> ServiceContext:
    """A context whose store holds ``sample-api`` with ``v1.0.0`` (the petstore)."""
    _ = ctx.versions.create_version(
        SAMPLE_API, V1, "Initial release", seed=petstore, actor="alice"
    )
    return ctx


@pytest.fixture
def console() -> Console:
    return Console(
        width=120,
        force_terminal=True,
        highlight=False,
        color_system=None,
        legacy_windows=False,
    )


def node_at(document: JsonObject, *path: str | int) -> JsonObject:
    """Return the mapping at ``path`` for in-place edits."""
    return cast("JsonObject", get_at(document, path))


@pytest.fixture
def edited(petstore: JsonObject) -> JsonObject:
    """An independent copy of the petstore for a test to edit."""
    return cast("JsonObject", deep_copy(petstore))
