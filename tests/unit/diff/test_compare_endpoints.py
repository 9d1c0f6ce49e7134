"""Tests for endpoint-level comparison rules."""

from oasvault.diff import (
    Change,
    ChangeCategory,
    ChangeKind,
    ChangeSeverity,
    compare_documents,
)
from oasvault.document import JsonObject
from tests.conftest import node_at

BREAKING = ChangeSeverity.BREAKING
NON_BREAKING = ChangeSeverity.NON_BREAKING


def described(changes: list[Change], target: str) -> list[tuple[ChangeSeverity, str]]:
    return [(c.severity, c.description) for c in changes if c.target == target]


class TestOperations:
    def test_identical_documents_have_no_changes(self, petstore: JsonObject) -> None:
        assert compare_documents(petstore, petstore) == []

    def test_removed_operation_is_breaking(
        self, petstore: JsonObject, edited: JsonObject
    ) -> None:
        del node_at(edited, "paths", "/pets/{petId}")["delete"]

        changes = compare_documents(petstore, edited)

        assert len(changes) == 1
        assert changes[0].category is ChangeCategory.ENDPOINT
        assert changes[0].kind is ChangeKind.REMOVED
        assert changes[0].breaking
        assert changes[0].target == "DELETE /pets/{petId}"
        assert changes[0].location == "/paths/~1pets~1{petId}/delete"

    def test_added_operation_is_non_breaking(
        self, petstore: JsonObject, edited: JsonObject
    ) -> None:
        node_at(edited, "paths")["/owners"] = {
            "get": {"responses": {"200": {"description": "OK"}}}
        }

        changes = compare_documents(petstore, edited)

        assert [(c.kind, c.severity, c.target) for c in changes] == [
            (ChangeKind.ADDED, NON_BREAKING, "GET /owners")
        ]

    def test_changes_are_ordered_by_path_then_method(
        self, petstore: JsonObject, edited: JsonObject
    ) -> None:
        paths = node_at(edited, "paths")
        del paths["/pets"]
        paths["/a"] = {"put": {"responses": {}}, "get": {"responses": {}}}

        targets = [c.target for c in compare_documents(petstore, edited)]

        assert targets == ["GET /a", "PUT /a", "GET /pets", "POST /pets"]

    def test_unclassified_operation_edit_is_non_breaking(
        self, petstore: JsonObject, edited: JsonObject
    ) -> None:
        node_at(edited, "paths", "/pets", "get")["summary"] = "List pets"

        assert described(compare_documents(petstore, edited), "GET /pets") == [
            (NON_BREAKING, "Operation definition changed")
        ]


class TestParameters:
    def test_new_required_parameter_is_breaking(
        self, petstore: JsonObject, edited: JsonObject
    ) -> None:
        node_at(edited, "paths", "/pets", "get")["parameters"].append(  # pyright: ignore[reportAttributeAccessIssue, reportUnknownMemberType]
            {"name": "owner", "in": "query", "required": True, "schema": {"type": "string"}}
        )

        assert described(compare_documents(petstore, edited), "GET /pets") == [
            (BREAKING, "New required parameter 'owner' (query)")
        ]

    def test_new_optional_parameter_is_non_breaking(
        self, petstore: JsonObject, edited: JsonObject
    ) -> None:
        node_at(edited, "paths", "/pets", "get")["parameters"].append(  # pyright: ignore[reportAttributeAccessIssue, reportUnknownMemberType]
            {"name": "owner", "in": "query", "schema": {"type": "string"}}
        )

        assert described(compare_documents(petstore, edited), "GET /pets") == [
            (NON_BREAKING, "New optional parameter 'owner' (query)")
        ]

    def test_optional_parameter_removed_is_non_breaking(
        self, petstore: JsonObject, edited: JsonObject
    ) -> None:
        node_at(edited, "paths", "/pets", "get")["parameters"] = []

        assert described(compare_documents(petstore, edited), "GET /pets") == [
            (NON_BREAKING, "Optional parameter 'limit' (query) removed")
        ]

    def test_path_parameter_removed_is_breaking(
        self, petstore: JsonObject, edited: JsonObject
    ) -> None:
        del node_at(edited, "paths", "/pets/{petId}")["parameters"]

        changes = compare_documents(petstore, edited)

        assert described(changes, "GET /pets/{petId}") == [
            (BREAKING, "Required parameter 'petId' (path) removed")
        ]
        assert described(changes, "DELETE /pets/{petId}") == [
            (BREAKING, "Required parameter 'petId' (path) removed")
        ]

    def test_type_change_is_breaking(
        self, petstore: JsonObject, edited: JsonObject
    ) -> None:
        node_at(edited, "paths", "/pets", "get", "parameters", 0)["schema"] = {
            "type": "string"
        }

        assert described(compare_documents(petstore, edited), "GET /pets") == [
            (
                BREAKING,
                "Type of parameter 'limit' (query) changed from 'integer' (int32) "
                "to 'string'",
            )
        ]

    def test_type_change_through_component_reference(
        self, petstore: JsonObject, edited: JsonObject
    ) -> None:
        node_at(edited, "components", "parameters", "PetId")["schema"] = {
            "type": "string"
        }

        changes = compare_documents(petstore, edited)

        assert [c.target for c in changes if c.breaking] == [
            "DELETE /pets/{petId}",
            "GET /pets/{petId}",
        ]

    def test_made_required_is_breaking(
        self, petstore: JsonObject, edited: JsonObject
    ) -> None:
        node_at(edited, "paths", "/pets", "get", "parameters", 0)["required"] = True

        assert described(compare_documents(petstore, edited), "GET /pets") == [
            (BREAKING, "Parameter 'limit' (query) is now required")
        ]

    def test_made_optional_is_non_breaking(
        self, petstore: JsonObject, edited: JsonObject
    ) -> None:
        node_at(petstore, "paths", "/pets", "get", "parameters", 0)["required"] = True

        assert described(compare_documents(petstore, edited), "GET /pets") == [
            (NON_BREAKING, "Parameter 'limit' (query) is no longer required")
        ]


class TestRequestBody:
    def test_removed_body_is_breaking(
        self, petstore: JsonObject, edited: JsonObject
    ) -> None:
        del node_at(edited, "paths", "/pets", "post")["requestBody"]

        assert described(compare_documents(petstore, edited), "POST /pets") == [
            (BREAKING, "Request body removed")
        ]

    def test_required_body_added_is_breaking(
        self, petstore: JsonObject, edited: JsonObject
    ) -> None:
        del node_at(petstore, "paths", "/pets", "post")["requestBody"]

        assert described(compare_documents(petstore, edited), "POST /pets") == [
            (BREAKING, "Required request body added")
        ]

    def test_optional_body_added_is_non_breaking(
        self, petstore: JsonObject, edited: JsonObject
    ) -> None:
        del node_at(petstore, "paths", "/pets", "post")["requestBody"]
        node_at(edited, "paths", "/pets", "post", "requestBody")["required"] = False

        assert described(compare_documents(petstore, edited), "POST /pets") == [
            (NON_BREAKING, "Optional request body added")
        ]

    def test_body_made_optional_is_non_breaking(
        self, petstore: JsonObject, edited: JsonObject
    ) -> None:
        node_at(edited, "paths", "/pets", "post", "requestBody")["required"] = False

        assert described(compare_documents(petstore, edited), "POST /pets") == [
            (NON_BREAKING, "Request body is no longer required")
        ]


class TestResponses:
    def test_success_response_removed_is_breaking(
        self, petstore: JsonObject, edited: JsonObject
    ) -> None:
        node_at(edited, "paths", "/pets", "get")["responses"] = {
            "default": {"description": "Error"}
        }

        assert described(compare_documents(petstore, edited), "GET /pets") == [
            (BREAKING, "Success response 200 removed"),
            (NON_BREAKING, "Response default added"),
        ]

    def test_error_response_removed_is_non_breaking(
        self, petstore: JsonObject, edited: JsonObject
    ) -> None:
        del node_at(edited, "paths", "/pets/{petId}", "get", "responses")["404"]

        assert described(compare_documents(petstore, edited), "GET /pets/{petId}") == [
            (NON_BREAKING, "Response 404 removed")
        ]

    def test_success_media_type_removed_is_breaking(
        self, petstore: JsonObject, edited: JsonObject
    ) -> None:
        content = node_at(edited, "paths", "/pets", "get", "responses", "200", "content")
        content["application/xml"] = content.pop("application/json")

        assert described(compare_documents(petstore, edited), "GET /pets") == [
            (BREAKING, "Response 200 no longer returns application/json")
        ]

    def test_required_property_dropped_from_success_schema_is_breaking(
        self, petstore: JsonObject, edited: JsonObject
    ) -> None:
        media = node_at(
            edited,
            "paths",
            "/pets/{petId}",
            "get",
            "responses",
            "200",
            "content",
            "application/json",
        )
        media["schema"] = {"type": "object", "properties": {"id": {"type": "integer"}}}

        assert described(compare_documents(petstore, edited), "GET /pets/{petId}") == [
            (
                BREAKING,
                "Required property 'name' removed from response 200 application/json",
            )
        ]

    def test_array_of_same_component_is_left_to_schema_comparison(
        self, petstore: JsonObject, edited: JsonObject
    ) -> None:
        pet = node_at(edited, "components", "schemas", "Pet")
        del pet["properties"]["id"]  # pyright: ignore[reportIndexIssue]
        pet["required"] = ["name"]

        changes = compare_documents(petstore, edited)

        assert [c for c in changes if c.category is ChangeCategory.ENDPOINT] == []
        assert [(c.target, c.severity) for c in changes if c.breaking] == [
            ("Pet", BREAKING)
        ]

    def test_array_items_switched_to_other_component_is_compared(
        self, petstore: JsonObject, edited: JsonObject
    ) -> None:
        schema = node_at(
            edited,
            "paths",
            "/pets",
            "get",
            "responses",
            "200",
            "content",
            "application/json",
            "schema",
        )
        schema["items"] = {"$ref": "#/components/schemas/Owner"}

        assert described(compare_documents(petstore, edited), "GET /pets") == [
            (
                BREAKING,
                "Required property 'id' removed from response 200 application/json",
            )
        ]


class TestOperationSecurity:
    def test_requirement_added_is_breaking(
        self, petstore: JsonObject, edited: JsonObject
    ) -> None:
        node_at(edited, "paths", "/pets", "get")["security"] = [{"apiKey": []}]

        assert described(compare_documents(petstore, edited), "GET /pets") == [
            (BREAKING, "Security requirements tightened")
        ]

    def test_requirement_dropped_is_non_breaking(
        self, petstore: JsonObject, edited: JsonObject
    ) -> None:
        node_at(edited, "paths", "/pets/{petId}", "delete")["security"] = []

        assert described(
            compare_documents(petstore, edited), "DELETE /pets/{petId}"
        ) == [(NON_BREAKING, "Security requirements changed")]

    def test_added_alternative_is_non_breaking(
        self, petstore: JsonObject, edited: JsonObject
    ) -> None:
        node_at(edited, "paths", "/pets/{petId}", "delete")["security"] = [
            {"apiKey": []},
            {"bearer": []},
        ]

        assert described(
            compare_documents(petstore, edited), "DELETE /pets/{petId}"
        ) == [(NON_BREAKING, "Security requirements changed")]
