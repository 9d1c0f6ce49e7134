"""Tests for reference validation, usage lookup and rewriting."""

import pytest

from oasvault.document import JsonObject, get_at, parse_pointer
from oasvault.exceptions import ValidationError
from oasvault.references import (
    find_usages,
    resolves,
    rewrite_references,
    validate_references,
)
from tests.conftest import PET_USAGES


class TestFindUsages:
    def test_finds_all_schema_usages_in_order(self, petstore: JsonObject) -> None:
        usages = find_usages(petstore, "schemas", "Pet")

        assert [usage.location for usage in usages] == PET_USAGES

    def test_unused_component_has_no_usages(self, petstore: JsonObject) -> None:
        assert find_usages(petstore, "schemas", "Unused") == []

    def test_finds_parameter_usages(self, petstore: JsonObject) -> None:
        usages = find_usages(petstore, "parameters", "PetId")

        assert [usage.location for usage in usages] == [
            "/paths/~1pets~1{petId}/parameters/0"
        ]


class TestResolves:
    def test_existing_component_resolves(self, petstore: JsonObject) -> None:
        assert resolves(petstore, "#/components/schemas/Pet")

    def test_missing_component_does_not_resolve(self, petstore: JsonObject) -> None:
        assert not resolves(petstore, "#/components/schemas/Dog")

    def test_external_refs_are_treated_as_resolvable(
        self, petstore: JsonObject
    ) -> None:
        assert resolves(petstore, "shared.yaml#/components/schemas/Dog")

    def test_document_without_components(self) -> None:
        assert not resolves({"openapi": "3.0.3"}, "#/components/schemas/Pet")


class TestValidateReferences:
    def test_complete_document_is_valid(self, petstore: JsonObject) -> None:
        result = validate_references(petstore)

        assert result.valid
        assert result.broken == ()
        assert result.checked == 6

    def test_reports_each_broken_ref_once_with_all_locations(
        self, petstore: JsonObject
    ) -> None:
        schemas = get_at(petstore, ("components", "schemas"))
        assert isinstance(schemas, dict)
        del schemas["Pet"]

        result = validate_references(petstore)

        assert not result.valid
        assert result.broken_count == 1
        assert result.broken[0].ref == "#/components/schemas/Pet"
        assert list(result.broken[0].locations) == PET_USAGES

    def test_ignores_external_refs(self) -> None:
        document: JsonObject = {
            "paths": {"/x": {"$ref": "common.yaml#/paths/~1x"}},
        }

        result = validate_references(document)

        assert result.valid
        assert result.checked == 0

    def test_malformed_internal_ref_is_broken(self) -> None:
        document: JsonObject = {
            "components": {"schemas": {}},
            "paths": {"/x": {"$ref": "#/components/schemas"}},
        }

        assert not validate_references(document).valid

    def test_to_dict(self, petstore: JsonObject) -> None:
        assert validate_references(petstore).to_dict() == {
            "valid": True,
            "broken": [],
            "checked": 6,
        }


class TestRewriteReferences:
    def test_rewrites_every_exact_match_in_place(self, petstore: JsonObject) -> None:
        result = rewrite_references(
            petstore, "#/components/schemas/Pet", "#/components/schemas/Animal"
        )

        assert result.count == 4
        assert list(result.locations) == PET_USAGES
        for location in PET_USAGES:
            assert get_at(petstore, parse_pointer(location)) == {
                "$ref": "#/components/schemas/Animal"
            }

    def test_does_not_touch_other_refs(self, petstore: JsonObject) -> None:
        _ = rewrite_references(
            petstore, "#/components/schemas/Pet", "#/components/schemas/Animal"
        )

        assert find_usages(petstore, "schemas", "NewPet") != []
        assert find_usages(petstore, "schemas", "Owner") != []

    def test_prefix_is_not_a_match(self, petstore: JsonObject) -> None:
        result = rewrite_references(
            petstore, "#/components/schemas/Pe", "#/components/schemas/X"
        )

        assert result.count == 0

    def test_unused_ref_rewrites_nothing(self, petstore: JsonObject) -> None:
        assert rewrite_references(petstore, "#/a", "#/b").to_dict() == {
            "count": 0,
            "locations": [],
        }

    @pytest.mark.parametrize(("old", "new"), [("", "#/b"), ("#/a", "  ")])
    def test_rejects_empty_refs(
        self, petstore: JsonObject, old: str, new: str
    ) -> None:
        with pytest.raises(ValidationError):
            _ = rewrite_references(petstore, old, new)
