"""Tests for reference operations against stored versions."""

import pytest

from oasvault.context import ServiceContext
from oasvault.document import JsonObject, get_at
from oasvault.exceptions import ConflictError, NotFoundError
from tests.conftest import PET_USAGES, SAMPLE_API, V1, V2


class TestFind:
    def test_finds_usages_in_stored_document(self, sample_api: ServiceContext) -> None:
        usages = sample_api.references.find(SAMPLE_API, V1, "schemas", "Pet")

        assert [usage.location for usage in usages] == PET_USAGES

    def test_missing_version(self, sample_api: ServiceContext) -> None:
        with pytest.raises(NotFoundError) as exc_info:
            _ = sample_api.references.find(SAMPLE_API, V2, "schemas", "Pet")

        assert exc_info.value.entity_type == "document"


class TestValidate:
    def test_stored_petstore_is_valid(self, sample_api: ServiceContext) -> None:
        assert sample_api.references.validate(SAMPLE_API, V1).valid


class TestUpdate:
    def test_rewrites_persists_and_audits(self, sample_api: ServiceContext) -> None:
        result = sample_api.references.update(
            SAMPLE_API,
            V1,
            "#/components/schemas/Pet",
            "#/components/schemas/Animal",
            actor="bob",
            rationale="rename",
        )

        assert result.count == 4
        document, _ = sample_api.documents.load_document(SAMPLE_API, V1)
        assert sample_api.references.find(SAMPLE_API, V1, "schemas", "Pet") == []
        assert len(sample_api.references.find(SAMPLE_API, V1, "schemas", "Animal")) == 4
        assert "Pet" in get_at(document, ("components", "schemas"))  # pyright: ignore[reportOperatorIssue]

        latest = sample_api.audit.get(SAMPLE_API, limit=1)[0]
        assert latest.event == "references_updated"
        assert latest.actor == "bob"
        assert latest.rationale == "rename"
        assert latest.version == V1
        assert latest.details["count"] == 4
        assert latest.details["locations"] == PET_USAGES

    def test_rewrite_leaves_dangling_refs_visible_to_validate(
        self, sample_api: ServiceContext
    ) -> None:
        _ = sample_api.references.update(
            SAMPLE_API, V1, "#/components/schemas/Pet", "#/components/schemas/Animal"
        )

        result = sample_api.references.validate(SAMPLE_API, V1)

        assert [entry.ref for entry in result.broken] == ["#/components/schemas/Animal"]

    def test_unused_ref_is_not_found_and_not_audited(
        self, sample_api: ServiceContext
    ) -> None:
        before = len(sample_api.audit.get(SAMPLE_API))

        with pytest.raises(NotFoundError) as exc_info:
            _ = sample_api.references.update(
                SAMPLE_API, V1, "#/components/schemas/Dog", "#/components/schemas/Cat"
            )

        assert exc_info.value.entity_type == "reference"
        assert len(sample_api.audit.get(SAMPLE_API)) == before

    def test_releases_document_lock(self, sample_api: ServiceContext) -> None:
        _ = sample_api.references.update(
            SAMPLE_API, V1, "#/components/schemas/Pet", "#/components/schemas/Animal"
        )

        assert not sample_api.locks.is_locked(
            sample_api.documents.lock_path(SAMPLE_API, V1)
        )


class TestRenameComponent:
    def test_renames_definition_and_references(
        self, sample_api: ServiceContext
    ) -> None:
        result = sample_api.references.rename_component(
            SAMPLE_API, V1, "schemas", "Pet", "Animal", actor="carol"
        )

        assert result.count == 4
        document, _ = sample_api.documents.load_document(SAMPLE_API, V1)
        schemas = get_at(document, ("components", "schemas"))
        assert isinstance(schemas, dict)
        assert list(schemas) == ["Animal", "NewPet", "Owner", "Error"]
        assert sample_api.references.validate(SAMPLE_API, V1).valid

        latest = sample_api.audit.get(SAMPLE_API, limit=1)[0]
        assert latest.event == "component_renamed"
        assert latest.details == {
            "component_type": "schemas",
            "old_name": "Pet",
            "new_name": "Animal",
            "references_updated": 4,
        }

    def test_unreferenced_component_renames_with_zero_count(
        self, sample_api: ServiceContext
    ) -> None:
        result = sample_api.references.rename_component(
            SAMPLE_API, V1, "securitySchemes", "apiKey", "headerKey"
        )

        assert result.count == 0

    def test_missing_component(self, sample_api: ServiceContext) -> None:
        with pytest.raises(NotFoundError) as exc_info:
            _ = sample_api.references.rename_component(
                SAMPLE_API, V1, "schemas", "Dog", "Cat"
            )

        assert exc_info.value.entity_type == "component"

    def test_existing_target_name_conflicts(
        self, sample_api: ServiceContext, petstore: JsonObject
    ) -> None:
        with pytest.raises(ConflictError):
            _ = sample_api.references.rename_component(
                SAMPLE_API, V1, "schemas", "Pet", "Owner"
            )

        document, _ = sample_api.documents.load_document(SAMPLE_API, V1)
        assert document == petstore
