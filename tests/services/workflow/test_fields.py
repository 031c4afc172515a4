"""Tests for the condition field catalog."""

import pytest

from workflow_builder.models.enums import EntityType, FieldDataType
from workflow_builder.services.workflow.fields import (
    FieldCatalog,
    FieldMetadata,
    catalog_entries,
)


@pytest.fixture
def catalog() -> FieldCatalog:
    return FieldCatalog.default()


class TestResolve:
    """Tests for path lookup."""

    def test_nested_key(self, catalog: FieldCatalog) -> None:
        field = catalog.resolve("customer.returnStats.totalReturns")
        assert field is not None
        assert field.label == "Total Returns"
        assert field.data_type == FieldDataType.NUMBER

    def test_same_key_on_two_entities(self, catalog: FieldCatalog) -> None:
        assert catalog.resolve("return.status").enum_values[0] == "CREATED"
        assert catalog.resolve("ticket.status").enum_values[0] == "open"

    @pytest.mark.parametrize("path", ["return.unknown", "status", "", "order.status"])
    def test_unknown_paths(self, catalog: FieldCatalog, path: str) -> None:
        assert catalog.resolve(path) is None
        assert path not in catalog

    def test_label_falls_back_to_path(self, catalog: FieldCatalog) -> None:
        assert catalog.label_for("return.refundAmount") == "Refund Amount"
        assert catalog.label_for("return.customField") == "return.customField"


class TestInputKind:
    """Enum pickers only for catalogued enum fields."""

    @pytest.mark.parametrize(
        ("path", "kind"),
        [
            ("return.priority", "enum"),
            ("ticket.status", "enum"),
            ("return.reasonCategory", "freetext"),
            ("customer.tags", "freetext"),
            ("nowhere.at_all", "freetext"),
        ],
    )
    def test_kind(self, catalog: FieldCatalog, path: str, kind: str) -> None:
        assert catalog.input_kind(path) == kind

    def test_enum_without_values_is_freetext(self) -> None:
        catalog = FieldCatalog(
            [FieldMetadata(key="grade", label="Grade", data_type="enum", entity="return")]
        )
        assert catalog.input_kind("return.grade") == "freetext"


class TestListing:
    """Tests for per-entity listings."""

    def test_fields_for_entity_in_order(self, catalog: FieldCatalog) -> None:
        keys = [field.key for field in catalog.fields_for("customer")]
        assert keys == ["email", "riskScore", "tags", "returnStats.totalReturns", "returnStats.returnRate"]

    def test_unknown_entity_raises(self, catalog: FieldCatalog) -> None:
        with pytest.raises(ValueError):
            catalog.fields_for("order")

    def test_entries_carry_path_and_kind(self, catalog: FieldCatalog) -> None:
        entries = catalog_entries(catalog, EntityType.TICKET)
        assert len(entries) == 5
        assert entries[0].path == "ticket.status"
        assert entries[0].input_kind == "enum"
        document = entries[2].to_document()
        assert document == {
            "path": "ticket.category",
            "key": "category",
            "label": "Category",
            "dataType": "string",
            "entity": "ticket",
            "inputKind": "freetext",
        }

    def test_all_entries(self, catalog: FieldCatalog) -> None:
        assert len(catalog_entries(catalog)) == len(catalog) == 17
