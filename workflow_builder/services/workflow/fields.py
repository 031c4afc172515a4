"""Field catalog for condition editors.

Conditions reference entity fields by dotted path, ``<entity>.<key>``,
where the key may itself contain dots (``customer.returnStats.totalReturns``).
The catalog is supplied by the entity owners; the builder only resolves
paths against it to label fields and to decide whether a value is picked
from a fixed list or typed freely.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Literal

from pydantic import ConfigDict, Field

from workflow_builder.models.enums import EntityType, FieldDataType
from workflow_builder.schemas.base import DocumentSchema

InputKind = Literal["enum", "freetext"]


class FieldMetadata(DocumentSchema):
    """One catalogued entity field."""

    model_config = ConfigDict(frozen=True)

    key: str
    label: str
    data_type: FieldDataType
    entity: EntityType
    enum_values: list[str] | None = None

    @property
    def path(self) -> str:
        """Dotted path used in conditions."""
        return f"{self.entity.value}.{self.key}"


_PRIORITIES = ["low", "normal", "high", "urgent"]

RETURN_FIELDS: tuple[FieldMetadata, ...] = (
    FieldMetadata(
        key="status",
        label="Status",
        data_type=FieldDataType.ENUM,
        entity=EntityType.RETURN,
        enum_values=[
            "CREATED",
            "PENDING_APPROVAL",
            "APPROVED",
            "LABEL_GENERATED",
            "SHIPPED",
            "DELIVERED",
            "INSPECTION_IN_PROGRESS",
            "REFUND_PROCESSING",
            "REFUND_COMPLETED",
            "COMPLETED",
            "REJECTED",
            "CANCELLED",
        ],
    ),
    FieldMetadata(
        key="priority",
        label="Priority",
        data_type=FieldDataType.ENUM,
        entity=EntityType.RETURN,
        enum_values=_PRIORITIES,
    ),
    FieldMetadata(
        key="reasonCategory",
        label="Reason Category",
        data_type=FieldDataType.STRING,
        entity=EntityType.RETURN,
    ),
    FieldMetadata(
        key="desiredSolution",
        label="Desired Solution",
        data_type=FieldDataType.ENUM,
        entity=EntityType.RETURN,
        enum_values=["refund", "exchange", "voucher", "repair"],
    ),
    FieldMetadata(
        key="refundAmount",
        label="Refund Amount",
        data_type=FieldDataType.NUMBER,
        entity=EntityType.RETURN,
    ),
    FieldMetadata(
        key="assignedTo",
        label="Assigned To",
        data_type=FieldDataType.STRING,
        entity=EntityType.RETURN,
    ),
    FieldMetadata(
        key="createdAt",
        label="Created At",
        data_type=FieldDataType.DATE,
        entity=EntityType.RETURN,
    ),
)

CUSTOMER_FIELDS: tuple[FieldMetadata, ...] = (
    FieldMetadata(
        key="email",
        label="Email",
        data_type=FieldDataType.STRING,
        entity=EntityType.CUSTOMER,
    ),
    FieldMetadata(
        key="riskScore",
        label="Risk Score",
        data_type=FieldDataType.NUMBER,
        entity=EntityType.CUSTOMER,
    ),
    FieldMetadata(
        key="tags",
        label="Tags",
        data_type=FieldDataType.ARRAY,
        entity=EntityType.CUSTOMER,
    ),
    FieldMetadata(
        key="returnStats.totalReturns",
        label="Total Returns",
        data_type=FieldDataType.NUMBER,
        entity=EntityType.CUSTOMER,
    ),
    FieldMetadata(
        key="returnStats.returnRate",
        label="Return Rate",
        data_type=FieldDataType.NUMBER,
        entity=EntityType.CUSTOMER,
    ),
)

TICKET_FIELDS: tuple[FieldMetadata, ...] = (
    FieldMetadata(
        key="status",
        label="Status",
        data_type=FieldDataType.ENUM,
        entity=EntityType.TICKET,
        enum_values=["open", "in_progress", "waiting", "resolved", "closed"],
    ),
    FieldMetadata(
        key="priority",
        label="Priority",
        data_type=FieldDataType.ENUM,
        entity=EntityType.TICKET,
        enum_values=_PRIORITIES,
    ),
    FieldMetadata(
        key="category",
        label="Category",
        data_type=FieldDataType.STRING,
        entity=EntityType.TICKET,
    ),
    FieldMetadata(
        key="tags",
        label="Tags",
        data_type=FieldDataType.ARRAY,
        entity=EntityType.TICKET,
    ),
    FieldMetadata(
        key="assignedTo",
        label="Assigned To",
        data_type=FieldDataType.STRING,
        entity=EntityType.TICKET,
    ),
)


class FieldCatalog:
    """Lookup table of entity fields keyed by dotted path.

    Example:
        >>> catalog = FieldCatalog.default()
        >>> catalog.resolve("customer.returnStats.totalReturns").label
        'Total Returns'
        >>> catalog.input_kind("return.priority")
        'enum'
    """

    def __init__(self, fields: Iterable[FieldMetadata]) -> None:
        self._fields: dict[str, FieldMetadata] = {field.path: field for field in fields}

    @classmethod
    def default(cls) -> FieldCatalog:
        """Catalog of the built-in return, customer and ticket fields."""
        return cls([*RETURN_FIELDS, *CUSTOMER_FIELDS, *TICKET_FIELDS])

    def resolve(self, path: str) -> FieldMetadata | None:
        """Metadata for a dotted path, or ``None`` if it is not catalogued."""
        return self._fields.get(path)

    def input_kind(self, path: str) -> InputKind:
        """How a condition value for ``path`` is entered.

        Only catalogued enum fields with values get a picker; everything
        else, unknown paths included, is free text.
        """
        field = self.resolve(path)
        if field is not None and field.data_type == FieldDataType.ENUM and field.enum_values:
            return "enum"
        return "freetext"

    def label_for(self, path: str) -> str:
        """Display label for a path, falling back to the path itself."""
        field = self.resolve(path)
        return field.label if field is not None else path

    def fields_for(self, entity: EntityType | str) -> list[FieldMetadata]:
        """Fields of one entity, in catalog order."""
        entity = EntityType(entity)
        return [field for field in self._fields.values() if field.entity == entity]

    def all_fields(self) -> list[FieldMetadata]:
        """Every field, in catalog order."""
        return list(self._fields.values())

    def __contains__(self, path: object) -> bool:
        return path in self._fields

    def __len__(self) -> int:
        return len(self._fields)


class FieldCatalogEntry(DocumentSchema):
    """API view of a field: metadata plus its path and input kind."""

    path: str
    key: str
    label: str
    data_type: FieldDataType
    entity: EntityType
    enum_values: list[str] | None = None
    input_kind: InputKind = Field(default="freetext")


def catalog_entry(catalog: FieldCatalog, field: FieldMetadata) -> FieldCatalogEntry:
    """API view of one catalogued field."""
    return FieldCatalogEntry(
        path=field.path,
        key=field.key,
        label=field.label,
        data_type=field.data_type,
        entity=field.entity,
        enum_values=field.enum_values,
        input_kind=catalog.input_kind(field.path),
    )


def catalog_entries(catalog: FieldCatalog, entity: EntityType | None = None) -> list[FieldCatalogEntry]:
    """Flatten a catalog (or one entity of it) for API responses."""
    fields = catalog.fields_for(entity) if entity is not None else catalog.all_fields()
    return [catalog_entry(catalog, field) for field in fields]


__all__ = [
    "CUSTOMER_FIELDS",
    "RETURN_FIELDS",
    "TICKET_FIELDS",
    "FieldCatalog",
    "FieldCatalogEntry",
    "FieldMetadata",
    "InputKind",
    "catalog_entries",
    "catalog_entry",
]
