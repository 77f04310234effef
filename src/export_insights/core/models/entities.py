"""
Typed entities decoded from bulk-export records.

Each line of a bulk export is decoded exactly once, at the classifier
boundary, into one of these models. Children carry only their parent's
id; the root owns the child collections once they are attached.
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from export_insights.utils.coercion import parse_money, parse_quantity, parse_timestamp


class EntityKind(str, Enum):
    """Discriminator for the entity types found in an export."""

    CUSTOMER = "Customer"
    ORDER = "Order"
    REFUND = "Refund"
    LINE_ITEM = "LineItem"
    PRODUCT_VARIANT = "ProductVariant"


class ExportModel(BaseModel):
    """Base for decoded entities: wire names are accepted as aliases."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(..., min_length=1)


def _nested_id(value: Any) -> str | None:
    if isinstance(value, dict):
        value = value.get("id")
    if not isinstance(value, str):
        return None
    return value.strip() or None


class Address(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    city: str | None = None
    province_code: str | None = Field(None, alias="provinceCode")
    country_code: str | None = Field(None, alias="countryCode")


class ProductVariant(ExportModel):
    """Recognized by id so variant lines are counted, but no root owns them."""


class LineItem(ExportModel):
    parent_id: str | None = Field(None, alias="__parentId")
    quantity: int = 0
    original_total: float = Field(0.0, alias="originalTotalSet")

    coerce_money = field_validator("original_total", mode="before")(parse_money)

    @field_validator("quantity", mode="before")
    @classmethod
    def coerce_quantity(cls, v):
        return parse_quantity(v)


class Refund(ExportModel):
    parent_id: str | None = Field(None, alias="__parentId")
    created_at: datetime | None = Field(None, alias="createdAt")
    total_refunded: float = Field(0.0, alias="totalRefundedSet")

    coerce_money = field_validator("total_refunded", mode="before")(parse_money)
    coerce_dates = field_validator("created_at", mode="before")(parse_timestamp)


class Order(ExportModel):
    """
    An order, either a child of a Customer (customer-rooted exports) or a
    root owning its Refund and LineItem children (order-rooted exports).

    Money fields default to 0.0 when absent: duties and additional fees in
    particular are missing from most exports. Gross sales are the only
    exception: without ``totalLineItemsPriceSet`` they are summed from the
    attached line items.
    """

    parent_id: str | None = Field(None, alias="__parentId")
    created_at: datetime | None = Field(None, alias="createdAt")
    processed_at: datetime | None = Field(None, alias="processedAt")
    cancelled_at: datetime | None = Field(None, alias="cancelledAt")
    cancel_reason: str | None = Field(None, alias="cancelReason")
    customer_id: str | None = Field(None, alias="customer")
    source_name: str | None = Field(None, alias="sourceName")
    medium: str | None = None

    total_price: float = Field(0.0, alias="totalPriceSet")
    line_items_price: float | None = Field(None, alias="totalLineItemsPriceSet")
    discounts: float = Field(0.0, alias="totalDiscountsSet")
    tax: float = Field(0.0, alias="totalTaxSet")
    shipping: float = Field(0.0, alias="totalShippingPriceSet")
    refunded: float = Field(0.0, alias="totalRefundedSet")
    duties: float = Field(0.0, alias="currentTotalDutiesSet")
    fees: float = Field(0.0, alias="currentTotalAdditionalFeesSet")

    refunds: list[Refund] = Field(default_factory=list)
    line_items: list[LineItem] = Field(default_factory=list)

    coerce_money = field_validator(
        "total_price", "discounts", "tax",
        "shipping", "refunded", "duties", "fees",
        mode="before",
    )(parse_money)
    coerce_dates = field_validator("created_at", "processed_at", "cancelled_at", mode="before")(parse_timestamp)

    @field_validator("line_items_price", mode="before")
    @classmethod
    def coerce_line_items_price(cls, v):
        # Absent stays None so gross sales can fall back to the line items
        return None if v is None else parse_money(v)

    @field_validator("cancel_reason", mode="before")
    @classmethod
    def coerce_cancel_reason(cls, v):
        if v is None:
            return None
        return str(v).strip() or None

    @model_validator(mode="before")
    @classmethod
    def extract_journey_medium(cls, data: Any) -> Any:
        """Lift the attribution medium out of the customer journey summary."""
        if not isinstance(data, dict) or data.get("medium"):
            return data
        journey = data.get("customerJourneySummary")
        if not isinstance(journey, dict):
            return data
        visit = journey.get("lastVisit") or journey.get("firstVisit")
        if not isinstance(visit, dict):
            return data
        utm = visit.get("utmParameters") if isinstance(visit.get("utmParameters"), dict) else {}
        medium = utm.get("medium") or visit.get("source")
        if medium:
            data = {**data, "medium": str(medium)}
        return data

    @field_validator("customer_id", mode="before")
    @classmethod
    def coerce_customer_id(cls, v):
        return _nested_id(v)

    @field_validator("refunds", "line_items", mode="before")
    @classmethod
    def drop_unidentified(cls, v):
        # Inline lists may be exported without ids; returns then fall back to totalRefundedSet
        if not isinstance(v, list):
            return []
        return [
            item for item in v
            if isinstance(item, ExportModel) or (isinstance(item, dict) and item.get("id"))
        ]

    @property
    def gross_sales(self) -> float:
        if self.line_items_price is not None:
            return self.line_items_price
        return sum(item.original_total for item in self.line_items)

    @property
    def units(self) -> int:
        return sum(item.quantity for item in self.line_items)

    @property
    def is_cancelled(self) -> bool:
        return self.cancelled_at is not None or self.cancel_reason is not None

    def timestamp(self, field: str) -> datetime | None:
        """The order date named by a configured date field."""
        return getattr(self, field)

    def amount(self, field: str) -> float:
        """The money value named by a configured money field."""
        return getattr(self, field)

    @property
    def returns(self) -> float:
        """Refunded amount as a positive number, preferring attached refunds."""
        if self.refunds:
            return sum(abs(refund.total_refunded) for refund in self.refunds)
        return abs(self.refunded)

    @property
    def net_sales(self) -> float:
        return self.gross_sales - self.discounts - self.returns

    @property
    def net_spend(self) -> float:
        """What the customer actually kept paying for: total price less returns."""
        return self.total_price - self.returns


class Customer(ExportModel):
    created_at: datetime | None = Field(None, alias="createdAt")
    email: str | None = None
    address: Address | None = Field(None, alias="defaultAddress")
    orders: list[Order] = Field(default_factory=list)

    coerce_dates = field_validator("created_at", mode="before")(parse_timestamp)

    model_config = ConfigDict(
        populate_by_name=True,
        extra="ignore",
        json_schema_extra={
            "example": {
                "id": "gid://shopify/Customer/7390123",
                "createdAt": "2025-04-01T09:12:44Z",
                "email": "jane@example.com",
                "defaultAddress": {
                    "city": "Jaipur",
                    "provinceCode": "RJ",
                    "countryCode": "IN"
                }
            }
        },
    )


ENTITY_MODELS: dict[EntityKind, type[ExportModel]] = {
    EntityKind.CUSTOMER: Customer,
    EntityKind.ORDER: Order,
    EntityKind.REFUND: Refund,
    EntityKind.LINE_ITEM: LineItem,
    EntityKind.PRODUCT_VARIANT: ProductVariant,
}

# Which collection on a root receives children of a given kind
CHILD_COLLECTIONS: dict[tuple[EntityKind, EntityKind], str] = {
    (EntityKind.CUSTOMER, EntityKind.ORDER): "orders",
    (EntityKind.ORDER, EntityKind.REFUND): "refunds",
    (EntityKind.ORDER, EntityKind.LINE_ITEM): "line_items",
}


def kind_of(entity: ExportModel) -> EntityKind:
    """Return the discriminator for a decoded entity."""
    for kind, model in ENTITY_MODELS.items():
        if type(entity) is model:
            return kind
    raise TypeError(f"Not an export entity: {type(entity).__name__}")


class ExportShape(str, Enum):
    """Which entity kind sits at the root of an export."""

    CUSTOMERS = "customers"
    ORDERS = "orders"

    @property
    def root_kinds(self) -> frozenset[EntityKind]:
        if self is ExportShape.CUSTOMERS:
            return frozenset({EntityKind.CUSTOMER})
        return frozenset({EntityKind.ORDER})
