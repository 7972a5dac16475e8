"""
wrenchd/schemas.py

Request payload schemas (pydantic) for the JSON API.

Wire format:
- camelCase keys (customerId, unitPrice, ...); parsed results use the snake_case
  attribute names of the SQLAlchemy models.
- Money arrives as decimal strings ("12.50"); JSON numbers are accepted and converted
  through str(), never through binary float arithmetic.
- Blank strings in optional fields are treated as "not provided" (None).

Create vs update:
- Top-level fields are declared Optional; each schema lists its REQUIRED fields.
  parse_payload(schema, data) enforces them on create; parse_payload(..., partial=True)
  returns only the keys the client actually sent (PUT semantics).
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Annotated, Any, ClassVar, List, Literal, Optional, Tuple

from pydantic import AfterValidator, BaseModel, BeforeValidator, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from .errors import ValidationError
from .pricing import MAX_HOURS, MAX_MONEY, money, to_decimal

MAX_INT = 2_147_483_647


# ---------------------------------------------------------------------
# Field types
# ---------------------------------------------------------------------
def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and value.strip() == "":
        return None
    return value


def _coerce_money(value: Any) -> Any:
    value = _blank_to_none(value)
    if value is None:
        return None
    try:
        return to_decimal(value)
    except ValidationError:
        raise ValueError("must be a decimal number")


def _cents(limit: Decimal):
    def validate(value: Decimal) -> Decimal:
        if abs(value) > limit:
            raise ValueError(f"must not exceed {limit}")
        return money(value)

    return validate


def _naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


Text = Annotated[Optional[str], BeforeValidator(_blank_to_none)]
Money = Annotated[Decimal, BeforeValidator(_coerce_money), Field(ge=0), AfterValidator(_cents(MAX_MONEY))]
Hours = Annotated[Decimal, BeforeValidator(_coerce_money), Field(ge=0), AfterValidator(_cents(MAX_HOURS))]
Timestamp = Annotated[datetime, BeforeValidator(_blank_to_none), AfterValidator(_naive_utc)]
Quantity = Annotated[int, Field(gt=0, le=MAX_INT)]
Count = Annotated[int, Field(ge=-MAX_INT, le=MAX_INT)]

JobStatus = Literal["scheduled", "in_progress", "completed", "cancelled"]
QuoteStatus = Literal["pending", "accepted", "rejected", "expired"]
PurchaseOrderStatus = Literal["pending", "approved", "shipped", "delivered", "cancelled"]
ReturnStatus = Literal["pending", "approved", "processed", "completed"]
TemplateType = Literal["purchase-order", "return", "quote", "receipt"]
DocumentType = Literal["purchase-order", "return", "quote", "receipt"]


class _Schema(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        str_strip_whitespace=True,
    )

    REQUIRED: ClassVar[Tuple[str, ...]] = ()


# ---------------------------------------------------------------------
# Master data
# ---------------------------------------------------------------------
class CustomerIn(_Schema):
    REQUIRED = ("name",)

    name: Text = None
    email: Text = None
    phone: Text = None
    address: Text = None
    notes: Text = None


class VehicleIn(_Schema):
    REQUIRED = ("customer_id", "make", "model", "year")

    customer_id: Text = None
    make: Text = None
    model: Text = None
    year: Optional[Annotated[int, Field(ge=1886, le=2100)]] = None
    trim: Text = None
    color: Text = None
    vin: Text = None
    license_plate: Text = None
    mileage: Optional[Annotated[int, Field(ge=0, le=MAX_INT)]] = None
    engine_size: Text = None
    fuel_type: Text = None
    transmission: Text = None
    notes: Text = None


class SupplierIn(_Schema):
    REQUIRED = ("name",)

    name: Text = None
    contact_name: Text = None
    phone: Text = None
    email: Text = None
    address: Text = None
    website: Text = None
    notes: Text = None


class InventoryItemIn(_Schema):
    REQUIRED = ("name",)

    name: Text = None
    description: Text = None
    part_number: Text = None
    category: Text = None
    supplier_id: Text = None
    cost_price: Money = Decimal("0.00")
    retail_price: Money = Decimal("0.00")
    quantity: Count = 0
    low_stock_threshold: Annotated[int, Field(ge=0, le=MAX_INT)] = 5
    track_stock: bool = True
    image_url: Text = None


class ServiceBayIn(_Schema):
    REQUIRED = ("name",)

    name: Text = None
    description: Text = None
    color: Annotated[str, Field(pattern=r"^#[0-9A-Fa-f]{6}$")] = "#3B82F6"
    is_active: bool = True
    sort_order: Count = 0


# ---------------------------------------------------------------------
# Line items (always fully validated)
# ---------------------------------------------------------------------
class PartLineIn(_Schema):
    inventory_item_id: Text = None
    part_name: Annotated[str, Field(min_length=1)]
    part_number: Text = None
    quantity: Quantity
    unit_price: Money
    total_price: Optional[Money] = None


class PurchaseOrderLineIn(_Schema):
    inventory_item_id: Text = None
    item_name: Annotated[str, Field(min_length=1)]
    item_description: Text = None
    quantity: Quantity
    unit_price: Money
    total_price: Optional[Money] = None


class ReturnLineIn(_Schema):
    inventory_item_id: Text = None
    item_name: Annotated[str, Field(min_length=1)]
    condition: Annotated[str, Field(min_length=1)] = "new"
    quantity: Quantity
    unit_price: Money
    total_price: Optional[Money] = None


# ---------------------------------------------------------------------
# Jobs & quotes
# ---------------------------------------------------------------------
class JobIn(_Schema):
    REQUIRED = ("customer_id", "vehicle_id", "title")

    customer_id: Text = None
    vehicle_id: Text = None
    service_bay_id: Text = None
    title: Text = None
    description: Text = None
    status: JobStatus = "scheduled"
    scheduled_date: Optional[Timestamp] = None
    completed_date: Optional[Timestamp] = None
    labor_hours: Hours = Decimal("0.00")
    labor_rate: Money = Decimal("0.00")
    notes: Text = None
    photos: List[str] = Field(default_factory=list)
    job_parts: Optional[List[PartLineIn]] = None

    # client hints, checked against the server calculation
    parts_total: Optional[Money] = None
    labor_total: Optional[Money] = None
    total_amount: Optional[Money] = None


class QuoteIn(_Schema):
    REQUIRED = ("customer_id", "vehicle_id", "title")

    customer_id: Text = None
    vehicle_id: Text = None
    title: Text = None
    description: Text = None
    status: QuoteStatus = "pending"
    valid_until: Optional[Timestamp] = None
    labor_hours: Hours = Decimal("0.00")
    labor_rate: Money = Decimal("0.00")
    notes: Text = None
    quote_parts: Optional[List[PartLineIn]] = None

    parts_total: Optional[Money] = None
    labor_total: Optional[Money] = None
    total_amount: Optional[Money] = None


# ---------------------------------------------------------------------
# Procurement
# ---------------------------------------------------------------------
class PurchaseOrderIn(_Schema):
    REQUIRED = ("supplier_id",)

    supplier_id: Text = None
    order_number: Text = None
    status: PurchaseOrderStatus = "pending"
    order_date: Optional[Timestamp] = None
    expected_delivery: Optional[Timestamp] = None
    notes: Text = None
    items: Optional[List[PurchaseOrderLineIn]] = None

    subtotal: Optional[Money] = None
    tax: Optional[Money] = None
    total: Optional[Money] = None


class ReturnIn(_Schema):
    REQUIRED = ("supplier_id", "reason")

    supplier_id: Text = None
    purchase_order_id: Text = None
    return_number: Text = None
    status: ReturnStatus = "pending"
    reason: Text = None
    notes: Text = None
    return_date: Optional[Timestamp] = None
    items: Optional[List[ReturnLineIn]] = None

    refund_amount: Optional[Money] = None


# ---------------------------------------------------------------------
# Settings & documents
# ---------------------------------------------------------------------
class BusinessSettingsIn(_Schema):
    business_name: Text = None
    business_email: Text = None
    business_phone: Text = None
    business_address: Text = None
    currency: Optional[Annotated[str, Field(min_length=3, max_length=3)]] = None
    logo_url: Text = None
    header_color: Text = None
    accent_color: Text = None
    header_font_size: Optional[Annotated[int, Field(ge=6, le=72)]] = None
    font_size: Optional[Annotated[int, Field(ge=6, le=72)]] = None
    show_logo: Optional[bool] = None
    logo_position: Optional[Literal["left", "center", "right"]] = None
    header_layout: Optional[Literal["standard", "centered", "split"]] = None


class CustomTemplateIn(_Schema):
    REQUIRED = ("name", "template_type")

    name: Text = None
    template_type: Optional[TemplateType] = None
    content: dict = Field(default_factory=dict)
    is_active: bool = False


class GeneratePdfIn(_Schema):
    REQUIRED = ("type", "id")

    type: Optional[DocumentType] = None
    id: Text = None


# ---------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------
def _format_errors(exc: PydanticValidationError) -> dict:
    errors = {}
    for err in exc.errors():
        loc = ".".join(str(part) for part in err.get("loc", ()))
        errors[loc or "body"] = err.get("msg", "invalid value")
    return errors


def parse_payload(schema: type[_Schema], data: Any, partial: bool = False) -> dict:
    """
    Validate a JSON body against `schema`.

    Returns a dict keyed by snake_case field names:
    - create (partial=False): every field, defaults filled in, REQUIRED enforced
    - update (partial=True):  only the fields present in the body
    Raises ValidationError (400) with per-field messages.
    """
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")

    try:
        parsed = schema.model_validate(data)
    except PydanticValidationError as exc:
        raise ValidationError("Invalid request data", _format_errors(exc))

    if partial:
        result = parsed.model_dump(exclude_unset=True)
        missing = [name for name in schema.REQUIRED if name in result and result[name] is None]
    else:
        result = parsed.model_dump()
        missing = [name for name in schema.REQUIRED if result.get(name) is None]

    if missing:
        raise ValidationError(
            "Invalid request data",
            {to_camel(name): "field required" for name in missing},
        )
    return result
