"""
wrenchd/pricing.py

Job parts aggregation and document pricing.

The server is the single source of truth for money:
- line totals:   totalPrice  = quantity * unitPrice
- job / quote:   partsTotal  = sum(totalPrice)
                 laborTotal  = laborHours * laborRate
                 totalAmount = laborTotal + partsTotal
- purchase order: subtotal + tax (fixed rate) = total
- return:        refundAmount = sum(totalPrice)

IMPORTANT:
- All arithmetic is Decimal. JSON numbers are converted through str() at the
  boundary (see to_decimal), so 8.1 becomes Decimal("8.1"), never its binary
  approximation.
- Unit prices, hours and rates are rounded to cents before multiplying, so a
  stored total always equals the product of the stored factors.
- Values beyond the Numeric column ranges (MAX_MONEY, MAX_HOURS) raise ValidationError.
- Client-supplied totals are hints only. check_client_totals() rejects a mismatch
  beyond the tolerance; callers always persist the computed values.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Iterable, NamedTuple, Optional

from .errors import ValidationError

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
DEFAULT_TAX_RATE = Decimal("0.20")
DEFAULT_TOLERANCE = Decimal("0.01")

# Largest values the Numeric(10, 2) money and Numeric(5, 2) hours columns hold.
MAX_MONEY = Decimal("99999999.99")
MAX_HOURS = Decimal("999.99")


# ---------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------
def to_decimal(value, field: str = "value") -> Decimal:
    """
    Convert wire/DB values to Decimal.

    Accepts Decimal, int and decimal strings ("12.50", "12,50").
    None becomes 0.00. Floats are converted through str() so 8.1 stays 8.1.
    """
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValidationError(f"Invalid {field}", {field: "must be a number"})
    if isinstance(value, (int, float)):
        return Decimal(str(value))
    raw = str(value).strip().replace(",", ".")
    if raw == "":
        return ZERO
    try:
        result = Decimal(raw)
    except (InvalidOperation, ValueError):
        raise ValidationError(f"Invalid {field}", {field: "must be a decimal number"})
    if not result.is_finite():
        raise ValidationError(f"Invalid {field}", {field: "must be a finite number"})
    return result


def money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def check_limit(value: Decimal, field: str, limit: Decimal = MAX_MONEY) -> Decimal:
    if value > limit:
        raise ValidationError(f"Invalid {field}", {field: f"must not exceed {limit}"})
    return value


def money_str(value) -> str:
    """Wire format for money: always two places, e.g. "12.50"."""
    return str(money(to_decimal(value)))


# ---------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------
class PricedLine(NamedTuple):
    quantity: int
    unit_price: Decimal
    total_price: Decimal


class JobTotals(NamedTuple):
    parts_total: Decimal
    labor_total: Decimal
    total_amount: Decimal


class OrderTotals(NamedTuple):
    subtotal: Decimal
    tax: Decimal
    total: Decimal


# ---------------------------------------------------------------------
# Line items
# ---------------------------------------------------------------------
def price_line(quantity, unit_price) -> PricedLine:
    """Validate one line item and compute its total."""
    if isinstance(quantity, bool) or quantity is None:
        raise ValidationError("Invalid quantity", {"quantity": "must be a whole number greater than 0"})
    qty_dec = to_decimal(quantity, "quantity")
    if qty_dec != qty_dec.to_integral_value():
        raise ValidationError("Invalid quantity", {"quantity": "must be a whole number greater than 0"})
    qty = int(qty_dec)
    if qty <= 0:
        raise ValidationError("Invalid quantity", {"quantity": "must be a whole number greater than 0"})

    price = to_decimal(unit_price, "unitPrice")
    if price < 0:
        raise ValidationError("Invalid unit price", {"unitPrice": "must be 0 or greater"})
    price = money(check_limit(price, "unitPrice"))

    total = money(check_limit(qty * price, "totalPrice"))
    return PricedLine(quantity=qty, unit_price=price, total_price=total)


def parts_total(lines: Iterable[PricedLine]) -> Decimal:
    total = ZERO
    for line in lines:
        total += line.total_price
    return money(check_limit(total, "partsTotal"))


def labor_total(labor_hours, labor_rate) -> Decimal:
    hours = to_decimal(labor_hours, "laborHours")
    rate = to_decimal(labor_rate, "laborRate")
    if hours < 0:
        raise ValidationError("Invalid labor hours", {"laborHours": "must be 0 or greater"})
    if rate < 0:
        raise ValidationError("Invalid labor rate", {"laborRate": "must be 0 or greater"})
    hours = money(check_limit(hours, "laborHours", MAX_HOURS))
    rate = money(check_limit(rate, "laborRate"))
    return check_limit(money(hours * rate), "laborTotal")


def price_job(lines: Iterable[PricedLine], labor_hours, labor_rate) -> JobTotals:
    """Totals for a job or a quote."""
    parts = parts_total(lines)
    labor = labor_total(labor_hours, labor_rate)
    total = check_limit(money(parts + labor), "totalAmount")
    return JobTotals(parts_total=parts, labor_total=labor, total_amount=total)


def price_purchase_order(lines: Iterable[PricedLine], tax_rate=DEFAULT_TAX_RATE) -> OrderTotals:
    subtotal = parts_total(lines)
    tax = money(subtotal * to_decimal(tax_rate, "taxRate"))
    return OrderTotals(subtotal=subtotal, tax=tax, total=check_limit(money(subtotal + tax), "total"))


def price_return(lines: Iterable[PricedLine]) -> Decimal:
    return parts_total(lines)


# ---------------------------------------------------------------------
# Client hints
# ---------------------------------------------------------------------
def check_client_totals(
    supplied: dict,
    computed: dict,
    tolerance: Optional[Decimal] = None,
) -> None:
    """
    Compare client-supplied totals to the server's.

    supplied/computed map wire field names (e.g. "partsTotal") to values.
    Fields missing from `supplied` (or None) are not checked.
    """
    tol = DEFAULT_TOLERANCE if tolerance is None else to_decimal(tolerance)
    mismatches = {}
    for field, server_value in computed.items():
        client_value = supplied.get(field)
        if client_value is None:
            continue
        client_dec = to_decimal(client_value, field)
        if abs(client_dec - server_value) > tol:
            mismatches[field] = f"expected {money_str(server_value)}, got {client_value}"

    if mismatches:
        raise ValidationError("Submitted totals do not match the server calculation", mismatches)
