"""Tests for the document assembler (pure: records come from the supplied loaders)."""

from datetime import datetime
from decimal import Decimal

import pytest

from wrenchd.documents import assemble_document
from wrenchd.errors import NotFoundError, ValidationError
from wrenchd.models import (
    Customer,
    Job,
    JobPart,
    PurchaseOrder,
    PurchaseOrderItem,
    Quote,
    QuotePart,
    Receipt,
    Return,
    ReturnItem,
    Supplier,
    Vehicle,
)


@pytest.fixture
def alice():
    return Customer(name="Alice", email="alice@example.com", phone="07700 900000")


@pytest.fixture
def focus(alice):
    return Vehicle(customer=alice, make="Ford", model="Focus", year=2020, license_plate="AB20 CDE")


@pytest.fixture
def supplier():
    return Supplier(name="Parts Direct Ltd", email="orders@partsdirect.example")


def _loaders(**records):
    return {doc_type.replace("_", "-"): (lambda doc_id, r=record: r) for doc_type, record in records.items()}


class TestPurchaseOrderDocument:
    def test_payload(self, supplier):
        order = PurchaseOrder(
            order_number="PO-1001",
            supplier=supplier,
            status="pending",
            order_date=datetime(2024, 3, 1, 9, 0),
            subtotal=Decimal("22.50"),
            tax=Decimal("4.50"),
            total=Decimal("27.00"),
            notes="Deliver to rear entrance",
        )
        order.items = [
            PurchaseOrderItem(
                item_name="Oil Filter",
                item_description="OF-100",
                quantity=5,
                unit_price=Decimal("4.5"),
                total_price=Decimal("22.5"),
            )
        ]

        data = assemble_document("purchase-order", "po-id", _loaders(purchase_order=order))

        assert data["documentType"] == "purchase-order"
        assert data["orderNumber"] == "PO-1001"
        assert data["supplier"]["name"] == "Parts Direct Ltd"
        assert data["orderDate"] == "2024-03-01T09:00:00"
        assert data["items"] == [
            {
                "itemName": "Oil Filter",
                "itemDescription": "OF-100",
                "quantity": 5,
                "unitPrice": "4.50",
                "totalPrice": "22.50",
            }
        ]
        assert (data["subtotal"], data["tax"], data["total"]) == ("22.50", "4.50", "27.00")
        assert data["notes"] == "Deliver to rear entrance"


class TestReturnDocument:
    def test_payload(self, supplier):
        ret = Return(return_number="RTN-7", supplier=supplier, reason="Damaged in transit", refund_amount=Decimal("13.5"))
        ret.items = [
            ReturnItem(item_name="Oil Filter", condition="damaged", quantity=3, unit_price=Decimal("4.50"), total_price=Decimal("13.50"))
        ]

        data = assemble_document("return", "r-id", _loaders(**{"return": ret}))

        assert data["reason"] == "Damaged in transit"
        assert data["refundAmount"] == "13.50"
        assert data["items"][0]["condition"] == "damaged"
        assert data["purchaseOrder"] is None


class TestQuoteDocument:
    def test_payload(self, alice, focus):
        quote = Quote(
            customer=alice,
            vehicle=focus,
            title="Brake service",
            labor_hours=Decimal("1.5"),
            labor_rate=Decimal("50"),
            labor_total=Decimal("75.00"),
            parts_total=Decimal("30.00"),
            total_amount=Decimal("105.00"),
        )
        quote.parts = [
            QuotePart(part_name="Brake Pads", quantity=1, unit_price=Decimal("30.00"), total_price=Decimal("30.00"))
        ]

        data = assemble_document("quote", "q-id", _loaders(quote=quote))

        assert data["customer"]["name"] == "Alice"
        assert data["vehicle"]["description"] == "2020 Ford Focus"
        assert data["laborHours"] == "1.50"
        assert data["parts"][0]["name"] == "Brake Pads"
        assert data["tax"] == "0.00"
        assert data["total"] == "105.00"


class TestReceiptDocument:
    def test_services_add_up_to_total(self, alice, focus):
        job = Job(
            job_number="JOB-1",
            customer=alice,
            vehicle=focus,
            title="Oil Change",
            labor_hours=Decimal("1"),
            labor_rate=Decimal("50"),
            labor_total=Decimal("50.00"),
            parts_total=Decimal("16.00"),
            total_amount=Decimal("66.00"),
        )
        job.parts = [JobPart(part_name="Oil Filter", quantity=2, unit_price=Decimal("8.00"), total_price=Decimal("16.00"))]
        receipt = Receipt(receipt_number="RCP-1", type="job", job=job)

        data = assemble_document("receipt", job.job_number, _loaders(receipt=receipt))

        assert data["receiptNumber"] == "RCP-1"
        assert data["jobTitle"] == "Oil Change"
        assert [s["amount"] for s in data["services"]] == ["50.00", "16.00"]
        assert data["total"] == "66.00"
        assert sum(Decimal(s["amount"]) for s in data["services"]) == Decimal(data["total"])


class TestErrors:
    def test_unknown_type(self):
        with pytest.raises(ValidationError):
            assemble_document("invoice", "x", {})

    def test_missing_record(self):
        with pytest.raises(NotFoundError):
            assemble_document("quote", "x", {"quote": lambda doc_id: None})

    def test_business_letterhead_attached(self, supplier):
        order = PurchaseOrder(order_number="PO-2", supplier=supplier)
        data = assemble_document(
            "purchase-order", "x", _loaders(purchase_order=order), business={"businessName": "WRENCH'D"}
        )
        assert data["business"] == {"businessName": "WRENCH'D"}
        assert data["items"] == []
