"""
Tests for receivable payments against production orders.
"""
import pytest
from datetime import date
from decimal import Decimal
from httpx import AsyncClient

from printerp.core.errors import OrderAlreadyPaid, OrderNotFound, ValidationError
from printerp.models.order import Order
from printerp.schemas.receivable import PaymentCreate
from printerp.services import receivables as receivable_service


class TestRecordPayment:

    @pytest.mark.asyncio
    async def test_down_payment_then_settlement(self, db_session, test_order: Order):
        result = await receivable_service.record_payment(
            PaymentCreate(order_id=test_order.id, amount=Decimal("400000"), payment_date=date(2024, 1, 10)),
            db_session,
        )

        assert result.amount_paid == Decimal("400000")
        assert result.balance == Decimal("600000")
        assert result.status == "PARTIALLY_PAID"
        assert test_order.down_payment == Decimal("400000")
        assert test_order.down_payment_date == date(2024, 1, 10)
        assert test_order.balance_due == Decimal("600000")
        assert test_order.settlement_date is None
        assert test_order.production_status == "DELIVERY"
        assert test_order.goods_approval == "APPROVED"
        assert test_order.payment_method == "CASH"

        result = await receivable_service.record_payment(
            PaymentCreate(
                order_id=test_order.id,
                amount=Decimal("600000"),
                payment_date=date(2024, 1, 25),
                payment_method="TRANSFER",
                notes="Paid in full",
            ),
            db_session,
        )

        assert result.amount_paid == Decimal("1000000")
        assert result.status == "PAID"
        assert test_order.settlement_date == date(2024, 1, 25)
        assert test_order.balance_due == Decimal("0")
        assert test_order.payment_notes == "Paid in full"
        assert result.description == "Payment for order ORD-2024-0001: Paid in full"

        with pytest.raises(OrderAlreadyPaid):
            await receivable_service.record_payment(
                PaymentCreate(order_id=test_order.id, amount=Decimal("1")),
                db_session,
            )

    @pytest.mark.asyncio
    async def test_short_second_payment_still_settles(self, db_session, test_order: Order):
        await receivable_service.record_payment(
            PaymentCreate(order_id=test_order.id, amount=Decimal("400000"), payment_date=date(2024, 1, 10)),
            db_session,
        )
        result = await receivable_service.record_payment(
            PaymentCreate(order_id=test_order.id, amount=Decimal("500000"), payment_date=date(2024, 1, 25)),
            db_session,
        )

        assert result.status == "PARTIALLY_PAID"
        assert result.balance == Decimal("100000")
        assert test_order.settlement_date == date(2024, 1, 25)
        assert test_order.balance_due == Decimal("100000")

        with pytest.raises(OrderAlreadyPaid):
            await receivable_service.record_payment(
                PaymentCreate(order_id=test_order.id, amount=Decimal("100000")),
                db_session,
            )

    @pytest.mark.asyncio
    async def test_full_first_payment_settles(self, db_session, test_order: Order):
        result = await receivable_service.record_payment(
            PaymentCreate(order_id=test_order.id, amount=Decimal("1000000"), payment_date=date(2024, 1, 5)),
            db_session,
        )

        assert result.status == "PAID"
        assert test_order.settlement_date == date(2024, 1, 5)

    @pytest.mark.asyncio
    async def test_invoice_number_assigned(self, db_session, test_order: Order):
        assert receivable_service.invoice_number_for(test_order) == "INV-ORD-2024-0001"

        await receivable_service.record_payment(
            PaymentCreate(
                order_id=test_order.id,
                amount=Decimal("100"),
                payment_date=date(2024, 1, 5),
                invoice_number="INV/2024/001",
            ),
            db_session,
        )

        assert test_order.invoice_number == "INV/2024/001"
        assert test_order.invoice_date == date(2024, 1, 5)

    @pytest.mark.asyncio
    async def test_invalid_payments(self, db_session, test_order: Order):
        with pytest.raises(ValidationError):
            await receivable_service.record_payment(
                PaymentCreate(order_id=test_order.id, amount=Decimal("0")), db_session
            )
        with pytest.raises(OrderNotFound):
            await receivable_service.record_payment(
                PaymentCreate(order_id=999999, amount=Decimal("10")), db_session
            )


class TestPaymentsAPI:

    @pytest.mark.asyncio
    async def test_record_payment(self, client: AsyncClient, auth_headers: dict, test_order: Order):
        response = await client.post(
            "/api/v1/finance/receivables/payments",
            json={"orderId": test_order.id, "amount": "250000", "paymentDate": "2024-01-12"},
            headers=auth_headers
        )
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["message"] == "Payment recorded successfully"
        assert data["transaction"]["id"].startswith(f"payment-{test_order.id}-")
        assert data["transaction"]["date"] == "2024-01-12"
        assert data["invoice"]["id"] == str(test_order.id)
        assert Decimal(data["invoice"]["amountPaid"]) == Decimal("250000")
        assert Decimal(data["invoice"]["balance"]) == Decimal("750000")
        assert data["invoice"]["status"] == "PARTIALLY_PAID"

    @pytest.mark.asyncio
    async def test_record_payment_unknown_order(self, client: AsyncClient, auth_headers: dict):
        response = await client.post(
            "/api/v1/finance/receivables/payments",
            json={"orderId": 424242, "amount": "10"},
            headers=auth_headers
        )
        assert response.status_code == 404
        assert response.json()["code"] == "ORDER_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_payment_history(self, client: AsyncClient, auth_headers: dict, db_session, test_order: Order):
        unpaid = Order(order_number="ORD-2024-0002", customer_name="Other Co", total_amount=Decimal("500"))
        db_session.add(unpaid)
        await db_session.flush()

        for amount, day in (("400000", "2024-01-10"), ("600000", "2024-01-25")):
            await client.post(
                "/api/v1/finance/receivables/payments",
                json={"orderId": test_order.id, "amount": amount, "paymentDate": day},
                headers=auth_headers
            )

        response = await client.get("/api/v1/finance/receivables/payments", headers=auth_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["pagination"]["totalCount"] == 1
        assert [t["id"] for t in data["transactions"]] == [f"final-{test_order.id}", f"dp-{test_order.id}"]
        assert Decimal(data["transactions"][0]["amount"]) == Decimal("600000")
        assert data["transactions"][0]["customerName"] == "Acme Stationery"
        assert data["transactions"][0]["orderId"] == str(test_order.id)

        response = await client.get(
            "/api/v1/finance/receivables/payments",
            params={"search": "other"},
            headers=auth_headers
        )
        assert response.json()["transactions"] == []
