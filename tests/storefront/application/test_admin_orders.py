"""Application tests for admin order listing and status updates."""

from datetime import UTC, datetime, timedelta

import pytest
from protean import current_domain
from protean.exceptions import ValidationError
from storefront.order.admin import UpdateOrderStatus, get_order, list_orders
from storefront.order.order import Order, OrderStatus
from storefront.shared.errors import ErrorCode, InvalidRequestError, NotFoundError


def _seed_order(minutes_ago=0, status=None, session_id="sess-admin"):
    order = Order.place(
        session_id=session_id,
        payment_provider="stripe",
        items=[{"product_id": "prod-mug", "product_name": "Stoneware Mug", "quantity": 1, "unit_price": 45.5}],
        currency="AED",
    )
    order.created_at = datetime.now(UTC) - timedelta(minutes=minutes_ago)
    if status == OrderStatus.PAID:
        order.mark_paid("pay-seeded")
    elif status == OrderStatus.CANCELLED:
        order.cancel("seeded")
    current_domain.repository_for(Order).add(order)
    return str(order.id)


def _update(order_id, status, reason=None):
    return current_domain.process(
        UpdateOrderStatus(order_id=order_id, status=status, reason=reason),
        asynchronous=False,
    )


class TestListOrders:
    def test_newest_first(self):
        older = _seed_order(minutes_ago=10)
        newer = _seed_order(minutes_ago=1)
        result = list_orders()
        assert [o["order_id"] for o in result["orders"]] == [newer, older]

    def test_pagination(self):
        for n in range(5):
            _seed_order(minutes_ago=n)
        result = list_orders(page=2, limit=2)
        assert len(result["orders"]) == 2
        assert result["pagination"] == {"page": 2, "limit": 2, "total": 5, "total_pages": 3}

    def test_last_page(self):
        for n in range(5):
            _seed_order(minutes_ago=n)
        assert len(list_orders(page=3, limit=2)["orders"]) == 1

    def test_filter_by_status(self):
        _seed_order(status=OrderStatus.PAID)
        _seed_order()
        result = list_orders(status="paid")
        assert result["pagination"]["total"] == 1
        assert result["orders"][0]["status"] == "paid"

    def test_empty(self):
        assert list_orders() == {
            "orders": [],
            "pagination": {"page": 1, "limit": 20, "total": 0, "total_pages": 0},
        }

    def test_unknown_status_filter(self):
        with pytest.raises(InvalidRequestError) as exc:
            list_orders(status="shipped")
        assert exc.value.code == ErrorCode.INVALID_STATUS

    @pytest.mark.parametrize("page,limit", [(0, 20), (1, 0), (1, 101)])
    def test_invalid_pagination(self, page, limit):
        with pytest.raises(ValidationError):
            list_orders(page=page, limit=limit)


class TestGetOrder:
    def test_summary(self):
        order_id = _seed_order()
        order = get_order(order_id)
        assert order["status"] == "pending"
        assert order["items"][0]["product_name"] == "Stoneware Mug"

    def test_missing(self):
        with pytest.raises(NotFoundError) as exc:
            get_order("missing-order")
        assert exc.value.code == ErrorCode.ORDER_NOT_FOUND


class TestUpdateOrderStatus:
    def test_cancel_pending(self):
        order_id = _seed_order()
        assert _update(order_id, "cancelled", "Customer called") == "cancelled"
        assert get_order(order_id)["status"] == "cancelled"

    def test_complete_paid(self):
        order_id = _seed_order(status=OrderStatus.PAID)
        _update(order_id, "completed")
        assert get_order(order_id)["status"] == "completed"

    def test_cannot_mark_paid(self):
        order_id = _seed_order()
        with pytest.raises(ValidationError):
            _update(order_id, "paid")
        assert get_order(order_id)["status"] == "pending"

    def test_invalid_transition(self):
        order_id = _seed_order(status=OrderStatus.CANCELLED)
        with pytest.raises(ValidationError):
            _update(order_id, "completed")

    def test_unknown_status(self):
        order_id = _seed_order()
        with pytest.raises(InvalidRequestError) as exc:
            _update(order_id, "shipped")
        assert exc.value.code == ErrorCode.INVALID_STATUS

    def test_unknown_order(self):
        with pytest.raises(NotFoundError):
            _update("missing-order", "cancelled")
