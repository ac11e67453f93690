"""Tests for the order state machine against a real (SQLite) database."""

import re

import pytest

from shared.errors import Conflict, InvalidTransition, NotFound, OutOfStock, ValidationError
from services.cart_service.models import Cart, CartItem
from services.cart_service.repository import CartRepository
from services.order_service.models import OrderStatus
from services.order_service.schemas import OrderCreate
from services.order_service.service import OrderStateMachine
from services.product_service.repository import ProductRepository

USER_ID = 7
ADDRESS = {"address": "1 Main St", "city": "Springfield", "postal_code": "12345", "country": "US"}


def order_request(*lines, shipping_price=0.0, tax_price=0.0):
    return OrderCreate(
        order_items=[{"product_id": pid, "quantity": qty} for pid, qty in lines],
        shipping_address=ADDRESS,
        payment_method="credit_card",
        shipping_price=shipping_price,
        tax_price=tax_price,
    )


@pytest.fixture
def machine(session):
    return OrderStateMachine(session)


@pytest.fixture
def stock(database):
    async def _stock(product_id):
        async with database.session_factory() as s:
            return await ProductRepository.current_stock(s, product_id)
    return _stock


class TestCreate:
    async def test_create_reserves_stock_and_snapshots_prices(self, machine, make_product, stock):
        pid = await make_product(name="Kettle", price=25.0, stock=5)

        order = await machine.create(USER_ID, order_request((pid, 3), shipping_price=5.0, tax_price=2.5))

        assert order.status == OrderStatus.PENDING.value
        assert order.stock_reserved is True
        assert order.items_price == 75.0
        assert order.total_price == 82.5
        assert [(i.product_name, i.quantity, i.unit_price) for i in order.order_items] == [("Kettle", 3, 25.0)]
        assert await stock(pid) == 2

    async def test_out_of_stock_leaves_every_product_unchanged(self, machine, make_product, stock):
        plenty = await make_product(name="Plenty", stock=10)
        scarce = await make_product(name="Scarce", stock=1)

        with pytest.raises(OutOfStock) as exc_info:
            await machine.create(USER_ID, order_request((plenty, 4), (scarce, 2)))

        assert exc_info.value.product_id == scarce
        assert await stock(plenty) == 10
        assert await stock(scarce) == 1
        assert await machine.list_for_user(USER_ID) == []

    async def test_missing_product(self, machine, make_product, stock):
        pid = await make_product(stock=3)

        with pytest.raises(NotFound):
            await machine.create(USER_ID, order_request((pid, 1), (4040, 1)))
        assert await stock(pid) == 3

    async def test_empty_order_is_rejected(self, machine):
        with pytest.raises(ValidationError):
            await machine.create(USER_ID, order_request())

    async def test_duplicate_lines_are_reserved_cumulatively(self, machine, make_product, stock):
        pid = await make_product(stock=5)

        with pytest.raises(OutOfStock):
            await machine.create(USER_ID, order_request((pid, 3), (pid, 3)))
        assert await stock(pid) == 5

    async def test_create_clears_the_users_cart(self, database, machine, make_product):
        pid = await make_product(stock=5)
        async with database.session_factory() as s:
            s.add(Cart(user_id=USER_ID, items=[CartItem(product_id=pid, quantity=2, price=10.0)]))
            await s.commit()

        await machine.create(USER_ID, order_request((pid, 2)))

        async with database.session_factory() as s:
            cart = await CartRepository.find_by_user(s, USER_ID)
            assert cart.items == []


class TestLifecycleScenarios:
    async def test_paid_order_cancel_restores_stock(self, machine, make_product, stock):
        pid = await make_product(stock=5)
        order = await machine.create(USER_ID, order_request((pid, 3)))
        assert await stock(pid) == 2

        order = await machine.mark_paid(order.id)
        assert order.is_paid is True
        assert order.paid_at is not None
        assert order.status == OrderStatus.PENDING.value

        order = await machine.cancel(order.id)
        assert order.status == OrderStatus.CANCELLED.value
        assert await stock(pid) == 5

    async def test_unpaid_pending_cancel_releases_reservation(self, machine, make_product, stock):
        pid = await make_product(stock=8)
        order = await machine.create(USER_ID, order_request((pid, 2)))
        assert await stock(pid) == 6

        order = await machine.cancel(order.id)

        assert order.status == OrderStatus.CANCELLED.value
        assert order.stock_reserved is False
        assert await stock(pid) == 8

    async def test_second_cancel_is_rejected_and_restores_once(self, machine, make_product, stock):
        pid = await make_product(stock=5)
        order = await machine.create(USER_ID, order_request((pid, 3)))
        await machine.cancel(order.id)

        with pytest.raises(InvalidTransition, match="already cancelled"):
            await machine.cancel(order.id)
        assert await stock(pid) == 5

    async def test_cannot_cancel_delivered_order(self, machine, make_product, stock):
        pid = await make_product(stock=5)
        order = await machine.create(USER_ID, order_request((pid, 2)))
        order = await machine.mark_delivered(order.id)
        assert order.is_delivered is True
        assert order.delivered_at is not None

        with pytest.raises(InvalidTransition, match="delivered"):
            await machine.cancel(order.id)
        assert await stock(pid) == 3

    @pytest.mark.parametrize(
        "status", [OrderStatus.PENDING, OrderStatus.PROCESSING, OrderStatus.SHIPPED, OrderStatus.DELIVERED]
    )
    async def test_refund_restores_recorded_quantities(self, machine, make_product, stock, status):
        a = await make_product(name="A", price=4.0, stock=10)
        b = await make_product(name="B", price=6.0, stock=3)
        order = await machine.create(USER_ID, order_request((a, 4), (b, 3)))
        if status != OrderStatus.PENDING:
            await machine.set_status(order.id, status)

        order = await machine.refund(order.id, reason="damaged")

        assert order.status == OrderStatus.REFUNDED.value
        assert order.refund_amount == order.total_price == 34.0
        assert order.refund_reason == "damaged"
        assert order.refunded_at is not None
        assert await stock(a) == 10
        assert await stock(b) == 3

    async def test_refund_with_explicit_amount(self, machine, make_product):
        pid = await make_product(price=50.0, stock=2)
        order = await machine.create(USER_ID, order_request((pid, 2)))

        order = await machine.refund(order.id, amount=20.0)

        assert order.refund_amount == 20.0

    async def test_refund_after_cancel_does_not_restore_twice(self, machine, make_product, stock):
        pid = await make_product(stock=5)
        order = await machine.create(USER_ID, order_request((pid, 2)))
        await machine.cancel(order.id)

        order = await machine.refund(order.id)

        assert order.status == OrderStatus.REFUNDED.value
        assert await stock(pid) == 5


@pytest.fixture
async def cancelled_order(machine, make_product):
    pid = await make_product(stock=5)
    order = await machine.create(USER_ID, order_request((pid, 1)))
    return await machine.cancel(order.id)


class TestTerminalLock:
    async def test_set_status_refused_after_cancel(self, machine, cancelled_order):
        with pytest.raises(InvalidTransition):
            await machine.set_status(cancelled_order.id, OrderStatus.PROCESSING)

    async def test_mark_delivered_refused_after_cancel(self, machine, cancelled_order):
        with pytest.raises(InvalidTransition):
            await machine.mark_delivered(cancelled_order.id)

    async def test_mark_paid_refused_after_cancel(self, machine, cancelled_order):
        with pytest.raises(InvalidTransition):
            await machine.mark_paid(cancelled_order.id)

    async def test_tracking_still_allowed(self, machine, cancelled_order):
        order = await machine.attach_tracking(cancelled_order.id, "1Z999", "UPS")
        assert (order.tracking_number, order.tracking_company) == ("1Z999", "UPS")

    async def test_set_status_to_cancelled_releases_stock(self, machine, make_product, stock):
        pid = await make_product(stock=5)
        order = await machine.create(USER_ID, order_request((pid, 4)))

        order = await machine.set_status(order.id, OrderStatus.CANCELLED)

        assert order.status == OrderStatus.CANCELLED.value
        assert await stock(pid) == 5


class TestPaymentAndInvoice:
    async def test_paid_at_is_set_once(self, machine, make_product):
        pid = await make_product(stock=5)
        order = await machine.create(USER_ID, order_request((pid, 1)))

        first = (await machine.mark_paid(order.id, {"id": "tx-1"})).paid_at
        order = await machine.mark_paid(order.id, {"id": "tx-2"})

        assert order.paid_at == first
        assert order.payment_result == {"id": "tx-2"}

    async def test_mark_paid_checks_owner(self, machine, make_product):
        pid = await make_product(stock=5)
        order = await machine.create(USER_ID, order_request((pid, 1)))

        with pytest.raises(NotFound):
            await machine.mark_paid(order.id, user_id=USER_ID + 1)

    async def test_invoice_number_is_idempotent(self, machine, make_product):
        pid = await make_product(stock=5)
        order = await machine.create(USER_ID, order_request((pid, 1)))

        first = (await machine.ensure_invoice_number(order.id)).invoice_number
        second = (await machine.ensure_invoice_number(order.id)).invoice_number

        assert first == second
        assert re.fullmatch(r"INV-\d{13}-[0-9a-f]{6}", first)
        assert first.endswith(order.id[-6:])

    async def test_unknown_order(self, machine):
        with pytest.raises(NotFound):
            await machine.ensure_invoice_number("does-not-exist")


class TestConcurrentUpdates:
    async def test_stale_writer_loses_and_changes_nothing(self, database, make_product, stock):
        pid = await make_product(stock=5)
        async with database.session_factory() as s:
            order = await OrderStateMachine(s).create(USER_ID, order_request((pid, 2)))
            order_id = order.id

        async with database.session_factory() as first, database.session_factory() as second:
            slow = OrderStateMachine(second)
            # Keep a strong reference: the identity map must hold on to the old version
            stale = await slow.get(order_id)
            await second.commit()
            assert stale.version == 1

            await OrderStateMachine(first).cancel(order_id)

            with pytest.raises(Conflict):
                await slow.mark_delivered(order_id)

        async with database.session_factory() as s:
            order = await OrderStateMachine(s).get(order_id)
            assert order.status == OrderStatus.CANCELLED.value
            assert order.is_delivered is False
        assert await stock(pid) == 5
