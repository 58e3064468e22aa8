"""
Order Lifecycle
Places, cancels and matches orders, keeping balances in step through
the AssetLedger.

    PENDING --cancel--> CANCELED
    PENDING --match-->  MATCHED

Every mutating call is one transaction: the order write and the ledger
write commit together or not at all.
"""
from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from brokerage.core.errors import (
    AssetNotFoundError,
    ForbiddenError,
    InvalidStateError,
    OrderNotFoundError,
)
from brokerage.db.session import run_in_transaction
from brokerage.models.order import Order, OrderSide, OrderStatus
from brokerage.services.asset_ledger import AssetLedger, check_order_amounts, reserved_asset_name

logger = logging.getLogger(__name__)


class OrderLifecycle:
    """Service owning order records and their state machine."""

    def __init__(self, db: Session, ledger: Optional[AssetLedger] = None):
        self.db = db
        self.ledger = ledger or AssetLedger(db)

    # -----------------------------
    # Reads
    # -----------------------------

    def get_by_id(self, order_id: int) -> Order:
        """
        Get an order by id.

        Raises:
            OrderNotFoundError: If no such order exists
        """
        order = self.db.get(Order, order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        return order

    def list_by_customer(
        self,
        customer_id: str,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> List[Order]:
        """
        List a customer's orders, optionally bounded by create_date.

        Both bounds give the inclusive range [start, end]; a start alone
        gives [start, now); an end alone gives everything up to end.
        """
        stmt = select(Order).where(Order.customer_id == customer_id)
        if start_date is not None and end_date is not None:
            stmt = stmt.where(Order.create_date >= start_date, Order.create_date <= end_date)
        elif start_date is not None:
            stmt = stmt.where(Order.create_date >= start_date, Order.create_date < datetime.utcnow())
        elif end_date is not None:
            stmt = stmt.where(Order.create_date <= end_date)
        return list(self.db.scalars(stmt).all())

    def list_pending(self) -> List[Order]:
        stmt = select(Order).where(Order.status == OrderStatus.PENDING)
        return list(self.db.scalars(stmt).all())

    # -----------------------------
    # Transitions
    # -----------------------------

    def place(
        self,
        customer_id: str,
        asset_name: str,
        side: OrderSide,
        size: Decimal,
        price: Decimal,
    ) -> Order:
        """
        Reserve balance and create a PENDING order.

        Args:
            customer_id: Customer placing the order
            asset_name: Instrument symbol
            side: BUY or SELL
            size: Quantity, > 0, at most 4 decimal places
            price: Limit price, > 0, at most 4 decimal places

        Returns:
            The persisted order

        Raises:
            AssetNotFoundError: If the balance to reserve does not exist
            InsufficientFundsError / InsufficientHoldingsError: On shortfall;
                no order is created
            InvalidQuantityError: If size or price would not be stored exactly
        """
        side = OrderSide(side)
        check_order_amounts(size, price)
        asset_name = asset_name.upper()

        def work() -> Order:
            reserved = reserved_asset_name(asset_name, side)
            if self.ledger.find_balance(customer_id, reserved) is None:
                raise AssetNotFoundError(customer_id, reserved)

            self.ledger.reserve(customer_id, asset_name, side, size)

            order = Order(
                customer_id=customer_id,
                asset_name=asset_name,
                side=side,
                size=size,
                price=price,
                status=OrderStatus.PENDING,
                create_date=datetime.utcnow(),
            )
            self.db.add(order)
            self.db.flush()  # get order.id
            return order

        order = run_in_transaction(self.db, work)
        logger.info(
            "Order %s placed: customer=%s %s %s %s @ %s",
            order.id, customer_id, side.value, size, asset_name, price,
        )
        return order

    def cancel(self, order_id: int, requesting_customer_id: str) -> Order:
        """
        Cancel a PENDING order and release its reservation.

        ``requesting_customer_id`` must own the order; an admin acting for a
        customer passes the owning customer's id.

        Raises:
            OrderNotFoundError, ForbiddenError, InvalidStateError
        """

        def work() -> Order:
            order = self._lock_order(order_id)
            if order.customer_id != requesting_customer_id:
                raise ForbiddenError(f"Order {order_id} does not belong to customer {requesting_customer_id}")
            self._require_pending(order, "cancel")

            order.status = OrderStatus.CANCELED
            self.db.flush()
            self.ledger.release(order.customer_id, order.asset_name, order.side, order.size)
            return order

        order = run_in_transaction(self.db, work)
        logger.info("Order %s canceled by customer %s", order_id, requesting_customer_id)
        return order

    def match(self, order_id: int) -> Order:
        """
        Settle a PENDING order at its own limit price.

        No counter-order is involved: matching is an administrative
        settlement of a single order.

        Raises:
            OrderNotFoundError, InvalidStateError
        """

        def work() -> Order:
            order = self._lock_order(order_id)
            self._require_pending(order, "match")

            order.status = OrderStatus.MATCHED
            self.db.flush()
            self.ledger.settle(order.customer_id, order.asset_name, order.side, order.size, order.price)
            return order

        order = run_in_transaction(self.db, work)
        logger.info("Order %s matched", order_id)
        return order

    def _lock_order(self, order_id: int) -> Order:
        order = self.db.get(Order, order_id, with_for_update=True, populate_existing=True)
        if order is None:
            raise OrderNotFoundError(order_id)
        return order

    @staticmethod
    def _require_pending(order: Order, action: str) -> None:
        if order.status != OrderStatus.PENDING:
            logger.warning("Refused to %s order %s in status=%s", action, order.id, order.status.value)
            raise InvalidStateError(order.id, order.status.value, action)
