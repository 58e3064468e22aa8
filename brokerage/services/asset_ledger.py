"""
Asset Ledger
Owns every mutation of customer balances (size / usable_size).

Methods flush but never commit: the caller decides the transaction
boundary (see ``brokerage.db.session.run_in_transaction``). Each
read-modify-write locks its row and relies on the row's version
column, so two writers racing on a stale read cannot both win.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import ROUND_DOWN, Decimal
from typing import Callable, List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from brokerage.core.errors import (
    AlreadyExistsError,
    AssetNotFoundError,
    ConcurrentInsertError,
    InsufficientBalanceError,
    InsufficientFundsError,
    InsufficientHoldingsError,
    InvalidQuantityError,
)
from brokerage.models.asset import QUANTITY_PRECISION, QUANTITY_SCALE, QUANTUM, SETTLEMENT_CURRENCY, Asset
from brokerage.models.order import OrderSide

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
# first value with too many integer digits for a stored quantity
QUANTITY_LIMIT = Decimal(10) ** (QUANTITY_PRECISION - QUANTITY_SCALE)


def check_quantity(value: Decimal, field: str = "amount") -> Decimal:
    """
    Check that ``value`` is positive and is stored exactly by a quantity column.

    Raises:
        InvalidQuantityError: If value is not positive, has more than
            QUANTITY_SCALE decimal places or too many integer digits
    """
    if not value.is_finite() or value <= 0:
        raise InvalidQuantityError(field, value, "must be > 0")
    if value >= QUANTITY_LIMIT:
        raise InvalidQuantityError(field, value, f"must be below {QUANTITY_LIMIT}")
    if value != value.quantize(QUANTUM):
        raise InvalidQuantityError(field, value, f"at most {QUANTITY_SCALE} decimal places")
    return value


def check_order_amounts(size: Decimal, price: Decimal) -> None:
    """Validate an order's size and price, and that its proceeds fit a balance."""
    check_quantity(size, "size")
    check_quantity(price, "price")
    notional = size * price
    if notional >= QUANTITY_LIMIT:
        raise InvalidQuantityError("notional", notional, f"must be below {QUANTITY_LIMIT}")


def proceeds(size: Decimal, price: Decimal) -> Decimal:
    """TRY credited for selling ``size`` at ``price``, truncated to the stored scale."""
    return (size * price).quantize(QUANTUM, rounding=ROUND_DOWN)


@dataclass(frozen=True)
class SideRule:
    """How one order side touches the ledger."""

    # asset whose usable_size is held while the order is pending
    reserved_asset: Callable[[str], str]
    shortfall: type[InsufficientBalanceError]
    # (asset credited on settlement, amount credited)
    settlement: Callable[[str, Decimal, Decimal], Tuple[str, Decimal]]


# BUY reserves `size` units of TRY, not size * price.
SIDE_RULES: dict[OrderSide, SideRule] = {
    OrderSide.BUY: SideRule(
        reserved_asset=lambda asset_name: SETTLEMENT_CURRENCY,
        shortfall=InsufficientFundsError,
        settlement=lambda asset_name, size, price: (asset_name, size),
    ),
    OrderSide.SELL: SideRule(
        reserved_asset=lambda asset_name: asset_name,
        shortfall=InsufficientHoldingsError,
        settlement=lambda asset_name, size, price: (SETTLEMENT_CURRENCY, proceeds(size, price)),
    ),
}


def reserved_asset_name(asset_name: str, side: OrderSide) -> str:
    """Name of the balance a pending order of ``side`` on ``asset_name`` holds."""
    return SIDE_RULES[side].reserved_asset(asset_name)


class AssetLedger:
    """Service for reserving, releasing and settling customer balances."""

    def __init__(self, db: Session):
        self.db = db

    # -----------------------------
    # Reads
    # -----------------------------

    def find_balance(self, customer_id: str, asset_name: str) -> Optional[Asset]:
        stmt = select(Asset).where(
            Asset.customer_id == customer_id,
            Asset.asset_name == asset_name,
        )
        return self.db.scalars(stmt).first()

    def get_balance(self, customer_id: str, asset_name: str) -> Asset:
        """
        Get a customer's balance row for one asset.

        Raises:
            AssetNotFoundError: If the customer holds no such asset row
        """
        asset = self.find_balance(customer_id, asset_name)
        if asset is None:
            raise AssetNotFoundError(customer_id, asset_name)
        return asset

    def list_balances(self, customer_id: str) -> List[Asset]:
        stmt = select(Asset).where(Asset.customer_id == customer_id).order_by(Asset.asset_name)
        return list(self.db.scalars(stmt).all())

    def _lock(self, customer_id: str, asset_name: str) -> Optional[Asset]:
        # FOR UPDATE is dropped by SQLite; the version column still catches races there
        stmt = (
            select(Asset)
            .where(Asset.customer_id == customer_id, Asset.asset_name == asset_name)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return self.db.scalars(stmt).first()

    def _lock_existing(self, customer_id: str, asset_name: str) -> Asset:
        asset = self._lock(customer_id, asset_name)
        if asset is None:
            raise AssetNotFoundError(customer_id, asset_name)
        return asset

    def _lock_or_create(self, customer_id: str, asset_name: str) -> Asset:
        asset = self._lock(customer_id, asset_name)
        if asset is None:
            asset = self._insert(Asset(customer_id=customer_id, asset_name=asset_name, size=ZERO, usable_size=ZERO))
            logger.info("Opened %s balance for customer %s", asset_name, customer_id)
        return asset

    def _insert(self, asset: Asset) -> Asset:
        # a concurrent transaction may open the same (customer, asset) row first
        self.db.add(asset)
        try:
            self.db.flush()
        except IntegrityError as exc:
            raise ConcurrentInsertError(
                f"{asset.asset_name} balance for customer {asset.customer_id} was opened concurrently"
            ) from exc
        return asset

    # -----------------------------
    # Order-driven mutations
    # -----------------------------

    def reserve(self, customer_id: str, asset_name: str, side: OrderSide, size: Decimal) -> Asset:
        """
        Hold ``size`` of the side's reserved asset for a new pending order.

        Args:
            customer_id: Owner of the balances
            asset_name: Traded instrument
            side: BUY holds TRY, SELL holds the instrument
            size: Order quantity

        Returns:
            The Asset row that was decremented

        Raises:
            AssetNotFoundError: If the reserved asset row does not exist
            InsufficientFundsError: BUY with usable TRY below ``size``
            InsufficientHoldingsError: SELL with usable instrument below ``size``
        """
        rule = SIDE_RULES[side]
        asset = self._lock_existing(customer_id, rule.reserved_asset(asset_name))

        if asset.usable_size < size:
            logger.warning(
                "Reservation rejected: customer=%s asset=%s required=%s usable=%s",
                customer_id, asset.asset_name, size, asset.usable_size,
            )
            raise rule.shortfall(required=size, available=asset.usable_size)

        asset.usable_size = asset.usable_size - size
        self.db.flush()
        return asset

    def release(self, customer_id: str, asset_name: str, side: OrderSide, size: Decimal) -> Asset:
        """Give back a reservation. Call exactly once per cancelled order."""
        rule = SIDE_RULES[side]
        asset = self._lock_existing(customer_id, rule.reserved_asset(asset_name))

        asset.usable_size = asset.usable_size + size
        self.db.flush()
        return asset

    def settle(
        self,
        customer_id: str,
        asset_name: str,
        side: OrderSide,
        size: Decimal,
        price: Decimal,
    ) -> Asset:
        """
        Credit the proceeds of a matched order.

        BUY credits ``size`` units of the instrument (opening the row if the
        customer never held it); SELL credits ``size * price`` TRY, truncated
        to the stored scale. Both
        ``size`` and ``usable_size`` grow, so the credit is usable at once.
        """
        credited_name, amount = SIDE_RULES[side].settlement(asset_name, size, price)
        asset = self._lock_or_create(customer_id, credited_name)

        asset.size = asset.size + amount
        asset.usable_size = asset.usable_size + amount
        self.db.flush()
        return asset

    # -----------------------------
    # Account funding
    # -----------------------------

    def provision(self, customer_id: str) -> Asset:
        """
        Open the zero TRY balance of a new customer.

        Raises:
            AlreadyExistsError: If the customer already has a TRY row
        """
        if self.find_balance(customer_id, SETTLEMENT_CURRENCY) is not None:
            raise AlreadyExistsError(f"{SETTLEMENT_CURRENCY} asset already exists for customer: {customer_id}")

        asset = self._insert(
            Asset(
                customer_id=customer_id,
                asset_name=SETTLEMENT_CURRENCY,
                size=ZERO,
                usable_size=ZERO,
            )
        )
        logger.info("Provisioned customer %s", customer_id)
        return asset

    def deposit(self, customer_id: str, asset_name: str, amount: Decimal) -> Asset:
        """
        Credit ``amount`` of ``asset_name`` to a customer, usable immediately.

        Raises:
            InvalidQuantityError: If amount is not positive or exceeds the
                stored scale
        """
        check_quantity(amount)

        asset = self._lock_or_create(customer_id, asset_name)
        asset.size = asset.size + amount
        asset.usable_size = asset.usable_size + amount
        self.db.flush()
        logger.info("Deposited %s %s for customer %s", amount, asset_name, customer_id)
        return asset
