"""
Tests for the Asset Ledger
"""
from decimal import Decimal

import pytest
from sqlalchemy.orm import Session

from brokerage.core.errors import (
    AlreadyExistsError,
    AssetNotFoundError,
    ConcurrentInsertError,
    InsufficientFundsError,
    InsufficientHoldingsError,
    InvalidQuantityError,
)
from brokerage.models.asset import SETTLEMENT_CURRENCY
from brokerage.models.order import OrderSide
from brokerage.services.asset_ledger import SIDE_RULES, AssetLedger, check_quantity, reserved_asset_name

CUSTOMER = "CUST001"


class TestProvision:
    """Tests for provision method."""

    def test_provision_creates_zero_try_row(self, ledger: AssetLedger, db_session: Session):
        """A new customer gets an empty TRY balance."""
        asset = ledger.provision(CUSTOMER)
        db_session.commit()

        assert asset.asset_name == SETTLEMENT_CURRENCY
        assert asset.size == 0
        assert asset.usable_size == 0
        assert ledger.get_balance(CUSTOMER, SETTLEMENT_CURRENCY).id == asset.id

    def test_provision_twice_fails(self, ledger: AssetLedger, db_session: Session):
        """Provisioning an existing customer is rejected."""
        ledger.provision(CUSTOMER)
        db_session.commit()

        with pytest.raises(AlreadyExistsError):
            ledger.provision(CUSTOMER)


class TestBalances:
    """Tests for get_balance / list_balances."""

    def test_get_missing_balance(self, ledger: AssetLedger):
        """Unknown asset rows raise AssetNotFoundError."""
        with pytest.raises(AssetNotFoundError) as exc_info:
            ledger.get_balance(CUSTOMER, "AAPL")

        assert exc_info.value.asset_name == "AAPL"
        assert exc_info.value.customer_id == CUSTOMER

    def test_list_balances(self, funded_customer: str, ledger: AssetLedger, fund):
        """Every balance of the customer is listed, and only theirs."""
        fund(funded_customer, "AAPL", 3)
        fund("CUST999", "MSFT", 1)

        names = [a.asset_name for a in ledger.list_balances(funded_customer)]

        assert names == ["AAPL", SETTLEMENT_CURRENCY]

    def test_list_balances_unknown_customer(self, ledger: AssetLedger):
        assert ledger.list_balances("NOBODY") == []


class TestDeposit:
    """Tests for deposit method."""

    def test_deposit_opens_row(self, ledger: AssetLedger, db_session: Session, balance):
        """Depositing an asset the customer never held opens the row."""
        ledger.deposit(CUSTOMER, "AAPL", Decimal("5"))
        db_session.commit()

        assert balance(CUSTOMER, "AAPL") == (Decimal("5"), Decimal("5"))

    def test_deposit_adds_to_existing(self, funded_customer: str, fund, balance):
        fund(funded_customer, SETTLEMENT_CURRENCY, "250.5")

        assert balance(funded_customer, SETTLEMENT_CURRENCY) == (Decimal("10250.5"), Decimal("10250.5"))

    def test_deposit_rejects_non_positive(self, ledger: AssetLedger):
        with pytest.raises(ValueError):
            ledger.deposit(CUSTOMER, SETTLEMENT_CURRENCY, Decimal("0"))


class TestReserve:
    """Tests for reserve method."""

    def test_buy_reserves_try_by_size(self, funded_customer: str, ledger: AssetLedger, db_session: Session, balance):
        """BUY holds `size` units of TRY and leaves TRY size untouched."""
        ledger.reserve(funded_customer, "AAPL", OrderSide.BUY, Decimal("10"))
        db_session.commit()

        assert balance(funded_customer, SETTLEMENT_CURRENCY) == (Decimal("10000"), Decimal("9990"))

    def test_buy_reservation_ignores_price(self, funded_customer: str, ledger: AssetLedger, db_session: Session, balance):
        """The BUY reservation is the order size, not size * price."""
        ledger.reserve(funded_customer, "AAPL", OrderSide.BUY, Decimal("100"))
        db_session.commit()

        # 100 units at any price would cost far more than 10000 if price counted
        _, usable = balance(funded_customer, SETTLEMENT_CURRENCY)
        assert usable == Decimal("9900")

    def test_buy_insufficient_funds(self, funded_customer: str, ledger: AssetLedger, db_session: Session, balance):
        with pytest.raises(InsufficientFundsError) as exc_info:
            ledger.reserve(funded_customer, "AAPL", OrderSide.BUY, Decimal("10000.01"))
        db_session.rollback()

        assert exc_info.value.required == Decimal("10000.01")
        assert balance(funded_customer, SETTLEMENT_CURRENCY) == (Decimal("10000"), Decimal("10000"))

    def test_buy_can_reserve_exact_usable(self, funded_customer: str, ledger: AssetLedger, db_session: Session, balance):
        ledger.reserve(funded_customer, "AAPL", OrderSide.BUY, Decimal("10000"))
        db_session.commit()

        assert balance(funded_customer, SETTLEMENT_CURRENCY)[1] == 0

    def test_sell_reserves_instrument(self, funded_customer: str, ledger: AssetLedger, db_session: Session, fund, balance):
        fund(funded_customer, "AAPL", 8)

        ledger.reserve(funded_customer, "AAPL", OrderSide.SELL, Decimal("5"))
        db_session.commit()

        assert balance(funded_customer, "AAPL") == (Decimal("8"), Decimal("3"))
        assert balance(funded_customer, SETTLEMENT_CURRENCY) == (Decimal("10000"), Decimal("10000"))

    def test_sell_insufficient_holdings(self, funded_customer: str, ledger: AssetLedger, fund):
        fund(funded_customer, "AAPL", 3)

        with pytest.raises(InsufficientHoldingsError):
            ledger.reserve(funded_customer, "AAPL", OrderSide.SELL, Decimal("5"))

    def test_sell_without_row(self, funded_customer: str, ledger: AssetLedger):
        with pytest.raises(AssetNotFoundError):
            ledger.reserve(funded_customer, "AAPL", OrderSide.SELL, Decimal("1"))


class TestReleaseAndSettle:
    """Tests for release and settle methods."""

    def test_release_restores_reservation(self, funded_customer: str, ledger: AssetLedger, db_session: Session, balance):
        ledger.reserve(funded_customer, "AAPL", OrderSide.BUY, Decimal("10"))
        ledger.release(funded_customer, "AAPL", OrderSide.BUY, Decimal("10"))
        db_session.commit()

        assert balance(funded_customer, SETTLEMENT_CURRENCY) == (Decimal("10000"), Decimal("10000"))

    def test_settle_buy_credits_instrument(self, funded_customer: str, ledger: AssetLedger, db_session: Session, balance):
        """BUY settlement opens the instrument row and leaves TRY alone."""
        ledger.settle(funded_customer, "AAPL", OrderSide.BUY, Decimal("10"), Decimal("150"))
        db_session.commit()

        assert balance(funded_customer, "AAPL") == (Decimal("10"), Decimal("10"))
        assert balance(funded_customer, SETTLEMENT_CURRENCY) == (Decimal("10000"), Decimal("10000"))

    def test_settle_sell_credits_proceeds(self, funded_customer: str, ledger: AssetLedger, db_session: Session, balance):
        ledger.settle(funded_customer, "AAPL", OrderSide.SELL, Decimal("5"), Decimal("155.50"))
        db_session.commit()

        assert balance(funded_customer, SETTLEMENT_CURRENCY) == (Decimal("10777.5"), Decimal("10777.5"))

    def test_mutations_bump_version(self, funded_customer: str, ledger: AssetLedger, db_session: Session):
        before = ledger.get_balance(funded_customer, SETTLEMENT_CURRENCY).version

        ledger.reserve(funded_customer, "AAPL", OrderSide.BUY, Decimal("1"))
        db_session.commit()

        assert ledger.get_balance(funded_customer, SETTLEMENT_CURRENCY).version == before + 1


@pytest.mark.parametrize(
    "side, expected",
    [(OrderSide.BUY, SETTLEMENT_CURRENCY), (OrderSide.SELL, "AAPL")],
)
def test_reserved_asset_name(side, expected):
    assert reserved_asset_name("AAPL", side) == expected


class TestQuantityScale:
    """Amounts must be stored exactly by the 4-decimal balance columns."""

    @pytest.mark.parametrize("value", ["1", "0.0001", "1.50000", "999999999999999.9999"])
    def test_storable_amounts(self, value):
        assert check_quantity(Decimal(value)) == Decimal(value)

    @pytest.mark.parametrize("value", ["0", "-1", "0.00004", "10.00001", "1000000000000000", "NaN"])
    def test_unstorable_amounts(self, value):
        with pytest.raises(InvalidQuantityError):
            check_quantity(Decimal(value))

    def test_deposit_rejects_fifth_decimal(self, funded_customer: str, ledger: AssetLedger, balance):
        with pytest.raises(InvalidQuantityError):
            ledger.deposit(funded_customer, SETTLEMENT_CURRENCY, Decimal("0.00001"))

        assert balance(funded_customer, SETTLEMENT_CURRENCY) == (Decimal("10000"), Decimal("10000"))

    def test_sell_proceeds_truncated_to_scale(self):
        assert SIDE_RULES[OrderSide.SELL].settlement("AAPL", Decimal("1.5"), Decimal("0.3333")) == (
            SETTLEMENT_CURRENCY,
            Decimal("0.4999"),
        )

    def test_settle_sell_credits_stored_amount(
        self, funded_customer: str, ledger: AssetLedger, db_session: Session, balance
    ):
        """The credited amount in memory is the amount the database keeps."""
        asset = ledger.settle(funded_customer, "AAPL", OrderSide.SELL, Decimal("1.5"), Decimal("0.3333"))
        credited = asset.size
        db_session.commit()

        assert credited == Decimal("10000.4999")
        assert balance(funded_customer, SETTLEMENT_CURRENCY) == (credited, credited)


class TestConcurrentInsert:
    """Opening a balance row another transaction already opened."""

    def test_duplicate_row_raises_retryable_error(
        self, funded_customer: str, ledger: AssetLedger, db_session: Session, fund, monkeypatch
    ):
        fund(funded_customer, "AAPL", 2)
        # the lookup misses the row, as it would before the other transaction committed
        monkeypatch.setattr(ledger, "_lock", lambda customer_id, asset_name: None)

        with pytest.raises(ConcurrentInsertError):
            ledger.deposit(funded_customer, "AAPL", Decimal("3"))
        db_session.rollback()

    def test_provision_duplicate_row_raises_retryable_error(
        self, ledger: AssetLedger, db_session: Session, monkeypatch
    ):
        ledger.provision(CUSTOMER)
        db_session.commit()
        monkeypatch.setattr(ledger, "find_balance", lambda customer_id, asset_name: None)

        with pytest.raises(ConcurrentInsertError):
            ledger.provision(CUSTOMER)
        db_session.rollback()
