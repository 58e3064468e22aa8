import logging
from decimal import Decimal

from sqlalchemy.orm import Session

from brokerage.core.config import settings
from brokerage.core.errors import AlreadyExistsError
from brokerage.core.logging import configure_logging
from brokerage.db.session import SessionLocal, run_in_transaction
from brokerage.models.asset import SETTLEMENT_CURRENCY
from brokerage.models.user import UserRole
from brokerage.services.asset_ledger import AssetLedger
from brokerage.services.user_service import UserService

logger = logging.getLogger("seed_data")

ADMIN = ("admin", "admin123")

# username, password, customer id, opening TRY balance
DEFAULT_CUSTOMERS = [
    ("customer1", "customer123", "CUST001", Decimal("10000.00")),
    ("customer2", "customer456", "CUST002", Decimal("5000.00")),
]


def main() -> None:
    configure_logging(settings.log_level)
    db: Session = SessionLocal()
    try:
        users = UserService(db)
        ledger = AssetLedger(db)

        try:
            users.create_user(*ADMIN, role=UserRole.ADMIN)
        except AlreadyExistsError:
            logger.info("Admin user already exists")

        for username, password, customer_id, opening in DEFAULT_CUSTOMERS:
            try:
                users.create_user(username, password, UserRole.CUSTOMER, customer_id)
            except AlreadyExistsError:
                logger.info("Customer %s already exists, skipping", username)
                continue

            users.provision_customer(customer_id)
            run_in_transaction(db, lambda: ledger.deposit(customer_id, SETTLEMENT_CURRENCY, opening))

        print("✅ Seeded users and balances into DB.")
    finally:
        db.close()


if __name__ == "__main__":
    main()
