"""
User Service
Registration, lookup and password authentication of back-office users.
"""
import logging
import random
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from brokerage.core.errors import AlreadyExistsError, InvalidCredentialsError, NotFoundError
from brokerage.core.security import hash_password, verify_password
from brokerage.db.session import run_in_transaction
from brokerage.models.user import User, UserRole
from brokerage.services.asset_ledger import AssetLedger

logger = logging.getLogger(__name__)


class UserService:
    """Service for managing users and their customer accounts."""

    def __init__(self, db: Session):
        self.db = db

    def find_by_username(self, username: str) -> Optional[User]:
        return self.db.scalars(select(User).where(User.username == username)).first()

    def get_by_id(self, user_id: int) -> User:
        user = self.db.get(User, user_id)
        if user is None:
            raise NotFoundError(f"User not found: {user_id}")
        return user

    def get_by_customer_id(self, customer_id: str) -> User:
        user = self.db.scalars(select(User).where(User.customer_id == customer_id)).first()
        if user is None:
            raise NotFoundError(f"Customer not found: {customer_id}")
        return user

    def list_users(self) -> List[User]:
        return list(self.db.scalars(select(User).order_by(User.id)).all())

    def create_user(
        self,
        username: str,
        password: str,
        role: UserRole = UserRole.CUSTOMER,
        customer_id: Optional[str] = None,
    ) -> User:
        """
        Create a user with an explicit role and customer id.

        Raises:
            AlreadyExistsError: If the username is taken
        """

        def work() -> User:
            if self.find_by_username(username) is not None:
                raise AlreadyExistsError("Username already exists")

            user = User(
                username=username,
                password_hash=hash_password(password),
                role=role,
                customer_id=customer_id,
            )
            self.db.add(user)
            self.db.flush()
            return user

        user = run_in_transaction(self.db, work)
        logger.info("Created %s user %s", role.value, username)
        return user

    def register(self, username: str, password: str) -> User:
        """
        Self-service registration: a CUSTOMER with a fresh customer id and
        a zero TRY balance.
        """
        user = self.create_user(username, password, UserRole.CUSTOMER, self._generate_customer_id())
        self.provision_customer(user.customer_id)
        return user

    def provision_customer(self, customer_id: str) -> None:
        """Open the customer's TRY balance; an existing one is logged and kept."""
        ledger = AssetLedger(self.db)
        try:
            run_in_transaction(self.db, lambda: ledger.provision(customer_id))
        except AlreadyExistsError as e:
            logger.warning("Provisioning skipped: %s", e.message)

    def authenticate(self, username: str, password: str) -> User:
        """
        Raises:
            InvalidCredentialsError: Unknown user or wrong password
        """
        user = self.find_by_username(username)
        if user is None or not verify_password(password, user.password_hash):
            raise InvalidCredentialsError()
        return user

    def _generate_customer_id(self) -> str:
        while True:
            customer_id = f"CUST{random.randint(0, 999_999):06d}"
            taken = self.db.scalars(select(User.id).where(User.customer_id == customer_id)).first()
            if taken is None:
                return customer_id
