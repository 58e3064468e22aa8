import enum

from sqlalchemy import Enum, String
from sqlalchemy.orm import Mapped, mapped_column

from brokerage.db.base import Base


class UserRole(str, enum.Enum):
    ADMIN = "ADMIN"
    CUSTOMER = "CUSTOMER"


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)

    username: Mapped[str] = mapped_column(String(50), unique=True, index=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole, native_enum=False, length=16), nullable=False, default=UserRole.CUSTOMER
    )
    # admins have no customer account
    customer_id: Mapped[str | None] = mapped_column(String(32), unique=True, index=True, nullable=True)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN
