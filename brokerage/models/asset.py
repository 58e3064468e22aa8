from decimal import Decimal

from sqlalchemy import Integer, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from brokerage.db.base import Base

# Reserved symbol for the cash / settlement balance
SETTLEMENT_CURRENCY = "TRY"

QUANTITY_PRECISION = 19
QUANTITY_SCALE = 4
# smallest representable step of a stored quantity
QUANTUM = Decimal(1).scaleb(-QUANTITY_SCALE)

Quantity = Numeric(precision=QUANTITY_PRECISION, scale=QUANTITY_SCALE, asdecimal=True)


class Asset(Base):
    __tablename__ = "assets"
    __table_args__ = (UniqueConstraint("customer_id", "asset_name", name="uq_assets_customer_asset"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    customer_id: Mapped[str] = mapped_column(String(32), index=True, nullable=False)
    asset_name: Mapped[str] = mapped_column(String(16), nullable=False)

    size: Mapped[Decimal] = mapped_column(Quantity, nullable=False, default=Decimal("0"))
    usable_size: Mapped[Decimal] = mapped_column(Quantity, nullable=False, default=Decimal("0"))

    # bumped on every UPDATE; a stale write raises StaleDataError
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}
