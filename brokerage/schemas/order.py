from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from brokerage.models.asset import QUANTITY_PRECISION, QUANTITY_SCALE, SETTLEMENT_CURRENCY
from brokerage.models.order import OrderSide, OrderStatus


class OrderCreate(BaseModel):
    customer_id: str = Field(..., min_length=1, max_length=32)
    asset_name: str = Field(..., min_length=1, max_length=16)
    side: OrderSide
    size: Decimal = Field(..., gt=0, max_digits=QUANTITY_PRECISION, decimal_places=QUANTITY_SCALE)
    price: Decimal = Field(..., gt=0, max_digits=QUANTITY_PRECISION, decimal_places=QUANTITY_SCALE)

    @field_validator("asset_name")
    @classmethod
    def instrument_symbol(cls, value: str) -> str:
        value = value.upper()
        if value == SETTLEMENT_CURRENCY:
            raise ValueError(f"{SETTLEMENT_CURRENCY} is the settlement currency, not a tradable instrument")
        return value


class OrderOut(BaseModel):
    id: int
    customer_id: str
    asset_name: str
    side: OrderSide
    size: Decimal
    price: Decimal
    status: OrderStatus
    create_date: datetime

    model_config = ConfigDict(from_attributes=True)
