"""
Asset Schemas for API Request/Response
"""
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from brokerage.models.asset import QUANTITY_PRECISION, QUANTITY_SCALE


class AssetOut(BaseModel):
    """A customer's balance in one asset."""
    customer_id: str
    asset_name: str
    size: Decimal
    usable_size: Decimal

    model_config = ConfigDict(from_attributes=True)


class DepositRequest(BaseModel):
    """Schema for crediting a customer's balance (admin only)."""
    customer_id: str = Field(..., min_length=1, max_length=32)
    asset_name: str = Field(..., min_length=1, max_length=16, description="Asset symbol, e.g. TRY or AAPL")
    amount: Decimal = Field(..., gt=0, max_digits=QUANTITY_PRECISION, decimal_places=QUANTITY_SCALE)
