from .asset import AssetOut, DepositRequest
from .auth import RegisterIn, TokenOut, UserOut
from .order import OrderCreate, OrderOut

__all__ = [
    "AssetOut",
    "DepositRequest",
    "RegisterIn",
    "TokenOut",
    "UserOut",
    "OrderCreate",
    "OrderOut",
]
