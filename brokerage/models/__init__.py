from .user import User, UserRole
from .asset import Asset, SETTLEMENT_CURRENCY
from .order import Order, OrderSide, OrderStatus

__all__ = ["User", "UserRole", "Asset", "SETTLEMENT_CURRENCY", "Order", "OrderSide", "OrderStatus"]
