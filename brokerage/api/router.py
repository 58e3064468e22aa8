from fastapi import APIRouter
from brokerage.api.v1.health import router as health_router
from brokerage.api.v1.auth import router as auth_router
from brokerage.api.v1.assets import router as assets_router
from brokerage.api.v1.orders import router as orders_router
from brokerage.api.v1.users import router as users_router


api_router = APIRouter()
api_router.include_router(health_router, prefix="/v1", tags=["health"])
api_router.include_router(auth_router, prefix="/v1", tags=["auth"])
api_router.include_router(assets_router, prefix="/v1", tags=["assets"])
api_router.include_router(orders_router, prefix="/v1", tags=["orders"])
api_router.include_router(users_router, prefix="/v1", tags=["users"])
