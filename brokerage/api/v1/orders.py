from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from brokerage.core.deps import ensure_customer_access, get_current_user, get_db, require_admin
from brokerage.models.user import User
from brokerage.schemas.order import OrderCreate, OrderOut
from brokerage.services.order_lifecycle import OrderLifecycle

router = APIRouter()


def _naive_utc(value: datetime | None) -> datetime | None:
    # create_date is stored as naive UTC
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


@router.post("/orders", response_model=OrderOut)
def post_order(
    payload: OrderCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    ensure_customer_access(current_user, payload.customer_id)
    return OrderLifecycle(db).place(
        payload.customer_id,
        payload.asset_name,
        payload.side,
        payload.size,
        payload.price,
    )


@router.get("/orders", response_model=list[OrderOut])
def get_orders(
    customer_id: str,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    ensure_customer_access(current_user, customer_id)
    orders = OrderLifecycle(db).list_by_customer(customer_id, _naive_utc(start_date), _naive_utc(end_date))
    return sorted(orders, key=lambda o: o.create_date, reverse=True)


@router.get("/orders/pending", response_model=list[OrderOut])
def get_pending_orders(
    db: Session = Depends(get_db),
    _admin: User = Depends(require_admin),
):
    return OrderLifecycle(db).list_pending()


@router.get("/orders/{order_id}", response_model=OrderOut)
def get_order(
    order_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    order = OrderLifecycle(db).get_by_id(order_id)
    ensure_customer_access(current_user, order.customer_id)
    return order


@router.delete("/orders/{order_id}", response_model=OrderOut)
def cancel_order(
    order_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    lifecycle = OrderLifecycle(db)

    # admins cancel on behalf of the owning customer
    acting_customer_id = current_user.customer_id
    if current_user.is_admin:
        acting_customer_id = lifecycle.get_by_id(order_id).customer_id

    return lifecycle.cancel(order_id, acting_customer_id)


@router.post("/orders/{order_id}/match", response_model=OrderOut)
def match_order(
    order_id: int,
    db: Session = Depends(get_db),
    _admin: User = Depends(require_admin),
):
    return OrderLifecycle(db).match(order_id)
