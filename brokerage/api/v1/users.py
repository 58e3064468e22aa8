"""
User API Endpoints
Back-office user directory (admin only)
"""
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from brokerage.core.deps import get_db, require_admin
from brokerage.models.user import User
from brokerage.schemas.auth import UserOut
from brokerage.services.user_service import UserService

router = APIRouter()


@router.get("/users", response_model=List[UserOut])
def list_users(db: Session = Depends(get_db), _admin: User = Depends(require_admin)):
    return UserService(db).list_users()


@router.get("/users/by-customer/{customer_id}", response_model=UserOut)
def get_user_by_customer(
    customer_id: str,
    db: Session = Depends(get_db),
    _admin: User = Depends(require_admin),
):
    """
    Find the user owning a customer account.

    - **customer_id**: Customer account id
    """
    return UserService(db).get_by_customer_id(customer_id)
