"""
Asset API Endpoints
Customer balances and admin funding
"""
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from brokerage.core.deps import ensure_customer_access, get_current_user, get_db, require_admin
from brokerage.db.session import run_in_transaction
from brokerage.models.user import User
from brokerage.schemas.asset import AssetOut, DepositRequest
from brokerage.services.asset_ledger import AssetLedger

router = APIRouter()


@router.get("/assets", response_model=List[AssetOut])
def get_customer_assets(
    customer_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    List every balance of a customer.

    - **customer_id**: Customer account id
    """
    ensure_customer_access(current_user, customer_id)
    return AssetLedger(db).list_balances(customer_id)


@router.post("/assets/deposit", response_model=AssetOut)
def deposit(
    payload: DepositRequest,
    db: Session = Depends(get_db),
    _admin: User = Depends(require_admin),
):
    """
    Credit a customer's balance (Admin only).

    - **asset_name**: TRY for cash, or an instrument symbol
    - **amount**: Quantity to credit, > 0
    """
    ledger = AssetLedger(db)
    asset_name = payload.asset_name.upper()
    return run_in_transaction(db, lambda: ledger.deposit(payload.customer_id, asset_name, payload.amount))


@router.get("/assets/{asset_name}", response_model=AssetOut)
def get_customer_asset(
    asset_name: str,
    customer_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Get one balance of a customer.

    - **asset_name**: Asset symbol (e.g., TRY, AAPL)
    - **customer_id**: Customer account id
    """
    ensure_customer_access(current_user, customer_id)
    return AssetLedger(db).get_balance(customer_id, asset_name.upper())
