from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from brokerage.core.errors import ForbiddenError, InvalidCredentialsError, NotFoundError
from brokerage.core.security import decode_access_token
from brokerage.db.session import get_db
from brokerage.models.user import User
from brokerage.services.user_service import UserService

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")

__all__ = ["get_db", "get_current_user", "require_admin", "ensure_customer_access"]


def get_current_user(token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)) -> User:
    user_id = decode_access_token(token)
    try:
        return UserService(db).get_by_id(int(user_id))
    except (ValueError, NotFoundError):
        raise InvalidCredentialsError("Unknown token subject")


def require_admin(current_user: User = Depends(get_current_user)) -> User:
    if not current_user.is_admin:
        raise ForbiddenError("Admin role required")
    return current_user


def ensure_customer_access(user: User, customer_id: str) -> None:
    """A CUSTOMER may only touch its own account; ADMIN may touch any."""
    if not user.is_admin and user.customer_id != customer_id:
        raise ForbiddenError("Access denied: can only act on your own account")
