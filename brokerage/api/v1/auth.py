from fastapi import APIRouter, Depends
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from brokerage.core.deps import get_current_user, get_db
from brokerage.core.security import create_access_token
from brokerage.models.user import User
from brokerage.schemas.auth import RegisterIn, TokenOut, UserOut
from brokerage.services.user_service import UserService

router = APIRouter()


@router.post("/auth/register", response_model=UserOut, status_code=201)
def register(payload: RegisterIn, db: Session = Depends(get_db)):
    return UserService(db).register(payload.username, payload.password)


@router.post("/auth/login", response_model=TokenOut)
def login(form: OAuth2PasswordRequestForm = Depends(), db: Session = Depends(get_db)):
    user = UserService(db).authenticate(form.username, form.password)
    token = create_access_token(subject=str(user.id))
    return TokenOut(access_token=token)


@router.get("/auth/me", response_model=UserOut)
def me(current_user: User = Depends(get_current_user)):
    return current_user
