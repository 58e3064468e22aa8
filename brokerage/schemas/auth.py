from pydantic import BaseModel, ConfigDict, Field

from brokerage.models.user import UserRole


class RegisterIn(BaseModel):
    username: str = Field(..., min_length=3, max_length=50)
    password: str = Field(..., min_length=6, max_length=128)


class TokenOut(BaseModel):
    access_token: str
    token_type: str = "bearer"


class UserOut(BaseModel):
    id: int
    username: str
    role: UserRole
    customer_id: str | None = None

    model_config = ConfigDict(from_attributes=True)
