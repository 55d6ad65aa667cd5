from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from schemas.common import CamelModel


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)


class UserOut(CamelModel):
    id: int
    name: str
    email: str
    role: Optional[str] = None


class LoginData(CamelModel):
    token: str
    user: UserOut
