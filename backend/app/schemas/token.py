from typing import Optional

from pydantic import BaseModel

from app.schemas.user import UserOut


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    login_type: str
    user: Optional[UserOut] = None


class FirstLoginResponse(BaseModel):
    first_login: bool = True
    user_id: int
    login_type: str
    first_login_token: str
