from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

LoginType = Literal["admin_super", "admin_padrao"]


class LoginRequest(BaseModel):
    matricula: str = Field(min_length=1, max_length=20, pattern=r"^[a-zA-Z0-9_-]+$")
    senha: str = Field(min_length=1, max_length=100)
    loginType: LoginType


class FirstLoginRequest(BaseModel):
    first_login_token: Optional[str] = None
    nova_senha: str = Field(min_length=8, max_length=100)

    @field_validator("nova_senha")
    @classmethod
    def _validate_strength(cls, value: str) -> str:
        if not (
            any(c.islower() for c in value)
            and any(c.isupper() for c in value)
            and any(c.isdigit() for c in value)
        ):
            raise ValueError(
                "Senha deve conter pelo menos uma letra maiúscula, uma minúscula e um número"
            )
        return value


class RefreshRequest(BaseModel):
    refresh_token: str


class LogoutRequest(BaseModel):
    refresh_token: str
