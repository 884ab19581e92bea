from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Dict, Optional
from uuid import uuid4

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from app.core.clock import utcnow
from app.core.config import settings
from app.core.roles import LOGIN_TYPE_PADRAO, LOGIN_TYPE_SUPER, LOGIN_TYPES
from app.db.session import get_db
from app.models.user import User
from app.services.process_filters import Viewer

ALGORITHM = "HS256"

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_V1_STR}/auth/login")


@dataclass(frozen=True)
class Caller:
    """Usuário autenticado e o tipo de login efetivo do token."""

    user: User
    login_type: str

    @property
    def user_id(self) -> int:
        return self.user.id

    @property
    def is_super(self) -> bool:
        return self.login_type == LOGIN_TYPE_SUPER

    @property
    def viewer(self) -> Viewer:
        return Viewer(user_id=self.user.id, login_type=self.login_type)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def resolve_login_type(user: User, requested: str) -> Optional[str]:
    """
    admin_super só para quem tem a flag; admin_padrao para qualquer admin
    (um super pode entrar como padrão). None quando não há permissão.
    """
    if requested == LOGIN_TYPE_SUPER and user.admin_super:
        return LOGIN_TYPE_SUPER
    if requested == LOGIN_TYPE_PADRAO and user.is_admin:
        return LOGIN_TYPE_PADRAO
    return None


def _encode(payload: Dict[str, Any], token_type: str, expires_delta: timedelta) -> str:
    now = utcnow()
    to_encode = payload.copy()
    to_encode.update({"type": token_type, "iat": now, "exp": now + expires_delta})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=ALGORITHM)


def create_access_token(user_id: int, login_type: str) -> str:
    return _encode(
        {"sub": str(user_id), "login_type": login_type},
        "access",
        timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
    )


def create_refresh_token(user_id: int, login_type: str, jti: str) -> str:
    return _encode(
        {"sub": str(user_id), "login_type": login_type, "jti": jti},
        "refresh",
        timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
    )


FIRST_LOGIN_TOKEN_EXPIRE_MINUTES = 10


def create_first_login_token(user_id: int, login_type: str) -> str:
    """Token de uso único para /auth/primeiro-login; não autentica mais nada."""
    return _encode(
        {"sub": str(user_id), "login_type": login_type},
        "first_login",
        timedelta(minutes=FIRST_LOGIN_TOKEN_EXPIRE_MINUTES),
    )


def generate_jti() -> str:
    return uuid4().hex


def verify_token(token: str, token_type: str) -> Dict[str, Any]:
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token inválido ou expirado",
        ) from exc
    if payload.get("type") != token_type:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Tipo de token inválido",
        )
    return payload


def get_subject(payload: Dict[str, Any]) -> Optional[int]:
    sub = payload.get("sub")
    try:
        return int(sub)
    except (TypeError, ValueError):
        return None


def get_current_caller(
    db: Session = Depends(get_db),
    token: str = Depends(oauth2_scheme),
) -> Caller:
    payload = verify_token(token, "access")
    user_id = get_subject(payload)
    login_type = payload.get("login_type")
    if user_id is None or login_type not in LOGIN_TYPES:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token com payload inválido",
        )
    user = db.get(User, user_id)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Usuário do token não encontrado",
        )
    # senha resetada: tokens emitidos antes do reset deixam de valer
    if user.senha_padrao:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Troca de senha pendente",
        )
    # permissões podem ter sido revogadas depois da emissão do token
    effective = resolve_login_type(user, login_type)
    if not effective:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Acesso proibido. Requer privilégios de administrador.",
        )
    return Caller(user=user, login_type=effective)


def require_super(caller: Caller = Depends(get_current_caller)) -> Caller:
    if not caller.is_super:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Operação restrita ao login admin_super",
        )
    return caller
