import logging
from datetime import timedelta
from typing import Union

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.core.clock import utcnow
from app.core.config import settings
from app.core.roles import LOGIN_TYPE_PADRAO
from app.core.security import (
    Caller,
    create_access_token,
    create_first_login_token,
    create_refresh_token,
    generate_jti,
    get_current_caller,
    get_subject,
    hash_password,
    resolve_login_type,
    verify_password,
    verify_token,
)
from app.db.session import get_db
from app.models.refresh_token import RefreshToken
from app.models.user import User
from app.schemas.auth import FirstLoginRequest, LoginRequest, LogoutRequest, RefreshRequest
from app.schemas.token import FirstLoginResponse, TokenResponse
from app.schemas.user import UserOut

logger = logging.getLogger(__name__)

router = APIRouter()


def _build_user_out(user: User, login_type: str) -> UserOut:
    out = UserOut.model_validate(user)
    if login_type == LOGIN_TYPE_PADRAO:
        # logado como padrão, o front não deve oferecer as telas de super
        out.admin_super = False
    return out


def _issue_tokens(db: Session, user: User, login_type: str, jti: str | None = None) -> TokenResponse:
    access_token = create_access_token(user.id, login_type)
    jti = jti or generate_jti()
    refresh_token = create_refresh_token(user.id, login_type, jti)

    now = utcnow()
    db.add(
        RefreshToken(
            user_id=user.id,
            jti=jti,
            login_type=login_type,
            issued_at=now,
            expires_at=now + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
        )
    )
    db.commit()

    return TokenResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        login_type=login_type,
        user=_build_user_out(user, login_type),
    )


@router.post("/login", response_model=Union[TokenResponse, FirstLoginResponse])
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.matricula == payload.matricula).first()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Usuário não encontrado",
        )

    login_type = resolve_login_type(user, payload.loginType)
    if not login_type:
        logger.warning("login negado matricula=%s login_type=%s", user.matricula, payload.loginType)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Acesso negado. O usuário não possui as permissões de administrador solicitadas.",
        )

    if not verify_password(payload.senha, user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Senha incorreta",
        )

    if user.senha_padrao:
        return FirstLoginResponse(
            user_id=user.id,
            login_type=login_type,
            first_login_token=create_first_login_token(user.id, login_type),
        )

    return _issue_tokens(db, user, login_type)


@router.post("/primeiro-login", response_model=TokenResponse)
def first_login(payload: FirstLoginRequest, db: Session = Depends(get_db)) -> TokenResponse:
    if not payload.first_login_token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token de primeiro acesso ausente",
        )
    token_payload = verify_token(payload.first_login_token, "first_login")
    user_id = get_subject(token_payload)
    user = db.get(User, user_id) if user_id is not None else None
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token de primeiro acesso inválido",
        )
    if not user.senha_padrao:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Senha já foi definida; use o login normal",
        )

    login_type = resolve_login_type(user, token_payload.get("login_type"))
    if not login_type:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Acesso negado. O usuário não possui as permissões de administrador solicitadas.",
        )

    user.hashed_password = hash_password(payload.nova_senha)
    user.senha_padrao = False
    db.flush()
    return _issue_tokens(db, user, login_type)


@router.post("/refresh", response_model=TokenResponse)
def refresh(payload: RefreshRequest, db: Session = Depends(get_db)) -> TokenResponse:
    token_payload = verify_token(payload.refresh_token, "refresh")
    jti = token_payload.get("jti")
    if not token_payload.get("sub") or not jti:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Refresh token inválido",
        )

    stored = db.query(RefreshToken).filter(RefreshToken.jti == jti).first()
    if not stored or stored.revoked_at is not None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Refresh token revogado",
        )
    if stored.expires_at <= utcnow():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Refresh token expirado",
        )

    user = db.get(User, stored.user_id)
    login_type = resolve_login_type(user, stored.login_type) if user and not user.senha_padrao else None
    if not login_type:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Usuário sem permissão de administrador",
        )

    new_jti = generate_jti()
    stored.revoked_at = utcnow()
    stored.replaced_by_jti = new_jti
    return _issue_tokens(db, user, login_type, jti=new_jti)


@router.post("/logout")
def logout(payload: LogoutRequest, db: Session = Depends(get_db)) -> dict:
    token_payload = verify_token(payload.refresh_token, "refresh")
    jti = token_payload.get("jti")
    if not jti:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Refresh token inválido",
        )

    stored = db.query(RefreshToken).filter(RefreshToken.jti == jti).first()
    if not stored or stored.revoked_at is not None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Refresh token revogado",
        )
    stored.revoked_at = utcnow()
    db.commit()

    return {"status": "ok"}


@router.get("/me", response_model=UserOut)
def me(caller: Caller = Depends(get_current_caller)) -> UserOut:
    return _build_user_out(caller.user, caller.login_type)
