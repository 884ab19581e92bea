from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.audit import AuditEvent, record_audit_event
from app.core.clock import utcnow
from app.core.config import settings
from app.core.security import Caller, get_current_caller, hash_password, require_super
from app.db.session import get_db
from app.models.process import Process
from app.models.refresh_token import RefreshToken
from app.models.user import User
from app.schemas.admin_users import AdminUserOut, MessageOut, PreCadastroRequest
from app.schemas.user import UserSummaryOut

router = APIRouter()


def _user_to_out(user: User) -> AdminUserOut:
    return AdminUserOut(
        id=user.id,
        matricula=user.matricula,
        nome=user.nome,
        admin_padrao=user.admin_padrao,
        admin_super=user.admin_super,
        senha_padrao=user.senha_padrao,
    )


def _get_user_or_404(db: Session, matricula: str) -> User:
    user = db.query(User).filter(User.matricula == matricula.strip()).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Usuário não encontrado")
    return user


def _revoke_refresh_tokens(db: Session, user: User) -> int:
    return (
        db.query(RefreshToken)
        .filter(RefreshToken.user_id == user.id, RefreshToken.revoked_at.is_(None))
        .update({RefreshToken.revoked_at: utcnow()}, synchronize_session=False)
    )


def _role_flags(tipo_cadastro: str) -> tuple[bool, bool]:
    # admin_super também enxerga tudo o que o padrão enxerga
    if tipo_cadastro == "admin_super":
        return True, True
    return True, False


@router.get("", response_model=List[UserSummaryOut])
def list_users(
    db: Session = Depends(get_db),
    _caller: Caller = Depends(get_current_caller),
):
    users = db.query(User).order_by(User.nome.asc()).all()
    return [UserSummaryOut.model_validate(u) for u in users]


@router.post("", response_model=AdminUserOut)
def pre_cadastro(
    payload: PreCadastroRequest,
    db: Session = Depends(get_db),
    caller: Caller = Depends(require_super),
):
    matricula = payload.matricula.strip()
    admin_padrao, admin_super = _role_flags(payload.tipo_cadastro)

    user = db.query(User).filter(User.matricula == matricula).first()
    if user:
        if not payload.update_if_exists:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Usuário já cadastrado. Reenvie com update_if_exists para atualizar "
                f"(a senha passará a ser {settings.DEFAULT_PASSWORD}).",
            )
        user.nome = payload.nome.strip()
        user.hashed_password = hash_password(settings.DEFAULT_PASSWORD)
        user.senha_padrao = True
        _revoke_refresh_tokens(db, user)
        user.admin_padrao = admin_padrao
        user.admin_super = admin_super
        action = "user.update"
    else:
        user = User(
            matricula=matricula,
            nome=payload.nome.strip(),
            hashed_password=hash_password(payload.senha),
            senha_padrao=True,
            admin_padrao=admin_padrao,
            admin_super=admin_super,
        )
        db.add(user)
        action = "user.create"

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Usuário já cadastrado.",
        )
    db.refresh(user)
    record_audit_event(
        AuditEvent(action=action, entity="usuario", entity_id=user.matricula, actor_id=caller.user_id)
    )
    return _user_to_out(user)


@router.post("/{matricula}/reset-password", response_model=MessageOut)
def reset_password(
    matricula: str,
    db: Session = Depends(get_db),
    caller: Caller = Depends(require_super),
):
    user = _get_user_or_404(db, matricula)
    user.hashed_password = hash_password(settings.DEFAULT_PASSWORD)
    user.senha_padrao = True
    _revoke_refresh_tokens(db, user)
    db.commit()
    record_audit_event(
        AuditEvent(action="user.reset_password", entity="usuario", entity_id=user.matricula, actor_id=caller.user_id)
    )
    return MessageOut(message=f"Senha resetada com sucesso para {settings.DEFAULT_PASSWORD}.")


@router.delete("/{matricula}", response_model=MessageOut)
def delete_user(
    matricula: str,
    db: Session = Depends(get_db),
    caller: Caller = Depends(require_super),
):
    user = _get_user_or_404(db, matricula)
    if user.id == caller.user_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Não é possível excluir o próprio usuário",
        )
    assigned = db.query(Process).filter(Process.user_id == user.id).count()
    if assigned:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Usuário possui {assigned} processo(s) atribuído(s)",
        )

    db.delete(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Usuário possui registros vinculados",
        )
    record_audit_event(
        AuditEvent(action="user.delete", entity="usuario", entity_id=matricula, actor_id=caller.user_id)
    )
    return MessageOut(message="Usuário deletado com sucesso.")
