from __future__ import annotations

import logging

from sqlalchemy.exc import OperationalError, ProgrammingError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.security import hash_password, verify_password
from app.models.user import User

logger = logging.getLogger(__name__)


def ensure_seed_data(db: Session) -> None:
    """
    Seed idempotente do administrador master quando SEED_ENABLED=true.
    Cria o usuário se não existir e garante as duas permissões de administrador.
    """
    if not settings.SEED_ENABLED:
        return

    # tabelas ainda não criadas (migração pendente)
    try:
        db.query(User).limit(1).all()
    except (OperationalError, ProgrammingError):
        db.rollback()
        logger.warning("seed ignorado: tabela de usuários indisponível")
        return

    matricula = settings.MASTER_MATRICULA.strip()
    user = db.query(User).filter(User.matricula == matricula).first()
    if not user:
        user = User(
            matricula=matricula,
            nome=settings.MASTER_NOME,
            hashed_password=hash_password(settings.MASTER_PASSWORD),
            senha_padrao=False,
            admin_padrao=True,
            admin_super=True,
        )
        db.add(user)
        logger.info("seed: administrador master criado matricula=%s", matricula)
    else:
        if not verify_password(settings.MASTER_PASSWORD, user.hashed_password):
            user.hashed_password = hash_password(settings.MASTER_PASSWORD)
            user.senha_padrao = False
        user.admin_padrao = True
        user.admin_super = True

    db.commit()
