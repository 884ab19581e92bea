from __future__ import annotations

from datetime import date, datetime
from typing import Iterable

from sqlalchemy.orm import Session, contains_eager

from app.models.process import Process
from app.models.user import User
from app.services.errors import NotFoundError
from app.services.process_filters import (
    AllOf,
    InSet,
    PageRequest,
    ProcessQuery,
    SortSpec,
    Viewer,
    build_process_filter,
    order_by_clauses,
    to_clause,
    visibility_filter,
)


def list_processes(
    db: Session,
    viewer: Viewer,
    query: ProcessQuery,
    *,
    sort: Iterable[SortSpec],
    page: PageRequest,
    today: date,
) -> tuple[list[Process], int]:
    criteria = to_clause(build_process_filter(viewer, query, today=today))
    base = (
        db.query(Process)
        .outerjoin(Process.user)
        .options(contains_eager(Process.user))
        .filter(criteria)
    )
    total = base.order_by(None).count()

    rows = base.order_by(*order_by_clauses(sort))
    if not page.unlimited:
        rows = rows.offset(page.offset).limit(page.items_per_page)
    return rows.all(), total


def _scoped(viewer: Viewer, *clauses) -> AllOf:
    visibility = visibility_filter(viewer)
    prefix = (visibility,) if visibility is not None else ()
    return AllOf(prefix + tuple(clauses))


def get_visible_process(db: Session, viewer: Viewer, process_id: int) -> Process:
    """Processo fora do escopo do usuário é tratado como inexistente."""
    process = (
        db.query(Process)
        .filter(Process.id == process_id, to_clause(_scoped(viewer)))
        .first()
    )
    if not process:
        raise NotFoundError("Processo não encontrado")
    return process


def find_user_by_matricula(db: Session, matricula: str) -> User:
    user = db.query(User).filter(User.matricula == matricula.strip()).first()
    if not user:
        raise NotFoundError("Usuário não encontrado")
    return user


def manual_assign(db: Session, numero_processo: str, matricula: str) -> Process:
    user = find_user_by_matricula(db, matricula)
    process = (
        db.query(Process)
        .filter(Process.numero_processo == numero_processo.strip())
        .first()
    )
    if not process:
        raise NotFoundError("Processo não encontrado")
    process.user_id = user.id
    db.flush()
    return process


def bulk_assign(db: Session, process_ids: list[int], matricula: str) -> int:
    user = find_user_by_matricula(db, matricula)
    return (
        db.query(Process)
        .filter(Process.id.in_(process_ids))
        .update({Process.user_id: user.id}, synchronize_session=False)
    )


def bulk_delete(db: Session, process_ids: list[int]) -> int:
    return (
        db.query(Process)
        .filter(Process.id.in_(process_ids))
        .delete(synchronize_session=False)
    )


def bulk_mark_cumprido(db: Session, viewer: Viewer, process_ids: list[int], now: datetime) -> int:
    criteria = to_clause(_scoped(viewer, InSet("id", tuple(process_ids))))
    return (
        db.query(Process)
        .filter(criteria)
        .update(
            {Process.cumprido: True, Process.cumprido_date: now, Process.reiteracoes: 0},
            synchronize_session=False,
        )
    )


def mark_cumprido(db: Session, viewer: Viewer, process_id: int, now: datetime) -> Process:
    process = get_visible_process(db, viewer, process_id)
    process.cumprido = True
    process.cumprido_date = now
    db.flush()
    return process


def unmark_cumprido(db: Session, viewer: Viewer, process_id: int) -> Process:
    process = get_visible_process(db, viewer, process_id)
    process.cumprido = False
    process.cumprido_date = None
    db.flush()
    return process


def update_observacoes(db: Session, viewer: Viewer, process_id: int, observacoes: str | None) -> Process:
    process = get_visible_process(db, viewer, process_id)
    process.observacoes = (observacoes or "").strip()
    db.flush()
    return process


def update_reiteracoes(db: Session, viewer: Viewer, process_id: int, reiteracoes: int) -> Process:
    process = get_visible_process(db, viewer, process_id)
    process.reiteracoes = reiteracoes
    db.flush()
    return process


def count_unassigned(db: Session) -> int:
    return db.query(Process).filter(Process.user_id.is_(None)).count()
