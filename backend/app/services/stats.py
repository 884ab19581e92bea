from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, timedelta

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.models.process import Process
from app.models.user import User
from app.services.process_filters import (
    PRAZO_OVERDUE,
    AllOf,
    Contains,
    Eq,
    ProcessQuery,
    Viewer,
    build_process_filter,
    cumprido_date_range,
    deadline_filter,
    due_between,
    to_clause,
)

NO_ASSIGNEE_NAME = "N.A."
SUBJECT_KEYWORDS = ("Saúde", "Medicamento", "Educação", "Previdenciário")


@dataclass
class AssigneeCount:
    user_id: int | None
    nome: str
    total: int


@dataclass
class DeadlineCounts:
    vencidos: int = 0
    vence_ate_10_dias: int = 0
    vence_11_a_30_dias: int = 0


@dataclass
class DashboardStats:
    total_pendentes: int
    pendentes_por_usuario: list[AssigneeCount]
    prazos: DeadlineCounts
    cumpridos_por_usuario: list[AssigneeCount]
    assuntos: dict[str, int]
    cumpridos_de: date | None = None
    cumpridos_ate: date | None = None
    top_n: int = 10


def _count(db: Session, node: AllOf) -> int:
    return db.query(func.count(Process.id)).filter(to_clause(node)).scalar() or 0


def _count_by_assignee(db: Session, node: AllOf, limit: int | None = None) -> list[AssigneeCount]:
    total = func.count(Process.id)
    q = (
        db.query(Process.user_id, User.nome, total.label("total"))
        .outerjoin(User, Process.user_id == User.id)
        .filter(to_clause(node))
        .group_by(Process.user_id, User.nome)
        .order_by(total.desc(), Process.user_id.asc().nulls_last())
    )
    if limit is not None:
        q = q.limit(limit)
    return [
        AssigneeCount(user_id=user_id, nome=nome or NO_ASSIGNEE_NAME, total=count)
        for user_id, nome, count in q.all()
    ]


def dashboard_stats(
    db: Session,
    viewer: Viewer,
    query: ProcessQuery,
    *,
    today: date,
    top_n: int = 10,
    compliant_window_days: int = 30,
) -> DashboardStats:
    """
    Agrega contagens do painel sobre o mesmo filtro da listagem.

    O estado de cumprimento, o período de cumprimento e o prazo da consulta
    não entram na base: pendentes e cumpridos são recortes dela. O período
    só vale para os cumpridos e, se ausente, são os últimos
    `compliant_window_days` dias.
    """
    base = build_process_filter(
        viewer,
        replace(query, cumprido=None, cumprido_de=None, cumprido_ate=None, prazo=None),
        today=today,
    )
    pending = base.narrow(Eq("cumprido", False))

    start, end = query.cumprido_de, query.cumprido_ate
    if start is None and end is None:
        start = today - timedelta(days=compliant_window_days)
    compliant = base.narrow(Eq("cumprido", True), cumprido_date_range(start, end))

    prazos = DeadlineCounts(
        vencidos=_count(db, pending.narrow(deadline_filter(PRAZO_OVERDUE, today))),
        vence_ate_10_dias=_count(db, pending.narrow(due_between(today, today + timedelta(days=10)))),
        vence_11_a_30_dias=_count(
            db,
            pending.narrow(due_between(today + timedelta(days=11), today + timedelta(days=30))),
        ),
    )
    assuntos = {
        keyword: _count(db, pending.narrow(Contains("assunto_principal", keyword, ignore_case=True)))
        for keyword in SUBJECT_KEYWORDS
    }

    return DashboardStats(
        total_pendentes=_count(db, pending),
        pendentes_por_usuario=_count_by_assignee(db, pending, limit=top_n),
        prazos=prazos,
        cumpridos_por_usuario=_count_by_assignee(db, compliant),
        assuntos=assuntos,
        cumpridos_de=start,
        cumpridos_ate=end,
        top_n=top_n,
    )
