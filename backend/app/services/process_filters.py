"""
Filtros de processos.

Os parâmetros de listagem/dashboard viram uma árvore de nós simples
(Eq, InSet, Contains, Range, IsNull, AnyOf, AllOf) que só no final é
traduzida para SQLAlchemy por `to_clause`. A regra de visibilidade é sempre
o primeiro nó de `build_process_filter`; nenhum consumidor monta o filtro
sem passar por ela.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Any, Iterable, Union

from sqlalchemy import and_, or_, true

from app.core.roles import LOGIN_TYPE_SUPER
from app.db.due_date import due_date
from app.models.process import Process
from app.models.user import User
from app.services.errors import InvalidSortError

DUE_DATE = "data_vencimento"
PRAZO_OVERDUE = "overdue"
PRAZO_UPCOMING = "upcoming"


@dataclass(frozen=True)
class Eq:
    field: str
    value: Any


@dataclass(frozen=True)
class InSet:
    field: str
    values: tuple


@dataclass(frozen=True)
class Contains:
    field: str
    value: str
    ignore_case: bool = False


@dataclass(frozen=True)
class Range:
    """lower sempre inclusivo; upper conforme upper_inclusive."""

    field: str
    lower: Any = None
    upper: Any = None
    upper_inclusive: bool = True


@dataclass(frozen=True)
class IsNull:
    field: str


@dataclass(frozen=True)
class AnyOf:
    clauses: tuple


@dataclass(frozen=True)
class AllOf:
    clauses: tuple = ()

    def narrow(self, *extra: "Node") -> "AllOf":
        return AllOf(self.clauses + tuple(extra))


Node = Union[Eq, InSet, Contains, Range, IsNull, AnyOf, AllOf]


@dataclass(frozen=True)
class Viewer:
    user_id: int
    login_type: str

    @property
    def is_super(self) -> bool:
        return self.login_type == LOGIN_TYPE_SUPER


@dataclass(frozen=True)
class ProcessQuery:
    search: str | None = None
    classes: tuple[str, ...] = ()
    assuntos: tuple[str, ...] = ()
    tarjas: tuple[str, ...] = ()
    cumprido: bool | None = None
    cumprido_de: date | None = None
    cumprido_ate: date | None = None
    prazo: str | None = None
    user_ids: tuple[int, ...] = ()
    include_unassigned: bool = False


def as_tuple(value) -> tuple:
    """Um valor solto ou uma lista -> tupla sem vazios."""
    if value is None:
        return ()
    if isinstance(value, (list, tuple, set)):
        return tuple(v for v in value if v not in (None, ""))
    return (value,) if value != "" else ()


def _column(name: str):
    if name == DUE_DATE:
        return due_date(Process.data_intimacao, Process.prazo_processual)
    try:
        return _COLUMNS[name]
    except KeyError:
        raise ValueError(f"Campo de filtro desconhecido: {name}") from None


_COLUMNS = {
    "id": Process.id,
    "numero_processo": Process.numero_processo,
    "prazo_processual": Process.prazo_processual,
    "classe_principal": Process.classe_principal,
    "assunto_principal": Process.assunto_principal,
    "tarjas": Process.tarjas,
    "data_intimacao": Process.data_intimacao,
    "cumprido": Process.cumprido,
    "cumprido_date": Process.cumprido_date,
    "reiteracoes": Process.reiteracoes,
    "observacoes": Process.observacoes,
    "user_id": Process.user_id,
}


def to_clause(node: Node):
    if isinstance(node, AllOf):
        if not node.clauses:
            return true()
        return and_(*(to_clause(c) for c in node.clauses))
    if isinstance(node, AnyOf):
        return or_(*(to_clause(c) for c in node.clauses))
    if isinstance(node, Eq):
        col = _column(node.field)
        return col.is_(None) if node.value is None else col == node.value
    if isinstance(node, InSet):
        return _column(node.field).in_(list(node.values))
    if isinstance(node, Contains):
        col = _column(node.field)
        if node.ignore_case:
            return col.icontains(node.value, autoescape=True)
        return col.contains(node.value, autoescape=True)
    if isinstance(node, IsNull):
        return _column(node.field).is_(None)
    if isinstance(node, Range):
        col = _column(node.field)
        parts = []
        if node.lower is not None:
            parts.append(col >= node.lower)
        if node.upper is not None:
            parts.append(col <= node.upper if node.upper_inclusive else col < node.upper)
        return and_(*parts) if parts else true()
    raise TypeError(f"Nó de filtro não suportado: {node!r}")


def visibility_filter(
    viewer: Viewer,
    user_ids: Iterable[int] = (),
    include_unassigned: bool = False,
) -> Node | None:
    """
    admin_padrao: sempre só os próprios processos, ignorando seletores.
    admin_super: sem seletor nada restringe; seletor e/ou "sem responsável"
    viram IN / IS NULL (combinados com OR).
    """
    if not viewer.is_super:
        return Eq("user_id", viewer.user_id)

    user_ids = tuple(user_ids)
    if user_ids and include_unassigned:
        return AnyOf((InSet("user_id", user_ids), IsNull("user_id")))
    if user_ids:
        return InSet("user_id", user_ids)
    if include_unassigned:
        return IsNull("user_id")
    return None


def deadline_filter(bucket: str, today: date) -> Node:
    # vencido: vencimento < hoje; a vencer: vencimento >= hoje
    if bucket == PRAZO_OVERDUE:
        return Range(DUE_DATE, upper=today, upper_inclusive=False)
    if bucket == PRAZO_UPCOMING:
        return Range(DUE_DATE, lower=today)
    raise ValueError(f"Prazo desconhecido: {bucket}")


def due_between(lower: date, upper: date) -> Node:
    return Range(DUE_DATE, lower=lower, upper=upper)


def cumprido_date_range(start: date | None, end: date | None) -> Node | None:
    """Datas inclusivas sobre o timestamp de cumprimento."""
    if start is None and end is None:
        return None
    lower = datetime.combine(start, time.min) if start else None
    upper = datetime.combine(end + timedelta(days=1), time.min) if end else None
    return Range("cumprido_date", lower=lower, upper=upper, upper_inclusive=False)


def build_process_filter(viewer: Viewer, query: ProcessQuery, *, today: date) -> AllOf:
    clauses: list[Node] = []

    visibility = visibility_filter(viewer, query.user_ids, query.include_unassigned)
    if visibility is not None:
        clauses.append(visibility)

    if query.search and query.search.strip():
        clauses.append(Contains("numero_processo", query.search.strip()))
    if query.classes:
        clauses.append(InSet("classe_principal", tuple(query.classes)))
    if query.assuntos:
        clauses.append(InSet("assunto_principal", tuple(query.assuntos)))
    if query.tarjas:
        clauses.append(InSet("tarjas", tuple(query.tarjas)))
    if query.cumprido is not None:
        clauses.append(Eq("cumprido", query.cumprido))

    date_range = cumprido_date_range(query.cumprido_de, query.cumprido_ate)
    if date_range is not None:
        clauses.append(date_range)

    if query.prazo:
        clauses.append(deadline_filter(query.prazo, today))

    return AllOf(tuple(clauses))


# ---------------------------------------------------------------------------
# Ordenação
# ---------------------------------------------------------------------------

SORT_USER_NAME = "user_nome"
DEFAULT_SORT_FIELD = "data_intimacao"


@dataclass(frozen=True)
class SortSpec:
    field: str
    descending: bool = False


DEFAULT_SORT = (SortSpec(DEFAULT_SORT_FIELD, descending=True),)


def parse_sort(values: Iterable[str] | None) -> tuple[SortSpec, ...]:
    """
    ["numero_processo:asc", "data_vencimento:desc"] -> SortSpecs.
    Sem nada, intimação mais recente primeiro.
    """
    specs: list[SortSpec] = []
    for raw in values or ():
        if not raw or not raw.strip():
            continue
        name, _, direction = raw.strip().partition(":")
        direction = (direction or "asc").lower()
        if direction not in ("asc", "desc"):
            raise InvalidSortError(f"Direção de ordenação inválida: {raw}")
        if name not in _COLUMNS and name not in (DUE_DATE, SORT_USER_NAME):
            raise InvalidSortError(f"Campo de ordenação inválido: {name}")
        specs.append(SortSpec(name, descending=direction == "desc"))
    return tuple(specs) or DEFAULT_SORT


def order_by_clauses(specs: Iterable[SortSpec]) -> list:
    clauses = []
    for spec in specs:
        if spec.field == SORT_USER_NAME:
            expr = User.nome
        else:
            expr = _column(spec.field)
        clauses.append(expr.desc() if spec.descending else expr.asc())
    # desempate estável para a paginação
    clauses.append(Process.id.asc())
    return clauses


ALL_ITEMS = -1


@dataclass(frozen=True)
class PageRequest:
    page: int = 1
    # ALL_ITEMS = todas as linhas, sem limit/offset
    items_per_page: int = 10

    @property
    def unlimited(self) -> bool:
        return self.items_per_page == ALL_ITEMS

    @property
    def offset(self) -> int:
        return (max(self.page, 1) - 1) * self.items_per_page
