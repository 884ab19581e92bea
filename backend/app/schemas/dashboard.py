from __future__ import annotations

from datetime import date
from typing import Dict, List, Optional

from pydantic import BaseModel


class AssigneeCountOut(BaseModel):
    user_id: Optional[int] = None
    nome: str
    total: int


class DeadlineCountsOut(BaseModel):
    vencidos: int
    vence_ate_10_dias: int
    vence_11_a_30_dias: int


class DashboardOut(BaseModel):
    total_pendentes: int
    pendentes_por_usuario: List[AssigneeCountOut]
    prazos: DeadlineCountsOut
    cumpridos_por_usuario: List[AssigneeCountOut]
    assuntos: Dict[str, int]
    cumpridos_de: Optional[date] = None
    cumpridos_ate: Optional[date] = None
    top_n: int


class CountOut(BaseModel):
    total: int
