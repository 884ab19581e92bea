from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ProcessOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    numero_processo: str
    prazo_processual: str
    classe_principal: Optional[str] = None
    assunto_principal: Optional[str] = None
    tarjas: Optional[str] = None
    data_intimacao: Optional[date] = None
    cumprido: bool
    cumprido_date: Optional[datetime] = None
    reiteracoes: int
    observacoes: str
    user_id: Optional[int] = None
    user_nome: Optional[str] = None


class ProcessPage(BaseModel):
    items: List[ProcessOut]
    total_items: int
    page: int
    items_per_page: int


class ManualAssignRequest(BaseModel):
    numero_processo: str = Field(min_length=1, max_length=50)
    matricula: str = Field(min_length=1, max_length=20)


class BulkProcessRequest(BaseModel):
    process_ids: List[int] = Field(min_length=1)

    @field_validator("process_ids")
    @classmethod
    def _validate_ids(cls, value: List[int]) -> List[int]:
        if any(pid <= 0 for pid in value):
            raise ValueError("IDs de processos inválidos")
        return value


class BulkAssignRequest(BulkProcessRequest):
    matricula: str = Field(min_length=1, max_length=20)


class ObservacoesRequest(BaseModel):
    observacoes: Optional[str] = Field(default=None, max_length=100)


class ReiteracoesRequest(BaseModel):
    reiteracoes: int = Field(ge=0, le=999)


class BulkResult(BaseModel):
    message: str
    affected: int
