from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class PreCadastroRequest(BaseModel):
    matricula: str = Field(min_length=1, max_length=20, pattern=r"^[a-zA-Z0-9_-]+$")
    nome: str = Field(min_length=1, max_length=100, pattern=r"^[a-zA-ZÀ-ÿ\s'-]+$")
    senha: str = Field(min_length=8, max_length=100)
    tipo_cadastro: Literal["admin_padrao", "admin_super"]
    update_if_exists: bool = False


class AdminUserOut(BaseModel):
    id: int
    matricula: str
    nome: str
    admin_padrao: bool
    admin_super: bool
    senha_padrao: bool


class MessageOut(BaseModel):
    message: str
