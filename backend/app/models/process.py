from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Index, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base


class Process(Base):
    __tablename__ = "processos"

    __table_args__ = (
        Index("idx_cumprido", "cumprido"),
        Index("idx_data_intimacao", "data_intimacao"),
        Index("idx_cumprido_date", "cumpridoDate"),
        Index("idx_user_cumprido", "userId", "cumprido"),
        Index("idx_classe_principal", "classe_principal"),
        Index("idx_assunto_principal", "assunto_principal"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    numero_processo: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)

    # dias, guardado como texto do jeito que vem no CSV
    prazo_processual: Mapped[str] = mapped_column(String(20), nullable=False, default="")
    classe_principal: Mapped[str | None] = mapped_column(String(255), nullable=True)
    assunto_principal: Mapped[str | None] = mapped_column(String(255), nullable=True)
    tarjas: Mapped[str | None] = mapped_column(String(255), nullable=True)
    data_intimacao: Mapped[date | None] = mapped_column(Date, nullable=True)

    cumprido: Mapped[bool] = mapped_column(
        Boolean, nullable=False, server_default=text("false"), default=False
    )
    cumprido_date: Mapped[datetime | None] = mapped_column("cumpridoDate", DateTime, nullable=True)
    reiteracoes: Mapped[int] = mapped_column(
        Integer, nullable=False, server_default=text("0"), default=0
    )
    observacoes: Mapped[str] = mapped_column(
        String(100), nullable=False, server_default=text("''"), default=""
    )

    user_id: Mapped[int | None] = mapped_column(
        "userId", Integer, ForeignKey("usuarios.id"), nullable=True
    )
    user: Mapped[Optional["User"]] = relationship("User", back_populates="processes")

    @property
    def user_nome(self) -> str | None:
        return self.user.nome if self.user else None
