from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.process import Process
from app.services.errors import ImportSaveError
from app.services.ingest.csv_reader import ProcessRow

logger = logging.getLogger(__name__)

# campos copiados do CSV sempre que diferirem do banco
DIFF_FIELDS = ("prazo_processual", "classe_principal", "assunto_principal", "tarjas")


@dataclass
class ReconcileStats:
    inserted: int = 0
    updated: int = 0
    unchanged: int = 0
    reopened: int = 0


def _is_newer(candidate: ProcessRow, current: ProcessRow) -> bool:
    if candidate.data_intimacao is None:
        return False
    if current.data_intimacao is None:
        return True
    return candidate.data_intimacao > current.data_intimacao


def keep_latest(rows: Iterable[ProcessRow]) -> list[ProcessRow]:
    """
    Uma linha por número de processo: a de intimação mais recente.
    Em empate (inclusive tudo sem data) fica a primeira lida.
    """
    latest: dict[str, ProcessRow] = {}
    for row in rows:
        current = latest.get(row.numero_processo)
        if current is None or _is_newer(row, current):
            latest[row.numero_processo] = row
    return list(latest.values())


def diff_process(existing: Process, row: ProcessRow) -> dict:
    """Campos a gravar em `existing`; vazio quando nada mudou."""
    changes = {}
    for field in DIFF_FIELDS:
        value = getattr(row, field)
        if value != getattr(existing, field):
            changes[field] = value

    new_date = row.data_intimacao
    old_date = existing.data_intimacao
    if new_date is not None and old_date is not None and new_date > old_date:
        changes["data_intimacao"] = new_date
        # nova intimação reabre o processo
        changes["cumprido"] = False
        if existing.cumprido:
            changes["reiteracoes"] = 1
        else:
            changes["reiteracoes"] = (existing.reiteracoes or 0) + 1
    return changes


def _new_process(row: ProcessRow) -> Process:
    return Process(
        numero_processo=row.numero_processo,
        prazo_processual=row.prazo_processual,
        classe_principal=row.classe_principal,
        assunto_principal=row.assunto_principal,
        tarjas=row.tarjas,
        data_intimacao=row.data_intimacao,
        cumprido=False,
        reiteracoes=0,
    )


def reconcile_processes(db: Session, rows: Iterable[ProcessRow]) -> ReconcileStats:
    """
    Aplica as linhas já deduplicadas ao banco, uma a uma: cria o que não
    existe e grava somente os campos que mudaram no que já existe.
    """
    stats = ReconcileStats()
    for row in rows:
        try:
            existing = (
                db.query(Process)
                .filter(Process.numero_processo == row.numero_processo)
                .first()
            )
            if existing is None:
                db.add(_new_process(row))
                db.flush()
                stats.inserted += 1
                continue

            changes = diff_process(existing, row)
            if not changes:
                stats.unchanged += 1
                continue
            if "data_intimacao" in changes and existing.cumprido:
                stats.reopened += 1
            for key, value in changes.items():
                setattr(existing, key, value)
            db.flush()
            stats.updated += 1
        except SQLAlchemyError as exc:
            raise ImportSaveError(
                f"Erro ao salvar o processo {row.numero_processo}: {exc}"
            ) from exc

    logger.info(
        "reconcile processos inserted=%s updated=%s unchanged=%s reopened=%s",
        stats.inserted,
        stats.updated,
        stats.unchanged,
        stats.reopened,
    )
    return stats
