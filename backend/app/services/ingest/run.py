from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from app.models.import_run import ImportRun
from app.services.ingest.csv_reader import read_process_rows
from app.services.ingest.reconcile import keep_latest, reconcile_processes
from app.services.ingest.utils import compute_sha256

logger = logging.getLogger(__name__)

DATASET = "processos"


def run_import_processes(
    *,
    db: Session,
    payload: bytes,
    source_name: str | None,
    actor_id: int | None,
    encoding: str = "latin-1",
    delimiter: str = ";",
) -> ImportRun:
    """
    Lê o CSV, deduplica por número de processo e reconcilia com o banco.
    Não faz commit: quem chama decide (e faz rollback em caso de erro).
    """
    source_hash = compute_sha256(payload)
    read = read_process_rows(payload, encoding=encoding, delimiter=delimiter)
    latest = keep_latest(read.rows)
    stats = reconcile_processes(db, latest)

    import_run = ImportRun(
        dataset=DATASET,
        source_name=source_name,
        source_hash=source_hash,
        actor_id=actor_id,
        status="SUCCESS",
        stats={
            "total_rows": read.total_rows,
            "skipped": read.skipped,
            "duplicates": len(read.rows) - len(latest),
            "inserted": stats.inserted,
            "updated": stats.updated,
            "unchanged": stats.unchanged,
            "reopened": stats.reopened,
        },
        error=None,
    )
    db.add(import_run)
    db.flush()  # garante import_run.id antes do commit

    logger.info(
        "import processos source=%s hash=%s stats=%s",
        source_name,
        source_hash,
        import_run.stats,
    )
    return import_run


def record_failed_import(
    *,
    db: Session,
    payload: bytes,
    source_name: str | None,
    actor_id: int | None,
    error: str,
) -> ImportRun:
    import_run = ImportRun(
        dataset=DATASET,
        source_name=source_name,
        source_hash=compute_sha256(payload),
        actor_id=actor_id,
        status="FAILED",
        stats=None,
        error=error[:2000],
    )
    db.add(import_run)
    db.flush()
    return import_run
