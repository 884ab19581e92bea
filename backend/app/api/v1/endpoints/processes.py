from __future__ import annotations

import logging
from datetime import date
from pathlib import Path
from typing import List, Literal, Optional
from uuid import uuid4

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.audit import AuditEvent, record_audit_event
from app.core.clock import today, utcnow
from app.core.config import settings
from app.core.security import Caller, get_current_caller, require_super
from app.db.session import get_db
from app.schemas.ingest import ImportResult
from app.schemas.process import (
    BulkAssignRequest,
    BulkProcessRequest,
    BulkResult,
    ManualAssignRequest,
    ObservacoesRequest,
    ProcessOut,
    ProcessPage,
    ReiteracoesRequest,
)
from app.services import processes as process_service
from app.services.errors import ImportReadError, ImportSaveError, InvalidSortError, NotFoundError
from app.services.ingest.run import record_failed_import, run_import_processes
from app.services.process_filters import ALL_ITEMS, PageRequest, ProcessQuery, as_tuple, parse_sort

logger = logging.getLogger(__name__)

router = APIRouter()


def get_process_query(
    search: Optional[str] = Query(default=None, max_length=50),
    classe: Optional[List[str]] = Query(default=None),
    assunto: Optional[List[str]] = Query(default=None),
    tarjas: Optional[List[str]] = Query(default=None),
    cumprido: Optional[bool] = Query(default=None),
    cumprido_de: Optional[date] = Query(default=None, alias="cumpridoDe"),
    cumprido_ate: Optional[date] = Query(default=None, alias="cumpridoAte"),
    prazo: Optional[Literal["overdue", "upcoming"]] = Query(default=None),
    user_ids: Optional[List[int]] = Query(default=None, alias="userId"),
    include_unassigned: bool = Query(default=False, alias="includeUnassigned"),
) -> ProcessQuery:
    return ProcessQuery(
        search=search,
        classes=as_tuple(classe),
        assuntos=as_tuple(assunto),
        tarjas=as_tuple(tarjas),
        cumprido=cumprido,
        cumprido_de=cumprido_de,
        cumprido_ate=cumprido_ate,
        prazo=prazo,
        user_ids=as_tuple(user_ids),
        include_unassigned=include_unassigned,
    )


def _not_found(exc: NotFoundError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


@router.get("", response_model=ProcessPage)
def list_processes(
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_caller),
    query: ProcessQuery = Depends(get_process_query),
    page: int = Query(default=1, ge=1),
    items_per_page: int = Query(default=10, ge=ALL_ITEMS, le=1000, alias="itemsPerPage"),
    sort_by: Optional[List[str]] = Query(default=None, alias="sortBy"),
) -> ProcessPage:
    if items_per_page == 0:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"itemsPerPage deve ser positivo ou {ALL_ITEMS} (todos)",
        )
    try:
        sort = parse_sort(sort_by)
    except InvalidSortError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))

    items, total = process_service.list_processes(
        db,
        caller.viewer,
        query,
        sort=sort,
        page=PageRequest(page=page, items_per_page=items_per_page),
        today=today(),
    )
    return ProcessPage(
        items=[ProcessOut.model_validate(p) for p in items],
        total_items=total,
        page=page,
        items_per_page=items_per_page,
    )


def _store_upload(payload: bytes) -> Path:
    upload_dir = Path(settings.UPLOAD_DIR)
    upload_dir.mkdir(parents=True, exist_ok=True)
    path = upload_dir / f"{uuid4().hex}.csv"
    path.write_bytes(payload)
    return path


@router.post("/upload", response_model=ImportResult)
async def upload_csv(
    csv_file: UploadFile = File(..., alias="csvFile"),
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_caller),
) -> ImportResult:
    filename = csv_file.filename or ""
    if not filename.lower().endswith(".csv"):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Extensão de arquivo inválida. Use .csv",
        )
    payload = await csv_file.read(settings.UPLOAD_MAX_BYTES + 1)
    if len(payload) > settings.UPLOAD_MAX_BYTES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Arquivo muito grande. Tamanho máximo: 5MB",
        )

    stored_path = _store_upload(payload)
    try:
        import_run = run_import_processes(
            db=db,
            payload=stored_path.read_bytes(),
            source_name=filename,
            actor_id=caller.user_id,
            encoding=settings.CSV_ENCODING,
            delimiter=settings.CSV_DELIMITER,
        )
        db.commit()
        db.refresh(import_run)
    except ImportReadError as exc:
        db.rollback()
        stored_path.unlink(missing_ok=True)
        logger.warning("upload csv ilegível arquivo=%s erro=%s", filename, exc)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Erro ao ler o arquivo CSV: {exc}",
        )
    except (ImportSaveError, SQLAlchemyError) as exc:
        db.rollback()
        # o arquivo fica em UPLOAD_DIR para nova tentativa
        logger.exception("upload csv falhou arquivo=%s guardado_em=%s", filename, stored_path)
        try:
            record_failed_import(
                db=db,
                payload=payload,
                source_name=filename,
                actor_id=caller.user_id,
                error=str(exc),
            )
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            logger.exception("não foi possível registrar a importação com falha")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Erro ao salvar dados do CSV.",
        )

    stored_path.unlink(missing_ok=True)
    stats = import_run.stats or {}
    return ImportResult(
        dataset=import_run.dataset,
        import_run_id=import_run.id,
        total_rows=int(stats.get("total_rows", 0)),
        skipped=int(stats.get("skipped", 0)),
        duplicates=int(stats.get("duplicates", 0)),
        inserted=int(stats.get("inserted", 0)),
        updated=int(stats.get("updated", 0)),
        unchanged=int(stats.get("unchanged", 0)),
        reopened=int(stats.get("reopened", 0)),
        message="CSV importado com sucesso. Registros mais recentes foram processados.",
    )


@router.post("/manual-assign", response_model=ProcessOut)
def manual_assign(
    payload: ManualAssignRequest,
    db: Session = Depends(get_db),
    caller: Caller = Depends(require_super),
) -> ProcessOut:
    try:
        process = process_service.manual_assign(db, payload.numero_processo, payload.matricula)
    except NotFoundError as exc:
        raise _not_found(exc)
    db.commit()
    db.refresh(process)
    record_audit_event(
        AuditEvent(
            action="process.assign",
            entity="processo",
            entity_id=process.numero_processo,
            actor_id=caller.user_id,
            detail=f"matricula={payload.matricula}",
        )
    )
    return ProcessOut.model_validate(process)


@router.post("/bulk-assign", response_model=BulkResult)
def bulk_assign(
    payload: BulkAssignRequest,
    db: Session = Depends(get_db),
    caller: Caller = Depends(require_super),
) -> BulkResult:
    try:
        affected = process_service.bulk_assign(db, payload.process_ids, payload.matricula)
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Usuário destino não encontrado.") from exc
    db.commit()
    record_audit_event(
        AuditEvent(
            action="process.bulk_assign",
            entity="processo",
            entity_id=",".join(str(i) for i in payload.process_ids),
            actor_id=caller.user_id,
            detail=f"matricula={payload.matricula} affected={affected}",
        )
    )
    return BulkResult(message="Atribuição em massa realizada com sucesso.", affected=affected)


@router.post("/bulk-delete", response_model=BulkResult)
def bulk_delete(
    payload: BulkProcessRequest,
    db: Session = Depends(get_db),
    caller: Caller = Depends(require_super),
) -> BulkResult:
    affected = process_service.bulk_delete(db, payload.process_ids)
    db.commit()
    record_audit_event(
        AuditEvent(
            action="process.bulk_delete",
            entity="processo",
            entity_id=",".join(str(i) for i in payload.process_ids),
            actor_id=caller.user_id,
            detail=f"affected={affected}",
        )
    )
    return BulkResult(message="Exclusão em massa realizada com sucesso.", affected=affected)


@router.post("/bulk-cumprido", response_model=BulkResult)
def bulk_cumprido(
    payload: BulkProcessRequest,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_caller),
) -> BulkResult:
    affected = process_service.bulk_mark_cumprido(db, caller.viewer, payload.process_ids, utcnow())
    db.commit()
    record_audit_event(
        AuditEvent(
            action="process.bulk_cumprido",
            entity="processo",
            entity_id=",".join(str(i) for i in payload.process_ids),
            actor_id=caller.user_id,
            detail=f"affected={affected}",
        )
    )
    return BulkResult(message="Processos marcados como cumpridos com sucesso.", affected=affected)


@router.put("/{process_id}/observacoes", response_model=ProcessOut)
def update_observacoes(
    process_id: int,
    payload: ObservacoesRequest,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_caller),
) -> ProcessOut:
    try:
        process = process_service.update_observacoes(db, caller.viewer, process_id, payload.observacoes)
    except NotFoundError as exc:
        raise _not_found(exc)
    db.commit()
    db.refresh(process)
    return ProcessOut.model_validate(process)


@router.patch("/{process_id}/cumprir", response_model=ProcessOut)
def mark_cumprido(
    process_id: int,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_caller),
) -> ProcessOut:
    try:
        process = process_service.mark_cumprido(db, caller.viewer, process_id, utcnow())
    except NotFoundError as exc:
        raise _not_found(exc)
    db.commit()
    db.refresh(process)
    record_audit_event(
        AuditEvent(action="process.cumprir", entity="processo", entity_id=str(process_id), actor_id=caller.user_id)
    )
    return ProcessOut.model_validate(process)


@router.patch("/{process_id}/desfazer-cumprir", response_model=ProcessOut)
def unmark_cumprido(
    process_id: int,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_caller),
) -> ProcessOut:
    try:
        process = process_service.unmark_cumprido(db, caller.viewer, process_id)
    except NotFoundError as exc:
        raise _not_found(exc)
    db.commit()
    db.refresh(process)
    record_audit_event(
        AuditEvent(
            action="process.desfazer_cumprir", entity="processo", entity_id=str(process_id), actor_id=caller.user_id
        )
    )
    return ProcessOut.model_validate(process)


@router.patch("/{process_id}/reiteracoes", response_model=ProcessOut)
def update_reiteracoes(
    process_id: int,
    payload: ReiteracoesRequest,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_caller),
) -> ProcessOut:
    try:
        process = process_service.update_reiteracoes(db, caller.viewer, process_id, payload.reiteracoes)
    except NotFoundError as exc:
        raise _not_found(exc)
    db.commit()
    db.refresh(process)
    return ProcessOut.model_validate(process)
