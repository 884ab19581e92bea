from dataclasses import asdict

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.v1.endpoints.processes import get_process_query
from app.core.clock import today
from app.core.config import settings
from app.core.security import Caller, get_current_caller, require_super
from app.db.session import get_db
from app.schemas.dashboard import CountOut, DashboardOut
from app.services.process_filters import ProcessQuery
from app.services.processes import count_unassigned
from app.services.stats import dashboard_stats

router = APIRouter()


@router.get("/dashboard", response_model=DashboardOut)
def dashboard(
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_caller),
    query: ProcessQuery = Depends(get_process_query),
) -> DashboardOut:
    stats = dashboard_stats(
        db,
        caller.viewer,
        query,
        today=today(),
        top_n=settings.DASHBOARD_TOP_N,
        compliant_window_days=settings.DASHBOARD_COMPLIANT_WINDOW_DAYS,
    )
    return DashboardOut.model_validate(asdict(stats))


@router.get("/unassigned-count", response_model=CountOut)
def unassigned_count(
    db: Session = Depends(get_db),
    _caller: Caller = Depends(require_super),
) -> CountOut:
    return CountOut(total=count_unassigned(db))
