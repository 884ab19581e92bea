from __future__ import annotations

from pydantic import BaseModel


class ImportResult(BaseModel):
    dataset: str
    import_run_id: int
    total_rows: int
    skipped: int
    duplicates: int
    inserted: int
    updated: int
    unchanged: int
    reopened: int
    message: str
