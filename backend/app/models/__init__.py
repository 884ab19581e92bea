from app.db.base import Base
from app.models.import_run import ImportRun
from app.models.process import Process
from app.models.refresh_token import RefreshToken
from app.models.user import User

__all__ = [
    "Base",
    "ImportRun",
    "Process",
    "RefreshToken",
    "User",
]
