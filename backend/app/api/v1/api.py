from fastapi import APIRouter

from app.api.v1.endpoints import admin_users, auth, processes, stats

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(admin_users.router, prefix="/admin/users", tags=["admin"])
api_router.include_router(processes.router, prefix="/processes", tags=["processes"])
api_router.include_router(stats.router, prefix="/stats", tags=["stats"])
