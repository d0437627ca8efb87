from fastapi import APIRouter

from src.nexus_projects.api.v1 import admin, applications, collaboration, projects, realtime

api_router = APIRouter(prefix="/v1")
api_router.include_router(projects.router)
api_router.include_router(applications.router)
api_router.include_router(collaboration.router)
api_router.include_router(admin.router)
api_router.include_router(realtime.router)
