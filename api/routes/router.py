from fastapi import APIRouter

from api.routes import health
from packages.tasks.routes import tasks

api_router = APIRouter()

# Health check
api_router.include_router(health.router, tags=["health"])

# Task listing and invocation
api_router.include_router(tasks.router, tags=["tasks"])
