"""API v1 routes."""

from fastapi import APIRouter

from app.api.v1 import airdrops, auth, health, tags, tasks, users

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(users.router, prefix="/users", tags=["users"])
router.include_router(tags.router, prefix="/tags", tags=["tags"])
router.include_router(airdrops.router, prefix="/airdrops", tags=["airdrops"])
router.include_router(tasks.router, prefix="/tasks", tags=["tasks"])
