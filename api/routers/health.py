"""
Health check endpoint for monitoring and liveness probes.
"""
from fastapi import APIRouter, Depends
import logging

from chatmemory.config import Settings, get_settings
from chatmemory.memory.store import SummaryStore
from chatmemory.tools.time import format_iso
from db.client import get_db_client
from db.models import HealthResponse
from ..dependencies import get_memory_store

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=HealthResponse)
async def health_check(
    settings: Settings = Depends(get_settings),
    memory_store: SummaryStore = Depends(get_memory_store)
):
    """
    Health check endpoint.

    Returns:
        HealthResponse with store backend and session count
    """
    status = "healthy"
    if settings.memory_backend == "mongo" and not await get_db_client().ping():
        status = "unhealthy"

    sessions = None
    if status == "healthy":
        try:
            sessions = await memory_store.count()
        except Exception as e:
            logger.error(f"Summary store count failed: {str(e)}")
            status = "unhealthy"

    return HealthResponse(
        status=status,
        memoryBackend=settings.memory_backend,
        sessions=sessions,
        timestamp=format_iso()
    )
