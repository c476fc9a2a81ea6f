from datetime import datetime, timezone

from fastapi import APIRouter, Request

from .. import __version__
from ..dependencies import public

router = APIRouter(tags=["Health"])


@router.get("/")
@public
async def read_root(request: Request):
    """Describe the service and its storage mode"""
    return {
        "name": "taskapi",
        "version": __version__,
        "storage": "memory" if request.app.state.settings.skip_db_connection else "database",
    }


@router.get("/health")
@public
async def health():
    """Report that the service is up"""
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}
