"""Health check: store, setup state and share root."""

import logging
import os
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from nasgate import __version__
from nasgate.core.database import get_db
from nasgate.gate.setup_gate import SetupState
from nasgate.schemas.health import HealthResponse
from nasgate.services.settings_store import read_setup_state

logger = logging.getLogger(__name__)

router = APIRouter()


def share_root_available(path: str) -> bool:
    return os.path.isdir(path) and os.access(path, os.R_OK | os.X_OK)


@router.get("", response_model=HealthResponse)
def get_health(request: Request, db: Annotated[Session, Depends(get_db)]) -> HealthResponse:
    """
    Report whether the store answers, what setup state it holds, and whether the
    share root is a readable directory. Degraded when either check fails.
    """
    settings = request.app.state.settings
    try:
        snapshot = read_setup_state(db)
    except SQLAlchemyError as e:
        logger.warning("Health check: database unreachable: %s", e)
        database, setup = "disconnected", None
    else:
        database = "connected"
        setup = SetupState.OPERATIONAL if snapshot.is_operational else SetupState.SETUP_REQUIRED

    share_ok = share_root_available(settings.SHARE_ROOT)
    return HealthResponse(
        status="ok" if database == "connected" and share_ok else "degraded",
        version=__version__,
        environment=settings.APP_ENV,
        database=database,
        setup=setup,
        share_root="available" if share_ok else "unavailable",
    )
