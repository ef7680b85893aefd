"""Read-only settings view for signed-in users."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from nasgate.core.database import get_db
from nasgate.gate.context import RequestContext
from nasgate.gate.pipeline import require_user
from nasgate.schemas.admin import SettingsResponse
from nasgate.services.settings_store import get_all_settings

router = APIRouter()


@router.get("", response_model=SettingsResponse)
def read_settings(
    _user: Annotated[RequestContext, Depends(require_user)],
    db: Annotated[Session, Depends(get_db)],
) -> SettingsResponse:
    return SettingsResponse(settings=get_all_settings(db))
