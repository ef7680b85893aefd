"""First-run setup: create the initial administrator and mark the system operational."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from nasgate.core.database import get_db
from nasgate.core.logging_config import log_error, log_system
from nasgate.gate.outcomes import (
    ErrorKind,
    GateRejected,
    Rejection,
    bad_request,
    setup_already_completed,
)
from nasgate.gate.pipeline import get_context, translate
from nasgate.schemas.auth import AuthResponse, SetupRequest, UserSummary
from nasgate.services.settings_store import SetupAlreadyCompletedError, complete_setup
from nasgate.services.users import UsernameTakenError

router = APIRouter()


@router.post("", response_model=AuthResponse)
def submit_setup(
    body: SetupRequest,
    request: Request,
    db: Annotated[Session, Depends(get_db)],
) -> AuthResponse:
    """
    Create the first admin account and set setup_completed, as one transaction.

    Only routable while setup is required; afterwards the setup gate answers 403
    before this handler runs. A concurrent attempt that loses the race gets the
    same SetupAlreadyCompleted answer from the store.
    """
    ctx = get_context(request)
    username = body.username.strip()
    if not username or not body.password:
        raise GateRejected(bad_request(message_key="setupFieldsRequired"))

    try:
        admin = complete_setup(db, username, body.password, email=body.email)
    except SetupAlreadyCompletedError as e:
        raise GateRejected(setup_already_completed()) from e
    except UsernameTakenError as e:
        raise GateRejected(Rejection(ErrorKind.CONFLICT, message_key="usernameTaken")) from e
    except SQLAlchemyError as e:
        log_error(e, "Setup error", username, ctx.client_ip)
        raise GateRejected(
            Rejection(ErrorKind.INTERNAL_ERROR, message_key="setupError", detail="setup transaction failed")
        ) from e

    log_system("Initial setup completed", admin_user=username, ip=ctx.client_ip)
    return AuthResponse(message=translate(request, "setupComplete"), user=UserSummary.model_validate(admin))
