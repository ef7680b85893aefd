"""Directory listing of the share, behind authentication and the path guard."""

import os
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request

from nasgate.core.logging_config import log_error, log_file_access
from nasgate.gate.context import RequestContext
from nasgate.gate.outcomes import GateRejected, access_denied, bad_request, internal_error, not_found
from nasgate.gate.pipeline import guarded_path, require_user
from nasgate.schemas.browse import BrowseItem, BrowseResponse
from nasgate.services.listing import list_directory, parent_path

router = APIRouter()


@router.get("", response_model=BrowseResponse)
def browse(
    request: Request,
    ctx: Annotated[RequestContext, Depends(require_user)],
    path: Annotated[str, Query(max_length=4096)] = "/",
) -> BrowseResponse:
    """
    List one directory of the share. ``path`` is relative to the share root;
    "/" or empty lists the root. Directories come first, then files.
    """
    full_path = guarded_path(request, ctx, path, "BROWSE")
    guard = request.app.state.path_guard

    if not os.path.exists(full_path):
        log_file_access("BROWSE_NOT_FOUND", path, ctx.actor, ctx.client_ip, False)
        raise GateRejected(not_found())
    if not os.path.isdir(full_path):
        raise GateRejected(bad_request(message_key="notADirectory"))

    try:
        items = list_directory(guard, full_path)
    except PermissionError as e:
        log_file_access("BROWSE_DENIED", path, ctx.actor, ctx.client_ip, False)
        raise GateRejected(access_denied()) from e
    except OSError as e:
        log_error(e, "Browse directory error", ctx.actor, ctx.client_ip)
        raise GateRejected(internal_error(detail=f"listing failed for {full_path}")) from e

    relative = guard.relative(full_path)
    log_file_access("BROWSE_SUCCESS", relative, ctx.actor, ctx.client_ip, True)
    return BrowseResponse(
        current_path="" if relative == "/" else relative,
        parent_path=parent_path(relative),
        items=[BrowseItem.model_validate(item) for item in items],
    )
