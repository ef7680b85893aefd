"""File downloads, behind authentication, the file rate limit and the path guard."""

import os
import stat
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from fastapi.responses import FileResponse

from nasgate.core.logging_config import log_file_access
from nasgate.gate.context import RequestContext
from nasgate.gate.outcomes import GateRejected, access_denied, bad_request, not_found
from nasgate.gate.pipeline import guarded_path, require_user
from nasgate.services.listing import guess_mime_type

router = APIRouter()


@router.get("/{requested:path}")
def download(
    requested: str,
    request: Request,
    ctx: Annotated[RequestContext, Depends(require_user)],
) -> FileResponse:
    """
    Stream one file as an attachment with Content-Type and Content-Length.
    Directories are refused with 400 before anything is opened.
    """
    full_path = guarded_path(request, ctx, requested, "DOWNLOAD")

    try:
        st = os.stat(full_path)
    except FileNotFoundError as e:
        log_file_access("DOWNLOAD_NOT_FOUND", requested, ctx.actor, ctx.client_ip, False)
        raise GateRejected(not_found()) from e
    except PermissionError as e:
        log_file_access("DOWNLOAD_DENIED", requested, ctx.actor, ctx.client_ip, False)
        raise GateRejected(access_denied()) from e

    if stat.S_ISDIR(st.st_mode):
        log_file_access("DOWNLOAD_DIRECTORY", requested, ctx.actor, ctx.client_ip, False)
        raise GateRejected(bad_request(message_key="directoryError"))

    log_file_access("DOWNLOAD_SUCCESS", requested, ctx.actor, ctx.client_ip, True)
    return FileResponse(
        full_path,
        media_type=guess_mime_type(full_path),
        filename=os.path.basename(full_path),
        stat_result=st,
    )
