"""HTML pages. Unauthenticated page requests are redirected to /login by the renderer."""

from pathlib import Path
from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse

from nasgate.gate.context import RequestContext
from nasgate.gate.pipeline import require_admin, require_user

PAGES_DIR = Path(__file__).resolve().parent.parent / "pages"

router = APIRouter(include_in_schema=False)


def _page(name: str) -> FileResponse:
    return FileResponse(PAGES_DIR / name, media_type="text/html")


@router.get("/")
def index(_user: Annotated[RequestContext, Depends(require_user)]) -> FileResponse:
    return _page("index.html")


@router.get("/login")
def login_page() -> FileResponse:
    return _page("login.html")


@router.get("/setup")
def setup_page() -> FileResponse:
    """Only reachable while setup is required; the setup gate redirects home afterwards."""
    return _page("setup.html")


@router.get("/admin")
def admin_page(_admin: Annotated[RequestContext, Depends(require_admin)]) -> FileResponse:
    return _page("admin.html")
