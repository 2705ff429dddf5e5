from pathlib import Path

from fastapi import APIRouter, Request
from fastapi.responses import FileResponse, JSONResponse, PlainTextResponse, Response

router = APIRouter()

CONTENT_TYPES = {
    ".html": "text/html; charset=utf-8",
    ".css": "text/css; charset=utf-8",
    ".js": "application/javascript; charset=utf-8",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".svg": "image/svg+xml",
}


def _not_found() -> Response:
    return PlainTextResponse("Not Found", status_code=404)


def resolve_public_file(public_root: Path, rel_path: str):
    """Map a URL path onto a file under ``public_root``; None if outside it or missing."""
    root = public_root.resolve()
    candidate = (root / rel_path.lstrip("/")).resolve()
    if candidate != root and root not in candidate.parents:
        return None
    return candidate if candidate.is_file() else None


@router.get("/", include_in_schema=False)
def index(request: Request):
    static_root: Path = request.app.state.settings.static_root
    # public/index.html wins over the single-file build in the project root
    for candidate in (static_root / "public" / "index.html", static_root / "botellones.html"):
        if candidate.is_file():
            return FileResponse(candidate, media_type=CONTENT_TYPES[".html"])
    return _not_found()


@router.get("/{full_path:path}", include_in_schema=False)
def public_file(full_path: str, request: Request):
    if full_path == "api" or full_path.startswith("api/"):
        return JSONResponse({"error": "Not Found"}, status_code=404)

    static_root: Path = request.app.state.settings.static_root
    path = resolve_public_file(static_root / "public", full_path)
    if path is None:
        return _not_found()
    media_type = CONTENT_TYPES.get(path.suffix.lower(), "application/octet-stream")
    return FileResponse(path, media_type=media_type)
