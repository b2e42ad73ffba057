"""Static front-end serving with single-page-app fallback."""

from pathlib import Path

from fastapi import APIRouter
from fastapi.responses import FileResponse, JSONResponse

STATIC_DIR = Path(__file__).resolve().parent.parent / "static"
INDEX_FILE = "index.html"

router = APIRouter()


def resolve_static(path: str, static_dir: Path = STATIC_DIR) -> Path:
    """Return the static file for ``path``, or the index document when none matches.

    Paths that resolve outside ``static_dir`` fall back to the index as well.
    """
    root = static_dir.resolve()
    candidate = (root / path).resolve()
    if path and candidate.is_relative_to(root) and candidate.is_file():
        return candidate
    return root / INDEX_FILE


@router.get("/{path:path}", include_in_schema=False)
async def frontend(path: str):
    if path == "api" or path.startswith("api/"):
        return JSONResponse({"error": "Not found"}, status_code=404)
    return FileResponse(resolve_static(path))
