import os

from fastapi import APIRouter, Request
from fastapi.responses import FileResponse, JSONResponse

router = APIRouter(tags=["spa"])

# Never answered with the SPA document
RESERVED_PREFIXES = ("/api", "/upload", "/images", "/config.js")


def is_reserved(path: str) -> bool:
    return path.startswith(RESERVED_PREFIXES)


@router.get("/{full_path:path}", include_in_schema=False)
async def serve_spa(request: Request, full_path: str):
    path = "/" + full_path
    if is_reserved(path):
        return JSONResponse(status_code=404, content={"error": "Not found"})

    static_dir = os.path.abspath(request.app.state.static_dir)
    candidate = os.path.abspath(os.path.join(static_dir, full_path))
    if full_path and candidate.startswith(static_dir + os.sep) and os.path.isfile(candidate):
        return FileResponse(candidate)
    return FileResponse(os.path.join(static_dir, "index.html"), media_type="text/html")
