"""Migration trigger and archive download endpoints."""

import logging
import threading
from pathlib import Path

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import FileResponse

from ..models import MigrationResultResponse
from ..dependencies import get_settings, require_auth
from ...models.migration import MigrationSettings
from ...orchestrator import MigrationOrchestrator

logger = logging.getLogger(__name__)

router = APIRouter()

# One migration at a time per process
_run_lock = threading.Lock()


def get_orchestrator(settings: MigrationSettings = Depends(get_settings)) -> MigrationOrchestrator:
    return MigrationOrchestrator(settings)


@router.post("/run", response_model=MigrationResultResponse, dependencies=[Depends(require_auth)])
def run_migration(
    request: Request,
    orchestrator: MigrationOrchestrator = Depends(get_orchestrator),
):
    """
    Run the migration now.

    Blocks until the export and archive are finished. Failures are reported
    in the body with status "error"; HTTP errors are reserved for auth and
    concurrency problems.
    """
    if not _run_lock.acquire(blocking=False):
        raise HTTPException(status_code=409, detail="A migration is already running")
    try:
        result = orchestrator.run()
    finally:
        _run_lock.release()

    download = None
    if result.archive:
        download = str(request.url_for("download_archive", name=result.archive.name))
    return MigrationResultResponse.from_result(result, download=download)


@router.get("/download/{name}", name="download_archive", dependencies=[Depends(require_auth)])
def download_archive(name: str, settings: MigrationSettings = Depends(get_settings)):
    """Serve a produced archive from the output directory."""
    if Path(name).name != name or not name.endswith(".zip"):
        raise HTTPException(status_code=404, detail="File not found.")

    output_dir = settings.output_path
    path = (output_dir / name).resolve()
    if path.parent != output_dir or not path.is_file():
        raise HTTPException(status_code=404, detail="File not found.")

    logger.info(f"Serving archive {path}")
    return FileResponse(path, media_type="application/octet-stream", filename=name)
