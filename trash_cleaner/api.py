"""
Trash Cleaner HTTP Trigger
FastAPI app for running the cleanup as a hosted, scheduled job
"""

import logging
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException
from pydantic import BaseModel

from trash_cleaner.cleaner import TrashCleaner, create_trash_cleaner
from trash_cleaner.client import get_client_factory
from trash_cleaner.errors import TrashCleanerError
from trash_cleaner.reporter import ConsoleProgressReporter
from trash_cleaner.settings import Settings, configure_logging
from trash_cleaner.store import FileSystemConfigStore


settings = Settings.from_env()
configure_logging(settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title="Trash Cleaner", description="Delete unread trash emails on a schedule")


class CleanRequest(BaseModel):
    dry_run: bool = False


def get_trash_cleaner() -> TrashCleaner:
    """Build a cleaner for the configured service from the config directory"""
    try:
        config_store = FileSystemConfigStore(settings.config_dir)
        client = get_client_factory(settings.service, config_store).create_client()
        reporter = ConsoleProgressReporter(cli_mode=False)
        return create_trash_cleaner(config_store, client, reporter)
    except TrashCleanerError as error:
        logger.error(f"Could not create trash cleaner: {error}")
        raise HTTPException(status_code=500, detail=str(error))


@app.get("/health")
def health_check():
    """Health check endpoint"""
    return {"status": "healthy"}


@app.post("/clean")
async def clean(request: Optional[CleanRequest] = None, cleaner: TrashCleaner = Depends(get_trash_cleaner)):
    """Run one cleanup"""
    dry_run = request.dry_run if request else False
    logger.info(f"Clean endpoint called (dry run: {dry_run})")

    try:
        result = await cleaner.clean_trash(dry_run=dry_run)
    except TrashCleanerError as error:
        logger.error(f"Cleanup failed: {error}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Cleanup failed: {error}")

    return {
        "status": "ok",
        "mode": "dry_run" if dry_run else "live",
        "result": result
    }

# To run this application, use:
# uvicorn trash_cleaner.api:app
