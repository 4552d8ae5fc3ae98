"""
Refresh API Router
==================
Re-runs the dataset pipeline in the background:
1. Processing: scraped comparison files -> deduplicated profile files
2. Images (optional): download remote images, rewrite URLs to local paths

Blocking file and network work runs in threads via asyncio.to_thread()
so /status stays responsive.
"""
import asyncio
import logging
from typing import Dict, Any
from fastapi import APIRouter, BackgroundTasks
from pydantic import BaseModel

from processor.config import PROFILE_TYPES, OUTPUT_FILES
from processor.processor import run_processing
from processor.images import localize_images
from db import clear_cache

logger = logging.getLogger("refresh_router")

router = APIRouter(prefix="/api/refresh", tags=["refresh"])


# --- Status Models ---
class RefreshStatus(BaseModel):
    status: str  # idle, running, completed, error
    message: str

    # Phase 1: Processing
    processing_progress: float = 0.0
    processing_complete: bool = False
    processing_message: str = ""

    # Phase 2: Images
    images_progress: float = 0.0
    images_complete: bool = False
    images_message: str = ""

    # Stats
    profiles: Dict[str, int] = {}
    duplicates: int = 0
    skipped_records: int = 0
    images_downloaded: int = 0
    images_failed: int = 0


class RefreshResponse(BaseModel):
    started: bool
    message: str


def _initial_state() -> Dict[str, Any]:
    return {
        "running": False,
        "status": "idle",
        "message": "",
        # Processing phase
        "processing_progress": 0.0,
        "processing_complete": False,
        "processing_message": "",
        # Images phase
        "images_progress": 0.0,
        "images_complete": False,
        "images_message": "",
        # Stats
        "profiles": {},
        "duplicates": 0,
        "skipped_records": 0,
        "images_downloaded": 0,
        "images_failed": 0,
    }


# Global State (single worker mode assumed)
_state: Dict[str, Any] = _initial_state()


# --- Main Pipeline ---

async def run_refresh_pipeline(with_images: bool):
    """Process every profile type, then optionally localize images."""
    global _state

    _state.update(_initial_state())
    _state.update({"running": True, "status": "running", "message": "Initializing..."})

    try:
        # =================================================
        # PHASE 1: PROCESSING
        # =================================================
        total = len(PROFILE_TYPES)
        for i, profile_type in enumerate(PROFILE_TYPES):
            _state["processing_message"] = f"Processing {profile_type} comparisons..."

            stats = await asyncio.to_thread(run_processing, profile_types=[profile_type])
            type_stats = stats[profile_type]

            _state["profiles"][profile_type] = type_stats["profiles"]
            _state["duplicates"] += type_stats["duplicates"]
            _state["skipped_records"] += type_stats["skipped_records"]
            _state["processing_progress"] = ((i + 1) / total) * 100

        clear_cache()
        _state["processing_complete"] = True
        _state["processing_message"] = f"Processed {sum(_state['profiles'].values())} profiles"
        logger.info(_state["processing_message"])

        # =================================================
        # PHASE 2: IMAGES (Threaded)
        # =================================================
        if with_images:
            _state["images_message"] = "Downloading images..."
            files = [OUTPUT_FILES[t] for t in PROFILE_TYPES]
            image_stats = await asyncio.to_thread(localize_images, files=files)

            clear_cache()
            _state["images_downloaded"] = image_stats["downloaded"]
            _state["images_failed"] = image_stats["failed"]
            _state["images_message"] = (
                f"{image_stats['downloaded']} downloaded, "
                f"{image_stats['skipped']} already present, {image_stats['failed']} failed"
            )
        else:
            _state["images_message"] = "Skipped"

        _state["images_progress"] = 100.0
        _state["images_complete"] = True

        _state["status"] = "completed"
        _state["message"] = f"Done! {_state['processing_message']}. Images: {_state['images_message']}"
        logger.info("Refresh pipeline completed successfully")

    except Exception as e:
        logger.exception(f"Pipeline crashed: {e}")
        _state["status"] = "error"
        _state["message"] = f"Error: {str(e)}"
    finally:
        _state["running"] = False


# --- Endpoints ---

@router.post("/start", response_model=RefreshResponse)
async def start_refresh(background_tasks: BackgroundTasks, images: bool = False):
    """Start the refresh pipeline."""
    if _state["running"]:
        return RefreshResponse(started=False, message="Pipeline already running")

    background_tasks.add_task(run_refresh_pipeline, images)
    return RefreshResponse(started=True, message=f"Pipeline started (images: {images})")


@router.get("/status", response_model=RefreshStatus)
async def get_status():
    """Get current refresh status."""
    return RefreshStatus(**{k: v for k, v in _state.items() if k != "running"})
