"""
API Server for the Gemini Visual Novel player.

This FastAPI server provides:
1. Player actions (start, advance, jump, reset) and a JSON state view
2. Backlog and raw concept editing
3. Save / load of whole sessions as zip files
4. Static serving of generated images, music and voice clips

Run with: uvicorn ui.api_server:app --reload --port 8000
"""

import asyncio
import logging
import os
import time
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, HTTPException, UploadFile, File, Form
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel, ValidationError

# Add parent directory to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from config import (
    GOOGLE_API_KEY,
    TEXT_MODEL_FLASH,
    OUTPUT_DIR,
    ASSET_URL_PREFIX,
    SUGGESTION_PROMPTS,
    LOG_LEVEL,
)
from errors import LoadError, SaveError, StateError
from models.character import UserCharacter
from models.concept import StoryConcept
from models.schemas import ConceptDocument
from player import GameState, PlaybackStateMachine, SessionArchiver, archive_filename
from skills.asset_store import AssetStore
from skills.gateway import ContentGateway

# =============================================================================
# Setup Logging - File + Console
# =============================================================================

LOGS_DIR = Path(__file__).parent.parent / "logs"
LOGS_DIR.mkdir(exist_ok=True)

_session_start = time.strftime("%Y%m%d_%H%M%S")
_log_file = LOGS_DIR / f"server_{_session_start}.log"

# force=True overrides the handlers uvicorn installs
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[
        logging.FileHandler(_log_file, mode='a'),
        logging.StreamHandler()
    ],
    force=True
)
logger = logging.getLogger("api_server")
logger.info(f"Server session started. Log file: {_log_file}")

app = FastAPI(
    title="Gemini Visual Novel API",
    description="Story, scenes, music and voices generated on demand by Gemini",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# =============================================================================
# Player Instance
# =============================================================================
# One player per server process. Built lazily so importing this module
# doesn't need an API key.

_player: Optional[PlaybackStateMachine] = None
_archiver: Optional[SessionArchiver] = None
_background_tasks: set[asyncio.Task] = set()


def init_player(gateway=None, store: AssetStore = None) -> PlaybackStateMachine:
    """(Re)build the player, optionally around a custom gateway and store."""
    global _player, _archiver
    store = store or AssetStore(OUTPUT_DIR, ASSET_URL_PREFIX)
    gateway = gateway or ContentGateway(store)
    _player = PlaybackStateMachine(gateway)
    _archiver = SessionArchiver(store)
    return _player


def get_player() -> PlaybackStateMachine:
    if _player is None:
        init_player()
    return _player


def get_archiver() -> SessionArchiver:
    if _archiver is None:
        init_player()
    return _archiver


# =============================================================================
# Request/Response Models
# =============================================================================

class CharacterInput(BaseModel):
    """A user-authored character for story start."""
    name: str
    description: str = ""
    image_data_url: Optional[str] = None


class StartRequest(BaseModel):
    """Request to start a new story."""
    prompt: str
    characters: list[CharacterInput] = []
    background: bool = False  # return immediately and poll /api/state


class JumpRequest(BaseModel):
    """Request to move the cursor."""
    scene_index: int
    line_index: int = 0


# =============================================================================
# API Endpoints
# =============================================================================

@app.get("/health")
async def health():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "model": TEXT_MODEL_FLASH,
        "api_key_configured": bool(GOOGLE_API_KEY),
    }


@app.get("/api/suggestions")
async def suggestions():
    """Story prompt ideas for the title screen."""
    return {"suggestions": SUGGESTION_PROMPTS}


@app.get("/api/state")
async def get_state():
    return get_player().snapshot()


@app.post("/api/start")
async def start_story(request: StartRequest):
    """
    Start a new story.

    By default this waits for the concept and first scene. With
    background=true it returns at once and progress shows up in /api/state.
    """
    player = get_player()
    if not request.prompt.strip():
        raise HTTPException(status_code=400, detail="Prompt cannot be empty")
    if player.state.status != GameState.INITIAL:
        raise HTTPException(
            status_code=409,
            detail=f"Cannot start a story while {player.state.status.value}",
        )

    try:
        characters = [
            UserCharacter(name=c.name, description=c.description, image_data_url=c.image_data_url)
            for c in request.characters
        ]
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if request.background:
        task = asyncio.create_task(player.start(request.prompt, characters))
        _background_tasks.add(task)
        task.add_done_callback(_background_tasks.discard)
        await asyncio.sleep(0)
        return player.snapshot()

    await player.start(request.prompt, characters)
    return player.snapshot()


@app.post("/api/advance")
async def advance():
    player = get_player()
    try:
        player.advance_line()
    except StateError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return player.snapshot()


@app.post("/api/jump")
async def jump(request: JumpRequest):
    player = get_player()
    try:
        player.jump_to(request.scene_index, request.line_index)
    except StateError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return player.snapshot()


@app.get("/api/backlog")
async def backlog():
    """Every line read so far. Each entry's indices can be passed to /api/jump."""
    return {"entries": [entry.to_dict() for entry in get_player().backlog()]}


@app.get("/api/concept")
async def get_concept():
    concept = get_player().state.concept
    if concept is None:
        raise HTTPException(status_code=404, detail="No story concept yet")
    return concept.to_dict()


@app.put("/api/concept")
async def put_concept(document: dict):
    """Replace the concept with an edited raw concept document."""
    player = get_player()
    try:
        validated = ConceptDocument.model_validate(document)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=f"Invalid concept: {e.errors()[0]['msg']}")

    try:
        player.update_concept(StoryConcept.from_dict(validated.model_dump()))
    except StateError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return player.state.concept.to_dict()


@app.post("/api/save")
async def save_session():
    """Download the current session as a zip."""
    player = get_player()
    try:
        session = player.session()
    except StateError as e:
        raise HTTPException(status_code=409, detail=str(e))

    try:
        data = await get_archiver().save(session)
    except SaveError as e:
        logger.error(f"Save failed: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    filename = archive_filename(session.concept)
    return Response(
        content=data,
        media_type="application/zip",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@app.post("/api/load")
async def load_session(
    file: UploadFile = File(...),
    start_from: str = Form(default="start"),
):
    """Load a saved zip and resume from its start or end."""
    if start_from not in ("start", "end"):
        raise HTTPException(status_code=400, detail=f"start_from must be 'start' or 'end', got {start_from}")

    content = await file.read()
    player = get_player()
    try:
        session = await get_archiver().load(content)
        player.load_session(session, start_from=start_from)
    except LoadError as e:
        logger.error(f"Load failed: {e}")
        raise HTTPException(status_code=400, detail=str(e))

    logger.info(f"Loaded {file.filename} ({len(content)} bytes)")
    return player.snapshot()


@app.post("/api/reset")
async def reset():
    """Back to the title screen (also acknowledges an error)."""
    player = get_player()
    player.reset()
    return player.snapshot()


# =============================================================================
# Static Files
# =============================================================================

# Generated media, addressed by the references the AssetStore hands out
app.mount(ASSET_URL_PREFIX, StaticFiles(directory=str(OUTPUT_DIR)), name="outputs")


# =============================================================================
# Main
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    print("\n" + "=" * 60)
    print("Gemini Visual Novel API Server")
    print("=" * 60)
    print(f"Model: {TEXT_MODEL_FLASH}")
    print(f"API Docs: http://localhost:8000/docs")
    print("=" * 60 + "\n")

    is_production = os.getenv("VISUAL_NOVEL_ENV") == "production"
    uvicorn.run(
        "ui.api_server:app",
        host="0.0.0.0",
        port=8000,
        reload=not is_production,
    )
