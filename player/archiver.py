"""
Session Archiver - save a whole play session to one zip and load it back.

Archive layout:
    session.json                               manifest (concept + scene history)
    assets/scene_{i}_image.{ext}               scene background
    assets/scene_{i}_music.wav                 scene music
    assets/scene_{i}_line_{l}_voice.wav        voice clip for line l of scene i

In the manifest every asset reference is rewritten to its archive path.
Loading writes each blob back into the AssetStore, so references after a
load are fresh but resolve to the same bytes.
"""

import asyncio
import io
import json
import logging
import re
import zipfile
from pathlib import PurePosixPath

from PIL import Image, UnidentifiedImageError
from pydantic import ValidationError

from config import ARCHIVE_FETCH_TIMEOUT_SECONDS
from errors import LoadError, SaveError
from models.concept import StoryConcept
from models.scene import Scene
from models.schemas import MANIFEST_VERSION, SceneRecord, SessionManifest
from models.session import Session
from skills.asset_store import AssetStore

logger = logging.getLogger(__name__)

MANIFEST_NAME = "session.json"


def image_extension(data: bytes) -> str:
    """File extension for image bytes, detected by Pillow (png if unknown)."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            image_format = img.format
    except (UnidentifiedImageError, OSError):
        return "png"
    if not image_format:
        return "png"
    return "jpg" if image_format == "JPEG" else image_format.lower()


def archive_filename(concept: StoryConcept) -> str:
    """Download name for a save: title lowercased, non-alphanumerics as '_'."""
    return re.sub(r"[^a-z0-9]", "_", concept.title.lower()) + "_save.zip"


def _format_validation_error(error: ValidationError) -> str:
    first = error.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    return f"{location}: {first.get('msg')}" if location else str(first.get("msg"))


class SessionArchiver:
    """
    Zip round trip for sessions.

    Scenes are processed in order. Each asset read is bounded by
    fetch_timeout so a stalled read fails the save instead of hanging it.
    """

    def __init__(self, store: AssetStore, fetch_timeout: float = ARCHIVE_FETCH_TIMEOUT_SECONDS):
        self.store = store
        self.fetch_timeout = fetch_timeout

    async def _fetch(self, url: str, label: str) -> bytes:
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(self.store.read, url),
                timeout=self.fetch_timeout,
            )
        except asyncio.TimeoutError as e:
            raise SaveError(f"Timed out fetching {label} after {self.fetch_timeout:g}s") from e
        except OSError as e:
            raise SaveError(f"Could not fetch {label}: {e}") from e

    # =========================================================================
    # Save
    # =========================================================================

    async def save(self, session: Session) -> bytes:
        """
        Package a session as zip bytes.

        Raises:
            SaveError: if any asset cannot be read or the archive cannot be written
        """
        logger.info(f"[Archiver] Saving '{session.concept.title}' ({len(session.history)} scenes)")
        buffer = io.BytesIO()
        records = []

        try:
            with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as archive:
                for i, scene in enumerate(session.history):
                    image = await self._fetch(scene.image_url, f"image for scene {i}")
                    image_path = f"assets/scene_{i}_image.{image_extension(image)}"
                    archive.writestr(image_path, image)

                    music = await self._fetch(scene.music_url, f"music for scene {i}")
                    music_path = f"assets/scene_{i}_music.wav"
                    archive.writestr(music_path, music)

                    voice_paths = {}
                    for line_index, url in sorted(scene.voice_urls.items()):
                        voice = await self._fetch(url, f"voice for scene {i} line {line_index}")
                        voice_path = f"assets/scene_{i}_line_{line_index}_voice.wav"
                        archive.writestr(voice_path, voice)
                        voice_paths[line_index] = voice_path

                    records.append(Scene(
                        description=scene.description,
                        text=scene.text,
                        image_url=image_path,
                        music_url=music_path,
                        voice_urls=voice_paths,
                    ))

                # Same document as the session itself, with archive paths
                manifest = {
                    "version": MANIFEST_VERSION,
                    **Session(concept=session.concept, history=records).to_dict(),
                }
                archive.writestr(MANIFEST_NAME, json.dumps(manifest, indent=2))
        except SaveError as e:
            logger.error(f"[Archiver] Save failed: {e}")
            raise
        except (OSError, zipfile.BadZipFile) as e:
            logger.error(f"[Archiver] Save failed: {e}")
            raise SaveError(f"Failed to write save file: {e}") from e

        data = buffer.getvalue()
        logger.info(f"[Archiver] Saved {len(data) / 1024:.1f} KB")
        return data

    # =========================================================================
    # Load
    # =========================================================================

    async def load(self, data: bytes) -> Session:
        """
        Rebuild a session from zip bytes.

        Nothing is written to the store until the whole archive checks out.

        Raises:
            LoadError: bad zip, missing or invalid manifest, or missing blob
        """
        try:
            archive = zipfile.ZipFile(io.BytesIO(data))
        except zipfile.BadZipFile as e:
            raise LoadError("Save file is not a valid zip archive.") from e

        with archive:
            try:
                raw_manifest = archive.read(MANIFEST_NAME)
            except KeyError as e:
                raise LoadError(f"Save file is invalid: {MANIFEST_NAME} not found.") from e

            try:
                manifest = SessionManifest.model_validate_json(raw_manifest)
            except ValidationError as e:
                raise LoadError(f"Save file is invalid: {_format_validation_error(e)}") from e

            names = set(archive.namelist())
            for i, record in enumerate(manifest.sceneHistory):
                paths = [record.imageUrl, record.musicUrl, *record.voiceUrls.values()]
                for path in paths:
                    if path not in names:
                        raise LoadError(f"Save file is invalid: scene {i} references missing file {path}.")

            try:
                history = [await self._restore_scene(archive, record) for record in manifest.sceneHistory]
            except zipfile.BadZipFile as e:
                raise LoadError(f"Save file is corrupted: {e}") from e

        concept = StoryConcept.from_dict(manifest.concept.model_dump())
        logger.info(f"[Archiver] Loaded '{concept.title}' ({len(history)} scenes)")
        return Session(concept=concept, history=history)

    async def _restore_scene(self, archive: zipfile.ZipFile, record: SceneRecord) -> Scene:
        """Copy one scene's blobs into the store and rebuild the Scene."""
        image_suffix = PurePosixPath(record.imageUrl).suffix or ".png"
        image_url = await asyncio.to_thread(
            self.store.put, archive.read(record.imageUrl), "images", image_suffix
        )
        music_url = await asyncio.to_thread(
            self.store.put, archive.read(record.musicUrl), "music", ".wav"
        )
        voice_urls = {}
        for line_index, path in sorted(record.voiceUrls.items()):
            voice_urls[line_index] = await asyncio.to_thread(
                self.store.put, archive.read(path), "voices", ".wav"
            )
        return Scene(
            description=record.description,
            text=record.text,
            image_url=image_url,
            music_url=music_url,
            voice_urls=voice_urls,
        )
