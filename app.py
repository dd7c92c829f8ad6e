# !!!
# TO RUN THE SERVER: uvicorn app:app --host 0.0.0.0 --port 8000
# !!!

from __future__ import annotations

import logging
import os
import tempfile
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, File, Form, HTTPException, Request, UploadFile
from fastapi.responses import JSONResponse
from wcwidth import wcswidth

from config_app import DB_PATH, LOG_LEVEL
from songprint import InvalidInputError, MatchResult, SongRecognizer
from songprint.errors import AudioDecodeError, StoreUnavailableError
from songprint.log import setup_logging

log = setup_logging(getattr(logging, LOG_LEVEL.upper(), logging.INFO))


def _center_display(s: str, target_cols: int) -> str:
    """Center using terminal display width (handles emoji/double-width chars)."""
    w = wcswidth(s)
    if w < 0:
        w = len(s)  # fallback

    if w >= target_cols:
        return s  # too wide, don't pad

    pad = target_cols - w
    left = pad // 2
    right = pad - left
    return (" " * left) + s + (" " * right)


def log_section(title: str):
    """Print a visually distinct section header."""
    width = 50
    border = "═" * width
    print(f"\n\033[1;34m╔{border}╗\033[0m")
    centered = _center_display(title, width - 2)
    print(f"\033[1;34m║\033[0m {centered} \033[1;34m║\033[0m")
    print(f"\033[1;34m╚{border}╝\033[0m\n")


def log_detail(key: str, value: str):
    """Print a key-value detail."""
    print(f"      \033[90m•\033[0m {key}: \033[1m{value}\033[0m")


def result_to_json(result: MatchResult) -> Dict[str, Any]:
    if not result.matched:
        return {"matched": False, "song_id": None, "title": "", "confidence": 0, "offset": 0,
                "offset_seconds": 0.0}
    return {
        "matched": True,
        "song_id": result.song_id,
        "title": result.song_name,
        "confidence": result.confidence,
        "offset": result.offset,
        "offset_seconds": round(result.offset_seconds, 3),
    }


# -----------------------------
# App Initialization
# -----------------------------

def create_app(recognizer: Optional[SongRecognizer] = None) -> FastAPI:
    """
    Build the API. Without a recognizer, one is opened on DB_PATH at startup
    and closed at shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = recognizer is None
        if owned:
            log_section("🎵 songprint API Server")
            log_detail("Database path", DB_PATH)
            app.state.recognizer = SongRecognizer(DB_PATH)
        else:
            app.state.recognizer = recognizer
        app.state.recognizer.load()
        log.info(f"Recognizer ready: {app.state.recognizer.num_indexed_songs} songs indexed")
        try:
            yield
        finally:
            if owned:
                app.state.recognizer.close()

    app = FastAPI(title="songprint API", version="1.0", lifespan=lifespan)

    @app.exception_handler(StoreUnavailableError)
    async def store_unavailable(request: Request, exc: StoreUnavailableError) -> JSONResponse:
        log.error(f"Fingerprint store unavailable: {exc}")
        return JSONResponse(status_code=503, content={"detail": "Fingerprint store unavailable, retry later."})

    @app.get("/health")
    def health() -> Dict[str, str]:
        log.debug("Health check requested")
        return {"status": "ok"}

    @app.get("/songs")
    def list_songs(request: Request) -> List[Dict[str, Any]]:
        songs = request.app.state.recognizer.list_songs()
        return [{"id": song_id, "name": name} for song_id, name in songs]

    @app.post("/songs", status_code=201)
    async def add_song(request: Request, name: str = Form(...), file: UploadFile = File(...)) -> Dict[str, Any]:
        log.info(f"🎼 New song upload: '{name}'")
        recognizer: SongRecognizer = request.app.state.recognizer
        with _uploaded(file) as tmp_path:
            song_id = recognizer.index_song(tmp_path, name=name)
        if song_id is None:
            raise HTTPException(status_code=409, detail=f"Song '{name}' is already indexed.")
        return {"id": song_id, "name": name}

    @app.post("/recognize")
    async def recognize(request: Request, file: UploadFile = File(...)) -> JSONResponse:
        log.info("🎧 New recognition request received")
        log_detail("Filename", file.filename or "unknown")
        recognizer: SongRecognizer = request.app.state.recognizer
        with _uploaded(file) as tmp_path:
            result = recognizer.recognize(tmp_path, debug=True)

        if result.matched:
            log.info(f"Match found: '{result.song_name}' (confidence: {result.confidence})")
        else:
            log.warning("No match found")
        return JSONResponse(result_to_json(result))

    return app


class _uploaded:
    """Spool an upload to a temp file (audio libs want a path); map decode errors to 400."""

    def __init__(self, file: UploadFile):
        self.file = file
        self.tmp_path: Optional[Path] = None

    def __enter__(self) -> Path:
        content = self.file.file.read()
        if not content:
            log.warning("Empty file upload rejected")
            raise HTTPException(status_code=400, detail="Empty upload.")
        suffix = Path(self.file.filename or "").suffix or ".wav"
        with tempfile.NamedTemporaryFile(delete=False, suffix=suffix) as tmp:
            tmp.write(content)
            self.tmp_path = Path(tmp.name)
        log_detail("File size", f"{len(content) / 1024:.1f} KB")
        return self.tmp_path

    def __exit__(self, exc_type, exc, tb):
        if self.tmp_path is not None and self.tmp_path.exists():
            os.remove(self.tmp_path)
            log.debug("Temporary file cleaned up")
        if isinstance(exc, (AudioDecodeError, InvalidInputError)):
            log.warning(f"Rejected upload: {exc}")
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return False


app = create_app()
