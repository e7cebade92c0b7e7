import logging
from contextlib import asynccontextmanager
from typing import Any, Dict

import uvicorn
from fastapi import FastAPI, File, HTTPException, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from recyclescan import config
from recyclescan.ai.models import ScanAnalyzer, make_client
from recyclescan.errors import (
    ImageTooLargeError,
    MediaTypeMismatchError,
    UnsupportedMediaTypeError,
)
from recyclescan.scan.state_machine import ScanSession, can_analyze, can_select
from recyclescan.scan.states import ScanPhase, ScanState

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    client = make_client()
    if not config.GEMINI_API_KEY:
        logger.warning("GEMINI_API_KEY is not set, analysis requests will fail")
    app.state.session = ScanSession(ScanAnalyzer(client))
    try:
        yield
    finally:
        await client.aclose()


app = FastAPI(title="RecycleScan API", lifespan=lifespan)

# --- CORS ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,  # "null" allows opening an html file directly
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def state_to_dict(state: ScanState) -> Dict[str, Any]:
    """What the page needs to render the current scan."""
    return {
        "phase": state.phase.value,
        "can_analyze": can_analyze(state),
        "can_select": can_select(state),
        "preview": state.preview.data_url if state.preview else None,
        "verdict": (
            {
                "is_recyclable": state.verdict.is_recyclable,
                "explanation": state.verdict.explanation,
            }
            if state.verdict
            else None
        ),
        "error": state.error,
    }


def _session(request: Request) -> ScanSession:
    return request.app.state.session


@app.get("/scan")
def get_scan(request: Request):
    return state_to_dict(_session(request).state)


@app.post("/scan/image")
async def select_image(request: Request, file: UploadFile = File(...)):
    """Picks (or replaces) the photo to scan."""
    session = _session(request)
    if not can_select(session.state):
        raise HTTPException(status_code=409, detail="An analysis is running. Reset it first.")

    data = await file.read()
    try:
        state = await session.select_image(data, file.content_type or "")
    except UnsupportedMediaTypeError as e:
        raise HTTPException(status_code=415, detail=str(e))
    except ImageTooLargeError as e:
        raise HTTPException(status_code=413, detail=str(e))
    except MediaTypeMismatchError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return state_to_dict(state)


@app.post("/scan/analyze")
async def analyze(request: Request):
    """Starts the analysis in the background. Poll GET /scan for the result."""
    session = _session(request)
    if session.start_analysis() is None:
        if session.state.phase is ScanPhase.ANALYZING:
            detail = "An analysis is already running."
        else:
            detail = "Select an image first."
        raise HTTPException(status_code=409, detail=detail)
    return JSONResponse(status_code=202, content=state_to_dict(session.state))


@app.post("/scan/reset")
def reset(request: Request):
    return state_to_dict(_session(request).reset())


@app.get("/health")
def health_check():
    return {"status": "running"}


if __name__ == "__main__":
    uvicorn.run("recyclescan.app:app", host="0.0.0.0", port=8000, reload=True)
