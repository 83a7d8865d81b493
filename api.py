"""
HTTP surface for the action item extractor.

Routes validate input first, then delegate to the extraction pipeline and the
persistence gateway. Process-lifetime handles (session factory, extractor)
are built once in create_app and read from app.state by each request.
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, FastAPI, File, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from openai import OpenAI
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

import crud
import validators
from config import Settings, load_settings
from database import create_db_engine, create_session_factory, init_db
from errors import InvalidIdentifier, NotFound, ValidationFailed
from extraction import ActionItemExtractor
from health import check_health
from models import ActionItemOut, TranscriptOut

logger = logging.getLogger(__name__)

router = APIRouter()


def get_db(request: Request):
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


def get_extractor(request: Request) -> ActionItemExtractor:
    return request.app.state.extractor


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def _server_error(message: str) -> JSONResponse:
    return JSONResponse(status_code=500, content={"error": message})


def _serialize_items(items) -> List[Dict[str, Any]]:
    return [ActionItemOut.model_validate(item).model_dump(mode="json", by_alias=True) for item in items]


def _process(db: Session, extractor: ActionItemExtractor, transcript: str):
    try:
        items = extractor.extract(transcript)
        created = crud.create_transcript_with_items(db, transcript, items)
    except Exception:
        logger.exception("Error while processing the transcript")
        return _server_error("An error occurred while parsing the transcript")
    return {
        "message": "Transcript processed successfully",
        "transcript_id": created.id,
        "data": _serialize_items(created.action_items),
    }


@router.post("/processTranscript")
def process_transcript(
    payload: Any = Body(None),
    db: Session = Depends(get_db),
    extractor: ActionItemExtractor = Depends(get_extractor),
):
    body = validators.validate_transcript_request(payload)
    return _process(db, extractor, body.transcript)


@router.post("/processTranscriptFile")
def process_transcript_file(
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    extractor: ActionItemExtractor = Depends(get_extractor),
):
    try:
        text = file.file.read().decode("utf-8")
    except UnicodeDecodeError as e:
        raise ValidationFailed(details=[{"field": "file", "message": f"File error: {e}"}]) from e
    body = validators.validate_transcript_request({"transcript": text})
    return _process(db, extractor, body.transcript)


@router.get("/history")
def get_history(db: Session = Depends(get_db), settings: Settings = Depends(get_settings)):
    try:
        history = crud.list_recent_transcripts(db, limit=settings.HISTORY_LIMIT)
    except Exception:
        logger.exception("Error while accessing history")
        return _server_error("An error occurred while accessing the history")
    return {"data": [entry.model_dump(mode="json") for entry in history]}


@router.get("/transcript/{transcript_id}")
def get_transcript_items(transcript_id: str, db: Session = Depends(get_db)):
    parsed_id = validators.parse_identifier(transcript_id)
    try:
        items = crud.list_items_for_transcript(db, parsed_id)
    except Exception:
        logger.exception("Error while accessing items for transcript %s", parsed_id)
        return _server_error("An error occurred while accessing the transcript items")
    return {"data": _serialize_items(items)}


@router.get("/transcripts/{transcript_id}")
def get_transcript(transcript_id: str, db: Session = Depends(get_db)):
    parsed_id = validators.parse_identifier(transcript_id)
    try:
        transcript = crud.get_transcript(db, parsed_id)
        data = TranscriptOut.model_validate(transcript).model_dump(mode="json", by_alias=True)
    except NotFound:
        raise
    except Exception:
        logger.exception("Error while accessing transcript %s", parsed_id)
        return _server_error("An error occurred while accessing the transcript")
    return {"data": data}


@router.delete("/transcripts/{transcript_id}")
def delete_transcript(transcript_id: str, db: Session = Depends(get_db)):
    parsed_id = validators.parse_identifier(transcript_id)
    try:
        deleted_id = crud.delete_transcript(db, parsed_id)
    except NotFound:
        raise
    except Exception:
        logger.exception("Error while deleting transcript %s", parsed_id)
        return _server_error("An error occurred while deleting the transcript")
    return {"deleted_id": deleted_id}


@router.patch("/action-items/{item_id}")
def update_action_item(item_id: str, payload: Any = Body(None), db: Session = Depends(get_db)):
    parsed_id = validators.parse_identifier(item_id)
    changes = validators.validate_action_item_update(payload)
    try:
        item = crud.update_action_item(db, parsed_id, changes)
    except NotFound:
        raise
    except Exception:
        logger.exception("Error while updating action item %s", parsed_id)
        return _server_error("An error occurred while updating the item")
    return {"data": ActionItemOut.model_validate(item).model_dump(mode="json", by_alias=True)}


@router.delete("/action-items/{item_id}")
def delete_action_item(item_id: str, db: Session = Depends(get_db)):
    parsed_id = validators.parse_identifier(item_id)
    try:
        deleted_id = crud.delete_action_item(db, parsed_id)
    except NotFound:
        raise
    except Exception:
        logger.exception("Error while deleting action item %s", parsed_id)
        return _server_error("An error occurred while deleting the item")
    return {"deleted_id": deleted_id}


@router.get("/health")
def health(request: Request):
    report, healthy = check_health(request.app.state.session_factory, request.app.state.extractor)
    return JSONResponse(status_code=200 if healthy else 503, content=report.model_dump())


async def _validation_failed_handler(request: Request, exc: ValidationFailed) -> JSONResponse:
    body: Dict[str, Any] = {"error": exc.message}
    if exc.details and not isinstance(exc, InvalidIdentifier):
        body["details"] = exc.details
    return JSONResponse(status_code=400, content=body)


async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = [
        {"field": ".".join(str(part) for part in error.get("loc", ())), "message": error.get("msg", "")}
        for error in exc.errors()
    ]
    return JSONResponse(status_code=400, content={"error": "Validation failed", "details": details})


async def _not_found_handler(request: Request, exc: NotFound) -> JSONResponse:
    logger.info("%s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=404, content={"error": str(exc)})


def build_llm_client(settings: Settings) -> OpenAI:
    if not settings.OPENAI_API_KEY:
        raise RuntimeError("OPENAI_API_KEY not set. Please configure it in the environment or .env file.")
    return OpenAI(api_key=settings.OPENAI_API_KEY, base_url=settings.OPENAI_BASE_URL or None)


def create_app(
    settings: Optional[Settings] = None,
    llm_client=None,
    engine: Optional[Engine] = None,
) -> FastAPI:
    settings = settings or load_settings()
    if llm_client is None:
        llm_client = build_llm_client(settings)
    if engine is None:
        engine = create_db_engine(settings.DATABASE_URL)
    init_db(engine)

    app = FastAPI(title="Action Item Extractor")
    app.state.settings = settings
    app.state.session_factory = create_session_factory(engine)
    app.state.extractor = ActionItemExtractor(
        llm_client,
        model=settings.EXTRACTION_MODEL,
        health_model=settings.HEALTH_MODEL,
        temperature=settings.LLM_TEMPERATURE,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(ValidationFailed, _validation_failed_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(NotFound, _not_found_handler)

    @app.get("/")
    def home():
        return {"message": "Action Item Extractor is running"}

    app.include_router(router, prefix=settings.API_PREFIX)
    return app
