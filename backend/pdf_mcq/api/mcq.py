"""
MCQ API: upload a PDF and get questions for its first chunk; then request the next chunk's batch.
Errors are MCQServiceError subclasses; the app-level handler renders them as {error, details}.
"""
import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, File, Form, UploadFile
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool

from pdf_mcq.api.deps import get_question_generator, get_session_store
from pdf_mcq.config import settings
from pdf_mcq.errors import ExtractionFailure, InvalidInput
from pdf_mcq.schemas.mcq import (
    ErrorResponse,
    GenerationMetadata,
    GenerationOptions,
    GenerationResponse,
    MCQQuestion,
    NextBatchRequest,
)
from pdf_mcq.services.chunking import chunk_text
from pdf_mcq.services.mcq_generation_service import QuestionGenerator
from pdf_mcq.services.pdf_extract import extract_text_from_pdf
from pdf_mcq.services.session_store import SessionStatus, SessionStore

router = APIRouter(tags=["mcq"])
logger = logging.getLogger(__name__)

_ERROR_RESPONSES = {400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}}


def _validation_details(e: ValidationError) -> list[dict]:
    return [{"loc": list(err.get("loc", ())), "msg": err.get("msg", "")} for err in e.errors()]


def parse_options(raw: str) -> GenerationOptions:
    """Options arrive as a JSON string in the multipart form."""
    try:
        return GenerationOptions.model_validate_json(raw)
    except ValidationError as e:
        raise InvalidInput("Invalid options", details=_validation_details(e)) from e


def _to_response(
    questions: list[MCQQuestion],
    options: GenerationOptions,
    session_id: str,
    status: SessionStatus,
) -> GenerationResponse:
    return GenerationResponse(
        questions=questions,
        metadata=GenerationMetadata(
            total_questions=len(questions),
            difficulty=options.difficulty,
            generated_at=datetime.now(timezone.utc),
            has_more_chunks=status.has_more,
            current_chunk=status.current_chunk,
            total_chunks=status.total_chunks,
            session_id=session_id,
        ),
    )


@router.post("/generate-mcq", response_model=GenerationResponse, responses=_ERROR_RESPONSES)
async def start_generation(
    file: UploadFile | None = File(None),
    options: str | None = Form(None),
    store: SessionStore = Depends(get_session_store),
    generator: QuestionGenerator = Depends(get_question_generator),
):
    """Extract and chunk the PDF, start a new session, return questions for chunk 1."""
    logger.info(
        "Received request: file=%s options=%s",
        file.filename if file else "No file", options,
    )
    if file is None or not (options or "").strip():
        raise InvalidInput("Missing required fields: file or options")
    opts = parse_options(options)

    contents = await file.read()
    text = await run_in_threadpool(extract_text_from_pdf, contents)
    chunks = chunk_text(text, max_length=settings.chunk_max_length)
    if not chunks:
        raise ExtractionFailure(
            "Failed to extract text from PDF",
            details="No extractable text (image-only or empty PDF)",
        )

    session_id, session = store.create(chunks)
    async with session.lock:
        questions = await generator.generate(session.current_chunk(), opts)
        status = session.status()
    return _to_response(questions, opts, session_id, status)


@router.post("/generate-next-batch", response_model=GenerationResponse, responses=_ERROR_RESPONSES)
async def next_batch(
    data: NextBatchRequest,
    store: SessionStore = Depends(get_session_store),
    generator: QuestionGenerator = Depends(get_question_generator),
):
    """Advance the session to its next chunk and return that chunk's questions."""
    if data.options is None:
        raise InvalidInput("Missing options")
    session_id = store.resolve_id(data.session_id)
    session = store.get(session_id)
    async with session.lock:
        chunk = session.advance()
        status = session.status()
        logger.info("Session %s: chunk %s of %s", session_id, status.current_chunk, status.total_chunks)
        questions = await generator.generate(chunk, data.options)
    return _to_response(questions, data.options, session_id, status)
