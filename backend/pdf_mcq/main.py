"""
FastAPI application entrypoint.
Run with: uvicorn pdf_mcq.main:app --reload --port 8080 (from backend/), or: pdf-mcq-server

Routes are mounted at root:
  - GET  /                     liveness probe
  - POST /generate-mcq         multipart file + options (JSON string) -> questions for chunk 1
  - POST /generate-next-batch  {options, sessionId?} -> questions for the next chunk

Error bodies are {"error": ..., "details": ...}; request validation errors are 400, not 422.
"""
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from pdf_mcq import __version__
from pdf_mcq.api.mcq import router as mcq_router
from pdf_mcq.config import settings
from pdf_mcq.errors import MCQServiceError
from pdf_mcq.schemas.mcq import HealthResponse

logger = logging.getLogger("pdf_mcq.main")

app = FastAPI(
    title="PDF MCQ Generator API",
    description="Upload a PDF, get multiple-choice questions one chunk at a time.",
    version=__version__,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list or ["http://localhost:5173"],
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Accept", "Authorization"],
)

app.include_router(mcq_router)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    response = await call_next(request)
    logger.info("%s %s -> %s", request.method, request.url.path, response.status_code)
    return response


@app.exception_handler(MCQServiceError)
async def service_error_handler(request: Request, exc: MCQServiceError):
    if exc.status_code >= 500:
        logger.error("%s on %s: %s (%s)", type(exc).__name__, request.url.path, exc.message, exc.details)
    else:
        logger.warning("%s on %s: %s", type(exc).__name__, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.message, "details": exc.details},
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    details = [{"loc": list(e.get("loc", ())), "msg": e.get("msg", "")} for e in exc.errors()]
    logger.warning("Invalid request on %s: %s", request.url.path, details)
    return JSONResponse(status_code=400, content={"error": "Invalid request", "details": details})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s: %s", request.url.path, exc)
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "details": type(exc).__name__},
    )


@app.on_event("startup")
def startup():
    """Configure logging and report whether the real model or the mock is in use."""
    logging.basicConfig(level=settings.log_level, format="%(levelname)s %(name)s: %(message)s")
    if (settings.openai_api_key or "").strip():
        logger.info("OpenAI: API key loaded. Model %s will be used for MCQ generation.", settings.openai_model)
    else:
        logger.warning("OpenAI: No API key. Set OPENAI_API_KEY in backend/.env for real generation (using mock).")
    logger.info(
        "Environment: %s; CORS origins: %s; chunk size %s chars",
        settings.env, ", ".join(settings.cors_origin_list), settings.chunk_max_length,
    )


@app.get("/", response_model=HealthResponse)
def root():
    """Liveness probe."""
    return {"status": "ok", "message": "Server is running"}


def run() -> None:
    """Console entry point: serve on HOST:PORT from config."""
    import uvicorn

    logger.info("Starting server with PORT=%s", settings.port)
    uvicorn.run("pdf_mcq.main:app", host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    run()
