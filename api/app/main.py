# api/app/main.py
import os

import uvicorn
from dotenv import load_dotenv
from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from handwriting_utils import schemas, utils
from .imaging import clean_image
from .model_client import TextModel, get_model_name, get_text_model
from .prompts import ALLOWED_MODES, language_prompt, normalize_language, transform_prompt
from .uploads import pick_upload, read_upload, temporary_upload

load_dotenv()

logger = utils.setup_logging()
app = FastAPI(title="Handwriting Reader API", version="0.1.0")


def cors_origins() -> list:
    raw = utils.get_env("CORS_ORIGINS", "*")
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


# Let the Streamlit front end call the API from another origin
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def error_response(status_code: int, message: str, headers=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=schemas.ErrorResponse(error=message).model_dump(),
        headers=headers,
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    # Keeps headers such as `Allow: POST` on 405 responses
    return error_response(exc.status_code, str(exc.detail), getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return error_response(400, "Request body must be a JSON object with 'text' and 'mode'")


@app.post("/api/extract", response_model=schemas.TextResponse)
async def extract_endpoint(request: Request, model: TextModel = Depends(get_text_model)):
    """
    1) Parse the multipart form and pick the uploaded image
    2) Spool it to a temporary file (always removed afterwards)
    3) Grayscale + normalize + PNG
    4) Send the PNG and the language prompt to the model
    5) Return {"text": ...}
    """
    try:
        async with request.form() as form:
            upload = pick_upload(form)
            if upload is None:
                raise HTTPException(status_code=400, detail="No image file uploaded")

            raw = await read_upload(upload)
            filename = upload.filename or "upload"
            content_type = upload.content_type or "application/octet-stream"
            language = normalize_language(form.get("language"))

        logger.info(
            f"Processing file: {filename}, size: {len(raw)} bytes, "
            f"hash: {utils.compute_file_hash(raw)}, type: {content_type}, language: {language}"
        )

        suffix = os.path.splitext(filename)[1].lower()
        with temporary_upload(raw, suffix=suffix) as path:
            cleaned = clean_image(path.read_bytes())
            text = await model.generate(language_prompt(language), cleaned)
    except HTTPException:
        raise
    except Exception as e:
        logger.error("/api/extract error: %s", e)
        return error_response(500, str(e) or "Unexpected error")

    return schemas.TextResponse(text=text)


@app.post("/api/summarize", response_model=schemas.TextResponse)
async def summarize_endpoint(
    payload: schemas.TransformRequest,
    model: TextModel = Depends(get_text_model),
):
    """Summarize or rewrite an already transcribed text."""
    text, mode = payload.text, payload.mode

    if not isinstance(text, str) or not text.strip():
        raise HTTPException(status_code=400, detail="Request must include non-empty 'text'")

    if mode not in ALLOWED_MODES:
        raise HTTPException(status_code=400, detail="Mode must be either 'summarize' or 'rewrite'")

    try:
        processed = await model.generate(transform_prompt(text, mode))
    except Exception as e:
        logger.error("/api/summarize error: %s", e)
        return error_response(500, str(e) or "Unexpected error")

    return schemas.TextResponse(text=processed)


@app.get("/health", response_model=schemas.HealthResponse)
def health_check():
    """Health check endpoint"""
    return schemas.HealthResponse(
        status="ok",
        timestamp=utils.get_timestamp(),
        model=get_model_name(),
    )


def serve():
    """Run the API with uvicorn; bind address from API_HOST / API_PORT."""
    uvicorn.run(
        app,
        host=utils.get_env("API_HOST", "0.0.0.0"),
        port=int(utils.get_env("API_PORT", "8000")),
        log_level=utils.get_env("LOG_LEVEL", "INFO").lower(),
    )
