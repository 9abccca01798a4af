import logging
import sys
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import (
    ConfigurationError,
    Settings,
    load_settings,
    origins_from_env,
    static_dir_from_env,
)
from .errors import ReviewServiceError, ReviewValidationError
from .gemini_client import GeminiReviewClient
from .logging_setup import configure_logging
from .models import HealthResponse, ReviewRequest, ReviewResponse
from .reviewer import generate_review

logger = logging.getLogger("ReviewService")

BASE_DIR = Path(__file__).resolve().parent.parent


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup validation: a missing key raises ConfigurationError and the server never starts
    if app.state.settings is None:
        app.state.settings = load_settings()
    settings = app.state.settings
    configure_logging(settings.environment)

    if app.state.gemini_client is None:
        app.state.gemini_client = GeminiReviewClient(settings.gemini_api_key)

    logger.info("📚 Book Review Generator API is ready")
    logger.info(f"🔧 Environment: {settings.environment}")
    yield


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_gemini_client(request: Request) -> GeminiReviewClient:
    return request.app.state.gemini_client


def _static_dir(settings: Settings | None) -> Path | None:
    path = Path(settings.static_dir if settings else static_dir_from_env())
    if not path.is_absolute():
        path = BASE_DIR / path
    return path if path.is_dir() else None


def create_app(settings: Settings | None = None, gemini_client=None) -> FastAPI:
    app = FastAPI(title="Book Review Generator", lifespan=lifespan)
    app.state.settings = settings
    app.state.gemini_client = gemini_client

    # Settings are only validated at startup; until then take CORS from the raw env
    origins = settings.allowed_origins if settings else origins_from_env()
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(ReviewServiceError)
    async def review_error_handler(request: Request, exc: ReviewServiceError):
        current = request.app.state.settings
        include_details = bool(current and current.is_development)
        return JSONResponse(status_code=exc.status_code, content=exc.to_payload(include_details))

    @app.exception_handler(RequestValidationError)
    async def body_error_handler(request: Request, exc: RequestValidationError):
        # Malformed bodies get the same 400 shape as failed field checks
        violations = [
            f"{'.'.join(str(p) for p in err.get('loc', ())[1:]) or 'body'}: {err.get('msg')}"
            for err in exc.errors()
        ] or ["リクエストの形式が正しくありません。"]
        return JSONResponse(status_code=400, content=ReviewValidationError(violations).to_payload())

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        # 405 only comes from the static mount or a wrong verb; either way the route does not exist
        if exc.status_code in (404, 405):
            return JSONResponse(status_code=404, content={"error": "Not Found"})
        return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.error("Unhandled Error", exc_info=exc)
        return JSONResponse(status_code=500, content={"error": "Internal Server Error"})

    @app.post("/api/generate-review", response_model=ReviewResponse)
    async def generate(
        req: ReviewRequest,
        client=Depends(get_gemini_client),
        settings: Settings = Depends(get_settings),
    ):
        result = await generate_review(req, client, debug=settings.is_development)
        return result.to_response()

    @app.get("/api/health", response_model=HealthResponse)
    async def health(request: Request):
        current = request.app.state.settings
        return HealthResponse(
            timestamp=datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            gemini_configured=bool(current and current.gemini_api_key),
            node_env=current.environment if current else "production",
        )

    # Front end last, so /api/* always wins over static files
    static_dir = _static_dir(settings)
    if static_dir is not None:
        app.mount("/", StaticFiles(directory=static_dir, html=True), name="public")

    return app


app = create_app()


def run():
    import uvicorn

    try:
        settings = load_settings()
    except ConfigurationError as e:
        configure_logging()
        logger.error(f"❌ Error: {e}")
        sys.exit(1)

    configure_logging(settings.environment)
    logger.info(f"🚀 Server is running at http://localhost:{settings.port}")
    uvicorn.run(create_app(settings), host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    run()
