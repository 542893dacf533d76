"""
FastAPI application entry point.
Main application with middleware, startup/shutdown events, and router registration.
"""
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager
import asyncio
import logging
import time
import sys

from chatmemory.config import get_settings
from chatmemory.memory.store import run_periodic_compaction
from .dependencies import init_memory_store, close_memory_store
from .routers import chat, sessions, health
from .routers.chat import error_response

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    stream=sys.stdout
)
logger = logging.getLogger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    logger.info("Starting Varta AI Backend...")

    try:
        store = await init_memory_store(settings)

        app.state.compaction_task = asyncio.create_task(
            run_periodic_compaction(store, settings.memory_compact_interval_seconds)
        )

        logger.info(f"LLM Provider: {settings.llm_provider}")
        if settings.llm_provider != "mock" and not settings.api_key:
            logger.error("API_KEY is not set in environment variables; chat turns will fail")

        logger.info("Application started successfully")

    except Exception as e:
        logger.error(f"Startup failed: {str(e)}", exc_info=True)
        raise

    yield

    # Shutdown
    logger.info("Shutting down Varta AI Backend...")

    app.state.compaction_task.cancel()
    try:
        await app.state.compaction_task
    except asyncio.CancelledError:
        pass

    try:
        await close_memory_store(settings)
    except Exception as e:
        logger.error(f"Error during shutdown: {str(e)}")


app = FastAPI(
    title="Varta AI Backend",
    description="Chat backend with rolling conversation memory.",
    version="1.0.0",
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE"],
    allow_headers=["*"],
)


# Request logging middleware
@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all incoming requests with timing."""
    start_time = time.time()

    logger.info(f"→ {request.method} {request.url.path}")

    try:
        response = await call_next(request)
    except Exception as e:
        logger.error(f"Request failed: {str(e)}", exc_info=True)
        raise

    duration_ms = (time.time() - start_time) * 1000

    logger.info(
        f"← {request.method} {request.url.path} "
        f"[{response.status_code}] {duration_ms:.2f}ms"
    )

    return response


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed request bodies use the same failure shape as chat errors."""
    logger.warning(f"Invalid request body: {exc.errors()}")
    return error_response(400, "Invalid request body", "I couldn't read that request. Please try again.")


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return error_response(exc.status_code, str(exc.detail))


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler for unhandled errors."""
    logger.error(f"Unhandled exception: {str(exc)}", exc_info=True)
    return error_response(
        500,
        str(exc) if settings.debug else "Internal server error"
    )


# Register routers
app.include_router(health.router, prefix="/health", tags=["Health"])
app.include_router(chat.router, prefix="/chat", tags=["Chat"])
app.include_router(sessions.router, prefix="/v1/sessions", tags=["Sessions"])


# Root endpoint
@app.get("/")
async def root():
    """Liveness check for the frontend."""
    return {"status": "Varta AI Backend is running"}


def run():
    """Console entry point."""
    import uvicorn
    uvicorn.run(
        "api.main:app",
        host="0.0.0.0",
        port=settings.port
    )


if __name__ == "__main__":
    run()
