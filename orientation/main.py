"""FastAPI application entrypoint. No business logic; only wiring and middleware."""

from dotenv import load_dotenv

load_dotenv()

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from orientation.api import legacy_router
from orientation.api import router as api_router
from orientation.api.errors import http_exception_handler, service_error_handler
from orientation.core.config import settings
from orientation.core.errors import ServiceError

app = FastAPI(
    title="Orientation Admin API",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(ServiceError, service_error_handler)

app.include_router(api_router, prefix=settings.API_PREFIX)
app.include_router(legacy_router)


@app.get("/")
def root() -> dict[str, str]:
    """Root route; minimal payload for discovery."""
    return {"message": "Orientation Admin API"}
