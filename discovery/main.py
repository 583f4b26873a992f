"""
main.py – FastAPI app entry point (slim wire-up only).
Connects routes, lifespan and the error envelope. No business logic here.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import settings
from .db.session import create_schema
from .deps import get_registry
from .routes import categories, places, reviews, search, suggestions, system

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    get_registry().validate()
    create_schema(settings.database_url)
    logger.info("✅ Ready. behaviours=%s", ", ".join(get_registry().names()))
    yield
    logger.info("Shutdown.")


app = FastAPI(
    title="Shop Discovery API",
    description="Location-aware search and curated suggestions for local shops.",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])


# ── Error envelope ─────────────────────────────────────────────────────────────

@app.exception_handler(StarletteHTTPException)
async def http_error(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})


@app.exception_handler(RequestValidationError)
async def validation_error(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if not errors:
        return JSONResponse(status_code=400, content={"error": "Invalid request"})
    first = errors[0]
    field = str(first.get("loc", ["", ""])[-1])
    return JSONResponse(status_code=400, content={"error": f"Invalid {field}: {first.get('msg', '')}"})


app.include_router(system.router)
app.include_router(search.router)
app.include_router(suggestions.router)
app.include_router(categories.router)
app.include_router(places.router)
app.include_router(reviews.router)
