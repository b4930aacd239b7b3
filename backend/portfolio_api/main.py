"""FastAPI application entry point."""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy import text
from starlette.exceptions import HTTPException as StarletteHTTPException

from portfolio_api.config import settings
from portfolio_api.database import engine, get_db
from portfolio_api.errors import ContentError
from portfolio_api.models import Base

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables on startup."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield

    await engine.dispose()


app = FastAPI(
    title="Portfolio API",
    version="1.0.0",
    description="Public portfolio content with an admin-gated CRUD API.",
    lifespan=lifespan,
)

# CORS
origins = [o.strip() for o in settings.CORS_ORIGINS.split(",")]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Every error leaves in the same envelope: {success: false, message, errors?}
def _envelope(status_code: int, message: str, errors: dict | None = None) -> JSONResponse:
    body = {"success": False, "message": message}
    if errors:
        body["errors"] = errors
    return JSONResponse(status_code=status_code, content=body)


@app.exception_handler(ContentError)
async def content_error_handler(request: Request, exc: ContentError):
    return _envelope(exc.status_code, exc.message, exc.errors)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return _envelope(exc.status_code, str(exc.detail))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = {
        ".".join(str(part) for part in err["loc"][1:]) or "body": err["msg"]
        for err in exc.errors()
    }
    return _envelope(400, "Validation error", errors)


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return _envelope(500, "Internal server error")


@app.get("/")
async def root():
    return {"message": "Hello from the backend"}


@app.get("/api/health")
async def health_check():
    """Verify API and database connectivity."""
    try:
        async for db in get_db():
            await db.execute(text("SELECT 1"))
            return {"status": "ok", "database": "connected"}
    except Exception as e:
        logger.warning(f"Health check failed: {e!r}")
        return {"status": "error", "database": "unavailable"}


# Register routers
from portfolio_api.routes.projects import router as projects_router
from portfolio_api.routes.skills import router as skills_router
from portfolio_api.routes.users import router as users_router
app.include_router(projects_router)
app.include_router(skills_router)
app.include_router(users_router)

if settings.MEDIA_STORAGE_TYPE == "local":
    app.mount(
        "/media",
        StaticFiles(directory=settings.MEDIA_STORAGE_PATH, check_dir=False),
        name="media",
    )
