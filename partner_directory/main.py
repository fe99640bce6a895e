import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from partner_directory.api.v1.router import api_router
from partner_directory.core.config import get_settings
from partner_directory.core.errors import DirectoryError, UnauthorizedError
from partner_directory.core.policies import get_policy_registry

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Partner Directory Backend",
)

# Built once; request dependencies read it from app.state
app.state.policy_registry = get_policy_registry()


@app.exception_handler(DirectoryError)
async def directory_error_handler(request: Request, exc: DirectoryError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("Unhandled directory error on %s %s: %s", request.method, request.url.path, exc.message)
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, UnauthorizedError) else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message},
        headers=headers,
    )


@app.get("/health", tags=["health"])
async def root_health() -> dict:
    """
    Global health check endpoint.
    """
    return {"status": "ok"}


# Mount versioned API router
app.include_router(api_router, prefix=settings.api_v1_prefix)
