from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from finance_tracker.core.config import settings
from finance_tracker.core.errors import ApiError, ServerFault, ValidationFailed, errors_from_pydantic
from finance_tracker.core.logging import configure_logging, get_logger
from finance_tracker.db.pool import close_db_pool, open_db_pool
from finance_tracker.routers.auth import router as auth_router
from finance_tracker.routers.system import router as system_router
from finance_tracker.routers.transactions import router as transactions_router
from finance_tracker.routers.users import router as users_router

configure_logging(settings.log_level, settings.log_format)
logger = get_logger("app")


@asynccontextmanager
async def lifespan(_: FastAPI):
    open_db_pool(apply_schema=settings.auto_migrate)
    logger.info("Finance tracker API started (env=%s)", settings.app_env)
    try:
        yield
    finally:
        close_db_pool()


app = FastAPI(
    title="Personal Finance Tracker API",
    description="Personal finances with role-based access control",
    version="1.0.0",
    lifespan=lifespan,
)

app.include_router(system_router, prefix=settings.api_prefix)
app.include_router(auth_router, prefix=settings.api_prefix)
app.include_router(transactions_router, prefix=settings.api_prefix)
app.include_router(users_router, prefix=settings.api_prefix)


@app.exception_handler(StarletteHTTPException)
def http_exc_handler(_: Request, exc: StarletteHTTPException):
    if isinstance(exc, ApiError):
        content = exc.payload()
    elif exc.status_code == 404:
        content = {"success": False, "message": "API endpoint not found"}
    else:
        content = {"success": False, "message": str(exc.detail)}
    return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)


@app.exception_handler(RequestValidationError)
def validation_exc_handler(_: Request, exc: RequestValidationError):
    error = ValidationFailed(errors_from_pydantic(exc.errors()))
    return JSONResponse(status_code=error.status_code, content=error.payload())


@app.exception_handler(Exception)
def unhandled_exc_handler(req: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", req.method, req.url.path, exc_info=exc)
    error = ServerFault()
    return JSONResponse(status_code=error.status_code, content=error.payload())
