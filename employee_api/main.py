import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from employee_api.api import api, auth
from employee_api.core.config import Settings, get_settings
from employee_api.core.database import Database
from employee_api.core.exceptions import ApiError
from employee_api.core.security import TokenService
from employee_api.core.uploads import UploadManager

VERSION = "1.0.0"

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings):
    handlers = [logging.StreamHandler()]
    if settings.LOG_FILE:
        handlers.append(logging.FileHandler(settings.LOG_FILE))

    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers
    )


def _error(status_code: int, message: str, headers=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"status": False, "message": message},
        headers=headers,
    )


def register_exception_handlers(app: FastAPI):
    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError):
        return _error(exc.status_code, exc.message, exc.headers)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return _error(404, "Route not found")
        return _error(exc.status_code, str(exc.detail), getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        message = errors[0]["msg"] if errors else "Invalid request"
        return _error(400, message)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled error on {request.method} {request.url.path}: {str(exc)}", exc_info=exc)
        return _error(500, "Internal server error")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings)

    database = Database.from_settings(settings)
    uploads = UploadManager.from_settings(settings)
    token_service = TokenService.from_settings(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting server...")
        await database.init_db()

        yield

        logger.info("Shutting down, closing connections...")
        try:
            await database.close()
        except Exception as e:
            logger.error(f"Error during shutdown: {str(e)}")

    app = FastAPI(
        title="Employee Management API",
        description="API for user accounts and employee records",
        version=VERSION,
        lifespan=lifespan
    )
    app.state.settings = settings
    app.state.database = database
    app.state.uploads = uploads
    app.state.token_service = token_service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def add_process_time_header(request: Request, call_next):
        start_time = time.time()
        response = await call_next(request)
        process_time = time.time() - start_time
        response.headers["X-Process-Time"] = str(process_time)
        return response

    register_exception_handlers(app)

    app.include_router(auth.router)
    app.include_router(api.router)
    app.mount("/uploads", StaticFiles(directory=uploads.upload_dir), name="uploads")

    @app.get("/", tags=["health"])
    async def health_check():
        return {
            "status": "ok",
            "message": "Server is running",
            "version": VERSION
        }

    return app


def run():
    import uvicorn

    try:
        settings = get_settings()
    except Exception as e:
        logging.basicConfig(level=logging.ERROR)
        logger.critical(f"Invalid configuration, refusing to start: {str(e)}")
        raise SystemExit(1)

    uvicorn.run(create_app(settings), host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    run()
