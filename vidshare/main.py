import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import SQLAlchemyError
from vidshare.config import get_settings
from vidshare.core.exceptions import AppError
from vidshare.database import SessionLocal, dispose_engine
from vidshare.routers import admin, auth, interactions, users, videos
from vidshare.services.accounts import ensure_super_admin
from vidshare.services.storage import upload_dir

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    upload_dir().mkdir(parents=True, exist_ok=True)
    db = SessionLocal()
    try:
        ensure_super_admin(db)
    except SQLAlchemyError:
        logger.exception("Could not seed initial super admin")
    finally:
        db.close()
    try:
        yield
    finally:
        dispose_engine()


app = FastAPI(title="VidShare API", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.frontend_url],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.code, "message": exc.message})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    details = [
        {
            "field": " -> ".join(str(loc) for loc in error["loc"] if loc != "body"),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]
    logger.warning("Validation error on %s %s: %s", request.method, request.url.path, details)
    return JSONResponse(
        status_code=400,
        content={"error": "VALIDATION_ERROR", "message": "Invalid request data", "details": details},
    )


@app.exception_handler(SQLAlchemyError)
async def storage_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("Storage error on %s %s", request.method, request.url.path, exc_info=exc)
    content = {"error": "STORAGE_ERROR", "message": "Internal server error"}
    if settings.environment == "development":
        content["details"] = str(exc)
    return JSONResponse(status_code=500, content=content)


app.mount(settings.upload_url_prefix, StaticFiles(directory=upload_dir(), check_dir=False), name="uploads")

app.include_router(auth.router)
app.include_router(videos.router)
app.include_router(interactions.router)
app.include_router(admin.router)
app.include_router(users.router)


@app.get("/")
def root():
    return {"message": "VidShare API", "docs": "/docs"}
