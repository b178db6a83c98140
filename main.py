"""
Departmental CMS - FastAPI application entry point
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from deptcms.core.config import settings
from deptcms.core.errors import AppError, map_app_error
from deptcms.core.logging_config import setup_logging
from deptcms.db.database import init_models
from deptcms.api import auth, contents, users


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    await init_models()
    yield


# FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Departmental content management API",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"]
)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    """Turn application errors into HTTP responses"""
    http_exc = map_app_error(exc)
    return JSONResponse(
        status_code=http_exc.status_code,
        content={"detail": http_exc.detail},
        headers=http_exc.headers,
    )


# Routers
app.include_router(auth.router)
app.include_router(contents.router)
app.include_router(users.router)

# Uploaded media
app.mount("/uploads", StaticFiles(directory=settings.UPLOAD_DIR, check_dir=False), name="uploads")


@app.get("/")
async def root():
    """Service info"""
    return {
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "message": "Departmental CMS API is running"
    }


@app.get("/health")
async def health_check():
    """Health check"""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG
    )
