from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

# Load environment variables before the settings are read
load_dotenv()

from huesort import __version__
from huesort.api.v1 import router as v1_router
from huesort.config import config
from huesort.schemas import HealthResponse
from huesort.utils.logging import configure_logging

configure_logging()

app = FastAPI(
    title="HueSort Backend",
    description="Dominant color analysis and hue-gradient ordering for image batches",
    version=__version__
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[origin.strip() for origin in config.ALLOWED_ORIGINS.split(",") if origin.strip()],
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition"],
)

app.include_router(v1_router)


@app.get("/healthz", response_model=HealthResponse)
def health_check():
    """Health check endpoint"""
    return HealthResponse(ok=True, version=__version__)


@app.get("/")
def root():
    """Root endpoint"""
    return {
        "message": "HueSort Backend API",
        "version": __version__,
        "docs": "/docs"
    }


logger.info(f"HueSort backend {__version__} ready (default strategy: {config.DEFAULT_STRATEGY})")
