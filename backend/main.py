"""
VPR Dashboard — Regional assessment results analytics
FastAPI backend entry point.
"""

import logging
import os

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from routes.dashboard import router as dashboard_router

# Load environment
load_dotenv()

REGION_NAME = os.getenv("REGION_NAME", "Республика Дагестан")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
# Comma-separated allowed origins, e.g. http://localhost:5173,https://app.example.com
raw_origins = os.getenv("CORS_ORIGINS", "http://localhost:5173,http://localhost:3000")
ALLOWED_ORIGINS = [o.strip() for o in raw_origins.split(",") if o.strip()]

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title="VPR Dashboard API",
    description=(
        "Regional VPR results — mark shares, raw-score distributions and "
        "non-objectivity markers by year, grade, subject, municipality and school."
    ),
    version="1.0.0",
)

# CORS — allow the dashboard dev server
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register route modules
app.include_router(dashboard_router, prefix="/api/dashboard", tags=["Dashboard"])


@app.get("/api/health")
async def health_check():
    return {
        "status": "ok",
        "region_name": REGION_NAME,
    }


@app.get("/api/config")
async def get_config():
    """Return server configuration to the frontend."""
    return {
        "region_name": REGION_NAME,
        "data_source": "files" if os.getenv("VPR_DATA_DIR", "").strip() else "mock",
    }
