"""
Myeloma Guard - FastAPI Application Entry Point

Registers routers for the intake workflow, assessment, export, and admin
endpoints. Configures logging from settings on import.
"""

import logging
from pathlib import Path

from dotenv import load_dotenv

# Resolve .env relative to project root (parent of myeloma_guard/)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path, override=True)

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from myeloma_guard.config import settings
from myeloma_guard.routers import admin, assess, export, intake

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title=f"{settings.TOOL_NAME} Risk Assessor")

# CORS - allow all origins for development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(intake.router, prefix="/sessions", tags=["intake"])
app.include_router(assess.router, prefix="/sessions", tags=["assess"])
app.include_router(export.router, prefix="/sessions", tags=["export"])
app.include_router(admin.router, prefix="/admin", tags=["admin"])


@app.get("/health")
async def health() -> dict:
    from myeloma_guard.core.gemini_client import gemini_client

    return {"status": "ok", "model_available": gemini_client.is_available}


logger.info("%s ready", settings.TOOL_NAME)
