from fastapi import FastAPI
import logging

from app.api.channels import router as channels_router
from app.api.health import router as health_router
from app.api.ranking import router as ranking_router
from app.api.viral import router as viral_router
from core.logging import setup_json_logging
from service.health_service import APP_VERSION

# Setup logging
setup_json_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title="Channel Ranking API", version=APP_VERSION)

# Include routers
app.include_router(health_router)  # Health at root level
app.include_router(viral_router, prefix="/api/v1")
app.include_router(ranking_router, prefix="/api/v1")
app.include_router(channels_router, prefix="/api/v1")
