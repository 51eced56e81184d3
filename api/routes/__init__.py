"""
api.routes - Aggregates all domain-specific route modules into a single router.

app.py imports ``from api.routes import router`` which resolves here.
"""

from fastapi import APIRouter

from api.routes.dashboard import router as dashboard_router
from api.routes.risk import router as risk_router
from api.routes.imagery import router as imagery_router
from api.routes.models import router as models_router

router = APIRouter()

router.include_router(dashboard_router)
router.include_router(risk_router)
router.include_router(imagery_router)
router.include_router(models_router)
