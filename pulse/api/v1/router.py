from fastapi import APIRouter

from pulse.api.v1.cron import router as cron_router
from pulse.api.v1.health import router as health_router
from pulse.api.v1.heartbeats import router as heartbeats_router
from pulse.api.v1.incidents import router as incidents_router
from pulse.api.v1.maintenance import router as maintenance_router

v1_router = APIRouter()

v1_router.include_router(health_router, tags=["Health"])
v1_router.include_router(cron_router, tags=["Checks"])
v1_router.include_router(heartbeats_router, tags=["Heartbeats"])
v1_router.include_router(incidents_router, tags=["Incidents"])
v1_router.include_router(maintenance_router, tags=["Maintenance"])
