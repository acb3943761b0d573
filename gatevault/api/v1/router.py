from fastapi import APIRouter

from gatevault.api.v1.health import router as health_router
from gatevault.api.v1.events import router as events_router
from gatevault.api.v1.tickets import router as tickets_router
from gatevault.api.v1.vaults import router as vaults_router
from gatevault.api.v1.settlements import router as settlements_router
from gatevault.api.v1.investors import router as investors_router


v1_router = APIRouter()

# ------------------------------------------------------------------
# SYSTEM
# ------------------------------------------------------------------
v1_router.include_router(health_router, tags=["health"])

# ------------------------------------------------------------------
# CATALOG / GATE
# ------------------------------------------------------------------
v1_router.include_router(events_router, tags=["events"])
v1_router.include_router(tickets_router, tags=["tickets"])

# ------------------------------------------------------------------
# VAULTS / ESCROW / SETTLEMENT
# ------------------------------------------------------------------
v1_router.include_router(vaults_router, tags=["vaults"])
v1_router.include_router(settlements_router, tags=["settlement"])
v1_router.include_router(investors_router, tags=["investors"])
