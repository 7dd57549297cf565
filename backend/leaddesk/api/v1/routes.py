"""
API Router
Combines all endpoint routers
"""
from fastapi import APIRouter
from leaddesk.api.v1.endpoints import (
    agent,
    leads,
    settings,
)

api_router = APIRouter()

# Owner console
api_router.include_router(leads.router)
api_router.include_router(settings.router)

# Agent console
api_router.include_router(agent.router)
