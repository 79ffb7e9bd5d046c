"""
V1 API router aggregator — wires all endpoint modules together.
"""

from fastapi import APIRouter

from app.api.v1.endpoints import attendance

api_router = APIRouter()

# Scores, team views, anomalies, health
api_router.include_router(attendance.router)
