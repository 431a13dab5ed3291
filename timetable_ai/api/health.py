"""
health.py (API Route)

Liveness check for the Timetable AI service.

Endpoint:
- GET /health - returns {"status": "ok"} while the process is serving requests

It does not touch the inference provider or the store, so it stays
fast and never fails because of an external service.
"""

from fastapi import APIRouter, status
from pydantic import BaseModel, Field

router = APIRouter()


class HealthStatus(BaseModel):
    status: str = Field(..., examples=["ok"])


@router.get(
    "",
    response_model=HealthStatus,
    status_code=status.HTTP_200_OK,
    summary="Service liveness",
    description="Reports that the Timetable AI service is up"
)
def service_status() -> HealthStatus:
    return HealthStatus(status="ok")
