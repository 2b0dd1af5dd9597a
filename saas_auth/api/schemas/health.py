"""Schemas para el endpoint de health."""
from pydantic import BaseModel


class HealthData(BaseModel):
    status: str
    environment: str
    db: bool


class HealthOut(BaseModel):
    success: bool
    message: str
    data: HealthData
