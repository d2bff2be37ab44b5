"""
Controlador de salud - Endpoint de comprobación del servicio
"""

from fastapi import APIRouter
from pydantic import BaseModel
from redis.exceptions import RedisError

from app.database import Database


router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Respuesta del chequeo de estado."""
    status: str
    store: str


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Endpoint de verificación de estado.

    Comprueba que la API esté en funcionamiento y que Redis responda.
    """
    store_status = "disconnected"
    if Database.client is not None:
        try:
            await Database.client.ping()
            store_status = "connected"
        except RedisError:
            store_status = "disconnected"

    return HealthResponse(
        status="ok",
        store=store_status
    )
