"""
🔌 Store Connection Setup - Redis

Configuración centralizada para conectar a Redis.
El cliente es del proceso; los repositorios lo reciben por constructor.
"""

from typing import Optional

from redis.asyncio import Redis

from app.core.config import get_settings


class Database:
    """Dueño del cliente de Redis durante la vida del proceso"""

    client: Optional[Redis] = None

    @classmethod
    async def connect(cls):
        """Conecta a Redis"""
        if cls.client is None:
            settings = get_settings()

            cls.client = Redis.from_url(
                settings.redis_url,
                decode_responses=True,
                socket_timeout=5,
                socket_connect_timeout=5,
                health_check_interval=30,
            )

            # Test de conexión
            await cls.client.ping()
            print("✅ Connected to Redis")

    @classmethod
    async def disconnect(cls):
        """Cierra la conexión"""
        if cls.client is not None:
            await cls.client.aclose()
            cls.client = None
            print("❌ Disconnected from Redis")

    @classmethod
    def get_client(cls) -> Redis:
        """Retorna el cliente de Redis"""
        if cls.client is None:
            raise RuntimeError("Store not connected. Call Database.connect() first.")
        return cls.client


# ============================================
# 🎯 DEPENDENCY para FastAPI
# ============================================

async def get_database() -> Redis:
    """
    FastAPI dependency para inyectar el cliente de Redis

    Uso:
        @router.get("/user-stats")
        async def get_user_stats(address: str, store: Redis = Depends(get_database)):
            repo = StatsRepository(store, LeaderboardIndex(store))
            return await repo.get_stats(address)
    """
    return Database.get_client()
