"""Redis substrate backing the key-value log store."""

from resources.substrates.redis.component import RESOURCE_COMPONENT_ID
from resources.substrates.redis.config import RedisSettings, resolve_redis_settings
from resources.substrates.redis.redis_substrate import RedisClientSubstrate
from resources.substrates.redis.substrate import RedisHealthStatus, RedisSubstrate

__all__ = [
    "RESOURCE_COMPONENT_ID",
    "RedisHealthStatus",
    "RedisSettings",
    "RedisSubstrate",
    "RedisClientSubstrate",
    "resolve_redis_settings",
]
