import redis.asyncio as redis

from portal.session import SessionStore
from portal.stores.registry import StoreRegistry

# Global runtime state initialized in lifespan.setup_resources
redis_client: redis.Redis | None = None
session_store: SessionStore | None = None
registry: StoreRegistry | None = None
db_enabled: bool = False
