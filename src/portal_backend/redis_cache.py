import os
from aiocache import Cache

# Get Redis configuration from environment
REDIS_HOST = os.environ.get('REDIS_HOST', 'localhost')
REDIS_PORT = int(os.environ.get('REDIS_PORT', '6379'))
REDIS_PASSWORD = os.environ.get('REDIS_PASSWORD', '')

_caches = {}

def _build_cache(backend: str) -> Cache:
    if backend == "redis":
        return Cache(
            Cache.REDIS,
            endpoint=REDIS_HOST,
            port=REDIS_PORT,
            password=REDIS_PASSWORD if REDIS_PASSWORD else None,
            pool_max_size=10,
            db=0
        )
    return Cache(Cache.MEMORY)

async def get_cache_client(backend: str = "redis") -> Cache:
    if backend not in _caches:
        _caches[backend] = _build_cache(backend)
    return _caches[backend]
