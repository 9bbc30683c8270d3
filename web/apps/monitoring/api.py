import logging
import uuid

from django.core.cache import cache
from django.db import DatabaseError, connection
from django.http import JsonResponse

logger = logging.getLogger(__name__)


def _check_db() -> bool:
    try:
        with connection.cursor() as cur:
            cur.execute("SELECT 1;")
        return True
    except DatabaseError:
        logger.exception("health: database check failed")
        return False


def _check_cache() -> bool:
    # Baskets and basket locks live in the cache; a read-back proves it works.
    key = f"health:{uuid.uuid4().hex}"
    try:
        cache.set(key, "1", timeout=5)
        ok = cache.get(key) == "1"
        cache.delete(key)
        return ok
    except Exception:  # backend-specific errors (redis.ConnectionError, ...)
        logger.exception("health: cache check failed")
        return False


def health_view(_request):
    db_ok = _check_db()
    cache_ok = _check_cache()
    ok = db_ok and cache_ok
    return JsonResponse(
        {"ok": ok, "components": {"db": {"ok": db_ok}, "cache": {"ok": cache_ok}}},
        status=200 if ok else 503,
    )
