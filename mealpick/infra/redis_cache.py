import json
from mealpick.infra.redis_client import get_sync_redis

def get_or_set_json_sync(key: str, ttl_sec: int, compute_func):
    r = get_sync_redis()
    raw = r.get(key)
    if raw:
        return json.loads(raw), True

    val = compute_func()
    r.set(key, json.dumps(val), ex=ttl_sec)
    return val, False

def delete_keys(*keys: str) -> int:
    if not keys:
        return 0
    r = get_sync_redis()
    return r.delete(*keys)
