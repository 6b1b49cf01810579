"""Stock keeping on Redis: counters, a distributed lock and purchases."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any

import redis

from microshop.config import RedisConfig
from microshop.errors import ServiceError

_log = logging.getLogger(__name__)

_U32 = 0xFFFFFFFF

DEFAULT_GOOD_NAME = "娃哈哈"
LOCK_TIMEOUT = 3.0

_RELEASE_SCRIPT = """
local lockerKey = KEYS[1]
local expectedHolder = ARGV[1]
local currentHolder = redis.call('get', lockerKey)
if (not currentHolder or currentHolder ~= expectedHolder) then
  return 0
else
  return redis.call('del', lockerKey)
end
"""


@dataclass
class Repertory:
    """A stocked good and a quantity of it."""

    id: int = 0
    name: str = ""
    quantity: int = 0


class RepertoryRepo:
    """Stock counters kept as Redis integers."""

    def __init__(self, client: Any) -> None:
        self.client = client

    def incr(self, repertory_id: int, count: int) -> None:
        self.client.incrby(f"repertory:{repertory_id}", count)

    def decr(self, repertory_id: int, quantity: int) -> None:
        self.client.decrby(f"goods:{repertory_id}", quantity)

    def get(self, repertory_id: int) -> int:
        """Return the stock of a good; raise ``LookupError`` if it has none recorded."""
        value = self.client.get(f"repertory:{repertory_id}")
        if value is None:
            raise LookupError("redis: nil")
        try:
            return int(value)
        except ValueError as exc:
            raise ValueError(f"stock value is not an integer: {value!r}") from exc


class LockClient:
    """A Redis lock taken with SET NX and released only by its holder."""

    def __init__(self, client: Any) -> None:
        self.client = client

    def set(self, key: str, value: str, expiration: float) -> bool:
        """Take the lock ``key`` for holder ``value`` for ``expiration`` seconds."""
        if not key or not value:
            raise ValueError("redis Set key或value不能为空")
        expires_ms = int(expiration * 1000)
        result = self.client.set(key, value, nx=True, px=expires_ms if expires_ms > 0 else None)
        return bool(result)

    def release(self, keys: list[str], *args: Any) -> Any:
        """Delete the lock in ``keys[0]`` if it is still held by ``args[0]``."""
        return self.client.eval(_RELEASE_SCRIPT, len(keys), *keys, *args)


class RepertoryUseCase:
    """Business logic for stock: adding, buying and looking up."""

    def __init__(self, repo: RepertoryRepo, lock: LockClient) -> None:
        self.repo = repo
        self.lock = lock

    def add_repertory(self, repertory: Repertory) -> Repertory:
        self.repo.incr(repertory.id, repertory.quantity)
        return repertory

    def purchase(self, repertory: Repertory, user_id: int) -> Repertory:
        """Buy ``repertory.quantity`` of a good under a lock held for the user."""
        lock_key = f"lock:repertory:{repertory.id}"
        holder = str(user_id)
        try:
            acquired = self.lock.set(lock_key, holder, LOCK_TIMEOUT)
        except Exception:
            acquired = False
        if not acquired:
            raise ServiceError(500, "CONCURRENT_CONFLICT", "操作过于频繁")
        try:
            quantity = self.repo.get(repertory.id)
            if quantity < repertory.quantity:
                raise ServiceError(500, "INSUFFICIENT_STOCK", "库存不足")
            self.repo.decr(repertory.id, repertory.quantity)
            return repertory
        finally:
            try:
                self.lock.release([lock_key], holder)
            except Exception:
                _log.warning("failed to release lock %s", lock_key)

    def get_repertory(self, repertory_id: int) -> Repertory:
        quantity = self.repo.get(repertory_id)
        return Repertory(
            id=repertory_id & _U32,
            name=DEFAULT_GOOD_NAME,
            quantity=quantity & _U32,
        )


class RepertoryService:
    """Service layer answering stock requests."""

    def __init__(self, usecase: RepertoryUseCase) -> None:
        self.usecase = usecase

    def purchase(self, repertory_id: int, quantity: int, user_id: int) -> dict[str, Any]:
        self.usecase.purchase(Repertory(id=repertory_id, quantity=quantity), user_id)
        return {"success": True}

    def add_repertory(self, repertory_id: int, quantity: int) -> dict[str, Any]:
        self.usecase.add_repertory(Repertory(id=repertory_id, quantity=quantity & _U32))
        return {"success": True}


def _split_addr(addr: str) -> tuple[str, int]:
    if not addr:
        return "localhost", 6379
    host, sep, port = addr.rpartition(":")
    if not sep:
        return addr, 6379
    host = host.strip("[]") or "localhost"
    try:
        return host, int(port)
    except ValueError as exc:
        raise ValueError(f"invalid redis address: {addr!r}") from exc


def connect_redis(config: RedisConfig, attempts: int = 3, delay: float = 5.0) -> redis.Redis:
    """Open a Redis client and ping it, retrying; raise ``ConnectionError`` on failure."""
    if attempts < 1:
        raise ValueError("attempts must be at least 1")
    options: dict[str, Any] = {
        "password": config.password or None,
        "db": config.db,
        "socket_connect_timeout": 5,
        "socket_timeout": 5,
    }
    if config.network == "unix":
        options["unix_socket_path"] = config.addr
    else:
        options["host"], options["port"] = _split_addr(config.addr)
    client = redis.Redis(**options)
    last_error: Exception | None = None
    for attempt in range(1, attempts + 1):
        try:
            client.ping()
            return client
        except redis.RedisError as exc:
            last_error = exc
            _log.warning("redis connection failed, retrying... (%d/%d)", attempt, attempts)
            if attempt < attempts:
                time.sleep(delay)
    client.close()
    raise ConnectionError("redis connection failed") from last_error