"""Article cache with pluggable backends (in-memory, Redis-like)."""

from __future__ import annotations

from typing import Dict, Optional, Protocol

from pydantic import ValidationError
from redis.exceptions import RedisError

from mpfeed.models.domain import ArticleItem
from mpfeed.utils.logging import get_logger

logger = get_logger(__name__)


class ArticleCache(Protocol):
    def get(self, key: str) -> Optional[ArticleItem]: ...  # noqa: D401
    def set(self, key: str, item: ArticleItem, ttl_seconds: int | None = None) -> None: ...  # noqa: D401


class InMemoryArticleCache:
    """Simple in-memory cache for tests/local runs."""

    def __init__(self) -> None:
        self._store: Dict[str, str] = {}

    def get(self, key: str) -> Optional[ArticleItem]:
        data = self._store.get(key)
        return ArticleItem.model_validate_json(data) if data else None

    def set(self, key: str, item: ArticleItem, ttl_seconds: int | None = None) -> None:
        self._store[key] = item.model_dump_json()


class _RedisLikeClient(Protocol):
    def get(self, name: str) -> Optional[str | bytes]: ...
    def set(self, name: str, value: str) -> bool | None: ...
    def setex(self, name: str, time: int, value: str) -> bool | None: ...


class RedisArticleCache:
    """Redis-backed article cache.

    Items are stored as JSON (``pub_date`` as ISO-8601) under
    ``<prefix>:<canonical url>``. Redis failures are logged and behave like a
    cache miss.
    """

    def __init__(self, client: _RedisLikeClient, *, prefix: str = "wechat-mp:article", default_ttl_seconds: int | None = None) -> None:
        self._client = client
        self._prefix = prefix
        self._default_ttl = default_ttl_seconds

    @classmethod
    def from_url(cls, redis_url: str, **kwargs) -> "RedisArticleCache":
        import redis

        return cls(redis.Redis.from_url(redis_url, decode_responses=True), **kwargs)

    def _format(self, key: str) -> str:  # pragma: no cover - trivial
        return f"{self._prefix}:{key}"

    def get(self, key: str) -> Optional[ArticleItem]:
        try:
            data = self._client.get(self._format(key))
        except RedisError as exc:
            logger.warning("article_cache.get_failed", extra={"key": key, "error": str(exc)})
            return None
        if not data:
            return None
        try:
            return ArticleItem.model_validate_json(data)
        except ValidationError:
            logger.warning("article_cache.corrupt_entry", extra={"key": key})
            return None

    def set(self, key: str, item: ArticleItem, ttl_seconds: int | None = None) -> None:
        ttl = ttl_seconds if ttl_seconds is not None else self._default_ttl
        payload = item.model_dump_json()
        try:
            if ttl:
                self._client.setex(self._format(key), ttl, payload)
            else:
                self._client.set(self._format(key), payload)
        except RedisError as exc:
            logger.warning("article_cache.set_failed", extra={"key": key, "error": str(exc)})
