"""WeChat MP article connector (fetcher-injected for tests/offline)."""

from __future__ import annotations

import html
import re
from datetime import datetime, timezone
from typing import Any, Mapping, Optional, Union

from bs4 import BeautifulSoup

from mpfeed.models.domain import ArticleItem
from mpfeed.services.article_cache import ArticleCache, RedisArticleCache
from mpfeed.services.content import CONTENT_SELECTOR, fix_article_content
from mpfeed.services.urls import normalize_url
from mpfeed.settings import Settings, get_settings
from mpfeed.utils.logging import configure_logging, get_logger

from .base import BaseConnector, HttpPageFetcher, PageFetcherFn


_PUBLISH_TIME_RE = re.compile(r"var\s+ct\s*=\s*\"?(\d{10})\"?")
_SOURCE_URL_RE = re.compile(r"var\s+msg_source_url\s*=\s*['\"]([^'\"]*)['\"]")

FINISHED_FIELDS = ("title", "author", "description", "summary", "pub_date")

logger = get_logger(__name__)


def _meta_content(soup: BeautifulSoup, **attrs: str) -> str:
    tag = soup.find("meta", attrs=attrs)
    return str(tag.get("content") or "") if tag else ""


def _script_match(soup: BeautifulSoup, pattern: re.Pattern) -> Optional[str]:
    for script in soup.find_all("script"):
        match = pattern.search(script.get_text())
        if match:
            return match.group(1)
    return None


def parse_publish_time(soup: BeautifulSoup) -> Optional[datetime]:
    """Publish instant from the page's ``var ct = "<epoch seconds>"`` script."""
    timestamp = _script_match(soup, _PUBLISH_TIME_RE)
    if timestamp is None:
        return None
    return datetime.fromtimestamp(int(timestamp), tz=timezone.utc)


def parse_mp_name(soup: BeautifulSoup) -> Optional[str]:
    node = soup.select_one(".profile_nickname") or soup.select_one("#js_name")
    if node is None:
        return None
    name = node.get_text().strip()
    return name or None


def parse_title(soup: BeautifulSoup) -> str:
    # og:title carries escaped line breaks literally
    return _meta_content(soup, property="og:title").replace("\\r", "").replace("\\n", "\n")


def parse_source_url(soup: BeautifulSoup) -> Optional[str]:
    """Original article URL of a reposted article, if the page declares one."""
    url = _script_match(soup, _SOURCE_URL_RE)
    if not url:
        return None
    return html.unescape(url).replace("\\x26", "&").replace("\\/", "/")


class WeChatMPConnector(BaseConnector):
    """Connector for WeChat Official Account article pages.

    - fetcher injected: offline mode (tests, custom transports)
    - fetcher omitted: real HTTP calls through :class:`HttpPageFetcher`
    """

    source = "wechat_mp"
    source_type = "article"

    def __init__(
        self,
        fetcher: Optional[PageFetcherFn] = None,
        *,
        cache: Optional[ArticleCache] = None,
        settings: Optional[Settings] = None,
    ):
        self._settings = settings or get_settings()
        if fetcher is None:
            fetcher = HttpPageFetcher(
                timeout_seconds=float(self._settings.request_timeout_seconds),
                user_agent=self._settings.user_agent,
            )
        super().__init__(fetcher)
        self._cache = cache

    def parse_article(self, page: str, link: str) -> ArticleItem:
        """Build an item from a fetched page body; ``link`` must be canonical."""
        soup = BeautifulSoup(page, "html.parser")
        title = parse_title(soup)
        summary = _meta_content(soup, name="description")
        if summary == title:
            summary = ""

        description = fix_article_content(soup.select_one(CONTENT_SELECTOR))
        source_url = parse_source_url(soup)
        if source_url:
            description += f'<p><a href="{html.escape(source_url)}">阅读原文</a></p>'

        return ArticleItem(
            title=title,
            summary=summary,
            author=_meta_content(soup, name="author"),
            description=description,
            mp_name=parse_mp_name(soup),
            link=link,
            pub_date=parse_publish_time(soup),
        )

    async def fetch_article(self, url: str, *, bypass_host_check: bool = False) -> ArticleItem:
        link = normalize_url(url, bypass_host_check)
        if self._cache is not None:
            cached = self._cache.get(link)
            if cached is not None:
                logger.debug("wechat_mp.cache.hit", extra={"link": link})
                return cached

        logger.info("wechat_mp.fetch.start", extra={"url": url, "link": link})
        page = await self._fetch_raw(link)
        item = self.parse_article(page, link)
        if not item.description:
            logger.info("wechat_mp.fetch.empty_content", extra={"link": link})

        if self._cache is not None:
            self._cache.set(link, item, int(self._settings.cache_ttl_seconds))
        logger.info(
            "wechat_mp.fetch.done",
            extra={"link": link, "pub_date": item.pub_date.isoformat() if item.pub_date else None},
        )
        return item

    async def finish_article_item(
        self,
        item: Union[ArticleItem, Mapping[str, Any]],
        *,
        set_mp_name_as_author: bool = False,
        skip_link: bool = False,
    ) -> ArticleItem:
        """Complete a partial item (at least ``link``) from its article page.

        Non-empty fetched title/author/description/summary/pub_date replace the
        partial values, ``link`` becomes canonical unless ``skip_link``. The
        account name is never copied onto the item.
        """
        partial = item if isinstance(item, ArticleItem) else ArticleItem.model_validate(dict(item))
        fetched = await self.fetch_article(partial.link)

        updates: dict[str, Any] = {}
        for key in FINISHED_FIELDS:
            value = getattr(fetched, key)
            if value:
                updates[key] = value
        if set_mp_name_as_author and fetched.mp_name:
            updates["author"] = fetched.mp_name
        if not skip_link:
            updates["link"] = fetched.link
        return partial.model_copy(update=updates)


def create_connector(settings: Optional[Settings] = None) -> WeChatMPConnector:
    """Build a connector from settings, with a Redis cache when configured."""
    config = settings or get_settings()
    configure_logging(config.structlog_level, json_enabled=config.log_json)
    cache = None
    if config.redis_url:
        cache = RedisArticleCache.from_url(config.redis_url, default_ttl_seconds=int(config.cache_ttl_seconds))
    return WeChatMPConnector(cache=cache, settings=config)


_DEFAULT_CONNECTOR: WeChatMPConnector | None = None


def get_default_connector() -> WeChatMPConnector:
    global _DEFAULT_CONNECTOR
    if _DEFAULT_CONNECTOR is None:
        _DEFAULT_CONNECTOR = create_connector()
    return _DEFAULT_CONNECTOR


def reset_default_connector() -> None:
    """Drop the cached default connector (for tests)."""
    global _DEFAULT_CONNECTOR
    _DEFAULT_CONNECTOR = None


async def fetch_article(url: str, *, bypass_host_check: bool = False) -> ArticleItem:
    return await get_default_connector().fetch_article(url, bypass_host_check=bypass_host_check)


async def finish_article_item(
    item: Union[ArticleItem, Mapping[str, Any]],
    *,
    set_mp_name_as_author: bool = False,
    skip_link: bool = False,
) -> ArticleItem:
    return await get_default_connector().finish_article_item(
        item, set_mp_name_as_author=set_mp_name_as_author, skip_link=skip_link
    )
