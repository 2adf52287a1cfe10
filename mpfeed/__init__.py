"""WeChat MP article source package bootstrap."""

from .connectors.wechat_mp import (  # noqa: F401
    WeChatMPConnector,
    create_connector,
    fetch_article,
    finish_article_item,
)
from .models.domain import ArticleItem  # noqa: F401
from .services.content import fix_article_content  # noqa: F401
from .services.urls import UnrecognizedUrlError, classify_url, normalize_url  # noqa: F401
from .settings import Settings, get_settings, reset_settings_cache  # noqa: F401

__all__ = [
    "ArticleItem",
    "Settings",
    "UnrecognizedUrlError",
    "WeChatMPConnector",
    "classify_url",
    "create_connector",
    "fetch_article",
    "finish_article_item",
    "fix_article_content",
    "get_settings",
    "normalize_url",
    "reset_settings_cache",
]
