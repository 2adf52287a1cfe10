"""Canonical article URLs for WeChat MP.

The same article is reachable through several URL shapes. Each shape maps to a
canonical form that is used as the article's identity (dedup/cache key).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple
from urllib.parse import SplitResult, urlsplit, urlunsplit

MP_HOST = "mp.weixin.qq.com"
MP_ROOT = f"https://{MP_HOST}"
ARTICLE_PATH = "/s"

LONG_FORM_PARAMS = ("__biz", "mid", "idx", "sn")
TEMPORARY_FORM_PARAMS = ("src", "timestamp", "ver", "signature")


class UnrecognizedUrlError(ValueError):
    """URL host is not the WeChat MP article host."""


@dataclass(frozen=True)
class UrlShape:
    """One row of the shape table: path check, required and retained params."""

    name: str
    path_matches: Callable[[str], bool]
    required: Tuple[str, ...] = ()
    retained: Tuple[str, ...] = ()

    def matches(self, path: str, params: Dict[str, str]) -> bool:
        return self.path_matches(path) and all(params.get(key) for key in self.required)


@dataclass(frozen=True)
class CanonicalUrl:
    url: str
    shape: str


SHORT = "short"
LONG = "long"
TEMPORARY = "temporary"
FALLBACK = "fallback"

URL_SHAPES: Tuple[UrlShape, ...] = (
    UrlShape(SHORT, lambda path: path.startswith(ARTICLE_PATH + "/") and len(path) > len(ARTICLE_PATH) + 1),
    UrlShape(LONG, lambda path: path == ARTICLE_PATH, LONG_FORM_PARAMS, LONG_FORM_PARAMS),
    UrlShape(TEMPORARY, lambda path: path == ARTICLE_PATH, TEMPORARY_FORM_PARAMS, TEMPORARY_FORM_PARAMS),
)


def is_mp_url(url: str) -> bool:
    return (urlsplit(url).hostname or "") == MP_HOST


def _query_pairs(query: str) -> List[Tuple[str, str, str]]:
    # raw (key, value, part); values such as "MzA4MjQxNjQzMA==" must not be re-encoded
    pairs = []
    for part in query.split("&"):
        if not part:
            continue
        key, _, value = part.partition("=")
        pairs.append((key, value, part))
    return pairs


def _retain(query: str, allowed: Tuple[str, ...]) -> str:
    seen = set()
    kept = []
    for key, _, part in _query_pairs(query):
        if key in allowed and key not in seen:
            seen.add(key)
            kept.append(part)
    return "&".join(kept)


def _match_shape(parts: SplitResult) -> Optional[UrlShape]:
    params: Dict[str, str] = {}
    for key, value, _ in _query_pairs(parts.query):
        params.setdefault(key, value)
    for shape in URL_SHAPES:
        if shape.matches(parts.path, params):
            return shape
    return None


def classify_url(url: str) -> CanonicalUrl:
    """Canonicalize an article URL and report which shape it had.

    Raises:
        UnrecognizedUrlError: the host is not ``mp.weixin.qq.com``.
    """
    if not is_mp_url(url):
        raise UnrecognizedUrlError(f"URL host must be {MP_HOST!r}, got {url!r}")
    parts = urlsplit(url)
    shape = _match_shape(parts)
    if shape is None:
        canonical = urlunsplit(("https", parts.netloc, parts.path, parts.query, ""))
        return CanonicalUrl(canonical, FALLBACK)
    query = _retain(parts.query, shape.retained)
    # urlsplit lowercases the scheme; keep it as written
    scheme = url.lstrip()[: len(parts.scheme)]
    canonical = urlunsplit((scheme, parts.netloc, parts.path, query, ""))
    return CanonicalUrl(canonical, shape.name)


def normalize_url(url: str, bypass_host_check: bool = False) -> str:
    """Return the canonical form of ``url``.

    With ``bypass_host_check`` a URL on another host is returned unchanged
    instead of raising :class:`UnrecognizedUrlError`.
    """
    if bypass_host_check and not is_mp_url(url):
        return url
    return classify_url(url).url
