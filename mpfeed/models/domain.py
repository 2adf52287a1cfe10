"""Domain DTOs for the article source."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ArticleItem(BaseModel):
    """A single article as handed to the feed-assembly layer.

    ``link`` is always the canonical article URL. Extra keys set by the feed
    layer on a partial item are kept as-is.
    """

    model_config = ConfigDict(extra="allow")

    title: str = ""
    summary: str = Field("", description="Page meta description, empty when it repeats the title")
    author: str = ""
    description: str = Field("", description="Normalized article body HTML")
    mp_name: Optional[str] = Field(None, description="Official account name, only set by a raw fetch")
    link: str
    pub_date: Optional[datetime] = None
