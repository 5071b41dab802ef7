"""Turns feed state into renderable rows."""

import re
from collections.abc import Iterable
from dataclasses import dataclass, field

from .controller import FeedState
from .models import Category, FeedItem

PLACEHOLDER_ROWS = 8


@dataclass
class FeedRow:
    """One line of the feed list."""

    id: str
    link: str
    title: str
    image_uri: str | None
    category: Category
    show_premium_badge: bool

    @property
    def is_live(self) -> bool:
        return self.category is Category.LIVE


@dataclass
class ScreenModel:
    """Everything the feed screen needs to draw itself."""

    title: str
    show_placeholders: bool
    placeholder_count: int
    refreshing: bool
    show_failure_notice: bool
    rows: list[FeedRow] = field(default_factory=list)


def classify_link(link: str, host: str = "www.lemonde.fr") -> Category:
    """Classify an article from the second segment of its URL path."""
    match = re.match(rf"https://{re.escape(host)}/([\w-]+)/(\w+)/", link or "")
    if match is None:
        return Category.NONE
    if match.group(2) == "live":
        return Category.LIVE
    if match.group(2) == "video":
        return Category.VIDEO
    return Category.NONE


def build_row(item: FeedItem, host: str = "www.lemonde.fr") -> FeedRow:
    category = classify_link(item.link, host)
    return FeedRow(
        id=item.id,
        link=item.link,
        title=item.title,
        image_uri=item.image_uri,
        category=category,
        # Live coverage never shows the premium badge
        show_premium_badge=item.is_restricted and category is not Category.LIVE,
    )


def build_rows(items: Iterable[FeedItem], host: str = "www.lemonde.fr") -> list[FeedRow]:
    return [build_row(item, host) for item in items]


def build_screen(
    state: FeedState, host: str = "www.lemonde.fr", title: str = "À la une"
) -> ScreenModel:
    """Build the screen model for the current feed state.

    While the first load is pending, placeholder rows replace the list. A
    pull-to-refresh keeps the current rows visible instead.
    """
    show_placeholders = state.loading and not state.refreshing
    return ScreenModel(
        title=title,
        show_placeholders=show_placeholders,
        placeholder_count=PLACEHOLDER_ROWS if show_placeholders else 0,
        refreshing=state.refreshing,
        show_failure_notice=state.fetch_failed,
        rows=[] if show_placeholders else build_rows(state.items, host),
    )
