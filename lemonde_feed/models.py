"""Data models for Le Monde feed reader."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


@dataclass
class FeedItem:
    """Represents a single article entry of the RSS feed."""

    id: str
    link: str
    title: str = ""
    description: str = ""
    image_uri: str | None = None
    is_restricted: bool = False  # Set only by the premium enricher
    published: datetime | None = None


class Category(Enum):
    """Kind of article, derived from the link path."""

    LIVE = "live"
    VIDEO = "video"
    NONE = "none"


@dataclass
class Section:
    """A newspaper section: its RSS feed and its index page."""

    key: str
    title: str
    feed_path: str
    sub_path: str | None = None


class PageKind(Enum):
    """Layout of an article page."""

    STANDARD = "standard"
    LONGFORM = "longform"
    LIVE = "live"


class BlockKind(Enum):
    HEADLINE = "headline"
    DESCRIPTION = "description"
    AUTHOR = "author"
    DATE = "date"
    READ_TIME = "read_time"
    SUBTITLE = "subtitle"
    PARAGRAPH = "paragraph"
    IMAGE = "image"
    TWEET = "tweet"


@dataclass
class ContentBlock:
    """One piece of an article body.

    ``text`` is the plain text, ``html`` the inner markup where formatting
    matters (paragraphs, tweets) and ``src`` the image or tweet URL.
    """

    kind: BlockKind
    text: str = ""
    html: str = ""
    src: str | None = None


@dataclass
class LivePost:
    """A single update of a live coverage page."""

    author: str = ""
    date: str = ""
    avatar_uri: str | None = None
    blocks: list[ContentBlock] = field(default_factory=list)


@dataclass
class Article:
    """Parsed article page, blocks in reading order."""

    kind: PageKind
    blocks: list[ContentBlock | LivePost] = field(default_factory=list)
    section: str | None = None
    image_uri: str | None = None
    is_restricted: bool = False
