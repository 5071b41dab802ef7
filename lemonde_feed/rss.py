"""RSS feed fetching and parsing module for Le Monde feed reader."""

import re
from datetime import datetime

import requests
from dateutil import parser as date_parser
from lxml import etree

from .config import FeedConfig
from .logging_config import create_execution_logger
from .models import FeedItem

# Title and description are published wrapped in a CDATA section
CDATA_PATTERN = re.compile(r"<!\[CDATA\[(.*)\]\]>", re.DOTALL)


class FetchError(Exception):
    """Raised when a feed or article page cannot be downloaded."""

    def __init__(self, url: str, status_code: int | None = None, reason: str = ""):
        self.url = url
        self.status_code = status_code
        self.reason = reason
        message = f"Failed to fetch {url}"
        if status_code is not None:
            message += f" (HTTP {status_code})"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class FeedFetcher:
    """Downloads the RSS feed of a section and turns it into FeedItems."""

    def __init__(
        self,
        config: FeedConfig | None = None,
        session: requests.Session | None = None,
        execution_id: str | None = None,
    ):
        """Initialize FeedFetcher with configuration.

        Args:
            config: Host, default feed path and request timeout
            session: HTTP session to reuse (a new one is created otherwise)
            execution_id: Execution ID for logging context
        """
        self.config = config or FeedConfig()
        self.session = session or requests.Session()
        self.logger = create_execution_logger("feed_fetcher", execution_id)

        self.logger.info(
            "FeedFetcher initialized",
            host=self.config.host,
            timeout=self.config.timeout,
        )

    def build_feed_url(self, path: str | None = None) -> str:
        """Build the feed URL, falling back to the latest news feed."""
        path = (path or self.config.default_feed_path).lstrip("/")
        return f"https://{self.config.host}/{path}"

    def fetch_feed(self, path: str | None = None) -> list[FeedItem]:
        """Fetch and parse a feed.

        Args:
            path: Feed path relative to the host, None for the latest news

        Returns:
            FeedItems in insertion order, one per distinct link

        Raises:
            FetchError: If the download fails or the status is not successful
        """
        return list(self.fetch_items_by_link(path).values())

    def fetch_items_by_link(self, path: str | None = None) -> dict[str, FeedItem]:
        """Fetch a feed and return its items keyed by link.

        Raises:
            FetchError: If the download fails or the status is not successful
        """
        feed_url = self.build_feed_url(path)

        try:
            self.logger.info("Downloading feed content", feed_url=feed_url)
            response = self.session.get(feed_url, timeout=self.config.timeout)
            response.raise_for_status()
        except requests.HTTPError as e:
            status_code = e.response.status_code if e.response is not None else None
            self.logger.error(
                f"Feed request returned an error status: {e}",
                feed_url=feed_url,
                status_code=status_code,
            )
            raise FetchError(feed_url, status_code=status_code) from e
        except requests.RequestException as e:
            self.logger.error(
                f"Failed to download feed {feed_url}: {e}",
                feed_url=feed_url,
                error=str(e),
            )
            raise FetchError(feed_url, reason=str(e)) from e

        items = self.parse_feed(response.content)
        self.logger.log_feed_processing(feed_url, len(items))
        return items

    def parse_feed(self, content: bytes | str) -> dict[str, FeedItem]:
        """Parse feed markup into items keyed by link.

        Parsing is best effort: a broken document yields an empty or partial
        mapping, never an exception. A later item with an already seen link
        replaces the earlier one.
        """
        if isinstance(content, str):
            content = content.encode("utf-8")

        parser = etree.XMLParser(
            recover=True, strip_cdata=False, resolve_entities=False, no_network=True
        )
        try:
            root = etree.fromstring(content, parser)
        except (etree.LxmlError, ValueError) as e:
            self.logger.warning(f"Unable to parse feed content: {e}", error=str(e))
            return {}

        items: dict[str, FeedItem] = {}
        if root is None:
            self.logger.warning("Feed content is empty")
            return items

        for index, node in enumerate(root.iter("{*}item")):
            item = self.parse_item(node, str(index))
            if not item.link:
                self.logger.warning("Skipping feed item without guid", item_id=item.id)
                continue
            items[item.link] = item

        return items

    def parse_item(self, node: etree._Element, item_id: str) -> FeedItem:
        """Build a FeedItem from the direct children of an item element."""
        item = FeedItem(id=item_id, link="")

        for child in node:
            if not isinstance(child.tag, str):
                continue  # comments and processing instructions

            tag = _tag_name(child)
            if tag == "guid":
                item.link = child.text or ""
            elif tag == "title":
                item.title = extract_wrapped_text(child)
            elif tag == "description":
                item.description = extract_wrapped_text(child)
            elif tag == "media:content":
                url = child.get("url")
                if url:
                    item.image_uri = url
            elif tag == "pubDate":
                item.published = parse_published(child.text)

        return item


def extract_wrapped_text(element: etree._Element) -> str:
    """Return the text wrapped in a CDATA section, or an empty string."""
    markup = etree.tostring(element, encoding="unicode", with_tail=False)
    match = CDATA_PATTERN.search(markup)
    return match.group(1) if match else ""


def parse_published(value: str | None) -> datetime | None:
    """Parse an RFC 822 publication date, None when missing or invalid."""
    if not value or not value.strip():
        return None
    try:
        published = date_parser.parse(value.strip())
    except (ValueError, OverflowError):
        return None
    # Ensure timezone-aware datetime
    if published.tzinfo is None:
        published = published.replace(tzinfo=datetime.now().astimezone().tzinfo)
    return published


def _tag_name(element: etree._Element) -> str:
    tag = element.tag
    if tag.startswith("{"):
        tag = tag.split("}", 1)[1]
        if element.prefix:
            tag = f"{element.prefix}:{tag}"
    return tag
