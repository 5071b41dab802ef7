"""Premium article detection for Le Monde feed reader."""

import requests
from bs4 import BeautifulSoup

from .config import FeedConfig
from .logging_config import create_execution_logger
from .models import FeedItem

ARTICLE_SELECTOR = ".article, .teaser"
PREMIUM_MARKER_SELECTOR = "span.icon__premium"


class PremiumEnricher:
    """Flags feed items that the section index page marks as premium."""

    def __init__(
        self,
        config: FeedConfig | None = None,
        session: requests.Session | None = None,
        execution_id: str | None = None,
    ):
        self.config = config or FeedConfig()
        self.session = session or requests.Session()
        self.logger = create_execution_logger("premium_enricher", execution_id)

    def build_index_url(self, sub_path: str | None = None) -> str:
        """Build the index page URL, the host root when no sub-path is given."""
        if sub_path:
            return f"https://{self.config.host}/{sub_path.lstrip('/')}"
        return f"https://{self.config.host}"

    def enrich(
        self, items_by_link: dict[str, FeedItem], sub_path: str | None = None
    ) -> list[str]:
        """Mark items linked from premium article blocks as restricted.

        Only ``is_restricted`` is ever changed, and only from False to True.
        Failures are logged and swallowed: the items are then left untouched.

        Args:
            items_by_link: Items produced by the feed fetcher, keyed by link
            sub_path: Section path of the index page, None for the home page

        Returns:
            Links of the items that were flagged
        """
        try:
            premium_links = self.find_premium_links(sub_path)
        except Exception as e:
            self.logger.warning(
                f"Premium enrichment failed: {e}",
                feed_url=self.build_index_url(sub_path),
                error=str(e),
            )
            return []

        flagged = []
        for link, item in items_by_link.items():
            if link in premium_links:
                item.is_restricted = True
                flagged.append(link)

        self.logger.info(
            "Premium enrichment applied",
            premium_links=len(premium_links),
            flagged_items=len(flagged),
        )
        return flagged

    def find_premium_links(self, sub_path: str | None = None) -> set[str]:
        """Download the index page and collect the links of premium articles.

        Raises:
            requests.RequestException: If the page download fails
        """
        index_url = self.build_index_url(sub_path)
        self.logger.info("Downloading index page", feed_url=index_url)
        response = self.session.get(index_url, timeout=self.config.timeout)
        response.raise_for_status()
        return premium_links_in_page(response.text)


def premium_links_in_page(html: str) -> set[str]:
    """Return the first anchor href of every premium article or teaser block."""
    soup = BeautifulSoup(html, "html.parser")
    links = set()

    for block in soup.select(ARTICLE_SELECTOR):
        if block.select_one(PREMIUM_MARKER_SELECTOR) is None:
            continue
        anchor = block.find("a")
        href = anchor.get("href") if anchor is not None else None
        if href:
            links.add(href)

    return links
