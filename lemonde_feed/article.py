"""Article page parsing for Le Monde feed reader."""

import re

import requests
from bs4 import BeautifulSoup, Tag

from .config import FeedConfig
from .logging_config import create_execution_logger
from .models import Article, BlockKind, ContentBlock, LivePost, PageKind
from .rss import FetchError

PARAGRAPH_CLASSES = {
    "article__paragraph",
    "article__status",
    "article__cite",
    "article__unordered-list",
}
ANCHOR_TAG = re.compile(r"</?a\b[^>]*>")

# headline, description, author, date, read time
HEADER_SELECTORS = {
    PageKind.STANDARD: (
        ".article__header .article__title",
        ".article__header .article__desc",
        ".article__header .meta__author",
        ".article__header .meta__date",
        ".article__header .meta__reading-time",
    ),
    PageKind.LONGFORM: (
        ".article__heading .article__title",
        ".article__heading .article__desc",
        ".article__heading .meta__authors",
        ".article__heading .meta__publisher",
        ".article__heading .meta__reading-time",
    ),
}


class ArticleFetcher:
    """Downloads an article page and splits it into content blocks."""

    def __init__(
        self,
        config: FeedConfig | None = None,
        session: requests.Session | None = None,
        execution_id: str | None = None,
    ):
        self.config = config or FeedConfig()
        self.session = session or requests.Session()
        self.logger = create_execution_logger("article_fetcher", execution_id)

    def fetch_article(self, url: str, include_tweets: bool = False) -> Article:
        """Fetch and parse one article page.

        Args:
            url: Absolute article link, as found in the feed
            include_tweets: Keep embedded tweets as TWEET blocks

        Raises:
            FetchError: If the download fails or the status is not successful
        """
        try:
            self.logger.info("Downloading article page", feed_url=url)
            response = self.session.get(url, timeout=self.config.timeout)
            response.raise_for_status()
        except requests.HTTPError as e:
            status_code = e.response.status_code if e.response is not None else None
            self.logger.error(
                f"Article request returned an error status: {e}",
                feed_url=url,
                status_code=status_code,
            )
            raise FetchError(url, status_code=status_code) from e
        except requests.RequestException as e:
            self.logger.error(f"Failed to download article {url}: {e}", feed_url=url, error=str(e))
            raise FetchError(url, reason=str(e)) from e

        article = parse_article(response.text, include_tweets)
        self.logger.info(
            "Parsed article page",
            feed_url=url,
            page_kind=article.kind.value,
            blocks_count=len(article.blocks),
            is_restricted=article.is_restricted,
        )
        return article


def parse_article(html: str, include_tweets: bool = False) -> Article:
    """Split an article page into blocks in reading order.

    Live coverage pages give a headline, a description and one LivePost per
    update. Long-form and standard pages give the header blocks followed by
    the body: figures, subtitles, paragraphs and optionally tweets. A page
    whose status block carries the premium icon is flagged restricted and
    the status block itself is dropped.
    """
    soup = BeautifulSoup(html, "html.parser")
    article = Article(
        kind=page_kind(soup),
        section=_meta_content(soup, "og:article:section"),
        image_uri=_meta_content(soup, "og:image"),
    )

    statuses = soup.select(".article__status")
    if any(status.select_one(".icon__premium") is not None for status in statuses):
        article.is_restricted = True
        for status in statuses:
            status.decompose()

    if article.kind is PageKind.LIVE:
        article.blocks.append(_header_block(BlockKind.HEADLINE, soup, ".title .title--live"))
        article.blocks.append(_header_block(BlockKind.DESCRIPTION, soup, ".title .summary--live"))
        article.blocks.extend(parse_live_post(post) for post in soup.select("#post-container .post"))
        return article

    headline, description, author, date, read_time = HEADER_SELECTORS[article.kind]
    article.blocks.append(_header_block(BlockKind.HEADLINE, soup, headline))
    article.blocks.append(_header_block(BlockKind.DESCRIPTION, soup, description))
    article.blocks.append(ContentBlock(BlockKind.AUTHOR, text=_select_text(soup, author)))
    article.blocks.append(ContentBlock(BlockKind.DATE, text=_select_text(soup, date)))

    # Screen reader hints ("Temps de lecture") are not part of the duration
    for hint in soup.select(f"{read_time} span.sr-only"):
        hint.decompose()
    duration = _select_text(soup, read_time)
    if duration:
        article.blocks.append(ContentBlock(BlockKind.READ_TIME, text=duration))

    for element in soup.select(".article__content > *"):
        block = body_block(element, include_tweets)
        if block is not None:
            article.blocks.append(block)

    return article


def page_kind(soup: BeautifulSoup) -> PageKind:
    if soup.select_one(".live__hero") is not None:
        return PageKind.LIVE
    if soup.select_one(".article--longform") is not None:
        return PageKind.LONGFORM
    return PageKind.STANDARD


def body_block(element: Tag, include_tweets: bool = False) -> ContentBlock | None:
    """Turn one direct child of the article body into a block, if it is one."""
    classes = set(element.get("class") or [])

    if element.name == "figure":
        image = element.find("img", src=True)
        if image is not None and image["src"]:
            return ContentBlock(BlockKind.IMAGE, src=image["src"])
        return None
    if element.name == "h2":
        return ContentBlock(BlockKind.SUBTITLE, text=_plain_text(element))
    if classes & PARAGRAPH_CLASSES:
        return ContentBlock(
            BlockKind.PARAGRAPH,
            text=_plain_text(element),
            html=ANCHOR_TAG.sub("", element.decode_contents()),
        )
    if "twitter-tweet" in classes and include_tweets:
        anchor = element.select_one("a[href]")
        return ContentBlock(
            BlockKind.TWEET,
            text=_plain_text(element),
            html=element.decode_contents(),
            src=tweet_link(anchor["href"]) if anchor is not None else None,
        )
    return None


def tweet_link(href: str) -> str:
    """Make a protocol-relative tweet href absolute."""
    if href.startswith("//"):
        return f"https:{href}"
    return href


def parse_live_post(post: Tag) -> LivePost:
    avatar = post.select_one(".creator-avatar img")
    live_post = LivePost(
        author=_select_text(post, ".info-content .creator-name"),
        date=_select_text(post, ".info-content .date"),
        avatar_uri=(avatar.get("src") or None) if avatar is not None else None,
    )
    for content in post.select(".content--live"):
        live_post.blocks.extend(_live_blocks(content))
    return live_post


def _live_blocks(element: Tag) -> list[ContentBlock]:
    # Wrapper divs are walked down to the innermost content elements
    if element.find("div", recursive=False) is not None:
        return [
            block
            for child in element.find_all(recursive=False)
            for block in _live_blocks(child)
        ]

    blocks = []
    text = _plain_text(element)
    if text:
        blocks.append(ContentBlock(BlockKind.PARAGRAPH, text=text, html=element.decode_contents()))
    if element.name == "img" and element.get("src"):
        blocks.append(ContentBlock(BlockKind.IMAGE, src=element["src"]))
    images = element.select(":scope > strong img")
    if len(images) == 1 and images[0].get("src"):
        blocks.append(ContentBlock(BlockKind.IMAGE, src=images[0]["src"]))
    return blocks


def _header_block(kind: BlockKind, soup: BeautifulSoup, selector: str) -> ContentBlock:
    elements = soup.select(selector)
    return ContentBlock(
        kind,
        text=_select_text(soup, selector),
        html="\n".join(element.decode_contents() for element in elements),
    )


def _select_text(root: Tag, selector: str) -> str:
    return " ".join(filter(None, (_plain_text(element) for element in root.select(selector))))


def _plain_text(element: Tag) -> str:
    return " ".join(element.get_text().split())


def _meta_content(soup: BeautifulSoup, prop: str) -> str | None:
    meta = soup.find("meta", attrs={"property": prop})
    if meta is None:
        return None
    return meta.get("content") or None
