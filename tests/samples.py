"""Feed and index page markup used across the test modules."""

from concurrent.futures import Future
from unittest.mock import Mock

import requests

from lemonde_feed.models import FeedItem

FEED_URL = "https://www.lemonde.fr/rss/une.xml"
HOME_URL = "https://www.lemonde.fr"


def build_item(
    link: str | None,
    title: str | None = None,
    description: str | None = None,
    image_uri: str | None = None,
    pub_date: str | None = None,
    wrap: bool = True,
) -> str:
    """Build one <item> element, CDATA-wrapping title and description."""
    parts = []
    if title is not None:
        parts.append(f"<title><![CDATA[{title}]]></title>" if wrap else f"<title>{title}</title>")
    if link is not None:
        parts.append(f'<guid isPermaLink="true">{link}</guid>')
        parts.append(f"<link>{link}</link>")
    if description is not None:
        parts.append(
            f"<description><![CDATA[{description}]]></description>"
            if wrap
            else f"<description>{description}</description>"
        )
    if pub_date is not None:
        parts.append(f"<pubDate>{pub_date}</pubDate>")
    if image_uri is not None:
        parts.append(
            f'<media:content url="{image_uri}" width="644" height="322">'
            "<media:description type=\"plain\">Photo</media:description>"
            "</media:content>"
        )
    return "<item>" + "".join(parts) + "</item>"


def build_feed(*items: str) -> str:
    """Wrap item elements in an RSS 2.0 document with the media namespace."""
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        '<rss version="2.0" xmlns:media="http://search.yahoo.com/mrss/">'
        "<channel><title>Le Monde.fr - Actualités et Infos en France et dans le monde</title>"
        + "".join(items)
        + "</channel></rss>"
    )


def build_index_page(*blocks: str) -> str:
    return "<!DOCTYPE html><html><body><main>" + "".join(blocks) + "</main></body></html>"


def teaser_block(href: str, premium: bool = False, css_class: str = "teaser") -> str:
    marker = '<span class="icon__premium"></span>' if premium else ""
    return (
        f'<section class="{css_class}">'
        f'<a href="{href}" class="{css_class}__link">'
        f'<h3 class="{css_class}__title">{marker}Titre</h3></a>'
        "</section>"
    )


def mock_response(body: str = "", status_code: int = 200) -> Mock:
    """Build a requests.Response stand-in."""
    response = Mock()
    response.status_code = status_code
    response.text = body
    response.content = body.encode("utf-8")
    response.ok = status_code < 400
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(
            f"{status_code} Error", response=response
        )
    else:
        response.raise_for_status.return_value = None
    return response


def mock_session(pages: dict[str, Mock]) -> Mock:
    """Build a session whose get() answers from a URL to response mapping."""
    session = Mock()

    def get(url, timeout=None):
        if url not in pages:
            raise requests.ConnectionError(f"No route to {url}")
        return pages[url]

    session.get.side_effect = get
    return session


class ManualExecutor:
    """Executor that holds submitted jobs until run() is called."""

    def __init__(self):
        self.jobs = []

    def submit(self, fn, *args):
        future = Future()
        self.jobs.append((future, fn, args))
        return future

    def run(self, index=0):
        future, fn, args = self.jobs[index]
        future.set_result(fn(*args))
        return future.result()

    def shutdown(self, wait=True, cancel_futures=False):
        pass


def items_for(*links: str) -> dict[str, FeedItem]:
    return {link: FeedItem(id=str(i), link=link, title=link) for i, link in enumerate(links)}


def flag_all(items_by_link, sub_path):
    """Enricher stand-in that flags every item it is given."""
    for item in items_by_link.values():
        item.is_restricted = True
    return list(items_by_link)


ARTICLE_PAGE = """<!DOCTYPE html>
<html><head>
<meta property="og:article:section" content="International">
<meta property="og:image" content="https://img.lemde.fr/une.jpg">
</head><body>
<header class="article__header">
<h1 class="article__title">Le <em>titre</em></h1>
<p class="article__desc">Le chapeau</p>
<span class="meta__author">Jean Dupont</span>
<span class="meta__date">Publié le 1 janvier 2024</span>
<p class="meta__reading-time"><span class="sr-only">Temps de lecture</span> 3 min.</p>
</header>
<article class="article__content">
<p class="article__paragraph">Un <a href="https://x/b">lien</a> ici.</p>
<figure><img src="https://img.lemde.fr/1.jpg" alt=""></figure>
<figure><figcaption>Sans image</figcaption></figure>
<h2>Sous-titre</h2>
<blockquote class="twitter-tweet"><p>Tweet</p><a href="//twitter.com/lemondefr/status/1">1 janvier</a></blockquote>
<div class="dfp__inread">Publicité</div>
<ul class="article__unordered-list"><li>Un</li><li>Deux</li></ul>
</article>
</body></html>"""
