"""Unit tests for the premium enricher."""

from unittest.mock import Mock

import pytest
import requests

from lemonde_feed.config import FeedConfig
from lemonde_feed.models import FeedItem
from lemonde_feed.premium import PremiumEnricher, premium_links_in_page
from samples import HOME_URL, build_index_page, mock_response, mock_session, teaser_block


def make_items(*links: str) -> dict[str, FeedItem]:
    return {
        link: FeedItem(
            id=str(i),
            link=link,
            title=f"Titre {i}",
            description=f"Description {i}",
            image_uri=f"https://img.lemonde.fr/{i}.jpg",
        )
        for i, link in enumerate(links)
    }


class TestPremiumLinksInPage:
    """Unit tests for index page parsing."""

    def test_teaser_and_article_blocks(self):
        page = build_index_page(
            teaser_block("https://x/teaser", premium=True),
            teaser_block("https://x/article", premium=True, css_class="article"),
            teaser_block("https://x/free"),
        )

        assert premium_links_in_page(page) == {"https://x/teaser", "https://x/article"}

    def test_first_anchor_is_used(self):
        page = build_index_page(
            '<div class="article article--main">'
            '<span class="icon__premium"></span>'
            '<a href="https://x/first">Premier</a>'
            '<a href="https://x/second">Second</a>'
            "</div>"
        )

        assert premium_links_in_page(page) == {"https://x/first"}

    def test_marker_must_be_a_span(self):
        page = build_index_page(
            '<div class="teaser"><i class="icon__premium"></i><a href="https://x/a">A</a></div>'
        )

        assert premium_links_in_page(page) == set()

    def test_block_without_anchor(self):
        page = build_index_page(
            '<div class="teaser"><span class="icon__premium"></span><p>Sans lien</p></div>'
        )

        assert premium_links_in_page(page) == set()

    def test_other_classes_are_ignored(self):
        page = build_index_page(
            '<div class="article__content"><span class="icon__premium"></span>'
            '<a href="https://x/a">A</a></div>'
        )

        assert premium_links_in_page(page) == set()

    def test_empty_page(self):
        assert premium_links_in_page("") == set()


class TestPremiumEnricher:
    """Unit tests for PremiumEnricher."""

    def test_index_url_defaults_to_host_root(self):
        enricher = PremiumEnricher()

        assert enricher.build_index_url() == HOME_URL
        assert enricher.build_index_url("") == HOME_URL

    def test_index_url_with_sub_path(self):
        enricher = PremiumEnricher(FeedConfig(host="example.org"))

        assert enricher.build_index_url("international") == "https://example.org/international"

    def test_only_matching_items_are_flagged(self):
        page = build_index_page(
            teaser_block("https://x/a", premium=True),
            teaser_block("https://x/b"),
            teaser_block("https://x/unknown", premium=True),
        )
        enricher = PremiumEnricher(session=mock_session({HOME_URL: mock_response(page)}))
        items = make_items("https://x/a", "https://x/b", "https://x/c")

        flagged = enricher.enrich(items, None)

        assert flagged == ["https://x/a"]
        assert items["https://x/a"].is_restricted is True
        assert items["https://x/b"].is_restricted is False
        assert items["https://x/c"].is_restricted is False
        assert list(items) == ["https://x/a", "https://x/b", "https://x/c"]

    def test_other_fields_are_untouched(self):
        page = build_index_page(teaser_block("https://x/a", premium=True))
        enricher = PremiumEnricher(session=mock_session({HOME_URL: mock_response(page)}))
        items = make_items("https://x/a")

        enricher.enrich(items)

        item = items["https://x/a"]
        assert item.id == "0"
        assert item.link == "https://x/a"
        assert item.title == "Titre 0"
        assert item.description == "Description 0"
        assert item.image_uri == "https://img.lemonde.fr/0.jpg"

    def test_flag_is_never_reset(self):
        page = build_index_page(teaser_block("https://x/a"))
        enricher = PremiumEnricher(session=mock_session({HOME_URL: mock_response(page)}))
        items = make_items("https://x/a")
        items["https://x/a"].is_restricted = True

        enricher.enrich(items)

        assert items["https://x/a"].is_restricted is True

    def test_href_must_match_exactly(self):
        page = build_index_page(teaser_block("/x/a", premium=True))
        enricher = PremiumEnricher(session=mock_session({HOME_URL: mock_response(page)}))
        items = make_items("https://www.lemonde.fr/x/a")

        assert enricher.enrich(items) == []
        assert items["https://www.lemonde.fr/x/a"].is_restricted is False

    def test_sub_path_targets_section_page(self):
        page = build_index_page(teaser_block("https://x/a", premium=True))
        session = mock_session({f"{HOME_URL}/sport": mock_response(page)})
        enricher = PremiumEnricher(session=session)

        assert enricher.enrich(make_items("https://x/a"), "sport") == ["https://x/a"]
        session.get.assert_called_once_with(f"{HOME_URL}/sport", timeout=30)

    @pytest.mark.parametrize(
        "side_effect",
        [requests.ConnectionError("DNS failure"), requests.Timeout("Too slow")],
    )
    def test_network_failure_is_swallowed(self, side_effect):
        session = Mock()
        session.get.side_effect = side_effect
        enricher = PremiumEnricher(session=session)
        items = make_items("https://x/a")

        assert enricher.enrich(items) == []
        assert items["https://x/a"].is_restricted is False

    def test_error_status_is_swallowed(self):
        enricher = PremiumEnricher(
            session=mock_session({HOME_URL: mock_response("Oops", 500)})
        )
        items = make_items("https://x/a")

        assert enricher.enrich(items) == []
        assert items["https://x/a"].is_restricted is False

    def test_find_premium_links_propagates_errors(self):
        enricher = PremiumEnricher(
            session=mock_session({HOME_URL: mock_response("Oops", 404)})
        )

        with pytest.raises(requests.HTTPError):
            enricher.find_premium_links()
