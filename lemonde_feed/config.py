"""Configuration management for Le Monde feed reader."""

import json
import os
from dataclasses import dataclass
from pathlib import Path

from .models import Section


@dataclass
class FeedConfig:
    """Configuration for the feed and index page requests."""

    host: str = "www.lemonde.fr"
    default_feed_path: str = "rss/une.xml"
    timeout: int = 30


class Config:
    """Main configuration manager."""

    # Default sections file path
    SECTIONS_FILE = "sections.json"

    DEFAULT_SECTIONS = [
        Section("une", "À la une", "rss/une.xml"),
        Section("international", "International", "international/rss_full.xml", "international"),
        Section("politique", "Politique", "politique/rss_full.xml", "politique"),
        Section("societe", "Société", "societe/rss_full.xml", "societe"),
        Section("economie", "Économie", "economie/rss_full.xml", "economie"),
        Section("culture", "Culture", "culture/rss_full.xml", "culture"),
        Section("idees", "Idées", "idees/rss_full.xml", "idees"),
        Section("planete", "Planète", "planete/rss_full.xml", "planete"),
        Section("sport", "Sport", "sport/rss_full.xml", "sport"),
        Section("sciences", "Sciences", "sciences/rss_full.xml", "sciences"),
        Section("pixels", "Pixels", "pixels/rss_full.xml", "pixels"),
        Section("campus", "Campus", "campus/rss_full.xml", "campus"),
        Section("les-decodeurs", "Les Décodeurs", "les-decodeurs/rss_full.xml", "les-decodeurs"),
    ]

    def __init__(self):
        """Initialize configuration from environment variables."""
        self.host = os.getenv("LEMONDE_HOST", "www.lemonde.fr")
        self.default_feed_path = os.getenv("DEFAULT_FEED_PATH", "rss/une.xml")
        self.timeout = int(os.getenv("HTTP_TIMEOUT", "30"))
        self.sections_file = os.getenv("SECTIONS_FILE", self.SECTIONS_FILE)
        self.aws_region = os.getenv(
            "CURRENT_AWS_REGION", os.getenv("AWS_DEFAULT_REGION", "eu-west-3")
        )
        self.metrics_namespace = os.getenv("METRICS_NAMESPACE", "LeMonde-Feed")

    def get_feed_config(self) -> FeedConfig:
        """Get feed request configuration."""
        return FeedConfig(
            host=self.host,
            default_feed_path=self.default_feed_path,
            timeout=self.timeout,
        )

    def get_sections(self) -> list[Section]:
        """Get sections from the sections file, or the built-in defaults."""
        sections_file = Path(self.sections_file)
        if not sections_file.exists():
            return list(self.DEFAULT_SECTIONS)

        try:
            with open(sections_file, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in sections file: {e}")

        sections = [
            Section(
                key=entry["key"],
                title=entry.get("title", entry["key"]),
                feed_path=entry["feed_path"],
                sub_path=entry.get("sub_path"),
            )
            for entry in data.get("sections", [])
            if entry.get("enabled", True) and "key" in entry and "feed_path" in entry
        ]

        if not sections:
            raise ValueError("No enabled sections found in sections file")

        return sections

    def get_section(self, key: str) -> Section:
        """Look up a section by key."""
        for section in self.get_sections():
            if section.key == key:
                return section
        raise KeyError(f"Unknown section: {key}")
