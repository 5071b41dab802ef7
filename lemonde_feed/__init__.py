"""Le Monde feed reader: RSS items enriched with premium flags."""
