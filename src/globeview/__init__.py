"""Country globe viewer: GeoJSON ingestion, name lookup, and manual markers."""

__version__ = "0.1.0"
