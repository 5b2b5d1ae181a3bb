"""Visit Beacon - page visit analytics beacon with attribution and dedup."""

__version__ = "1.0.0"
