"""Search configuration with environment variable support."""

import os


class SearchConfig:
    """Centralized search configuration."""

    PROPERTIES_TABLE = os.environ.get("PROPERTIES_TABLE", "properties")
    SEARCH_DEBOUNCE_SECONDS = float(os.environ.get("SEARCH_DEBOUNCE_SECONDS", "0.5"))
    LISTING_PAGE_SIZE = int(os.environ.get("LISTING_PAGE_SIZE", "9"))
    API_PAGE_SIZE = int(os.environ.get("API_PAGE_SIZE", "20"))
    MAX_PAGE_SIZE = int(os.environ.get("MAX_PAGE_SIZE", "100"))
