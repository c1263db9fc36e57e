"""Base infrastructure shared by the marketplace scrapers.

Public API:
    - Platform: Enum of supported marketplaces
    - Product, QueryResult, ShopResult: The seller-centric result tree
    - ScrapeEvent, EventKind: Progress notifications
    - ExtractionAdapter: Abstract base class for marketplace adapters
    - AdapterRegistry: Registry for marketplace adapters
    - ScraperSettings: Validated configuration
    - ScrapeOrchestrator: The scrape state machine
"""

# Configuration management
from .config import (
    DriverSettings,
    PlatformSettings,
    ScraperSettings,
    SessionSettings,
    TimingSettings,
    get_settings,
    load_settings,
    reset_settings,
)

# Core models and interfaces
from .models import (
    AdapterRegistry,
    EventKind,
    ExtractionAdapter,
    Platform,
    Product,
    QueryResult,
    ScrapeEvent,
    ShopResult,
    register_adapter,
)

# Orchestration
from .orchestrator import ScrapeOrchestrator, SellerEntry
from .profile import resolve_profile_dir

# Utilities
from .utils import (
    card_link,
    encode_query,
    first_attribute,
    first_text,
    normalize_link,
    poll_until,
)

__all__ = [
    # Core models and interfaces
    "AdapterRegistry",
    "EventKind",
    "ExtractionAdapter",
    "Platform",
    "Product",
    "QueryResult",
    "ScrapeEvent",
    "ShopResult",
    "register_adapter",
    # Configuration management
    "DriverSettings",
    "PlatformSettings",
    "ScraperSettings",
    "SessionSettings",
    "TimingSettings",
    "get_settings",
    "load_settings",
    "reset_settings",
    "resolve_profile_dir",
    # Orchestration
    "ScrapeOrchestrator",
    "SellerEntry",
    # Utilities
    "card_link",
    "encode_query",
    "first_attribute",
    "first_text",
    "normalize_link",
    "poll_until",
]
