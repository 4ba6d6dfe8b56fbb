from pathlib import Path

DEFAULT_DATA_DIR = (Path.cwd() / "data").absolute().resolve()

# Cache scopes (logical namespaces in the durable tier)
SCOPE_METADATA = "meta"
SCOPE_SCORES = "scores"
SCOPE_SEARCH = "search"
SCOPE_API = "api"
SCOPE_RATE_LIMIT = "ratelimit"

# Scopes removed by a "clear all"; rate-limit counters are not cache data
CLEARABLE_SCOPES = [SCOPE_METADATA, SCOPE_SCORES, SCOPE_SEARCH, SCOPE_API]

# TTL classes in seconds
DEFAULT_CACHE_DURATIONS = {
    "metadata": 86400,  # 24 hours
    "scores": 21600,  # 6 hours
    "search": 3600,  # 1 hour
    "api": 1800,  # 30 minutes
}

# Fast tier
FAST_TIER_TTL_CAP = 3600  # Bounds fast-tier memory regardless of caller TTL
FAST_TIER_KINDS = ["memory", "redis", "none"]

# Durable tier payload handling
COMPRESSION_THRESHOLD_BYTES = 1024
COMPRESSION_LEVEL = 6
STATS_CACHE_SECONDS = 300
CLEANUP_BATCH_LIMIT = 1000

# Rate limiting (fixed window, per identity and action)
RATE_LIMIT_REQUESTS = 30
RATE_LIMIT_WINDOW_SECONDS = 60

# Catalog client
CATALOG_BASE_URL = "https://api.wordpress.org/plugins/info/1.2/"
CATALOG_TIMEOUT_SECONDS = 30.0
CATALOG_USER_AGENT = "WordPress Plugin Directory Filters/1.0.0"
CATALOG_MAX_PER_PAGE = 48

# Platform version used for compatibility scoring
DEFAULT_PLATFORM_VERSION = "6.8"

# Request limits
MAX_SEARCH_TERM_LENGTH = 200
MAX_PAGE = 1000
MAX_PER_PAGE = 48
DEFAULT_PER_PAGE = 24

# Health score used when no component carries any weight
NO_SIGNAL_HEALTH_SCORE = 50

# Cache warming
POPULAR_PLUGIN_SLUGS = [
    "woocommerce",
    "wordpress-seo",
    "elementor",
    "contact-form-7",
    "wordfence",
    "jetpack",
    "akismet",
    "advanced-custom-fields",
    "wp-super-cache",
    "classic-editor",
    "litespeed-cache",
    "mailchimp-for-wp",
    "updraftplus",
    "duplicate-post",
    "wpforms-lite",
]
WARM_CACHE_MAX_PLUGINS = 10
WARM_CACHE_DELAY_SECONDS = 0.1
