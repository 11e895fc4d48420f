"""Constants and enums for the spend tracker"""

from enum import Enum


class SpendStatus(str, Enum):
    """Budget status of a vendor for a month"""
    NO_SPEND = "no-spend"
    ON_TARGET = "on-target"
    OVER_BUDGET = "over-budget"
    UNDER_BUDGET = "under-budget"


class SyncStage(str, Enum):
    """Stages of a transaction sync run"""
    VALIDATE = "validate"
    FETCH = "fetch"
    LOAD_VENDORS = "load_vendors"
    DEDUPE = "dedupe"
    MATCH = "match"
    PERSIST = "persist"


class StorageBackend(str, Enum):
    """Document store backends"""
    MEMORY = "memory"
    REDIS = "redis"


# Matching policy
DEFAULT_MATCH_THRESHOLD = 0.6
DEFAULT_SUGGESTION_THRESHOLD = 0.3
DEFAULT_SUGGESTION_LIMIT = 3
DEFAULT_MIN_MATCH_LENGTH = 3
DEFAULT_SCORER = "token_sort"

# Reporting policy
DEFAULT_ON_TARGET_BAND = 0.05  # +/-5% of budget
DEFAULT_SUGGEST_FOR_UNBUDGETED = True

# Provider (Ramp developer API)
RAMP_API_BASE_URL = "https://api.ramp.com/developer/v1"
RAMP_TOKEN_URL = "https://api.ramp.com/developer/v1/token"
RAMP_TOKEN_SCOPE = "transactions:read"
RAMP_CLEARED_STATE = "CLEARED"
DEFAULT_PAGE_SIZE = 100
DEFAULT_REQUEST_TIMEOUT_SECONDS = 30
TOKEN_REFRESH_MARGIN_SECONDS = 86400  # tokens last 10 days, refresh a day early

# Sync retry policy (provider fetch only)
DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_BASE_DELAY = 2
DEFAULT_RETRY_MAX_DELAY = 30

# Storage
REDIS_KEY_PREFIX = "spend"
VENDORS_COLLECTION = "vendors"
TRANSACTIONS_COLLECTION = "transactions"
EXTERNAL_ID_INDEX = "transactions_by_external_id"

DEFAULTS = {
    'matching': {
        'match_threshold': DEFAULT_MATCH_THRESHOLD,
        'suggestion_threshold': DEFAULT_SUGGESTION_THRESHOLD,
        'suggestion_limit': DEFAULT_SUGGESTION_LIMIT,
        'min_match_length': DEFAULT_MIN_MATCH_LENGTH,
        'scorer': DEFAULT_SCORER,
    },
    'reporting': {
        'on_target_band': DEFAULT_ON_TARGET_BAND,
        'suggest_for_unbudgeted': DEFAULT_SUGGEST_FOR_UNBUDGETED,
    },
    'provider': {
        'base_url': RAMP_API_BASE_URL,
        'token_url': RAMP_TOKEN_URL,
        'scope': RAMP_TOKEN_SCOPE,
        'page_size': DEFAULT_PAGE_SIZE,
        'timeout_seconds': DEFAULT_REQUEST_TIMEOUT_SECONDS,
        'fixture_path': "tests/fixtures/sample_ramp_transactions.json",
    },
    'sync': {
        'max_retries': DEFAULT_MAX_RETRIES,
        'base_delay': DEFAULT_RETRY_BASE_DELAY,
        'max_delay': DEFAULT_RETRY_MAX_DELAY,
    },
    'storage': {
        'backend': StorageBackend.MEMORY.value,
        'redis_host': "localhost:6379",
        'redis_db': 0,
        'key_prefix': REDIS_KEY_PREFIX,
    },
}
