"""Central settings for event discovery, smart add, ride pricing and coupons."""

# =============================================================================
# REGION
# =============================================================================
# The offline catalog and the smart-add default origin are both anchored on
# Public Square, downtown Cleveland.
REFERENCE_LAT = 41.4993
REFERENCE_LNG = -81.6944
REGION_TIMEZONE = "America/New_York"

# =============================================================================
# FARE MODEL
# =============================================================================
SMART_ADD_BASE_FARE = 3.00        # Flat pickup charge for smart-add estimates
SMART_ADD_PER_MILE = 1.85         # Per-mile rate for smart-add estimates
FARE_ROUNDING_STEP = 0.05         # Estimates are rounded up to this step

RIDE_QUOTE_BASE_FARE = 40         # Flat charge for a booked event ride
RIDE_QUOTE_PER_MILE = 1.2         # Per-mile rate for a booked event ride
RIDE_QUOTE_ROUNDING_STEP = 5      # Quotes are rounded up to this step
EVENT_DAY_SURGE = 0.5             # Added surge at major venues on event days

# =============================================================================
# SMART ADD
# =============================================================================
SMART_ADD_MIN_QUERY_CHARS = 3     # Shorter queries are rejected outright
SMART_ADD_DEFAULT_RADIUS_MILES = 25
VENUE_MATCH_LIMIT = 5             # Max results from name matching
NEARBY_SEARCH_LIMIT = 6           # Max candidates from a radius search

# =============================================================================
# EVENT DISCOVERY
# =============================================================================
# TICKETMASTER DISCOVERY API:
#   - 5 requests/second (5 QPS), 5000 requests/day
#   - Docs: https://developer.ticketmaster.com/products-and-docs/apis/discovery-api/v2/
#
# EVENTBRITE API:
#   - 2000 calls/hour per token
#   - Docs: https://www.eventbrite.com/platform/api
TICKETMASTER_API_BASE = "https://app.ticketmaster.com/discovery/v2"
EVENTBRITE_API_BASE = "https://www.eventbriteapi.com/v3"
TICKETMASTER_PAGE_SIZE = 100
EVENTBRITE_PAGE_SIZE = 50
TICKETMASTER_MAX_RETRIES = 3      # Attempts when rate limited (HTTP 429)
DISCOVERY_HTTP_TIMEOUT_SEC = 10   # Per-request timeout; a timeout counts as failure
DISCOVERY_WORKERS = 2             # One worker per network provider
DEFAULT_EVENT_DURATION_HOURS = 3  # End time for providers that only give a start
DEFAULT_EVENT_START_TIME = "20:00:00"
EVENTBRITE_POPULARITY = 0.7
EVENTBRITE_DESCRIPTION_CHARS = 200
KM_PER_MILE = 1.60934

# =============================================================================
# COUPONS
# =============================================================================
COUPONS_STORAGE_KEY = "@coupons"
COUPON_USAGE_STORAGE_KEY = "@coupon_usage"
STATE_DIR_ENV_VAR = "ENGINE_STATE_DIR"   # Overrides where JsonFileStore writes
COUPON_ID_SUFFIX_CHARS = 9

# =============================================================================
# SERVER
# =============================================================================
SERVER_PORT = 8000
SERVER_DEFAULT_RATE_LIMIT = "300 per hour"
SERVER_DISCOVERY_RATE_LIMIT = "60 per hour"   # Each call hits two paid APIs
