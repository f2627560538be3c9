"""
Rate limit configuration for image generation calls.

Adjust these settings based on your fal.ai plan and usage patterns.
"""

# Rolling-window request ceilings, per provider
PROVIDER_RATE_LIMITS = {
    "ideogram": {
        "requests_per_window": 10,
        "window_seconds": 60.0,
    },
    "recraft": {
        "requests_per_window": 10,
        "window_seconds": 60.0,
    },
}

# Recommended settings to avoid bursts against the providers
RATE_LIMIT_SAFE_SETTINGS = {
    "inter_request_delay": 1.5,  # Seconds between background dispatches
    "rate_limited_retry_delay": 10.0,  # Backoff before the single retry after a 429
    "max_rate_limited_retries": 1,
}

# Settings for different usage scenarios
USAGE_PROFILES = {
    "conservative": {
        "priority_count": 1,
        "inter_request_delay": 2.0,
        "description": "One blocking slide, slow background trickle - safest"
    },
    "balanced": {
        "priority_count": 2,
        "inter_request_delay": 1.5,
        "description": "Two blocking slides with moderate spacing - good balance"
    },
    "aggressive": {
        "priority_count": 3,
        "inter_request_delay": 1.0,
        "description": "More slides up front, tighter spacing - may hit rate limits"
    },
}
