"""
Configuration management for slide image generation.

Centralized configuration with:
- Type safety
- Environment variable support (a local .env is loaded by agents.config)
- Validation
"""

import os
from dataclasses import dataclass, field
from typing import Dict, Any, Optional
from functools import lru_cache

from agents.config import FAL_BASE_URL, FALLBACK_IMAGE_SCHEME, IMAGE_GENERATION_ENABLED
from agents.generation.exceptions import InvalidConfigError
from config.rate_limits import PROVIDER_RATE_LIMITS, RATE_LIMIT_SAFE_SETTINGS, USAGE_PROFILES


@dataclass
class ImageGenerationConfig:
    """Budget, scheduling and prompt thresholds for the image pipeline."""
    max_credits: int = field(default_factory=lambda: int(os.getenv('IMAGE_MAX_CREDITS', '20')))
    priority_count: int = field(default_factory=lambda: int(os.getenv('IMAGE_PRIORITY_COUNT', '2')))
    enhancement_min_length: int = field(default_factory=lambda: int(os.getenv('IMAGE_ENHANCEMENT_MIN_LENGTH', '150')))
    content_word_limit: int = field(default_factory=lambda: int(os.getenv('IMAGE_CONTENT_WORD_LIMIT', '20')))

    # Pacing
    inter_request_delay: float = field(default_factory=lambda: float(os.getenv(
        'IMAGE_INTER_REQUEST_DELAY', str(RATE_LIMIT_SAFE_SETTINGS['inter_request_delay']))))
    rate_limited_retry_delay: float = field(default_factory=lambda: float(os.getenv(
        'IMAGE_RATE_LIMITED_RETRY_DELAY', str(RATE_LIMIT_SAFE_SETTINGS['rate_limited_retry_delay']))))
    max_rate_limited_retries: int = field(default_factory=lambda: int(os.getenv(
        'IMAGE_MAX_RATE_LIMITED_RETRIES', str(RATE_LIMIT_SAFE_SETTINGS['max_rate_limited_retries']))))

    # Timeouts (seconds)
    request_timeout: float = field(default_factory=lambda: float(os.getenv('IMAGE_REQUEST_TIMEOUT', '120')))
    connect_timeout: float = field(default_factory=lambda: float(os.getenv('IMAGE_CONNECT_TIMEOUT', '10')))

    # Request defaults
    default_size: str = field(default_factory=lambda: os.getenv('IMAGE_DEFAULT_SIZE', 'landscape'))
    default_style: str = field(default_factory=lambda: os.getenv('IMAGE_DEFAULT_STYLE', 'corporate'))

    generation_enabled: bool = field(default_factory=lambda: IMAGE_GENERATION_ENABLED)
    fallback_scheme: str = field(default_factory=lambda: FALLBACK_IMAGE_SCHEME)

    @classmethod
    def from_profile(cls, profile: str, **overrides) -> 'ImageGenerationConfig':
        """Build a config from one of the USAGE_PROFILES, e.g. 'conservative'."""
        if profile not in USAGE_PROFILES:
            raise InvalidConfigError(
                f"Unknown usage profile '{profile}'",
                context={'available': sorted(USAGE_PROFILES)}
            )
        settings = USAGE_PROFILES[profile]
        values = {
            'priority_count': settings['priority_count'],
            'inter_request_delay': settings['inter_request_delay'],
        }
        values.update(overrides)
        return cls(**values)


@dataclass
class ProviderConfig:
    """fal.ai access configuration"""
    api_key: Optional[str] = field(default_factory=lambda: os.getenv('FAL_KEY') or os.getenv('FAL_API_KEY'))
    base_url: str = field(default_factory=lambda: os.getenv('FAL_BASE_URL', FAL_BASE_URL))
    # When set, calls go through this proxy and credentials stay server-side
    proxy_url: Optional[str] = field(default_factory=lambda: os.getenv('FAL_PROXY_URL') or None)
    rate_limits: Dict[str, Dict[str, float]] = field(
        default_factory=lambda: {name: dict(limits) for name, limits in PROVIDER_RATE_LIMITS.items()}
    )

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key or self.proxy_url)


@dataclass
class LogConfig:
    """Logging configuration"""
    level: str = field(default_factory=lambda: os.getenv('LOG_LEVEL', 'INFO'))
    format: str = field(default_factory=lambda: os.getenv(
        'LOG_FORMAT', "%(asctime)s - %(name)s - %(levelname)s - %(message)s"))


@dataclass
class Config:
    """Master configuration"""
    images: ImageGenerationConfig = field(default_factory=ImageGenerationConfig)
    provider: ProviderConfig = field(default_factory=ProviderConfig)
    logging: LogConfig = field(default_factory=LogConfig)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization (secrets masked)"""
        return {
            'images': {
                'max_credits': self.images.max_credits,
                'priority_count': self.images.priority_count,
                'enhancement_min_length': self.images.enhancement_min_length,
                'content_word_limit': self.images.content_word_limit,
                'inter_request_delay': self.images.inter_request_delay,
                'rate_limited_retry_delay': self.images.rate_limited_retry_delay,
                'max_rate_limited_retries': self.images.max_rate_limited_retries,
                'request_timeout': self.images.request_timeout,
                'default_size': self.images.default_size,
                'default_style': self.images.default_style,
                'generation_enabled': self.images.generation_enabled,
                'fallback_scheme': self.images.fallback_scheme,
            },
            'provider': {
                'base_url': self.provider.base_url,
                'proxy_url': self.provider.proxy_url,
                'api_key_set': bool(self.provider.api_key),
                'rate_limits': self.provider.rate_limits,
            },
            'logging': {
                'level': self.logging.level,
            },
        }

    def validate(self) -> None:
        """Validate configuration values"""
        images = self.images
        if images.max_credits < 0:
            raise InvalidConfigError(f"max_credits must be >= 0, got {images.max_credits}")

        if images.priority_count < 0:
            raise InvalidConfigError(f"priority_count must be >= 0, got {images.priority_count}")

        if images.content_word_limit < 1:
            raise InvalidConfigError(f"content_word_limit must be at least 1, got {images.content_word_limit}")

        if images.inter_request_delay < 0 or images.rate_limited_retry_delay < 0:
            raise InvalidConfigError("Delays must not be negative")

        if images.max_rate_limited_retries < 0:
            raise InvalidConfigError(
                f"max_rate_limited_retries must be >= 0, got {images.max_rate_limited_retries}")

        if images.request_timeout <= 0 or images.connect_timeout <= 0:
            raise InvalidConfigError("Timeouts must be positive")

        if images.fallback_scheme not in ('pool', 'picsum'):
            raise InvalidConfigError(f"fallback_scheme must be 'pool' or 'picsum', got {images.fallback_scheme!r}")

        for provider, limits in self.provider.rate_limits.items():
            if int(limits.get('requests_per_window', 0)) < 1:
                raise InvalidConfigError(f"{provider}: requests_per_window must be at least 1")
            if float(limits.get('window_seconds', 0)) <= 0:
                raise InvalidConfigError(f"{provider}: window_seconds must be positive")


@lru_cache(maxsize=1)
def get_config() -> Config:
    """Get singleton configuration instance"""
    config = Config()
    config.validate()
    return config


def get_config_dict() -> Dict[str, Any]:
    """Get configuration as dictionary"""
    return get_config().to_dict()


def get_image_config() -> ImageGenerationConfig:
    return get_config().images


def get_provider_config() -> ProviderConfig:
    return get_config().provider
