"""
Tests for image pipeline configuration.
"""

import pytest

from agents.generation.config import Config, ImageGenerationConfig, ProviderConfig
from agents.generation.exceptions import InvalidConfigError


def test_defaults_validate(monkeypatch):
    for name in ('IMAGE_MAX_CREDITS', 'IMAGE_PRIORITY_COUNT', 'IMAGE_ENHANCEMENT_MIN_LENGTH',
                 'IMAGE_INTER_REQUEST_DELAY'):
        monkeypatch.delenv(name, raising=False)

    config = Config(images=ImageGenerationConfig(), provider=ProviderConfig(api_key="secret"))
    config.validate()

    assert config.images.max_credits == 20
    assert config.images.priority_count == 2
    assert config.images.enhancement_min_length == 150
    assert config.images.inter_request_delay == 1.5
    assert config.provider.rate_limits['ideogram']['requests_per_window'] == 10


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv('IMAGE_MAX_CREDITS', '5')
    monkeypatch.setenv('IMAGE_PRIORITY_COUNT', '4')

    images = ImageGenerationConfig()

    assert images.max_credits == 5
    assert images.priority_count == 4


def test_to_dict_masks_api_key():
    config = Config(provider=ProviderConfig(api_key="secret"))
    data = config.to_dict()

    assert data['provider']['api_key_set'] is True
    assert "secret" not in str(data)


@pytest.mark.parametrize("images", [
    ImageGenerationConfig(max_credits=-1),
    ImageGenerationConfig(priority_count=-1),
    ImageGenerationConfig(inter_request_delay=-0.5),
    ImageGenerationConfig(request_timeout=0),
    ImageGenerationConfig(fallback_scheme='gradient'),
])
def test_invalid_values_rejected(images):
    with pytest.raises(InvalidConfigError):
        Config(images=images, provider=ProviderConfig(api_key="secret")).validate()


def test_invalid_rate_limits_rejected():
    provider = ProviderConfig(api_key="secret", rate_limits={'ideogram': {'requests_per_window': 0, 'window_seconds': 60}})

    with pytest.raises(InvalidConfigError):
        Config(provider=provider).validate()


def test_usage_profiles():
    conservative = ImageGenerationConfig.from_profile('conservative')
    aggressive = ImageGenerationConfig.from_profile('aggressive', max_credits=50)

    assert conservative.priority_count == 1
    assert conservative.inter_request_delay == 2.0
    assert aggressive.priority_count == 3
    assert aggressive.max_credits == 50

    with pytest.raises(InvalidConfigError):
        ImageGenerationConfig.from_profile('turbo')


def test_provider_is_configured():
    assert ProviderConfig(api_key="k", proxy_url=None).is_configured
    assert ProviderConfig(api_key=None, proxy_url="https://proxy.local/fal").is_configured
    assert not ProviderConfig(api_key=None, proxy_url=None).is_configured
