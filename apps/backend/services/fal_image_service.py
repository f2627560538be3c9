import asyncio
import json
import random
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional, Tuple

import aiohttp
from pydantic import BaseModel, ValidationError

from agents.config import (
    FAL_PROXY_TARGET_HEADER,
    IDEOGRAM_DEFAULT_STYLE,
    IDEOGRAM_MODEL_ID,
    IDEOGRAM_NEGATIVE_PROMPT,
    IDEOGRAM_STYLES,
    RECRAFT_DEFAULT_STYLE,
    RECRAFT_MODEL_ID,
    RECRAFT_NEGATIVE_PROMPT,
    RECRAFT_STYLES,
)
from agents.domain.models import (
    FailureReason,
    GenerationFailure,
    GenerationRequest,
    GenerationResult,
    GenerationSuccess,
    Provider,
)
from agents.generation.config import ProviderConfig, get_image_config, get_provider_config
from agents.generation.exceptions import ProviderError, ProviderResponseError, error_for_status
from models.image_generation import IdeogramInput, ImageGenerationResponse, RecraftInput
from setup_logging_optimized import get_logger

logger = get_logger(__name__)

# Named sizes -> (Ideogram ratio, Recraft ratio)
NAMED_ASPECT_RATIOS = {
    'square': ('1:1', '1:1'),
    'landscape': ('16:9', '4:3'),
    'portrait': ('9:16', '3:4'),
}


def resolve_style(provider: Provider, style: Optional[str]) -> str:
    """Return ``style`` if the provider accepts it, otherwise the provider's default."""
    if provider.is_text_capable:
        return style if style in IDEOGRAM_STYLES else IDEOGRAM_DEFAULT_STYLE
    return style if style in RECRAFT_STYLES else RECRAFT_DEFAULT_STYLE


def aspect_ratio_for(size: Optional[str], provider: Provider) -> str:
    """Map 'square' / 'landscape' / 'portrait' / 'WxH' onto a provider aspect ratio."""
    size = (size or '').strip().lower()
    if size in NAMED_ASPECT_RATIOS:
        ideogram, recraft = NAMED_ASPECT_RATIOS[size]
        return ideogram if provider.is_text_capable else recraft

    if 'x' in size:
        try:
            width, height = (int(part) for part in size.split('x', 1))
        except ValueError:
            return '1:1'
        if width <= 0 or height <= 0:
            return '1:1'
        if width > height:
            return '16:9' if width / height >= 1.6 else '4:3'
        if height > width:
            return '9:16' if height / width >= 1.6 else '3:4'
    return '1:1'


class FalImageService(ABC):
    """One fal.ai hosted model reached over HTTP."""

    provider: Provider
    model_id: str
    default_negative_prompt: str

    def __init__(
        self,
        config: Optional[ProviderConfig] = None,
        request_timeout: Optional[float] = None,
        connect_timeout: Optional[float] = None
    ):
        self.config = config or get_provider_config()
        if request_timeout is None or connect_timeout is None:
            image_config = get_image_config()
            request_timeout = request_timeout or image_config.request_timeout
            connect_timeout = connect_timeout or image_config.connect_timeout
        self.timeout = aiohttp.ClientTimeout(
            total=request_timeout, connect=connect_timeout, sock_read=request_timeout
        )
        self.is_available = self.config.is_configured
        if not self.is_available:
            logger.warning("FAL_KEY not set and no FAL_PROXY_URL configured. "
                           f"{self.provider.value} image generation will use placeholders.")

    @property
    def endpoint(self) -> str:
        return f"{self.config.base_url.rstrip('/')}/{self.model_id}"

    def _target(self) -> Tuple[str, Dict[str, str]]:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if self.config.proxy_url:
            # The proxy holds the credentials and forwards to the real endpoint
            headers[FAL_PROXY_TARGET_HEADER] = self.endpoint
            return self.config.proxy_url, headers
        headers["Authorization"] = f"Key {self.config.api_key}"
        return self.endpoint, headers

    @abstractmethod
    def build_payload(self, request: GenerationRequest) -> BaseModel:
        """Provider-specific request body for ``request``."""

    async def generate(self, request: GenerationRequest) -> GenerationResult:
        """Issue one call; never raises for provider or transport problems."""
        if not self.is_available:
            return GenerationFailure(FailureReason.AUTHENTICATION, "fal.ai credentials not configured")

        payload = self.build_payload(request).model_dump(exclude_none=True)
        url, headers = self._target()

        logger.info(f"Generating image with {self.model_id} for slide {request.slide_id}")
        logger.debug(f"Prompt: {request.prompt[:100]}..." if len(request.prompt) > 100 else f"Prompt: {request.prompt}")

        loop = asyncio.get_running_loop()
        start_time = loop.time()
        try:
            image_url = await self._post(url, headers, payload)
        except ProviderError as e:
            elapsed = loop.time() - start_time
            logger.warning(f"{self.model_id} failed after {elapsed:.1f}s: {e.reason.value}: {e}")
            return GenerationFailure(e.reason, str(e))
        except asyncio.TimeoutError:
            elapsed = loop.time() - start_time
            logger.warning(f"Timeout generating image with {self.model_id} after {elapsed:.1f}s")
            return GenerationFailure(FailureReason.UNAVAILABLE, f"Timed out after {elapsed:.1f} seconds")
        except aiohttp.ClientError as e:
            elapsed = loop.time() - start_time
            logger.warning(f"Network error with {self.model_id} after {elapsed:.1f}s: {e}")
            return GenerationFailure(FailureReason.UNAVAILABLE, str(e))

        elapsed = loop.time() - start_time
        logger.info(f"Successfully generated image using {self.model_id} in {elapsed:.1f}s")
        return GenerationSuccess(url=image_url, provider=self.provider)

    async def _post(self, url: str, headers: Dict[str, str], payload: Dict[str, Any]) -> str:
        async with aiohttp.ClientSession(timeout=self.timeout) as session:
            async with session.post(url, headers=headers, json=payload) as response:
                body = await response.text()
                if not 200 <= response.status < 300:
                    raise error_for_status(response.status, self._error_message(response.status, body))
        return self._first_image_url(body)

    @staticmethod
    def _error_message(status: int, body: str) -> str:
        try:
            data = json.loads(body)
        except ValueError:
            return f"HTTP {status}: {body[:200]}"
        detail = None
        if isinstance(data, dict):
            detail = data.get('detail') or data.get('error') or data.get('message')
        if isinstance(detail, (list, dict)):
            detail = json.dumps(detail)[:500]
        return f"HTTP {status}: {detail or 'Unknown error'}"

    @staticmethod
    def _first_image_url(body: str) -> str:
        try:
            parsed = ImageGenerationResponse.model_validate_json(body)
        except ValidationError as e:
            raise ProviderResponseError("Response body is not a valid image result", cause=e)
        if not parsed.images:
            raise ProviderResponseError("No image URL in fal.ai response")
        return parsed.images[0].url


class IdeogramImageService(FalImageService):
    """Text-capable provider: typography, diagrams and labels."""

    provider = Provider.IDEOGRAM
    model_id = IDEOGRAM_MODEL_ID
    default_negative_prompt = IDEOGRAM_NEGATIVE_PROMPT

    def build_payload(self, request: GenerationRequest) -> IdeogramInput:
        return IdeogramInput(
            prompt=request.prompt,
            negative_prompt=request.negative_prompt or self.default_negative_prompt,
            style=resolve_style(self.provider, request.style),
            aspect_ratio=aspect_ratio_for(request.size, self.provider),
            expand_prompt=True,
        )


class RecraftImageService(FalImageService):
    """Photo-realistic provider: natural scenes without embedded text."""

    provider = Provider.RECRAFT
    model_id = RECRAFT_MODEL_ID
    default_negative_prompt = RECRAFT_NEGATIVE_PROMPT

    def __init__(self, *args, seed_factory: Callable[[], int] = lambda: random.randint(0, 999999), **kwargs):
        super().__init__(*args, **kwargs)
        self.seed_factory = seed_factory

    def build_payload(self, request: GenerationRequest) -> RecraftInput:
        return RecraftInput(
            prompt=request.prompt,
            negative_prompt=request.negative_prompt or self.default_negative_prompt,
            style=resolve_style(self.provider, request.style),
            aspect_ratio=aspect_ratio_for(request.size, self.provider),
            num_images=1,
            seed=self.seed_factory(),  # Random seed for variety
        )


class GenerationClient:
    """Uniform entry point over both providers.

    Credit and rate-limit bookkeeping are the caller's job; this only
    translates a request and reports the outcome.
    """

    def __init__(
        self,
        config: Optional[ProviderConfig] = None,
        services: Optional[Dict[Provider, FalImageService]] = None
    ):
        if services is None:
            services = {
                Provider.IDEOGRAM: IdeogramImageService(config),
                Provider.RECRAFT: RecraftImageService(config),
            }
        self.services = services

    @property
    def is_available(self) -> bool:
        return any(getattr(service, 'is_available', False) for service in self.services.values())

    async def generate(self, request: GenerationRequest) -> GenerationResult:
        service = self.services.get(request.provider)
        if service is None:
            return GenerationFailure(FailureReason.VALIDATION, f"No service for provider {request.provider}")
        return await service.generate(request)
