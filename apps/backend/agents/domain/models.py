"""
Domain models representing core business concepts.

A Slide is owned by the presentation document. Once image generation starts
its image fields are only mutated through ``Slide.transition`` so that the
state machine (pending -> loading -> ready/failed) and the
"image_url is set iff ready" rule hold everywhere.
"""

from dataclasses import dataclass, field
from typing import Dict, Any, Optional, Union
from enum import Enum


class SlideKind(str, Enum):
    """Slide archetypes produced by the content generator."""
    TITLE = "title"
    COVER = "cover"
    CONTENT = "content"
    QUOTE = "quote"
    CHART = "chart"
    DATA = "data"
    IMAGE = "image"
    PHOTO = "photo"
    AGENDA = "agenda"
    TIMELINE = "timeline"
    COMPARISON = "comparison"
    PROCESS = "process"
    CONCLUSION = "conclusion"

    @classmethod
    def parse(cls, value: Any) -> 'SlideKind':
        """Map a free-form type string onto the closed set, defaulting to content."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value or '').strip().lower())
        except ValueError:
            return cls.CONTENT


class ImageState(str, Enum):
    """Image lifecycle of a single slide."""
    PENDING = "pending"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


class Provider(str, Enum):
    """Remote image generation providers."""
    IDEOGRAM = "ideogram"  # text-capable
    RECRAFT = "recraft"    # photo-realistic

    @property
    def is_text_capable(self) -> bool:
        return self is Provider.IDEOGRAM

    @classmethod
    def for_text(cls, needs_text: bool) -> 'Provider':
        return cls.IDEOGRAM if needs_text else cls.RECRAFT


class FailureReason(str, Enum):
    """Why a generation attempt did not produce an image."""
    AUTHENTICATION = "AuthenticationError"
    VALIDATION = "ValidationError"
    RATE_LIMITED = "RateLimited"
    UNAVAILABLE = "Unavailable"
    MALFORMED_RESPONSE = "MalformedResponse"
    # Ledger-level, checked before any provider call
    CREDITS_EXHAUSTED = "CreditsExhausted"
    GENERATION_DISABLED = "GenerationDisabled"


class BackgroundStatus(str, Enum):
    RUNNING = "running"
    COMPLETED = "completed"


# Allowed moves outside of an explicit regenerate request
_TRANSITIONS = {
    ImageState.PENDING: {ImageState.LOADING},
    ImageState.LOADING: {ImageState.READY, ImageState.FAILED},
    ImageState.READY: set(),
    ImageState.FAILED: set(),
}


class InvalidTransition(ValueError):
    """Raised when a slide image state change would break the lifecycle."""

    def __init__(self, slide_id: str, current: ImageState, target: ImageState):
        super().__init__(f"Slide {slide_id}: cannot move image state {current.value} -> {target.value}")
        self.slide_id = slide_id
        self.current = current
        self.target = target


@dataclass
class Slide:
    """A presentation slide as seen by the image pipeline."""
    id: str
    kind: SlideKind = SlideKind.CONTENT
    title: str = ""
    body: str = ""
    image_prompt: Optional[str] = None
    image_url: Optional[str] = None
    image_state: ImageState = ImageState.PENDING

    def __post_init__(self):
        self.kind = SlideKind.parse(self.kind)
        self.image_state = ImageState(self.image_state)
        if self.image_state == ImageState.READY and not self.image_url:
            self.image_state = ImageState.PENDING
        elif self.image_url and self.image_state == ImageState.PENDING:
            # A slide that arrives with an image is already done
            self.image_state = ImageState.READY
        elif self.image_url and self.image_state != ImageState.READY:
            self.image_url = None

    @property
    def text(self) -> str:
        """Title and body content used to derive a prompt."""
        return f"{self.title or ''} {self.body or ''}".strip()

    @property
    def has_image(self) -> bool:
        return self.image_state == ImageState.READY and bool(self.image_url)

    def transition(self, target: ImageState, image_url: Optional[str] = None, regenerate: bool = False) -> None:
        """Move to ``target``, enforcing the lifecycle and the image_url rule."""
        allowed = set(_TRANSITIONS[self.image_state])
        if regenerate and self.image_state in (ImageState.READY, ImageState.FAILED):
            allowed.add(ImageState.LOADING)
        if target not in allowed:
            raise InvalidTransition(self.id, self.image_state, target)

        if target == ImageState.READY:
            if not image_url:
                raise ValueError(f"Slide {self.id}: ready state requires an image_url")
            self.image_url = image_url
        else:
            self.image_url = None
        self.image_state = target

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Slide':
        """Create a Slide from the presentation document's slide dict.

        Accepts both the flat shape (``body``) and the editor's shape
        (``content.mainText`` / ``content.bullets``).
        """
        content = data.get('content')
        body = data.get('body')
        if body is None and isinstance(content, dict):
            bullets = content.get('bullets') or []
            if bullets:
                body = '\n'.join(f"- {b}" for b in bullets)
            else:
                body = content.get('mainText') or ''
        elif body is None and isinstance(content, str):
            body = content

        state = data.get('imageState') or data.get('image_state') or ImageState.PENDING
        return cls(
            id=data.get('id'),
            kind=data.get('kind') or data.get('type'),
            title=data.get('title', ''),
            body=body or '',
            image_prompt=data.get('imagePrompt') or data.get('image_prompt'),
            image_url=data.get('imageUrl') or data.get('image_url') or data.get('generatedImageUrl'),
            image_state=ImageState(state),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'kind': self.kind.value,
            'title': self.title,
            'body': self.body,
            'imagePrompt': self.image_prompt,
            'imageUrl': self.image_url,
            'imageState': self.image_state.value,
        }


@dataclass
class GenerationRequest:
    """One generation attempt for one slide."""
    slide_id: str
    prompt: str
    provider: Provider
    negative_prompt: str = ""
    style: Optional[str] = None
    size: str = "landscape"


@dataclass(frozen=True)
class GenerationSuccess:
    url: str
    provider: Optional[Provider] = None

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class GenerationFailure:
    reason: FailureReason
    message: str = ""

    @property
    def ok(self) -> bool:
        return False


GenerationResult = Union[GenerationSuccess, GenerationFailure]


@dataclass
class SlideImageResult:
    """Final outcome for one slide after the pipeline resolved it."""
    slide_id: str
    state: ImageState
    image_url: Optional[str] = None
    is_fallback: bool = False
    reason: Optional[FailureReason] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_generated(self) -> bool:
        return self.state == ImageState.READY and not self.is_fallback

    def to_dict(self) -> Dict[str, Any]:
        return {
            'slide_id': self.slide_id,
            'state': self.state.value,
            'image_url': self.image_url,
            'is_fallback': self.is_fallback,
            'reason': self.reason.value if self.reason else None,
        }
