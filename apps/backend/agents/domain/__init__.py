"""
Domain models and value objects.
"""

from agents.domain.models import (
    SlideKind,
    ImageState,
    Provider,
    FailureReason,
    BackgroundStatus,
    InvalidTransition,
    Slide,
    GenerationRequest,
    GenerationSuccess,
    GenerationFailure,
    GenerationResult,
    SlideImageResult
)

__all__ = [
    'SlideKind',
    'ImageState',
    'Provider',
    'FailureReason',
    'BackgroundStatus',
    'InvalidTransition',
    'Slide',
    'GenerationRequest',
    'GenerationSuccess',
    'GenerationFailure',
    'GenerationResult',
    'SlideImageResult'
]
