"""
Progress tracking for a slide image generation run.

Produces the standardized progress events the UI uses for its
"generating images in background" indicator.
"""

from typing import Dict, Any, Optional
from enum import Enum

from agents.domain.models import ImageState, SlideImageResult


class ImagePhase(Enum):
    """Phases of a run."""
    PRIORITY = "priority"
    BACKGROUND = "background"
    COMPLETE = "generation_complete"


class ImageGenerationProgress:
    """Counts resolved slides for one run.

    The priority phase covers 0-40% and the background phase 40-100%, so the
    blocking part of the run shows quick movement.
    """

    PHASE_PROGRESS = {
        ImagePhase.PRIORITY: (0, 40),
        ImagePhase.BACKGROUND: (40, 100),
    }

    def __init__(self, run_id: str, priority_total: int = 0, background_total: int = 0):
        self.run_id = run_id
        self.priority_total = priority_total
        self.background_total = background_total
        self.current_phase = ImagePhase.PRIORITY
        self.completed = 0
        self.successes = 0
        self.fallbacks = 0
        self.failures = 0

    @property
    def total(self) -> int:
        return self.priority_total + self.background_total

    @property
    def progress(self) -> int:
        if self.current_phase == ImagePhase.COMPLETE or self.total == 0:
            return 100 if self.current_phase == ImagePhase.COMPLETE else 0

        start, end = self.PHASE_PROGRESS[self.current_phase]
        if self.current_phase == ImagePhase.PRIORITY:
            done, total = self.completed, self.priority_total
        else:
            done, total = self.completed - self.priority_total, self.background_total
        if total <= 0:
            return end
        return int(start + (done / total) * (end - start))

    def start_phase(self, phase: ImagePhase) -> Dict[str, Any]:
        self.current_phase = phase
        return self._create_event(message=self._get_phase_message(phase))

    def record(self, result: SlideImageResult) -> Dict[str, Any]:
        """Count a resolved slide and return a progress event."""
        self.completed += 1
        if result.state == ImageState.FAILED:
            self.failures += 1
        elif result.is_fallback:
            self.fallbacks += 1
        else:
            self.successes += 1

        return self._create_event(
            message=f"Processed slide {self.completed} of {self.total}",
            slideId=result.slide_id,
        )

    def complete(self) -> Dict[str, Any]:
        self.current_phase = ImagePhase.COMPLETE
        return self._create_event(message=f"Created {self.successes} slide images")

    def snapshot(self) -> Dict[str, Any]:
        return {
            'run_id': self.run_id,
            'phase': self.current_phase.value,
            'progress': self.progress,
            'total': self.total,
            'completed': self.completed,
            'successes': self.successes,
            'fallbacks': self.fallbacks,
            'failures': self.failures,
        }

    def _create_event(self, message: Optional[str] = None, **data) -> Dict[str, Any]:
        event = self.snapshot()
        event.update(data)
        if message:
            event['message'] = message
        return event

    def _get_phase_message(self, phase: ImagePhase) -> str:
        messages = {
            ImagePhase.PRIORITY: "Generating images for priority slides",
            ImagePhase.BACKGROUND: "Generating remaining images in background",
            ImagePhase.COMPLETE: "All images generated",
        }
        return messages.get(phase, f"Processing {phase.value}")
