"""
Slide Image Scheduler
---------------------
Resolves an image for every slide of a presentation under a credit budget
and per-provider rate limits.

Flow:
- The first K slides still pending are processed in order before ``run``
  returns (the part the user waits on)
- The rest continue as one detached background task, one request in flight
  at a time, spaced by a fixed inter-request delay
- Each slide goes pending -> loading -> ready (real or placeholder image) or
  failed (no request could be built); every transition is published on the
  event bus
- ``regenerate`` restarts a single ready/failed slide at loading

Nothing raised by providers reaches the caller: every path ends in a
resolved slide state.
"""

import asyncio
import uuid
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Set, Tuple

from agents.application.event_bus import EventBus, Events, get_event_bus
from agents.domain.models import (
    BackgroundStatus,
    FailureReason,
    GenerationFailure,
    GenerationRequest,
    GenerationResult,
    ImageState,
    Slide,
    SlideImageResult,
)
from agents.generation.concurrency_manager import RateLimiter
from agents.generation.config import ImageGenerationConfig, get_image_config
from agents.generation.credit_ledger import CreditLedger
from agents.generation.exceptions import SlideImageError, get_retry_delay, is_retryable
from agents.generation.image_prompt_builder import (
    ImageGenerationPromptBuilder,
    PromptClassifier,
    PromptEnhancer,
)
from agents.generation.progress_manager import ImageGenerationProgress, ImagePhase
from services.fallback_image_service import FallbackImageService
from setup_logging_optimized import get_logger

logger = get_logger(__name__)


class BackgroundImageTask:
    """Handle on the detached part of a run.

    ``status`` is ``running`` until the background slides drain, then
    ``completed`` with ``success_count`` real images for the whole run.
    """

    def __init__(self, run_id: str, priority_results: Sequence[SlideImageResult]):
        self.run_id = run_id
        self.priority_results: List[SlideImageResult] = list(priority_results)
        self.results: List[SlideImageResult] = []
        self.status = BackgroundStatus.RUNNING
        self.success_count: Optional[int] = None
        self._task: Optional[asyncio.Task] = None
        self._callbacks: List[Callable[['BackgroundImageTask'], Any]] = []

    @property
    def done(self) -> bool:
        return self.status == BackgroundStatus.COMPLETED

    @property
    def all_results(self) -> List[SlideImageResult]:
        return self.priority_results + self.results

    def add_done_callback(self, callback: Callable[['BackgroundImageTask'], Any]) -> None:
        if self.done:
            callback(self)
        else:
            self._callbacks.append(callback)

    async def wait(self) -> int:
        """Wait for the background phase to drain; returns the success count."""
        if self._task is not None and not self.done:
            await self._task
        return self.success_count or 0

    def _complete(self) -> None:
        self.success_count = sum(1 for r in self.all_results if r.is_generated)
        self.status = BackgroundStatus.COMPLETED
        for callback in self._callbacks:
            try:
                callback(self)
            except Exception:
                logger.exception(f"Error in completion callback for run {self.run_id}")
        self._callbacks = []


class SlideImageScheduler:
    """Orchestrates prompt building, budget, rate limits, generation and fallback."""

    def __init__(
        self,
        client,
        ledger: CreditLedger,
        rate_limiter: RateLimiter,
        fallback: Optional[FallbackImageService] = None,
        prompt_builder: Optional[ImageGenerationPromptBuilder] = None,
        event_bus: Optional[EventBus] = None,
        config: Optional[ImageGenerationConfig] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    ) -> None:
        self.config = config or get_image_config()
        self.client = client
        self.ledger = ledger
        self.rate_limiter = rate_limiter
        self.fallback = fallback or FallbackImageService(self.config.fallback_scheme)
        self.prompt_builder = prompt_builder or ImageGenerationPromptBuilder(
            classifier=PromptClassifier(self.config.content_word_limit),
            enhancer=PromptEnhancer(self.config.enhancement_min_length),
            style=self.config.default_style,
            size=self.config.default_size,
        )
        self.event_bus = event_bus or get_event_bus()
        self._sleep = sleep
        self._slides: Dict[str, Slide] = {}
        self._in_flight: Set[str] = set()
        self._tasks: List[BackgroundImageTask] = []
        self._progress: Dict[str, ImageGenerationProgress] = {}
        self._last_run_id: Optional[str] = None

    # ------------------------------------------------------------------ API

    async def run(self, slides: Sequence[Slide], priority_count: Optional[int] = None) -> BackgroundImageTask:
        """Resolve the first ``priority_count`` pending slides, then hand the rest to a background task."""
        k = self.config.priority_count if priority_count is None else max(0, priority_count)
        run_id = uuid.uuid4().hex[:8]

        pending: List[Slide] = []
        seen: Set[Any] = set()
        for slide in slides:
            key = slide.id if isinstance(slide.id, str) and slide.id else id(slide)
            if key in seen:
                logger.warning(f"[SlideImageScheduler] Ignoring duplicate slide {slide.id}")
                continue
            seen.add(key)
            if isinstance(slide.id, str) and slide.id:
                self._slides[slide.id] = slide
            if slide.image_state == ImageState.PENDING:
                pending.append(slide)

        priority, background = pending[:k], pending[k:]
        progress = ImageGenerationProgress(run_id, len(priority), len(background))
        self._progress[run_id] = progress
        self._last_run_id = run_id

        logger.info(
            f"[SlideImageScheduler] Run {run_id}: {len(pending)} of {len(slides)} slides need images "
            f"({len(priority)} priority, {len(background)} background); "
            f"credits remaining {self.ledger.remaining()}"
        )

        await self.event_bus.emit(Events.PROGRESS_UPDATE, progress.start_phase(ImagePhase.PRIORITY))
        priority_results = []
        for slide in priority:
            if not self._is_ready_to_process(slide):
                continue
            priority_results.append(await self._process_slide(slide, progress))

        successes = sum(1 for r in priority_results if r.is_generated)
        logger.info(f"[SlideImageScheduler] Run {run_id}: priority slides ready ({successes} generated)")
        await self.event_bus.emit(Events.PRIORITY_COMPLETE, {
            'run_id': run_id,
            'successes': successes,
            'processed': len(priority_results),
        })

        task = BackgroundImageTask(run_id, priority_results)
        task._task = asyncio.create_task(self._run_background(task, background, progress))
        self._tasks.append(task)
        return task

    async def regenerate(self, slide_id: str) -> Optional[SlideImageResult]:
        """Re-run generation for one already resolved slide. Returns None if rejected."""
        slide = self._slides.get(slide_id)
        if slide is None:
            logger.warning(f"[SlideImageScheduler] Regenerate: unknown slide {slide_id}")
            return None
        if slide_id in self._in_flight or slide.image_state == ImageState.LOADING:
            logger.warning(f"[SlideImageScheduler] Regenerate rejected: slide {slide_id} is already generating")
            return None
        if slide.image_state == ImageState.PENDING:
            logger.warning(f"[SlideImageScheduler] Regenerate rejected: slide {slide_id} has not been processed yet")
            return None
        return await self._process_slide(slide, regenerate=True)

    def build_request(self, slide: Slide) -> GenerationRequest:
        return self.prompt_builder.build_request(slide)

    def credits_remaining(self) -> int:
        return self.ledger.remaining()

    def reset_session(self) -> None:
        """Session boundary: full credit budget and empty rate windows."""
        self.ledger.reset()
        self.rate_limiter.reset()

    def progress(self, run_id: Optional[str] = None) -> Optional[Dict[str, Any]]:
        tracker = self._progress.get(run_id or self._last_run_id or '')
        return tracker.snapshot() if tracker else None

    async def wait_for_background(self) -> List[int]:
        """Wait for every background task started so far."""
        return list(await asyncio.gather(*(task.wait() for task in self._tasks)))

    # -------------------------------------------------------------- phases

    async def _run_background(
        self,
        task: BackgroundImageTask,
        slides: Sequence[Slide],
        progress: ImageGenerationProgress
    ) -> None:
        try:
            if slides:
                await self.event_bus.emit(Events.PROGRESS_UPDATE, progress.start_phase(ImagePhase.BACKGROUND))
            for index, slide in enumerate(slides):
                if index > 0 or task.priority_results:
                    await self._sleep(self.config.inter_request_delay)
                if not self._is_ready_to_process(slide):
                    continue
                try:
                    task.results.append(await self._process_slide(slide, progress))
                except Exception:
                    logger.exception(f"[SlideImageScheduler] Slide {slide.id} could not be processed, continuing")
        finally:
            task._complete()

        logger.info(f"[SlideImageScheduler] Run {task.run_id}: all images resolved, "
                    f"{task.success_count} generated")
        await self.event_bus.emit(Events.PROGRESS_UPDATE, progress.complete())
        await self.event_bus.emit(Events.GENERATION_COMPLETE, {
            'run_id': task.run_id,
            'successes': task.success_count,
            'processed': len(task.all_results),
        })

    # ------------------------------------------------------------ per slide

    def _is_ready_to_process(self, slide: Slide) -> bool:
        if slide.image_state != ImageState.PENDING or (isinstance(slide.id, str) and slide.id in self._in_flight):
            logger.debug(f"[SlideImageScheduler] Skipping slide {slide.id}: picked up elsewhere")
            return False
        return True

    async def _process_slide(
        self,
        slide: Slide,
        progress: Optional[ImageGenerationProgress] = None,
        regenerate: bool = False
    ) -> SlideImageResult:
        key = slide.id if isinstance(slide.id, str) else None
        if key:
            self._in_flight.add(key)
        try:
            await self._transition(slide, ImageState.LOADING, regenerate=regenerate)
            try:
                result = await self._resolve_slide(slide)
            except Exception:
                # Not even a placeholder could be produced
                logger.exception(f"[SlideImageScheduler] No image could be resolved for slide {slide.id}")
                if slide.image_state == ImageState.LOADING:
                    await self._transition(slide, ImageState.FAILED)
                result = SlideImageResult(slide_id=slide.id, state=slide.image_state, image_url=slide.image_url)
        finally:
            if key:
                self._in_flight.discard(key)

        if progress is not None:
            await self.event_bus.emit(Events.PROGRESS_UPDATE, progress.record(result))
        return result

    async def _resolve_slide(self, slide: Slide) -> SlideImageResult:
        """Take a loading slide to ready (real or placeholder image) or failed."""
        try:
            request = self.build_request(slide)
        except SlideImageError as e:
            logger.error(f"[SlideImageScheduler] Cannot build image request: {e}")
            await self._transition(slide, ImageState.FAILED)
            return SlideImageResult(slide_id=slide.id, state=ImageState.FAILED)

        try:
            url, reason = await self._resolve(request)
        except Exception:
            logger.exception(f"[SlideImageScheduler] Unexpected error generating slide {slide.id}")
            url, reason = self._use_fallback(request, FailureReason.UNAVAILABLE)

        await self._transition(slide, ImageState.READY, url=url, is_fallback=reason is not None, reason=reason)
        return SlideImageResult(
            slide_id=slide.id,
            state=ImageState.READY,
            image_url=url,
            is_fallback=reason is not None,
            reason=reason,
            metadata={'provider': request.provider.value},
        )

    async def _resolve(self, request: GenerationRequest) -> Tuple[str, Optional[FailureReason]]:
        """Return (url, None) for a generated image or (placeholder url, reason)."""
        if not self.config.generation_enabled:
            return self._use_fallback(request, FailureReason.GENERATION_DISABLED)

        warned_before = self.ledger.has_warned
        if not self.ledger.try_reserve():
            if not warned_before and self.ledger.has_warned:
                await self.event_bus.emit(Events.CREDITS_EXHAUSTED, {'max': self.ledger.max_credits})
            return self._use_fallback(request, FailureReason.CREDITS_EXHAUSTED)

        committed = False
        try:
            attempt = 0
            while True:
                await self.rate_limiter.acquire(request.provider, sleep=self._sleep)
                result = await self._call(request)
                if result.ok:
                    self.ledger.commit()
                    committed = True
                    return result.url, None

                if is_retryable(result.reason) and attempt < self.config.max_rate_limited_retries:
                    delay = get_retry_delay(result.reason, attempt, self.config.rate_limited_retry_delay)
                    logger.info(f"[SlideImageScheduler] {request.provider.value} rate limited slide "
                                f"{request.slide_id}, retrying in {delay:.1f}s")
                    await self._sleep(delay)
                    attempt += 1
                    continue

                return self._use_fallback(request, result.reason)
        finally:
            if not committed:
                self.ledger.release()

    async def _call(self, request: GenerationRequest) -> GenerationResult:
        timeout = self.config.request_timeout + self.config.connect_timeout
        try:
            return await asyncio.wait_for(self.client.generate(request), timeout=timeout)
        except asyncio.TimeoutError:
            return GenerationFailure(FailureReason.UNAVAILABLE, f"No response within {timeout:.0f}s")

    def _use_fallback(self, request: GenerationRequest, reason: FailureReason) -> Tuple[str, FailureReason]:
        url = self.fallback.fallback(request.prompt)
        logger.info(f"[SlideImageScheduler] Using placeholder image for slide {request.slide_id} ({reason.value})")
        return url, reason

    async def _transition(
        self,
        slide: Slide,
        state: ImageState,
        url: Optional[str] = None,
        regenerate: bool = False,
        is_fallback: bool = False,
        reason: Optional[FailureReason] = None
    ) -> None:
        slide.transition(state, image_url=url, regenerate=regenerate)
        await self.event_bus.emit(Events.SLIDE_IMAGE_STATE, {
            'slide_id': slide.id,
            'state': state.value,
            'image_url': slide.image_url,
            'is_fallback': is_fallback,
            'reason': reason.value if reason else None,
        })
