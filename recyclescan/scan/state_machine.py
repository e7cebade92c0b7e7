from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from typing import Awaitable, Callable, List, Optional, Set

from recyclescan.ai.helpers import encode_image, select_image
from recyclescan.ai.states import AnalysisOutcome, EncodedImage, Failure, Success
from recyclescan.scan.states import (
    AnalysisCompleted,
    AnalyzeTriggered,
    ImageSelected,
    ResetTriggered,
    ScanEvent,
    ScanPhase,
    ScanState,
)

logger = logging.getLogger(__name__)

Analyzer = Callable[[Optional[EncodedImage]], Awaitable[AnalysisOutcome]]
Listener = Callable[[ScanState], None]


# ---------- REDUCER ----------

def can_analyze(state: ScanState) -> bool:
    return state.phase is ScanPhase.PREVIEWING and state.preview is not None


def can_select(state: ScanState) -> bool:
    return state.phase is not ScanPhase.ANALYZING


def reduce(state: ScanState, event: ScanEvent) -> ScanState:
    """
    Pure transition function. Events that are not legal from the current
    state, or that arrive after their epoch has passed, return the state
    unchanged.
    """
    if isinstance(event, ResetTriggered):
        return ScanState(epoch=state.epoch + 1)

    if isinstance(event, ImageSelected):
        if not can_select(state) or event.epoch != state.epoch:
            return state
        return ScanState(
            phase=ScanPhase.PREVIEWING,
            image=event.image,
            preview=event.preview,
            epoch=state.epoch + 1,
        )

    if isinstance(event, AnalyzeTriggered):
        if not can_analyze(state):
            return state
        return replace(state, phase=ScanPhase.ANALYZING, epoch=state.epoch + 1)

    if isinstance(event, AnalysisCompleted):
        if state.phase is not ScanPhase.ANALYZING or event.epoch != state.epoch:
            return state
        outcome = event.outcome
        if isinstance(outcome, Success):
            return replace(state, phase=ScanPhase.RESOLVED, verdict=outcome.verdict)
        return replace(state, phase=ScanPhase.FAILED, error=outcome.message)

    raise TypeError(f"Unknown scan event: {event!r}")


# ---------- SESSION ----------

class ScanSession:
    """
    Owns the one live ScanState and runs the async steps that feed it.

    Decoding and analysis both suspend; their results go back through
    reduce() tagged with the epoch they started under, so anything that
    finishes after a reset or a newer selection is ignored.
    """

    def __init__(self, analyzer: Analyzer):
        self._analyzer = analyzer
        self._state = ScanState()
        self._listeners: List[Listener] = []
        self._tasks: Set[asyncio.Task] = set()

    @property
    def state(self) -> ScanState:
        return self._state

    @property
    def can_analyze(self) -> bool:
        return can_analyze(self._state)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def dispatch(self, event: ScanEvent) -> ScanState:
        old = self._state
        new = reduce(old, event)
        if new is old:
            logger.debug("Ignored %s in phase %s", type(event).__name__, old.phase.value)
            return old
        self._state = new
        logger.info("Scan %s -> %s", old.phase.value, new.phase.value)
        for listener in list(self._listeners):
            listener(new)
        return new

    # ---------- commands ----------

    async def select_image(self, data: Optional[bytes], media_type: str = "") -> ScanState:
        """
        Decode a picked file and show it. Passing None (picker cancelled)
        clears the current selection.
        """
        if data is None:
            return self.reset()
        if not can_select(self._state):
            logger.info("Image selection ignored while analyzing")
            return self._state

        image = select_image(data, media_type)
        epoch = self._state.epoch
        preview = await asyncio.to_thread(encode_image, image)
        return self.dispatch(ImageSelected(image=image, preview=preview, epoch=epoch))

    def start_analysis(self) -> Optional[asyncio.Task]:
        """Move to ANALYZING and schedule the request. None when the action is disabled."""
        if not self.can_analyze:
            logger.info("Analyze ignored in phase %s", self._state.phase.value)
            return None

        state = self.dispatch(AnalyzeTriggered())
        task = asyncio.create_task(self._run_analysis(state.preview, state.epoch))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def analyze(self) -> bool:
        task = self.start_analysis()
        if task is None:
            return False
        await task
        return True

    def reset(self) -> ScanState:
        # an in-flight request keeps running; its result will be stale
        return self.dispatch(ResetTriggered())

    async def _run_analysis(self, encoded: Optional[EncodedImage], epoch: int) -> None:
        try:
            outcome = await self._analyzer(encoded)
        except Exception as e:
            logger.exception("Analysis crashed")
            self.dispatch(AnalysisCompleted(Failure("unexpected", f"Analysis failed: {e}"), epoch))
            return

        if self.dispatch(AnalysisCompleted(outcome, epoch)).epoch != epoch:
            logger.info("Dropped a stale analysis result")
