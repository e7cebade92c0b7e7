from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from recyclescan.ai.states import AnalysisOutcome, EncodedImage, SelectedImage, Verdict


class ScanPhase(str, Enum):
    EMPTY = "empty"
    PREVIEWING = "previewing"
    ANALYZING = "analyzing"
    RESOLVED = "resolved"
    FAILED = "failed"


@dataclass(frozen=True)
class ScanState:
    phase: ScanPhase = ScanPhase.EMPTY
    image: Optional[SelectedImage] = None
    preview: Optional[EncodedImage] = None
    verdict: Optional[Verdict] = None      # only in RESOLVED
    error: Optional[str] = None            # only in FAILED
    # bumped by every selection, analysis start and reset; async results
    # carry the epoch they started under and are dropped if it moved on
    epoch: int = 0


# ---------- EVENTS ----------

@dataclass(frozen=True)
class ImageSelected:
    image: SelectedImage
    preview: EncodedImage
    epoch: int


@dataclass(frozen=True)
class AnalyzeTriggered:
    pass


@dataclass(frozen=True)
class AnalysisCompleted:
    outcome: AnalysisOutcome
    epoch: int


@dataclass(frozen=True)
class ResetTriggered:
    pass


ScanEvent = Union[ImageSelected, AnalyzeTriggered, AnalysisCompleted, ResetTriggered]
