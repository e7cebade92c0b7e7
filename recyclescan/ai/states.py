# states.py

from dataclasses import dataclass
from typing import Any, Dict, Optional, TypedDict, Union


# ------- IMAGES -------

@dataclass(frozen=True)
class SelectedImage:
    data: bytes
    media_type: str


@dataclass(frozen=True)
class EncodedImage:
    media_type: str
    data: str  # base64, text-safe

    @property
    def data_url(self) -> str:
        return f"data:{self.media_type};base64,{self.data}"


# ------- REQUEST -------

@dataclass(frozen=True)
class AnalysisRequest:
    instruction: str
    image: EncodedImage
    system_instruction: str

    def to_payload(self) -> Dict[str, Any]:
        """Wire body for the generateContent endpoint."""
        return {
            "contents": [
                {
                    "role": "user",
                    "parts": [
                        {"text": self.instruction},
                        {
                            "inlineData": {
                                "mimeType": self.image.media_type,
                                "data": self.image.data,
                            }
                        },
                    ],
                }
            ],
            "systemInstruction": {"parts": [{"text": self.system_instruction}]},
        }


# ------- RESULT -------

@dataclass(frozen=True)
class Verdict:
    is_recyclable: bool
    explanation: str


@dataclass(frozen=True)
class Success:
    verdict_text: str
    verdict: Verdict


@dataclass(frozen=True)
class Failure:
    error_kind: str
    message: str


AnalysisOutcome = Union[Success, Failure]


# ------- PIPELINE STATE -------

class AnalysisState(TypedDict, total=False):
    # input
    encoded_image: Optional[EncodedImage]

    # built by the request node
    request: AnalysisRequest

    # text pulled out of the service response
    raw_text: str

    # interpreted result
    verdict: Verdict

    # set by any node that fails; routing stops at the first one
    error_kind: str
    error: str
