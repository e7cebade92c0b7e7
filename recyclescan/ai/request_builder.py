from typing import Optional

from recyclescan.ai.prompts import SCAN_USER_PROMPT, get_scan_system_message
from recyclescan.ai.states import AnalysisRequest, EncodedImage


def build_request(encoded: Optional[EncodedImage]) -> Optional[AnalysisRequest]:
    """Wrap an encoded image into a request. None means "not ready yet"."""
    if encoded is None or not encoded.data:
        return None
    return AnalysisRequest(
        instruction=SCAN_USER_PROMPT,
        image=encoded,
        system_instruction=get_scan_system_message(),
    )
