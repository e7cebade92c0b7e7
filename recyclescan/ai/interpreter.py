import re
from typing import Any, Dict

from recyclescan.ai.states import Verdict
from recyclescan.errors import EmptyResponseError

# sentence punctuation the model puts right after the marker
_LEADING_PUNCT = " \t\n.!:;,-\u2013\u2014"

# "Not Recyclable" must win over "Recyclable", so it comes first in the alternation
VERDICT_MARKER_RE = re.compile(
    r"\*\*\s*(?P<token>not\s+recyclable|recyclable)\s*[.!:]?\s*\*\*",
    re.IGNORECASE,
)


def extract_text(response_json: Dict[str, Any]) -> str:
    """Join the text parts of the first candidate. Missing pieces give ""."""
    candidates = response_json.get("candidates") or []
    if not candidates or not isinstance(candidates[0], dict):
        return ""
    content = candidates[0].get("content") or {}
    parts = content.get("parts") or []
    return "".join(p.get("text", "") for p in parts if isinstance(p, dict))


def interpret(raw_text: str) -> Verdict:
    """
    Turn the model's free text into a Verdict.

    The explanation is whatever follows the bolded marker. Without a marker
    the whole text becomes the explanation and the verdict falls back to
    not recyclable.
    """
    text = (raw_text or "").strip()
    if not text:
        raise EmptyResponseError("The service returned no text.")

    m = VERDICT_MARKER_RE.search(text)
    if not m:
        return Verdict(is_recyclable=False, explanation=text)

    token = m.group("token").lower()
    return Verdict(
        is_recyclable=not token.startswith("not"),
        explanation=text[m.end():].lstrip(_LEADING_PUNCT).strip(),
    )
