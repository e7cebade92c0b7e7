from __future__ import annotations

import logging
from typing import Any, Dict, Literal

from recyclescan.ai.interpreter import extract_text, interpret
from recyclescan.ai.request_builder import build_request
from recyclescan.ai.states import AnalysisState
from recyclescan.ai.transport import RetryingTransport
from recyclescan.errors import InterpretationError, NoImageSelected, TransportError

logger = logging.getLogger(__name__)


# -------------------------
# Nodes
# -------------------------

def build_request_node(state: AnalysisState) -> Dict[str, Any]:
    request = build_request(state.get("encoded_image"))
    if request is None:
        err = NoImageSelected("No image selected.")
        return {"error_kind": "no_image", "error": str(err)}
    return {"request": request}


class SendRequestNode:
    def __init__(self, transport: RetryingTransport, endpoint: str, api_key: str = ""):
        self.transport = transport
        self.endpoint = endpoint
        self.api_key = api_key

    async def __call__(self, state: AnalysisState) -> Dict[str, Any]:
        request = state["request"]
        params = {"key": self.api_key} if self.api_key else None

        try:
            resp = await self.transport.send(self.endpoint, request.to_payload(), params=params)
        except TransportError as e:
            logger.error("Analysis request failed: %s", e)
            return {"error_kind": e.kind, "error": str(e)}

        try:
            body = resp.json()
        except ValueError:
            return {"error_kind": "invalid_response", "error": "The service answered with something that is not JSON."}
        if not isinstance(body, dict):
            return {"error_kind": "invalid_response", "error": "Unexpected response shape from the service."}

        return {"raw_text": extract_text(body)}


def interpret_node(state: AnalysisState) -> Dict[str, Any]:
    try:
        verdict = interpret(state.get("raw_text", ""))
    except InterpretationError as e:
        return {"error_kind": e.kind, "error": str(e)}
    return {"verdict": verdict}


# -------------------------
# Routing
# -------------------------

def route_after_build(state: AnalysisState) -> Literal["send_request", "__end__"]:
    if state.get("error"):
        return "__end__"
    return "send_request"


def route_after_send(state: AnalysisState) -> Literal["interpret", "__end__"]:
    if state.get("error"):
        return "__end__"
    return "interpret"
