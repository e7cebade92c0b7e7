from typing import Optional

import httpx

from recyclescan import config
from recyclescan.ai.agent_nodes import SendRequestNode
from recyclescan.ai.final_graph import build_scan_graph
from recyclescan.ai.states import AnalysisOutcome, EncodedImage, Failure, Success
from recyclescan.ai.transport import RetryingTransport


class ScanAnalyzer:
    """Runs the scan graph for one encoded image and folds the result into an outcome."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        endpoint: str = config.GEMINI_ENDPOINT,
        api_key: str = config.GEMINI_API_KEY,
        max_attempts: int = config.SCAN_MAX_ATTEMPTS,
        min_delay: float = config.SCAN_MIN_DELAY_S,
        transport: Optional[RetryingTransport] = None,
    ):
        self.transport = transport or RetryingTransport(
            client, max_attempts=max_attempts, min_delay=min_delay,
        )
        self.graph = build_scan_graph(SendRequestNode(self.transport, endpoint, api_key))

    async def __call__(self, encoded: Optional[EncodedImage]) -> AnalysisOutcome:
        final_state = await self.graph.ainvoke({"encoded_image": encoded})

        if final_state.get("error"):
            return Failure(
                error_kind=final_state.get("error_kind", "unknown"),
                message=final_state["error"],
            )
        return Success(verdict_text=final_state["raw_text"], verdict=final_state["verdict"])


def make_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=httpx.Timeout(config.REQUEST_TIMEOUT_S))
