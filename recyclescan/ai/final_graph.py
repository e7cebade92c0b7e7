from langgraph.graph import END, StateGraph

from recyclescan.ai.agent_nodes import (
    build_request_node,
    interpret_node,
    route_after_build,
    route_after_send,
)
from recyclescan.ai.states import AnalysisState


def build_scan_graph(send_request_node):
    """build_request -> send_request -> interpret, stopping at the first error."""
    g = StateGraph(AnalysisState)

    g.add_node("build_request", build_request_node)
    g.add_node("send_request", send_request_node)
    g.add_node("interpret", interpret_node)

    g.set_entry_point("build_request")
    g.add_conditional_edges("build_request", route_after_build, {
        "send_request": "send_request",
        "__end__": END,
    })
    g.add_conditional_edges("send_request", route_after_send, {
        "interpret": "interpret",
        "__end__": END,
    })
    g.set_finish_point("interpret")

    return g.compile()
