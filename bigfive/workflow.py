"""LangGraph workflow — wires request building and the LLM call into a graph.

Flow:
    START → router → build_request → analyze → END
                  ↘ END   (when no scores were supplied)

The graph is stateless between invocations: each ``ainvoke`` receives a
snapshot of one session's scores and returns the parsed result.  A failed
LLM call surfaces as ``AnalysisError`` raised out of ``ainvoke``.
"""

from __future__ import annotations

from langgraph.graph import END, START, StateGraph
from langgraph.types import Command

from bigfive.analysis.client import analyze
from bigfive.analysis.request_builder import build_request
from bigfive.models.state import AnalysisPipelineState


# ── Graph nodes ───────────────────────────────────────────────────────────


def router(state: AnalysisPipelineState) -> Command:
    """Skip the pipeline when there is nothing to analyze."""
    if not state.get("scores"):
        return Command(update={"skipped": True}, goto=END)
    return Command(update={"skipped": False}, goto="build_request")


def build_request_node(state: AnalysisPipelineState) -> dict:
    return {"request": build_request(state["scores"])}


async def analyze_node(state: AnalysisPipelineState) -> dict:
    return {"result": await analyze(state["request"])}


# ── Build the graph ───────────────────────────────────────────────────────


def build_pipeline():
    """Construct and compile the analysis StateGraph."""
    graph = StateGraph(AnalysisPipelineState)

    graph.add_node("router", router)
    graph.add_node("build_request", build_request_node)
    graph.add_node("analyze", analyze_node)

    graph.add_edge(START, "router")
    # router uses Command to go to "build_request" or END
    graph.add_edge("build_request", "analyze")
    graph.add_edge("analyze", END)

    return graph.compile()
