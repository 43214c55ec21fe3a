"""
Myeloma Risk Assessment Workflow

LangGraph workflow: build_request -> assess_risk -> [handle_error on failure]

Builds the multimodal request from the patient record and attachments,
calls Gemini for a structured assessment, and returns a tagged result:
``{"result": AssessmentResult}`` or ``{"error": message, "error_kind": kind}``.
"""

import logging
from typing import Optional, TypedDict

from langgraph.graph import END, StateGraph

from myeloma_guard.core import assessment_client
from myeloma_guard.core.errors import AssessmentUnavailable, MalformedResponse
from myeloma_guard.core.request_builder import AssessmentRequest, build_request
from myeloma_guard.models.patient import PatientRecord
from myeloma_guard.models.schemas import AssessmentResult, ImageAttachment, Modality

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# State schema
# ---------------------------------------------------------------------------

class AssessmentState(TypedDict):
    record: PatientRecord
    attachments: dict[Modality, ImageAttachment]
    notes: str
    request: Optional[AssessmentRequest]
    result: Optional[AssessmentResult]
    error: Optional[str]
    error_kind: Optional[str]


# ---------------------------------------------------------------------------
# Node 1: build_request
# ---------------------------------------------------------------------------

async def build_request_node(state: AssessmentState) -> dict:
    """Render the prompt narrative and attach the labelled images."""
    request = build_request(state["record"], state["attachments"], state["notes"])
    logger.info("build_request: %d image part(s)", len(request.image_parts))
    return {"request": request}


# ---------------------------------------------------------------------------
# Node 2: assess_risk
# ---------------------------------------------------------------------------

async def assess_risk(state: AssessmentState) -> dict:
    """Call Gemini and validate the structured reply."""
    try:
        result = await assessment_client.submit(state["request"])
    except MalformedResponse as exc:
        logger.error("assess_risk: malformed response: %s", exc.detail)
        return {"error": exc.message, "error_kind": "malformed_response"}
    except AssessmentUnavailable as exc:
        logger.error("assess_risk: assessment unavailable: %s", exc.detail)
        return {"error": exc.message, "error_kind": "assessment_unavailable"}

    logger.info("assess_risk: risk_level=%s", result.risk_level.value)
    return {"result": result}


# ---------------------------------------------------------------------------
# Node 3: handle_error
# ---------------------------------------------------------------------------

async def handle_error(state: AssessmentState) -> dict:
    """Terminal node reached when the assessment step sets an error."""
    logger.error(
        "Assessment workflow error (%s): %s",
        state.get("error_kind"),
        state.get("error"),
    )
    return {"error": state.get("error", "Unknown error")}


# ---------------------------------------------------------------------------
# Conditional routing helpers
# ---------------------------------------------------------------------------

def _has_error(state: AssessmentState) -> str:
    """Route to handle_error if an error is present, otherwise finish."""
    if state.get("error"):
        return "handle_error"
    return "done"


# ---------------------------------------------------------------------------
# Build and compile the graph
# ---------------------------------------------------------------------------

def build_assessment_graph():
    """Construct the LangGraph StateGraph for the myeloma assessment.

    Returns:
        A compiled LangGraph graph.
    """
    graph = StateGraph(AssessmentState)

    graph.add_node("build_request", build_request_node)
    graph.add_node("assess_risk", assess_risk)
    graph.add_node("handle_error", handle_error)

    graph.set_entry_point("build_request")

    graph.add_edge("build_request", "assess_risk")
    graph.add_conditional_edges(
        "assess_risk",
        _has_error,
        {"handle_error": "handle_error", "done": END},
    )
    graph.add_edge("handle_error", END)

    return graph.compile()


# Compiled workflow singleton
workflow = build_assessment_graph()


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------

async def run_assessment(
    record: PatientRecord,
    attachments: dict[Modality, ImageAttachment],
    notes: str,
) -> dict:
    """Run the assessment workflow and return the final result.

    Args:
        record: The patient record to assess.
        attachments: Captured images keyed by modality.
        notes: Combined notes (general plus imaging notes).

    Returns:
        Dict with key ``result`` on success, or ``error`` and
        ``error_kind`` on failure.
    """
    initial_state: AssessmentState = {
        "record": record,
        "attachments": dict(attachments),
        "notes": notes,
        "request": None,
        "result": None,
        "error": None,
        "error_kind": None,
    }

    final = await workflow.ainvoke(initial_state)

    if final.get("error"):
        return {"error": final["error"], "error_kind": final.get("error_kind")}

    return {"result": final["result"]}
