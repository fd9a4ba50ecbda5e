from functools import lru_cache
from typing import Any, Dict, List, TypedDict

from langgraph.graph import END, StateGraph

from app.models.models import StructuredJob, StructuredResume
from app.services.auditor import audit_job, audit_resume
from app.services.embeddings import EmbeddingGenerator, get_embedding_generator
from app.services.jd_parser import apply_declared_requirements, extract_job_fields
from app.services.resume_parser import extract_resume_fields
from app.utils.logging_config import get_logger, log_function_call

logger = get_logger(__name__)


# LangGraph state and nodes
class ResumeState(TypedDict, total=False):
    text: str
    parsed: StructuredResume
    missing_info: List[str]
    embedding: List[float]


class JobState(TypedDict, total=False):
    text: str
    declared: Dict[str, Any]
    parsed: StructuredJob
    missing_info: List[str]
    embedding: List[float]


def node_parse_resume(state: ResumeState):
    return {"parsed": extract_resume_fields(state["text"])}


def node_audit_resume(state: ResumeState):
    return {"missing_info": audit_resume(state["parsed"])}


def node_parse_job(state: JobState):
    parsed = extract_job_fields(state["text"])
    declared = state.get("declared") or {}
    if declared:
        parsed = apply_declared_requirements(parsed, **declared)
    return {"parsed": parsed}


def node_audit_job(state: JobState):
    return {"missing_info": audit_job(state["parsed"])}


def _embed_node(embedder: EmbeddingGenerator):
    async def node_embed(state):
        # always the full source text, never the structured subset
        return {"embedding": await embedder.aembed(state["text"])}
    return node_embed


def _compile(state_type, parse, audit, embedder: EmbeddingGenerator):
    g = StateGraph(state_type)
    g.add_node("parse", parse)
    g.add_node("audit", audit)
    g.add_node("embed", _embed_node(embedder))
    g.set_entry_point("parse")
    g.add_edge("parse", "audit")
    g.add_edge("audit", "embed")
    g.add_edge("embed", END)
    return g.compile()


@lru_cache(maxsize=8)
def build_resume_graph(embedder: EmbeddingGenerator):
    return _compile(ResumeState, node_parse_resume, node_audit_resume, embedder)


@lru_cache(maxsize=8)
def build_job_graph(embedder: EmbeddingGenerator):
    return _compile(JobState, node_parse_job, node_audit_job, embedder)


@log_function_call
async def process_resume_text(text: str, embedder: EmbeddingGenerator = None) -> ResumeState:
    """Extract, audit and embed one resume text."""
    graph = build_resume_graph(embedder or get_embedding_generator())
    state = await graph.ainvoke({"text": text})
    logger.info(f"Processed resume: {len(state['missing_info'])} missing-info notes")
    return state


@log_function_call
async def process_job_text(text: str, declared: Dict[str, Any] = None,
                           embedder: EmbeddingGenerator = None) -> JobState:
    """Extract, audit and embed one job text, overlaying employer-declared fields."""
    graph = build_job_graph(embedder or get_embedding_generator())
    state = await graph.ainvoke({"text": text, "declared": declared or {}})
    logger.info(f"Processed job: {len(state['missing_info'])} missing-info notes")
    return state
