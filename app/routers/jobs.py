import uuid
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends, Query
from fastapi.concurrency import run_in_threadpool

from app.models.models import EmbeddedJob, EmbeddedResume, StructuredJob, StructuredResume
from app.models.schemas import (
    CandidateMatch, CandidateMatchesResponse, JobCreate, JobParsedData, JobRecord, JobResponse,
    JobSummary, JobUpdate, ResumeHighlights,
)
from app.models.settings import MatcherSettings, get_settings
from app.services.auditor import audit_job
from app.services.db import jobs_coll, resumes_coll, users_coll
from app.services.embeddings import EmbeddingGenerator, get_embedding_generator
from app.services.graph import process_job_text
from app.services.jd_parser import (
    apply_declared_requirements, build_job_text, extract_job_fields, identify_key_requirements,
)
from app.services.ranking import rank_candidates_for_job
from app.utils.exceptions import ExceptionContext, NotFoundError
from app.utils.logging_config import get_logger

logger = get_logger(__name__)

router = APIRouter()

# fields that make up the embedded job text
TEXT_FIELDS = ("title", "description", "requirements", "responsibilities")
# fields overlaid onto the parsed job without re-embedding
DECLARED_FIELDS = ("title", "company", "location", "type", "skills", "experience", "education")


def _declared(fields: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "job_title": fields.get("title"),
        "company": fields.get("company"),
        "location": fields.get("location"),
        "employment_type": fields.get("type"),
        "skills": fields.get("skills"),
        "experience": fields.get("experience"),
        "education": fields.get("education"),
    }


def _job_response(doc: Dict[str, Any]) -> JobResponse:
    parsed = StructuredJob(**(doc.get("parsedData") or {}))
    return JobResponse(
        job_id=doc["jobId"],
        title=doc["title"],
        company=doc["company"],
        location=doc["location"],
        type=doc["type"],
        is_active=doc.get("isActive", True),
        parsed_data=parsed,
        missing_info=(doc.get("parsedData") or {}).get("missingInfo", []),
        key_requirements=identify_key_requirements(parsed),
    )


async def _find_job(job_id: str) -> Dict[str, Any]:
    doc = await jobs_coll.find_one({"jobId": job_id})
    if not doc:
        raise NotFoundError("Job not found", resource="job", resource_id=job_id)
    return doc


@router.post("/", response_model=JobResponse, status_code=201)
async def create_job(job: JobCreate, embedder: EmbeddingGenerator = Depends(get_embedding_generator)):
    """Create a posting; its text is parsed, audited and embedded"""
    text = build_job_text(job.title, job.description, job.requirements, job.responsibilities)
    fields = job.model_dump()
    state = await process_job_text(text, declared=_declared(fields), embedder=embedder)

    record = JobRecord(
        **fields,
        job_id=str(uuid.uuid4()),
        parsed_data=JobParsedData(
            **state["parsed"].model_dump(),
            embedding=state["embedding"],
            missing_info=state["missing_info"],
        ),
        source_text=text,
    )
    doc = record.to_document()
    with ExceptionContext("store job", logger, job_id=record.job_id):
        await jobs_coll.insert_one(dict(doc))
    logger.info(f"Created job {record.job_id}: {record.title}")
    return _job_response(doc)


@router.get("/{job_id}", response_model=JobResponse)
async def get_job(job_id: str):
    return _job_response(await _find_job(job_id))


@router.put("/{job_id}", response_model=JobResponse)
async def update_job(
    job_id: str,
    update: JobUpdate,
    embedder: EmbeddingGenerator = Depends(get_embedding_generator),
):
    """Update a posting.

    The text is re-parsed and re-embedded only when title, description,
    requirements or responsibilities change. Other declared changes are
    overlaid onto a fresh parse of the stored text, keeping the embedding.
    """
    existing = await _find_job(job_id)
    changes = update.model_dump(exclude_none=True)
    current = JobCreate(**existing).model_dump()
    merged = {**current, **{k: v for k, v in changes.items() if k in current}}

    updates = JobCreate(**merged).to_document()
    if update.is_active is not None:
        updates["isActive"] = update.is_active

    if any(merged[f] != current[f] for f in TEXT_FIELDS):
        text = build_job_text(merged["title"], merged["description"], merged["requirements"],
                              merged["responsibilities"])
        state = await process_job_text(text, declared=_declared(merged), embedder=embedder)
        parsed, embedding, missing = state["parsed"], state["embedding"], state["missing_info"]
        updates["sourceText"] = text
        logger.info(f"Job {job_id} text changed, re-parsed and re-embedded")
    else:
        stored = existing.get("parsedData") or {}
        parsed = StructuredJob(**stored)
        if any(merged[f] != current[f] for f in DECLARED_FIELDS):
            # re-derive from the text so removed or cleared declarations drop out
            text = existing.get("sourceText") or build_job_text(
                merged["title"], merged["description"], merged["requirements"], merged["responsibilities"])
            parsed = apply_declared_requirements(extract_job_fields(text), **_declared(merged))
        embedding = stored.get("embedding") or []
        missing = audit_job(parsed)

    updates["parsedData"] = JobParsedData(
        **parsed.model_dump(), embedding=embedding, missing_info=missing
    ).to_document()
    updates["updatedAt"] = datetime.now(timezone.utc)

    with ExceptionContext("update job", logger, job_id=job_id):
        await jobs_coll.update_one({"jobId": job_id}, {"$set": updates})
    return _job_response({**existing, **updates})


@router.delete("/{job_id}")
async def delete_job(job_id: str):
    """Soft delete; the job stops taking part in matching"""
    result = await jobs_coll.update_one(
        {"jobId": job_id},
        {"$set": {"isActive": False, "updatedAt": datetime.now(timezone.utc)}},
    )
    if result.matched_count == 0:
        raise NotFoundError("Job not found", resource="job", resource_id=job_id)
    logger.info(f"Deactivated job {job_id}")
    return {"message": "Job deleted successfully", "jobId": job_id}


@router.get("/{job_id}/candidates", response_model=CandidateMatchesResponse)
async def match_candidates_for_job(
    job_id: str,
    limit: int = Query(None, ge=1, le=100),
    settings: MatcherSettings = Depends(get_settings),
):
    """Rank active resumes against one job, enriched with candidate details"""
    job_doc = await _find_job(job_id)
    summary = JobSummary(id=job_id, title=job_doc["title"])
    resume_docs = await resumes_coll.find({"isActive": True}).to_list(length=None)
    if not resume_docs:
        return CandidateMatchesResponse(message="No candidates found for matching", job=summary, matches=[])

    parsed = job_doc.get("parsedData") or {}
    job = EmbeddedJob(id=job_id, job=StructuredJob(**parsed), embedding=parsed.get("embedding") or [])
    resumes = []
    by_id = {}
    for doc in resume_docs:
        resumes.append(EmbeddedResume(
            id=doc["resumeId"],
            resume=StructuredResume(**(doc.get("parsedData") or {})),
            embedding=doc.get("vectorEmbedding") or [],
        ))
        by_id[doc["resumeId"]] = doc

    ranked = await run_in_threadpool(
        rank_candidates_for_job, job, resumes, limit or settings.processing.candidate_limit
    )

    user_ids = list({by_id[r.id]["userId"] for r in ranked})
    users = await users_coll.find({"id": {"$in": user_ids}}).to_list(length=None)
    users_by_id = {u["id"]: u for u in users}

    matches = []
    for r in ranked:
        resume_doc = by_id[r.id]
        user = users_by_id.get(resume_doc["userId"])
        if not user:
            logger.warning(f"Skipping resume {r.id}: user {resume_doc['userId']} not found")
            continue
        resume = StructuredResume(**(resume_doc.get("parsedData") or {}))
        matches.append(CandidateMatch(
            user_id=resume_doc["userId"],
            first_name=user.get("firstName"),
            last_name=user.get("lastName"),
            email=user.get("email"),
            resume_id=r.id,
            match_score=r.match_score,
            match_details=r.match_details,
            resume_highlights=ResumeHighlights(
                skills=[s.name for s in resume.skills],
                experience=[{"company": e.company, "position": e.position} for e in resume.experience],
            ),
        ))
    return CandidateMatchesResponse(message="Matching candidates found", job=summary, matches=matches)
