import uuid
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from fastapi.concurrency import run_in_threadpool

from app.helpers.parsing import ACCEPTED_UPLOAD_TYPES, extract_text, file_type_from_name
from app.models.models import EmbeddedJob, EmbeddedResume, StructuredJob, StructuredResume
from app.models.schemas import (
    JobMatch, JobMatchesResponse, ResumeRecord, ResumeSummary, ResumeUploadResponse,
)
from app.models.settings import MatcherSettings, get_settings
from app.services.db import jobs_coll, resumes_coll
from app.services.embeddings import EmbeddingGenerator, get_embedding_generator
from app.services.graph import process_resume_text
from app.services.ranking import rank_jobs_for_candidate
from app.utils.exceptions import ExceptionContext, NotFoundError, ValidationError
from app.utils.logging_config import get_logger

logger = get_logger(__name__)

router = APIRouter()


@router.post("/upload", response_model=ResumeUploadResponse, status_code=201)
async def upload_resume(
    resume: UploadFile = File(...),
    user_id: str = Form(...),
    embedder: EmbeddingGenerator = Depends(get_embedding_generator),
    settings: MatcherSettings = Depends(get_settings),
):
    """Upload a resume file, then extract, audit, embed and store it"""
    file_type = file_type_from_name(resume.filename)
    if file_type not in ACCEPTED_UPLOAD_TYPES:
        raise ValidationError(
            "File type not allowed. Please upload PDF, DOCX, DOC, or TXT files.",
            field="resume",
            value=resume.filename,
        )

    data = await resume.read()
    if not data:
        raise ValidationError("No file uploaded", field="resume")
    if len(data) > settings.processing.max_upload_bytes:
        raise ValidationError(
            f"File too large. Maximum size is {settings.processing.max_upload_bytes // (1024 * 1024)}MB",
            field="resume",
            value=len(data),
        )

    text = await run_in_threadpool(extract_text, data, file_type)
    state = await process_resume_text(text, embedder=embedder)

    record = ResumeRecord(
        resume_id=str(uuid.uuid4()),
        user_id=user_id,
        file_name=resume.filename,
        file_type=file_type,
        file_size=len(data),
        parsed_data=state["parsed"],
        vector_embedding=state["embedding"],
        missing_info=state["missing_info"],
        source_text=text,
    )
    with ExceptionContext("store resume", logger, resume_id=record.resume_id):
        await resumes_coll.insert_one(record.to_document())
    logger.info(f"Stored resume {record.resume_id} for user {user_id} ({file_type}, {len(data)} bytes)")

    return ResumeUploadResponse(
        message="Resume uploaded and processed successfully",
        resume=ResumeSummary(**record.model_dump()),
    )


@router.get("/", response_model=list[ResumeSummary])
async def list_resumes(user_id: str = Query(...)):
    """Active resumes of one user, most recent first"""
    cursor = resumes_coll.find(
        {"userId": user_id, "isActive": True},
        {"vectorEmbedding": 0, "sourceText": 0},
    ).sort("lastUpdated", -1)
    docs = await cursor.to_list(length=None)
    return [ResumeSummary(**doc) for doc in docs]


@router.get("/{resume_id}", response_model=ResumeSummary)
async def get_resume(resume_id: str):
    doc = await resumes_coll.find_one({"resumeId": resume_id}, {"vectorEmbedding": 0, "sourceText": 0})
    if not doc:
        raise NotFoundError("Resume not found", resource="resume", resource_id=resume_id)
    return ResumeSummary(**doc)


@router.delete("/{resume_id}")
async def delete_resume(resume_id: str):
    """Soft delete; the resume stops taking part in matching"""
    result = await resumes_coll.update_one(
        {"resumeId": resume_id},
        {"$set": {"isActive": False, "lastUpdated": datetime.now(timezone.utc)}},
    )
    if result.matched_count == 0:
        raise NotFoundError("Resume not found", resource="resume", resource_id=resume_id)
    logger.info(f"Deactivated resume {resume_id}")
    return {"message": "Resume deleted successfully", "resumeId": resume_id}


@router.get("/{resume_id}/jobs", response_model=JobMatchesResponse)
async def match_jobs_for_resume(
    resume_id: str,
    limit: int = Query(None, ge=1, le=100),
    settings: MatcherSettings = Depends(get_settings),
):
    """Rank active jobs for one resume"""
    doc = await resumes_coll.find_one({"resumeId": resume_id, "isActive": True})
    if not doc:
        raise NotFoundError("Resume not found", resource="resume", resource_id=resume_id)

    job_docs = await jobs_coll.find({"isActive": True}).to_list(length=None)
    if not job_docs:
        return JobMatchesResponse(message="No jobs found for matching", matches=[])

    resume = EmbeddedResume(
        id=resume_id,
        resume=StructuredResume(**(doc.get("parsedData") or {})),
        embedding=doc.get("vectorEmbedding") or [],
    )
    jobs = []
    by_id = {}
    for job_doc in job_docs:
        parsed = job_doc.get("parsedData") or {}
        jobs.append(EmbeddedJob(
            id=job_doc["jobId"],
            job=StructuredJob(**parsed),
            embedding=parsed.get("embedding") or [],
        ))
        by_id[job_doc["jobId"]] = job_doc

    ranked = await run_in_threadpool(
        rank_jobs_for_candidate, resume, jobs, limit or settings.processing.candidate_limit
    )
    matches = [
        JobMatch(
            job_id=r.id,
            title=by_id[r.id].get("title"),
            company=by_id[r.id].get("company"),
            location=by_id[r.id].get("location"),
            match_score=r.match_score,
            match_details=r.match_details,
        )
        for r in ranked
    ]
    return JobMatchesResponse(message="Matching jobs found", matches=matches)
