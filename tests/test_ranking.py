from datetime import datetime

from app.models.models import (
    EmbeddedJob, EmbeddedResume, Experience, Skill, StructuredJob, StructuredResume,
)
from app.services.ranking import rank_candidates_for_job, rank_jobs_for_candidate

NOW = datetime(2024, 6, 1)


def candidate(resume_id, skills, embedding):
    return EmbeddedResume(
        id=resume_id,
        resume=StructuredResume(
            skills=[Skill(name=s) for s in skills],
            experience=[Experience(company="Acme", position="Engineer", start_date="Jan 2019", end_date="Jan 2024")],
        ),
        embedding=embedding,
    )


def job(job_id="job-1", skills=("Python", "Django", "Docker", "AWS"), embedding=(1.0, 0.0, 0.0)):
    return EmbeddedJob(
        id=job_id,
        job=StructuredJob(required_skills=list(skills), required_experience="3+ years"),
        embedding=list(embedding),
    )


class TestRanking:
    """Test cases for ranking candidates and jobs"""

    def test_top_k_in_descending_order(self):
        """Test that only the best `limit` results are returned, best first"""
        candidates = [
            candidate("r1", [], [0.0, 1.0, 0.0]),
            candidate("r2", ["Python"], [1.0, 1.0, 0.0]),
            candidate("r3", ["Python", "Django"], [1.0, 0.5, 0.0]),
            candidate("r4", ["Python", "Django", "Docker"], [1.0, 0.1, 0.0]),
            candidate("r5", ["Python", "Django", "Docker", "AWS"], [1.0, 0.0, 0.0]),
        ]
        ranked = rank_candidates_for_job(job(), candidates, limit=3, now=NOW)

        assert [r.id for r in ranked] == ["r5", "r4", "r3"]
        scores = [r.match_score for r in ranked]
        assert scores == sorted(scores, reverse=True)
        assert all(r.match_score == r.match_details.overall_score for r in ranked)

    def test_ties_broken_by_id(self):
        """Test that equal scores keep a stable order by ascending id"""
        candidates = [candidate(rid, ["Python"], [1.0, 0.0, 0.0]) for rid in ("c", "a", "b")]
        ranked = rank_candidates_for_job(job(), candidates, limit=10, now=NOW)

        assert [r.id for r in ranked] == ["a", "b", "c"]
        assert len({r.match_score for r in ranked}) == 1

    def test_empty_pool(self):
        assert rank_candidates_for_job(job(), [], limit=5, now=NOW) == []

    def test_zero_limit(self):
        assert rank_candidates_for_job(job(), [candidate("r1", ["Python"], [1.0, 0.0, 0.0])], limit=0, now=NOW) == []

    def test_ranking_is_repeatable(self):
        candidates = [candidate(f"r{i}", ["Python"] * (i % 2), [1.0, i / 10, 0.0]) for i in range(10)]
        first = rank_candidates_for_job(job(), candidates, limit=5, now=NOW, max_workers=4)
        second = rank_candidates_for_job(job(), candidates, limit=5, now=NOW, max_workers=1)
        assert first == second

    def test_rank_jobs_for_candidate(self):
        """Test the reverse direction, ranking jobs for one resume"""
        resume = candidate("r1", ["Python", "Django"], [1.0, 0.0, 0.0])
        jobs = [
            job("backend", skills=("Python", "Django"), embedding=(1.0, 0.0, 0.0)),
            job("frontend", skills=("React", "TypeScript"), embedding=(0.0, 1.0, 0.0)),
        ]
        ranked = rank_jobs_for_candidate(resume, jobs, limit=5, now=NOW)

        assert [r.id for r in ranked] == ["backend", "frontend"]
        assert ranked[0].match_details.skill_match.matched_skills == ["Python", "Django"]
        assert ranked[1].match_details.skill_match.missing_skills == ["React", "TypeScript"]
