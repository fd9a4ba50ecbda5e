from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import List, Sequence, Tuple

from app.helpers import rules
from app.models.models import EmbeddedJob, EmbeddedResume, RankedMatch
from app.models.settings import MatchingWeights, get_settings
from app.services.matching import score
from app.utils.logging_config import PerformanceMonitor, get_logger

logger = get_logger(__name__)

# (id, resume, job) triples; the id is the entity being ranked
Pair = Tuple[str, EmbeddedResume, EmbeddedJob]


def _score_pairs(pairs: List[Pair], limit: int, weights: MatchingWeights, max_workers: int,
                 now: datetime) -> List[RankedMatch]:
    if not pairs or limit <= 0:
        return []

    def _one(pair: Pair) -> RankedMatch:
        entity_id, resume, job = pair
        result = score(resume.resume, job.job, resume.embedding, job.embedding, weights=weights, now=now)
        return RankedMatch(id=entity_id, match_score=result.overall_score, match_details=result)

    # pairs are independent; only the final sort imposes an order
    with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(pairs)))) as pool:
        results = list(pool.map(_one, pairs))

    # highest score first, ties broken by ascending id
    results.sort(key=lambda r: (-r.match_score, r.id))
    return results[:limit]


def rank_candidates_for_job(
    job: EmbeddedJob,
    candidates: Sequence[EmbeddedResume],
    limit: int = None,
    weights: MatchingWeights = None,
    max_workers: int = None,
    now: datetime = None,
) -> List[RankedMatch]:
    settings = get_settings()
    limit = settings.processing.candidate_limit if limit is None else limit
    now = now or rules.utc_now()
    with PerformanceMonitor(f"Ranking {len(candidates)} candidates for job {job.id}", logger):
        return _score_pairs(
            [(c.id, c, job) for c in candidates],
            limit,
            weights or settings.weights,
            max_workers or settings.processing.max_workers,
            now,
        )


def rank_jobs_for_candidate(
    resume: EmbeddedResume,
    jobs: Sequence[EmbeddedJob],
    limit: int = None,
    weights: MatchingWeights = None,
    max_workers: int = None,
    now: datetime = None,
) -> List[RankedMatch]:
    settings = get_settings()
    limit = settings.processing.candidate_limit if limit is None else limit
    now = now or rules.utc_now()
    with PerformanceMonitor(f"Ranking {len(jobs)} jobs for resume {resume.id}", logger):
        return _score_pairs(
            [(j.id, resume, j) for j in jobs],
            limit,
            weights or settings.weights,
            max_workers or settings.processing.max_workers,
            now,
        )
