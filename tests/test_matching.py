import pytest
from datetime import datetime

from app.models.models import Education, Experience, Skill, StructuredJob, StructuredResume
from app.models.settings import MatchingWeights
from app.services.matching import (
    calculate_education_match,
    calculate_experience_match,
    calculate_skill_match,
    cosine_similarity,
    experience_score,
    round_half,
    score,
    total_experience_years,
)

NOW = datetime(2024, 6, 1)


def years_of_experience(start, end):
    return [Experience(company="Acme", position="Engineer", start_date=start, end_date=end)]


class TestCosineSimilarity:
    """Test cases for clamped cosine similarity"""

    def test_identical_vectors(self):
        assert cosine_similarity([1.0, 2.0, 3.0], [1.0, 2.0, 3.0]) == pytest.approx(1.0)

    def test_orthogonal_vectors(self):
        assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == 0.0

    def test_negative_similarity_is_clamped(self):
        assert cosine_similarity([1.0, 0.0], [-1.0, 0.0]) == 0.0

    def test_invalid_inputs_score_zero(self):
        """Test empty, zero-norm and mismatched vectors"""
        assert cosine_similarity([], []) == 0.0
        assert cosine_similarity(None, [1.0]) == 0.0
        assert cosine_similarity([0.0, 0.0], [1.0, 1.0]) == 0.0
        assert cosine_similarity([1.0, 2.0], [1.0, 2.0, 3.0]) == 0.0


class TestSkillMatch:
    """Test cases for skill overlap"""

    def test_partial_match(self):
        outcome = calculate_skill_match(["javascript", "node.js"], ["JavaScript", "React"])

        assert outcome.score == 0.5
        assert outcome.matched_skills == ["JavaScript"]
        assert outcome.missing_skills == ["React"]

    def test_containment_in_either_direction(self):
        """Test that 'React' matches 'React Native' and vice versa"""
        assert calculate_skill_match(["React Native"], ["React"]).score == 1.0
        assert calculate_skill_match(["React"], ["React Native"]).score == 1.0

    def test_accepts_skill_models_and_dicts(self):
        outcome = calculate_skill_match([Skill(name="Python"), {"name": "SQL"}], ["python", "sql", "Go"])
        assert outcome.matched_skills == ["python", "sql"]
        assert outcome.missing_skills == ["Go"]

    def test_matched_and_missing_partition_job_skills(self):
        """Test that every required skill lands in exactly one list"""
        job_skills = ["Python", "Django", "AWS", "Docker"]
        outcome = calculate_skill_match(["python", "aws"], job_skills)

        assert sorted(outcome.matched_skills + outcome.missing_skills) == sorted(job_skills)
        assert not set(outcome.matched_skills) & set(outcome.missing_skills)

    def test_empty_sides(self):
        """Test that an empty side scores zero with everything missing"""
        assert calculate_skill_match([], ["Python"]) == (0.0, [], ["Python"])
        assert calculate_skill_match(["Python"], []) == (0.0, [], [])
        assert calculate_skill_match(["", "  "], ["Python"]).score == 0.0


class TestExperienceMatch:
    """Test cases for experience adequacy"""

    def test_total_years(self):
        assert total_experience_years(years_of_experience("Jan 2020", "Jan 2024"), now=NOW) == 4.0

    def test_present_uses_supplied_clock(self):
        assert total_experience_years(years_of_experience("Jun 2021", "Present"), now=NOW) == 3.0

    def test_entries_without_dates_are_skipped(self):
        entries = years_of_experience("Jan 2020", "Jan 2022") + [Experience(company="X", start_date="soon")]
        assert total_experience_years(entries, now=NOW) == 2.0

    def test_round_half(self):
        assert round_half(2.24) == 2.0
        assert round_half(2.25) == 2.5
        assert round_half(2.8) == 3.0

    @pytest.mark.parametrize("total,required,expected", [
        (5, 5, 1.0),
        (6, 5, 1.0),
        (4, 5, 0.8),
        (3, 5, 0.6),
        (2, 5, 0.4),
        (1, 5, 0.2),
        (0, 5, 0.2),
    ])
    def test_score_ladder(self, total, required, expected):
        """Test the stepped ratio ladder, inclusive at each threshold"""
        assert experience_score(total, required) == expected

    def test_just_under_threshold_rounds_up(self):
        """Test that 3.95 years rounds to 4.0 and lands on the 0.8 step for 5 years"""
        entries = years_of_experience("2020-01-01", "2023-12-13")
        assert total_experience_years(entries, now=NOW) == 4.0
        assert calculate_experience_match(entries, "5+ years", now=NOW).score == 0.8

    def test_day_precise_dates(self):
        entries = years_of_experience("January 5, 2018", "March 1, 2023")
        assert total_experience_years(entries, now=NOW) == 5.0
        assert calculate_experience_match(entries, "3+ years", now=NOW).score == 1.0

    def test_unparseable_requirement_is_neutral(self):
        outcome = calculate_experience_match(years_of_experience("Jan 2020", "Jan 2024"), "Senior level", now=NOW)
        assert outcome.score == 0.5
        assert "Could not determine" in outcome.details

    def test_details_mention_years(self):
        outcome = calculate_experience_match(years_of_experience("Jan 2020", "Jan 2024"), "3+ years", now=NOW)
        assert outcome.score == 1.0
        assert "4 years" in outcome.details
        assert "3 years" in outcome.details

    def test_no_experience(self):
        assert calculate_experience_match([], "3+ years", now=NOW).score == 0.2


class TestEducationMatch:
    """Test cases for education adequacy"""

    def test_meets_requirement(self):
        outcome = calculate_education_match([Education(degree="Master of Science")], "Bachelor's")
        assert outcome.score == 1.0
        assert "Bachelor's degree" in outcome.details

    def test_one_level_below(self):
        assert calculate_education_match([Education(degree="Associate of Arts")], "Bachelor's degree").score == 0.7

    def test_far_below_or_none(self):
        assert calculate_education_match([Education(degree="High School Diploma")], "Master's").score == 0.3
        assert calculate_education_match([], "Bachelor's").score == 0.3

    def test_highest_candidate_degree_counts(self):
        education = [Education(degree="High School Diploma"), Education(degree="PhD")]
        assert calculate_education_match(education, "Master's").score == 1.0

    def test_unknown_requirement_is_neutral(self):
        assert calculate_education_match([Education(degree="BSc")], "Relevant training").score == 0.5
        assert calculate_education_match([], "").score == 0.5


class TestCompositeScore:
    """Test cases for the weighted composite score"""

    @pytest.fixture
    def resume(self):
        return StructuredResume(
            skills=[Skill(name="javascript"), Skill(name="node.js")],
            experience=years_of_experience("Jan 2020", "Jan 2024"),
            education=[Education(institution="State University", degree="Master of Science")],
        )

    @pytest.fixture
    def job(self):
        return StructuredJob(
            required_skills=["JavaScript", "React"],
            required_experience="3+ years",
            required_education="Bachelor's",
        )

    def test_end_to_end_score(self, resume, job):
        """Test the weighted breakdown for a strong but partial match"""
        vector = [0.2, 0.4, 0.1, 0.7]
        result = score(resume, job, vector, vector, now=NOW)

        assert result.semantic_similarity == 100
        assert result.skill_match.score == 50
        assert result.skill_match.matched_skills == ["JavaScript"]
        assert result.skill_match.missing_skills == ["React"]
        assert result.experience_match.score == 100
        assert result.education_match.score == 100
        assert result.overall_score == 85

    def test_scoring_is_deterministic(self, resume, job):
        first = score(resume, job, [1.0, 0.5], [0.5, 1.0], now=NOW)
        second = score(resume, job, [1.0, 0.5], [0.5, 1.0], now=NOW)
        assert first == second

    def test_custom_weights(self, resume, job):
        """Test that weights are passed explicitly rather than looked up"""
        weights = MatchingWeights(semantic_similarity=0.0, skill_match=1.0, experience_match=0.0, education_match=0.0)
        result = score(resume, job, [1.0], [1.0], weights=weights, now=NOW)
        assert result.overall_score == 50

    def test_missing_embeddings_score_zero_semantic(self, resume, job):
        result = score(resume, job, [], [], now=NOW)
        assert result.semantic_similarity == 0
        # 0.3 * 0.5 + 0.2 + 0.1
        assert result.overall_score == 45

    def test_invalid_weights_rejected(self):
        with pytest.raises(ValueError):
            MatchingWeights(semantic_similarity=0.9, skill_match=0.9, experience_match=0.0, education_match=0.0)
