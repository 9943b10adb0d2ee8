"""Tests for the weighted match scorer."""

import asyncio
from datetime import date

import pytest

from app.core import match_scorer
from app.core.match_scorer import match, match_many, score_education, score_experience, score_projects, score_skills
from app.core.schemas import (
    EducationEntry,
    EducationRequirement,
    ExperienceEntry,
    ExperienceRequirement,
    JobRequirement,
    LLMInsights,
    MatchWeights,
    ParsedResume,
    ProjectEntry,
)

WEIGHTS = MatchWeights()
TODAY = date(2024, 1, 1)


class FixedAnalyzer:
    def __init__(self, score):
        self.score = score

    async def analyze(self, resume, job):
        return LLMInsights(score=self.score, confidence=1.0, recommendation="Worth a call.")


class BrokenAnalyzer:
    async def analyze(self, resume, job):
        raise RuntimeError("provider exploded")


def _run(coro):
    return asyncio.run(coro)


def test_half_of_required_skills():
    resume = ParsedResume(skills=["python", "java"])
    job = JobRequirement(required_skills=["Python", "Go"])
    sub = score_skills(resume, job, WEIGHTS)
    assert sub.detail.required == 50
    assert sub.detail.matched_skills == ["python"]
    assert sub.detail.missing_skills == ["go"]


def test_substring_match_either_direction():
    resume = ParsedResume(skills=["React.js", "AWS"])
    job = JobRequirement(required_skills=["React", "Amazon AWS"])
    assert score_skills(resume, job, WEIGHTS).detail.required == 100


def test_empty_required_is_full_and_empty_preferred_is_zero():
    sub = score_skills(ParsedResume(skills=["Python"]), JobRequirement(), WEIGHTS)
    assert sub.detail.required == 100
    assert sub.detail.preferred == 0


def test_two_years_of_experience():
    resume = ParsedResume(experience=[
        ExperienceEntry(title="Senior Software Engineer", start_date="2020-01", end_date="2022-01"),
    ])
    job = JobRequirement(title="Software Engineer", experience=ExperienceRequirement(min_years=2))
    sub = score_experience(resume, job, TODAY)
    assert sub.detail.years == 2.0
    assert sub.detail.relevance == 1.0
    assert sub.detail.score == 100
    assert sub.detail.insights == "2.0 years of experience, highly relevant"


def test_open_ended_experience_counts_to_today():
    resume = ParsedResume(experience=[ExperienceEntry(title="Analyst", start_date="2023-01", end_date=None)])
    sub = score_experience(resume, JobRequirement(title="Engineer"), TODAY)
    assert sub.detail.years == 1.0
    assert sub.detail.relevance == 0.5


def test_unparseable_experience_is_skipped():
    resume = ParsedResume(experience=[ExperienceEntry(title="Engineer", start_date="sometime")])
    assert score_experience(resume, JobRequirement(), TODAY).detail.years == 0.0


@pytest.mark.parametrize(
    "education, expected",
    [
        ([EducationEntry(degree="Bachelor of Science", field="Computer Science")], 100),
        ([EducationEntry(degree="Bachelor of Science", field="History")], 70),
        ([EducationEntry(degree="Diploma", field="Computer Science")], 30),
        ([], 30),
    ],
)
def test_education_tiers(education, expected):
    job = JobRequirement(education=EducationRequirement(required_degree="Bachelor", preferred_field="Computer Science"))
    assert score_education(ParsedResume(education=education), job).detail.score == expected


def test_no_education_requirement():
    assert score_education(ParsedResume(), JobRequirement()).detail.score == 100


def test_project_relevance():
    resume = ParsedResume(projects=[
        ProjectEntry(name="Chat", technologies=["React", "Node.js"]),
        ProjectEntry(name="Game", technologies=["Unity"]),
    ])
    sub = score_projects(resume, JobRequirement(required_skills=["React"]))
    assert sub.detail.score == 50
    assert sub.detail.relevant_projects == ["Chat"]
    assert sub.detail.technologies_used == ["React", "Node.js"]


def test_composite_without_analysis():
    resume = ParsedResume(skills=["Python", "Go"])
    job = JobRequirement(required_skills=["Python", "Go"])
    result = _run(match(resume, job, weights=WEIGHTS, today=TODAY))
    # required 0.35 + education (no requirement) 0.10
    assert result.score == 45
    assert result.explanation.startswith("Matched 2 required skills.")


def test_analysis_score_is_weighted_in():
    resume = ParsedResume(skills=["Python", "Go"])
    job = JobRequirement(required_skills=["Python", "Go"])
    result = _run(match(resume, job, weights=WEIGHTS, analyzer=FixedAnalyzer(100), today=TODAY))
    assert result.score == 55
    assert result.breakdown.llm_insights.score == 100
    assert result.explanation.endswith("Worth a call.")


def test_failing_analysis_scores_zero():
    resume = ParsedResume(skills=["Python"])
    job = JobRequirement(required_skills=["Python"])
    result = _run(match(resume, job, weights=WEIGHTS, analyzer=BrokenAnalyzer(), today=TODAY))
    assert result.breakdown.llm_insights.score == 0
    assert result.score == 45


def test_internal_error_yields_zero_result(monkeypatch):
    def explode(*args, **kwargs):
        raise ValueError("bad input")

    monkeypatch.setattr(match_scorer, "score_skills", explode)
    result = _run(match(ParsedResume(), JobRequirement(), weights=WEIGHTS))
    assert result.score == 0
    assert result.explanation == "Error calculating match score"
    assert result.breakdown.experience_match.insights == "Error calculating experience"


def test_score_is_bounded_for_perfect_candidate():
    resume = ParsedResume(
        skills=["Python", "Docker"],
        experience=[ExperienceEntry(title="Engineer", start_date="2010-01", end_date="2020-01")],
        education=[EducationEntry(degree="Master of Science", field="Computer Science")],
        projects=[ProjectEntry(name="Tool", technologies=["Python"])],
    )
    job = JobRequirement(
        title="Engineer",
        required_skills=["Python"],
        preferred_skills=["Docker"],
        experience=ExperienceRequirement(min_years=3),
        education=EducationRequirement(required_degree="Master", preferred_field="Computer Science"),
    )
    result = _run(match(resume, job, weights=WEIGHTS, analyzer=FixedAnalyzer(100), today=TODAY))
    assert result.score == 100
    for sub in (result.breakdown.skill_match.total, result.breakdown.experience_match.score,
                result.breakdown.education_match.score, result.breakdown.project_match.score):
        assert 0 <= sub <= 100


def test_match_many_sorted_best_first():
    job = JobRequirement(required_skills=["Python", "Go"])
    weak = ParsedResume(skills=["Java"])
    strong = ParsedResume(skills=["Python", "Go"])
    medium = ParsedResume(skills=["Python"])
    results = _run(match_many([weak, strong, medium], job, weights=WEIGHTS, today=TODAY))
    assert [r.score for r in results] == sorted((r.score for r in results), reverse=True)
    assert results[0].breakdown.skill_match.required == 100
    assert results[-1].breakdown.skill_match.required == 0
