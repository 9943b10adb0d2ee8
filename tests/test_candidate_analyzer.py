"""Tests for qualitative analysis prompting and response parsing."""

import asyncio
import json

import pytest

from app.ai.analyzer import CandidateAnalyzer, build_analysis_prompt, calculate_confidence, parse_analysis
from app.core.cache import TTLCache
from app.core.errors import ExternalServiceError
from app.core.match_scorer import match
from app.core.retry import RetryPolicy
from app.core.schemas import JobRequirement, MatchWeights, ParsedResume


NUMBERED_RESPONSE = """1. Key Strengths: Deep Python experience
2. Areas for Improvement: Limited cloud exposure
3. Overall Fit: Solid match for the role
4. Recommendation: Proceed to interview
Score: 75/100

Questions:
- How have you used AWS?
- Describe a system you scaled?"""


def test_parse_json_response():
    response = json.dumps({
        "strengths": ["Strong Python"],
        "areas_for_improvement": ["No Go"],
        "overall_fit": "Good fit",
        "recommendation": "Interview",
        "score": 82,
        "suggested_questions": ["How would you learn Go?"],
    })
    insights = parse_analysis(response)
    assert insights.score == 82
    assert insights.confidence == 1.0
    assert insights.strengths == ["Strong Python"]
    assert insights.gaps == ["No Go"]
    assert insights.analysis == "Good fit"
    assert insights.recommendation == "Interview"
    assert insights.suggested_questions == ["How would you learn Go?"]


def test_parse_numbered_response():
    insights = parse_analysis(NUMBERED_RESPONSE)
    assert insights.score == 75
    assert insights.confidence == 1.0
    assert insights.strengths == ["Deep Python experience"]
    assert insights.gaps == ["Limited cloud exposure"]
    assert insights.analysis == "Solid match for the role"
    assert insights.recommendation == "Proceed to interview"
    assert insights.suggested_questions == ["How have you used AWS?", "Describe a system you scaled?"]


def test_missing_parts_lower_confidence():
    insights = parse_analysis("1. Key Strengths: Python\n2. Areas for Improvement: Go")
    assert insights.confidence == 0.5
    assert insights.score == 0
    assert calculate_confidence({}) == 0.0


def test_score_is_clamped():
    assert parse_analysis('{"strengths": "Python", "score": 140}').score == 100


def test_prompt_language():
    resume = ParsedResume(skills=["Python"])
    job = JobRequirement(title="Engineer", required_skills=["Python"])
    assert "Key Strengths" in build_analysis_prompt(resume, job)
    assert "Puntos Fuertes" in build_analysis_prompt(resume, job, language="es")
    assert "Key Strengths" in build_analysis_prompt(resume, job, language="fr")


class CountingProvider:
    def __init__(self, response):
        self.response = response
        self.calls = 0

    async def complete(self, prompt, hints=None):
        self.calls += 1
        return self.response


def test_analyze_caches_by_resume_and_job():
    provider = CountingProvider(NUMBERED_RESPONSE)
    analyzer = CandidateAnalyzer(provider, cache=TTLCache(capacity=10), retry=RetryPolicy(max_attempts=1))
    resume = ParsedResume(skills=["Python"])
    job = JobRequirement(title="Engineer")

    first = asyncio.run(analyzer.analyze(resume, job))
    second = asyncio.run(analyzer.analyze(resume, job))
    assert first == second
    assert first.score == 75
    assert provider.calls == 1

    asyncio.run(analyzer.analyze(resume, JobRequirement(title="Manager")))
    assert provider.calls == 2


class FailingProvider:
    def __init__(self):
        self.calls = 0

    async def complete(self, prompt, hints=None):
        self.calls += 1
        raise ConnectionError("provider down")


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


async def _no_sleep(delay):
    return None


def test_failed_analysis_starts_cooldown():
    provider = FailingProvider()
    clock = FakeClock()
    analyzer = CandidateAnalyzer(
        provider,
        retry=RetryPolicy(max_attempts=3, jitter=lambda: 0.0, clock=clock, sleep=_no_sleep),
        cooldown_s=3600,
        clock=clock,
    )
    resume = ParsedResume(skills=["Python"])
    job = JobRequirement(required_skills=["Python"])

    for _ in range(3):
        result = asyncio.run(match(resume, job, weights=MatchWeights(), analyzer=analyzer))
        assert result.breakdown.llm_insights.score == 0
    assert provider.calls == 3
    assert not analyzer.is_available()

    with pytest.raises(ExternalServiceError):
        asyncio.run(analyzer.analyze(resume, job))
    assert provider.calls == 3

    clock.now = 3600
    assert analyzer.is_available()
    asyncio.run(match(resume, job, weights=MatchWeights(), analyzer=analyzer))
    assert provider.calls == 6
