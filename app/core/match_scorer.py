"""
Weighted match scoring between a parsed resume and a job requirement.

Four algorithmic sub-scores (skills, experience, education, projects) are
computed deterministically and blended with the score of an optional external
qualitative analysis. Every sub-score is clamped to [0, 1] before weighting.
match() never raises: any failure yields the zero-valued MatchResult.
"""

import asyncio
import logging
from datetime import date
from typing import List, NamedTuple, Optional, Protocol

from app.core.config import load_weights
from app.core.dates import duration_years
from app.core.errors import ConfigError
from app.core.schemas import (
    EducationMatch,
    ExperienceMatch,
    JobRequirement,
    LLMInsights,
    MatchBreakdown,
    MatchResult,
    MatchWeights,
    ParsedResume,
    ProjectMatch,
    SkillMatch,
)

logger = logging.getLogger(__name__)

DEGREE_ONLY_SCORE = 0.7
NO_DEGREE_SCORE = 0.3
YEARS_WEIGHT = 0.7
RELEVANCE_WEIGHT = 0.3
HIGH_RELEVANCE = 0.7


class Analyzer(Protocol):
    async def analyze(self, resume: ParsedResume, job: JobRequirement) -> LLMInsights: ...


class SubScore(NamedTuple):
    """A 0-1 ratio plus the breakdown object reported for it."""
    value: float
    detail: object


def _clamp01(value: float) -> float:
    return max(0.0, min(1.0, value))


def _to_percent(ratio: float) -> int:
    return int(round(_clamp01(ratio) * 100))


def _overlaps(a: str, b: str) -> bool:
    """Case-insensitive substring match in either direction (inputs already lowercased)."""
    return bool(a) and bool(b) and (a in b or b in a)


def _clean(values: List[str]) -> List[str]:
    return [v.strip().lower() for v in values if v and v.strip()]


# ===== SUB-SCORES =====

def score_skills(resume: ParsedResume, job: JobRequirement, weights: MatchWeights) -> SubScore:
    """
    Required and preferred skills scored independently as matched/total.

    An empty required list scores 1.0; an empty preferred list scores 0.0.
    The returned value is the required ratio; the preferred ratio is carried
    by SkillMatch.preferred.
    """
    candidate = _clean(resume.skills)
    required = _clean(job.required_skills)
    preferred = _clean(job.preferred_skills)

    matched_required = [s for s in required if any(_overlaps(s, c) for c in candidate)]
    matched_preferred = [s for s in preferred if any(_overlaps(s, c) for c in candidate)]

    required_ratio = len(matched_required) / len(required) if required else 1.0
    preferred_ratio = len(matched_preferred) / len(preferred) if preferred else 0.0

    skill_weight = weights.required_skills + weights.preferred_skills
    if skill_weight > 0:
        total_ratio = (required_ratio * weights.required_skills + preferred_ratio * weights.preferred_skills) / skill_weight
    else:
        total_ratio = required_ratio

    matched: List[str] = []
    for skill in matched_required + matched_preferred:
        if skill not in matched:
            matched.append(skill)

    logger.debug("Skills: required %d/%d, preferred %d/%d",
                 len(matched_required), len(required), len(matched_preferred), len(preferred))
    return SubScore(
        required_ratio,
        SkillMatch(
            required=_to_percent(required_ratio),
            preferred=_to_percent(preferred_ratio),
            total=_to_percent(total_ratio),
            matched_skills=matched,
            missing_skills=[s for s in required if s not in matched_required],
        ),
    )


def score_experience(resume: ParsedResume, job: JobRequirement, today: Optional[date] = None) -> SubScore:
    """
    Total experience (month-accurate, unparseable entries skipped) against the
    required minimum, blended 70/30 with title relevance.

    Relevance: 1.0 when the job title and an experience title contain one
    another, 0.5 for any other titled entry, 0 when no titles are available.
    """
    years = 0.0
    relevance = 0.0
    job_title = job.title.strip().lower()

    for entry in resume.experience:
        duration = duration_years(entry.start_date, entry.end_date, today)
        if duration is not None:
            years += duration
        title = entry.title.strip().lower()
        if title and job_title:
            relevance = max(relevance, 1.0 if _overlaps(title, job_title) else 0.5)

    years_ratio = min(years / max(job.experience.min_years, 1), 1.0)
    value = _clamp01(years_ratio * YEARS_WEIGHT + relevance * RELEVANCE_WEIGHT)
    insights = f"{years:.1f} years of experience, {'highly' if relevance >= HIGH_RELEVANCE else 'partially'} relevant"

    return SubScore(
        value,
        ExperienceMatch(score=_to_percent(value), years=round(years, 1), relevance=relevance, insights=insights),
    )


def score_education(resume: ParsedResume, job: JobRequirement) -> SubScore:
    """1.0 with no requirement; else 1.0 degree+field, 0.7 degree only, 0.3 otherwise."""
    required_degree = job.education.required_degree.strip().lower()
    preferred_field = job.education.preferred_field.strip().lower()

    if not required_degree and not preferred_field:
        return SubScore(1.0, EducationMatch(score=100, degree_match=True, field_match=True))

    entries = [(e.degree.strip().lower(), e.field.strip().lower()) for e in resume.education]
    entries = [(d, f) for d, f in entries if d or f]

    degree_match = not required_degree or any(_overlaps(d, required_degree) for d, _ in entries)
    field_match = not preferred_field or any(_overlaps(f, preferred_field) for _, f in entries)

    if degree_match:
        value = 1.0 if field_match else DEGREE_ONLY_SCORE
    else:
        value = NO_DEGREE_SCORE
    return SubScore(value, EducationMatch(score=_to_percent(value), degree_match=degree_match, field_match=field_match))


def score_projects(resume: ParsedResume, job: JobRequirement) -> SubScore:
    """Share of projects whose technologies overlap the job's skills; 0 without projects."""
    wanted = _clean(job.required_skills + job.preferred_skills)
    relevant = []
    for project in resume.projects:
        techs = _clean(project.technologies)
        if any(_overlaps(t, w) for t in techs for w in wanted):
            relevant.append(project)

    value = len(relevant) / len(resume.projects) if resume.projects else 0.0

    technologies: List[str] = []
    for project in relevant:
        for tech in project.technologies:
            if tech and tech not in technologies:
                technologies.append(tech)

    return SubScore(
        _clamp01(value),
        ProjectMatch(
            score=_to_percent(value),
            relevant_projects=[p.name or "Unnamed Project" for p in relevant],
            technologies_used=technologies,
        ),
    )


# ===== COMPOSITE =====

def composite_score(
    weights: MatchWeights,
    required: float,
    preferred: float,
    experience: float,
    education: float,
    projects: float,
    llm: float,
) -> int:
    total = (
        _clamp01(required) * weights.required_skills
        + _clamp01(preferred) * weights.preferred_skills
        + _clamp01(experience) * weights.experience
        + _clamp01(education) * weights.education
        + _clamp01(projects) * weights.projects
        + _clamp01(llm) * weights.llm_analysis
    )
    return max(0, min(100, int(round(total * 100))))


def build_explanation(skills: SkillMatch, experience: ExperienceMatch, insights: LLMInsights, required_count: int) -> str:
    matched_required = required_count - len(skills.missing_skills)
    if matched_required > 0:
        text = f"Matched {matched_required} required skills. "
    else:
        text = "No matching required skills found. "
    text += experience.insights
    if insights.recommendation:
        text += f" {insights.recommendation}"
    return text.strip()


def zero_result(explanation: str = "Error calculating match score") -> MatchResult:
    return MatchResult(
        score=0,
        breakdown=MatchBreakdown(
            experience_match=ExperienceMatch(insights="Error calculating experience"),
        ),
        explanation=explanation,
    )


def _default_weights() -> MatchWeights:
    try:
        return load_weights()
    except ConfigError as exc:
        logger.warning("Using built-in default weights: %s", exc)
        return MatchWeights()


async def _analyze(analyzer: Optional[Analyzer], resume: ParsedResume, job: JobRequirement) -> LLMInsights:
    if analyzer is None:
        return LLMInsights()
    try:
        return await analyzer.analyze(resume, job)
    except Exception as exc:
        logger.warning("Qualitative analysis unavailable, scoring without it: %s", exc)
        return LLMInsights()


async def match(
    resume: ParsedResume,
    job: JobRequirement,
    weights: Optional[MatchWeights] = None,
    analyzer: Optional[Analyzer] = None,
    today: Optional[date] = None,
) -> MatchResult:
    """
    Score a resume against a job.

    Args:
        resume: Parsed resume
        job: Job requirement
        weights: Composite weights; the configured preset when omitted
        analyzer: External qualitative analyzer; its score counts as 0 when absent or failing
        today: Reference date for open-ended experience ("Present")

    Returns:
        MatchResult (never raises)
    """
    try:
        weights = weights or _default_weights()
        skills = score_skills(resume, job, weights)
        experience = score_experience(resume, job, today)
        education = score_education(resume, job)
        projects = score_projects(resume, job)
        insights = await _analyze(analyzer, resume, job)

        skill_match: SkillMatch = skills.detail
        score = composite_score(
            weights,
            required=skills.value,
            preferred=skill_match.preferred / 100.0,
            experience=experience.value,
            education=education.value,
            projects=projects.value,
            llm=insights.score / 100.0,
        )
        required_count = len(_clean(job.required_skills))
        return MatchResult(
            score=score,
            breakdown=MatchBreakdown(
                skill_match=skill_match,
                experience_match=experience.detail,
                education_match=education.detail,
                project_match=projects.detail,
                llm_insights=insights,
            ),
            explanation=build_explanation(skill_match, experience.detail, insights, required_count),
        )
    except Exception:
        logger.exception("Error calculating match score")
        return zero_result()


async def match_many(
    resumes: List[ParsedResume],
    job: JobRequirement,
    weights: Optional[MatchWeights] = None,
    analyzer: Optional[Analyzer] = None,
    today: Optional[date] = None,
) -> List[MatchResult]:
    """Score several candidates concurrently; results sorted by score, best first."""
    results = await asyncio.gather(*(match(r, job, weights, analyzer, today) for r in resumes))
    return sorted(results, key=lambda result: result.score, reverse=True)
