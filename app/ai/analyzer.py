"""
Qualitative candidate analysis through an external text-completion provider.

The prompt asks for four labelled parts (strengths, areas for improvement,
overall fit, recommendation), a 0-100 score and suggested interview
questions. The response is decoded as JSON first, then as numbered sections.
Failures propagate; the match scorer substitutes zero-valued insights. After a
failure the analyzer refuses calls for a cooldown window instead of retrying.
"""

import logging
import re
import time
from typing import Any, Callable, Dict, List, Optional

from app.ai.extractor import DEFAULT_COOLDOWN_S
from app.ai.types import TextCompletionProvider, TimingHints
from app.core.cache import TTLCache, fingerprint
from app.core.config import get_config_value
from app.core.errors import ExternalServiceError, RetryExhausted
from app.core.retry import RetryPolicy
from app.core.schemas import JobRequirement, LLMInsights, ParsedResume
from app.core.structured_decoder import decode_object

logger = logging.getLogger(__name__)

ANALYSIS_TEMPLATES: Dict[str, Dict[str, str]] = {
    "en": {
        "instruction": "Analyze this candidate's fit for the job position",
        "strengths": "Key Strengths",
        "weaknesses": "Areas for Improvement",
        "fit": "Overall Fit",
        "recommendation": "Recommendation",
    },
    "es": {
        "instruction": "Analiza la idoneidad de este candidato para el puesto",
        "strengths": "Puntos Fuertes",
        "weaknesses": "Áreas de Mejora",
        "fit": "Ajuste General",
        "recommendation": "Recomendación",
    },
}

PART_KEYS = ["strengths", "areas_for_improvement", "overall_fit", "recommendation"]
CONFIDENCE_PENALTY = 0.25

NUMBERED_SECTION_RE = re.compile(r"(?m)^\s*\d[.)]\s*")
QUESTIONS_RE = re.compile(r"Questions?:([\s\S]+?)(?=\n\s*\n|$)", re.IGNORECASE)
SCORE_RE = re.compile(r"\bscore\b\s*[:=]?\s*(\d{1,3})(?:\s*/\s*100)?", re.IGNORECASE)
LIST_ITEM_SPLIT_RE = re.compile(r"\n+")
BULLET_PREFIX_RE = re.compile(r"^\s*(?:[-*•]|\d+[.)])\s*")


def _format_resume(resume: ParsedResume) -> str:
    experience = "\n".join(
        f"{e.title} at {e.company} ({e.start_date} - {e.end_date or 'Present'}): {e.description}"
        for e in resume.experience
    )
    education = "\n".join(f"{e.degree} from {e.institution} ({e.field})" for e in resume.education)
    projects = "\n".join(f"{p.name}: {p.description}" for p in resume.projects)
    return (
        f"Skills: {', '.join(resume.skills)}\n"
        f"Experience: {experience or 'None listed'}\n"
        f"Education: {education or 'None listed'}\n"
        f"Projects: {projects or 'None listed'}"
    )


def build_analysis_prompt(resume: ParsedResume, job: JobRequirement, language: str = "en") -> str:
    template = ANALYSIS_TEMPLATES.get(language, ANALYSIS_TEMPLATES["en"])
    years = f"{job.experience.min_years:g}" if job.experience.min_years else "Not specified"
    return f"""{template['instruction']}:

JOB REQUIREMENTS:
Title: {job.title}
Required Skills: {', '.join(job.required_skills)}
Preferred Skills: {', '.join(job.preferred_skills)}
Experience Needed: {years} years
Education: {job.education.required_degree or 'Not specified'}

CANDIDATE PROFILE:
{_format_resume(resume)}

Provide a detailed analysis with the following structure:
1. {template['strengths']}
2. {template['weaknesses']}
3. {template['fit']}
4. {template['recommendation']}

End with a line "Score: N/100" rating the overall fit.
Focus on specific examples and provide clear rationale for your assessment.
If possible, suggest potential interview questions based on any gaps, after a line "Questions:".
"""


def _strip_label(part: str) -> str:
    # "Key Strengths: ..." / "**Overall Fit**\n..." -> body only
    first, _, rest = part.partition("\n")
    if ":" in first and len(first.split(":", 1)[0]) <= 40:
        return (first.split(":", 1)[1] + "\n" + rest).strip()
    if rest and len(first) <= 40:
        return rest.strip()
    return part.strip()


def parse_numbered_sections(response: str) -> Dict[str, str]:
    """Split "1. ... 2. ... 3. ... 4. ..." text into the four analysis parts."""
    body = QUESTIONS_RE.split(response, maxsplit=1)[0]
    body = SCORE_RE.sub("", body)
    chunks = [c for c in NUMBERED_SECTION_RE.split(body)[1:] if c.strip()]
    return {key: _strip_label(chunks[i]) if i < len(chunks) else "" for i, key in enumerate(PART_KEYS)}


def extract_suggested_questions(response: str) -> List[str]:
    match = QUESTIONS_RE.search(response)
    if not match:
        return []
    lines = [BULLET_PREFIX_RE.sub("", q).strip() for q in match.group(1).split("\n")]
    return [q for q in lines if q and "?" in q]


def _as_items(value: Any) -> List[str]:
    if isinstance(value, list):
        return [str(v).strip() for v in value if str(v).strip()]
    if isinstance(value, str) and value.strip():
        items = (BULLET_PREFIX_RE.sub("", item).strip() for item in LIST_ITEM_SPLIT_RE.split(value.strip()))
        return [item for item in items if item]
    return []


def _as_text(value: Any) -> str:
    if isinstance(value, list):
        return " ".join(str(v).strip() for v in value)
    return str(value).strip() if value is not None else ""


def calculate_confidence(parts: Dict[str, Any]) -> float:
    """1.0 minus 0.25 for each of the four parts that is missing."""
    missing = sum(1 for key in PART_KEYS if not parts.get(key))
    return max(0.0, 1.0 - CONFIDENCE_PENALTY * missing)


def _score_from(decoded: Dict[str, Any], response: str) -> int:
    value = decoded.get("score")
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return max(0, min(100, int(round(value))))
    match = SCORE_RE.search(response)
    return max(0, min(100, int(match.group(1)))) if match else 0


def parse_analysis(response: str) -> LLMInsights:
    """
    Turn an analysis response into LLMInsights.

    JSON with the four part keys wins; otherwise the numbered-section layout
    of the prompt is parsed.
    """
    decoded = decode_object(response, keys=PART_KEYS + ["score", "suggested_questions"])
    if any(decoded.get(key) for key in PART_KEYS):
        parts = {key: decoded.get(key) for key in PART_KEYS}
        questions = _as_items(decoded.get("suggested_questions")) or extract_suggested_questions(response)
    else:
        parts = parse_numbered_sections(response)
        questions = extract_suggested_questions(response)

    return LLMInsights(
        score=_score_from(decoded, response),
        confidence=calculate_confidence(parts),
        recommendation=_as_text(parts.get("recommendation")),
        strengths=_as_items(parts.get("strengths")),
        gaps=_as_items(parts.get("areas_for_improvement")),
        analysis=_as_text(parts.get("overall_fit")),
        suggested_questions=questions,
    )


class CandidateAnalyzer:
    """
    Args:
        provider: Text-completion provider
        language: Prompt language ("en" or "es"; unknown codes use English)
        cache: Result cache keyed by resume/job fingerprint
        retry: Retry policy wrapped around the provider call
        cooldown_s: How long the analyzer stays unavailable after a failure
        clock: Time source for the cooldown window
    """

    def __init__(
        self,
        provider: TextCompletionProvider,
        language: str = "en",
        cache: Optional[TTLCache] = None,
        retry: Optional[RetryPolicy] = None,
        cooldown_s: float = DEFAULT_COOLDOWN_S,
        clock: Optional[Callable[[], float]] = None,
    ):
        self._provider = provider
        self.language = language if language in ANALYSIS_TEMPLATES else "en"
        self._cache = cache if cache is not None else TTLCache()
        self._retry = retry or RetryPolicy()
        self._cooldown_s = cooldown_s
        self._clock = clock or time.monotonic
        self._unavailable_until: Optional[float] = None

    @classmethod
    def from_config(cls, provider: TextCompletionProvider) -> "CandidateAnalyzer":
        return cls(
            provider,
            language=str(get_config_value("external.analysis_language", "en")),
            cache=TTLCache(
                ttl_seconds=float(get_config_value("cache.ttl_seconds", 300)),
                capacity=int(get_config_value("cache.capacity", 1000)),
            ),
            retry=RetryPolicy(
                max_attempts=int(get_config_value("retry.max_attempts", 3)),
                base_delay=float(get_config_value("retry.base_delay_s", 1.0)),
                max_jitter=float(get_config_value("retry.max_jitter_s", 1.0)),
            ),
            cooldown_s=float(get_config_value("external.unavailable_cooldown_s", DEFAULT_COOLDOWN_S)),
        )

    def is_available(self) -> bool:
        if self._unavailable_until is None:
            return True
        if self._clock() >= self._unavailable_until:
            self._unavailable_until = None
            return True
        return False

    def mark_unavailable(self) -> None:
        self._unavailable_until = self._clock() + self._cooldown_s
        logger.warning("Candidate analyzer marked unavailable for %.0fs", self._cooldown_s)

    async def analyze(self, resume: ParsedResume, job: JobRequirement) -> LLMInsights:
        """
        Raises:
            ExternalServiceError: the analyzer is cooling down after a failure
            RetryExhausted: the provider failed on every attempt
        """
        prompt = build_analysis_prompt(resume, job, self.language)
        key = fingerprint("analyze", self.language, resume.model_dump_json(), job.model_dump_json())
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        if not self.is_available():
            raise ExternalServiceError("Candidate analyzer is unavailable")

        try:
            response = await self._retry.execute(
                f"analyze:{key[:16]}",
                lambda: self._provider.complete(prompt, TimingHints()),
            )
        except (ExternalServiceError, RetryExhausted):
            self.mark_unavailable()
            raise
        insights = parse_analysis(response)
        self._cache.set(key, insights)
        logger.debug("Analysis score %d, confidence %.2f", insights.score, insights.confidence)
        return insights
