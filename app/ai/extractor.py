"""
Structured resume extraction through an external text-completion provider.

Three prompts (skills, experience, projects) are sent separately. Responses
are decoded best-effort and validated field by field; a malformed field
becomes an empty list. Any provider failure marks the extractor unavailable
for a cooldown window, during which extract() returns None immediately and
callers use the heuristic pipeline.
"""

import asyncio
import logging
import time
from typing import Any, Callable, List, Optional

from app.ai.types import TextCompletionProvider, TimingHints
from app.core.cache import TTLCache, fingerprint
from app.core.config import get_config_value
from app.core.dates import is_open_ended, normalize_date
from app.core.errors import ExternalServiceError, RetryExhausted
from app.core.retry import RetryPolicy
from app.core.schemas import ExperienceEntry, ExtractedResume, ProjectEntry
from app.core.skills_extractor import finalize_skills
from app.core.structured_decoder import decode_object

logger = logging.getLogger(__name__)

DEFAULT_COOLDOWN_S = 3600.0
FIELD_DELAY_MS = 5000

_PROMPT_HEADER = """You are a resume parsing assistant that must output ONLY valid JSON.
STRICT REQUIREMENTS:
- Output must be a single valid JSON object with ONLY {only}
- Do not include any text or comments before or after the JSON
- Do not include any explanations
- {rule}
"""

SKILLS_PROMPT = _PROMPT_HEADER.format(
    only="a skills array",
    rule="Each skill should be 1-3 words maximum; focus only on technical and professional skills",
) + """
Extract ALL skills from this resume and output EXACTLY this JSON structure:
{{
  "skills": ["skill1", "skill2", "skill3"]
}}

Resume text to parse:
{text}"""

EXPERIENCE_PROMPT = _PROMPT_HEADER.format(
    only="an experience array",
    rule="Be precise about job titles, companies, and dates",
) + """
Extract ALL work experience from this resume and output EXACTLY this JSON structure:
{{
  "experience": [
    {{
      "title": "Software Engineer",
      "company": "Company Name",
      "location": "City, State",
      "start_date": "YYYY-MM",
      "end_date": "YYYY-MM or null if current",
      "description": "Job description"
    }}
  ]
}}

Resume text to parse:
{text}"""

PROJECTS_PROMPT = _PROMPT_HEADER.format(
    only="a projects array",
    rule="Include all technologies used in each project",
) + """
Extract ALL projects from this resume and output EXACTLY this JSON structure:
{{
  "projects": [
    {{
      "name": "Project Name",
      "description": "Project description",
      "technologies": ["tech1", "tech2"],
      "url": "project url or empty string"
    }}
  ]
}}

Resume text to parse:
{text}"""


# ===== PER-FIELD VALIDATION =====

def _str_field(item: dict, *keys: str) -> str:
    for key in keys:
        value = item.get(key)
        if isinstance(value, str):
            return value.strip()
    return ""


def validate_skills(raw: Any) -> List[str]:
    """Keep non-empty strings that pass the skill filter, deduplicated."""
    if not isinstance(raw, list):
        return []
    return finalize_skills([s.strip() for s in raw if isinstance(s, str) and s.strip()])


def validate_experience(raw: Any) -> List[ExperienceEntry]:
    """
    Keep dict entries with string fields only. end_date becomes None for
    present/current/null values; entries without title, company or
    description are dropped.
    """
    if not isinstance(raw, list):
        return []
    entries: List[ExperienceEntry] = []
    for item in raw:
        if not isinstance(item, dict):
            continue
        start = _str_field(item, "start_date", "startDate")
        end_raw = item.get("end_date", item.get("endDate"))
        end: Optional[str] = None
        if isinstance(end_raw, str) and not is_open_ended(end_raw):
            end = normalize_date(end_raw) or end_raw.strip()
        entry = ExperienceEntry(
            title=_str_field(item, "title"),
            company=_str_field(item, "company"),
            location=_str_field(item, "location"),
            start_date=normalize_date(start) or start,
            end_date=end,
            description=_str_field(item, "description"),
        )
        if entry.title or entry.company or entry.description:
            entries.append(entry)
    return entries


def _technology_list(raw: Any) -> List[str]:
    if isinstance(raw, str):
        raw = raw.split(",")
    if not isinstance(raw, list):
        return []
    seen = set()
    out: List[str] = []
    for tech in raw:
        if not isinstance(tech, str) or not tech.strip():
            continue
        tech = tech.strip()
        if tech.lower() not in seen:
            seen.add(tech.lower())
            out.append(tech)
    return out


def validate_projects(raw: Any) -> List[ProjectEntry]:
    """Keep dict entries with a name or description; technologies become a deduplicated list."""
    if not isinstance(raw, list):
        return []
    projects: List[ProjectEntry] = []
    for item in raw:
        if not isinstance(item, dict):
            continue
        project = ProjectEntry(
            name=_str_field(item, "name"),
            description=_str_field(item, "description"),
            technologies=_technology_list(item.get("technologies")),
            url=_str_field(item, "url"),
        )
        if project.name or project.description:
            projects.append(project)
    return projects


class StructuredExtractor:
    """
    Args:
        provider: Text-completion provider
        cache: Result cache keyed by text fingerprint
        retry: Retry policy wrapped around each provider call
        cooldown_s: How long the extractor stays unavailable after a failure
        clock: Time source for the cooldown window
    """

    def __init__(
        self,
        provider: TextCompletionProvider,
        cache: Optional[TTLCache] = None,
        retry: Optional[RetryPolicy] = None,
        cooldown_s: float = DEFAULT_COOLDOWN_S,
        clock: Optional[Callable[[], float]] = None,
    ):
        self._provider = provider
        self._cache = cache if cache is not None else TTLCache()
        self._retry = retry or RetryPolicy()
        self._cooldown_s = cooldown_s
        self._clock = clock or time.monotonic
        self._unavailable_until: Optional[float] = None

    @classmethod
    def from_config(cls, provider: TextCompletionProvider) -> "StructuredExtractor":
        return cls(
            provider,
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
        logger.warning("External extractor marked unavailable for %.0fs", self._cooldown_s)

    async def _ask(self, field: str, prompt: str, hints: TimingHints, text_key: str) -> dict:
        response = await self._retry.execute(
            f"extract:{field}:{text_key[:16]}",
            lambda: self._provider.complete(prompt, hints),
        )
        return decode_object(response, keys=[field])

    async def extract(self, text: str) -> Optional[ExtractedResume]:
        """
        Extract skills, experience and projects from resume text.

        Returns:
            ExtractedResume (skills may be empty), or None when the provider is
            unavailable or failed during this call
        """
        if not text or not text.strip() or not self.is_available():
            return None

        key = fingerprint("extract", text)
        cached = self._cache.get(key)
        if cached is not None:
            logger.debug("Extractor cache hit for %s", key[:12])
            return cached

        try:
            skills_obj = await self._ask("skills", SKILLS_PROMPT.format(text=text), TimingHints(skip_delay=True), key)
            skills = validate_skills(skills_obj.get("skills"))
            if not skills:
                # Heuristic parsing takes over; no point asking for the rest
                logger.info("External extractor returned no skills")
                return ExtractedResume()

            paced = TimingHints(force_delay=True, custom_delay_ms=FIELD_DELAY_MS)
            experience_obj, projects_obj = await asyncio.gather(
                self._ask("experience", EXPERIENCE_PROMPT.format(text=text), paced, key),
                self._ask("projects", PROJECTS_PROMPT.format(text=text), paced, key),
            )
        except (ExternalServiceError, RetryExhausted) as exc:
            logger.warning("External extraction failed: %s", exc)
            self.mark_unavailable()
            return None

        result = ExtractedResume(
            skills=skills,
            experience=validate_experience(experience_obj.get("experience")),
            projects=validate_projects(projects_obj.get("projects")),
        )
        self._cache.set(key, result)
        logger.info(
            "External extraction: %d skills, %d experience, %d projects",
            len(result.skills), len(result.experience), len(result.projects),
        )
        return result
