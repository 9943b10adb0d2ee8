"""
Skills extraction from a SKILLS section.

Strategies, in order:
  1. formatted_lines: category-colon lists, comma lists, bullets and short phrases
  2. vocabulary: lines that mention well-known technologies, split on separators

Every candidate goes through the same final filter: 2-30 characters, at most
three words, not a section header echo, deduplicated case-insensitively with
the first spelling kept.
"""

import logging
import re
from typing import Dict, List, Optional

from app.core.schemas import Line
from app.core.section_detector import ALL_HEADERS, match_header
from app.core.strategies import ExtractionStrategy, run_strategies
from app.core.text_normalization import MONTH_YEAR_RE, YEAR_RE, is_all_caps, is_bullet, strip_bullet

logger = logging.getLogger(__name__)


# ===== TECHNOLOGY VOCABULARY =====
# lowercase lookup -> display spelling

SKILL_VOCABULARY: Dict[str, str] = {
    # Languages
    "java": "Java", "python": "Python", "javascript": "JavaScript", "typescript": "TypeScript",
    "c++": "C++", "c#": "C#", "ruby": "Ruby", "go": "Go", "golang": "Go", "php": "PHP",
    "swift": "Swift", "kotlin": "Kotlin", "rust": "Rust", "perl": "Perl", "bash": "Bash",
    "shell": "Shell", "scala": "Scala",
    # Frontend
    "react": "React", "angular": "Angular", "vue": "Vue", "svelte": "Svelte", "jquery": "jQuery",
    "html": "HTML", "css": "CSS", "sass": "Sass", "bootstrap": "Bootstrap", "tailwind": "Tailwind",
    "next.js": "Next.js", "webpack": "Webpack", "vite": "Vite",
    # Backend
    "node": "Node.js", "node.js": "Node.js", "express": "Express", "django": "Django", "flask": "Flask",
    "fastapi": "FastAPI", "spring": "Spring", ".net": ".NET", "laravel": "Laravel", "graphql": "GraphQL",
    "rest api": "REST API", "microservices": "Microservices", "serverless": "Serverless",
    # Databases
    "sql": "SQL", "nosql": "NoSQL", "mongodb": "MongoDB", "postgresql": "PostgreSQL", "mysql": "MySQL",
    "sqlite": "SQLite", "oracle": "Oracle", "cassandra": "Cassandra", "redis": "Redis",
    "dynamodb": "DynamoDB", "firebase": "Firebase",
    # Cloud and DevOps
    "aws": "AWS", "azure": "Azure", "gcp": "GCP", "docker": "Docker", "kubernetes": "Kubernetes",
    "jenkins": "Jenkins", "ci/cd": "CI/CD", "terraform": "Terraform", "ansible": "Ansible",
    "git": "Git", "github": "GitHub", "gitlab": "GitLab", "linux": "Linux",
    # AI/ML
    "machine learning": "Machine Learning", "deep learning": "Deep Learning", "nlp": "NLP",
    "tensorflow": "TensorFlow", "pytorch": "PyTorch", "keras": "Keras", "scikit-learn": "scikit-learn",
    "pandas": "pandas", "numpy": "NumPy", "data science": "Data Science", "computer vision": "Computer Vision",
    # Mobile
    "react native": "React Native", "flutter": "Flutter", "android": "Android", "ios": "iOS",
}


def _vocabulary_pattern() -> re.Pattern:
    terms = sorted(SKILL_VOCABULARY, key=len, reverse=True)
    alternatives = "|".join(re.escape(t) for t in terms)
    # Word-ish boundaries that still allow "C++", "C#" and ".NET"
    return re.compile(rf"(?<![\w.+#])(?:{alternatives})(?![\w+#])", re.IGNORECASE)


VOCABULARY_RE = _vocabulary_pattern()

# Plain English words that are only a technology when capitalized
AMBIGUOUS_TERMS = {"go", "shell", "express", "spring", "oracle", "swift", "rust", "node", "vue", "git"}

# Words that show up in skills sections but are never skills themselves
NON_SKILL_WORDS = {
    "training", "trainings", "internship", "internships", "hobbies", "hobby", "interests",
    "references", "achievements", "certifications", "awards", "activities", "volunteer",
    "skills", "skill", "tools", "languages", "technologies", "frameworks", "expertise",
    "competencies", "etc", "and", "others", "other", "various", "n/a",
}

MIN_SKILL_LENGTH = 2
MAX_SKILL_LENGTH = 30
MAX_SKILL_WORDS = 3

NUMBERED_ITEM_RE = re.compile(r"^\d+[.)]|\(\d+\)")
LIST_SPLIT_RE = re.compile(r"[,;|]")
VOCAB_LINE_SPLIT_RE = re.compile(r"[,;|:]")
HEADER_WORD_RE = re.compile(r"SKILL|EXPERIENCE|PROJECT|EDUCATION|SUMMARY|CERTIFICATION|EMPLOYMENT")


def _clean_token(token: str) -> str:
    token = strip_bullet(token)
    token = re.sub(r"\s+", " ", token)
    return token.lstrip(" \t;:,").rstrip(" \t.;:,")


def _split_list(text: str) -> List[str]:
    # "Python (Django, Flask)" -> Python, Django, Flask
    text = text.replace("(", ",").replace(")", ",")
    return [_clean_token(t) for t in LIST_SPLIT_RE.split(text)]


def _looks_like_header(token: str) -> bool:
    if is_all_caps(token) and (token.upper() in ALL_HEADERS or HEADER_WORD_RE.search(token)):
        return True
    if len(token.split()) > 1:
        hm = match_header(token)
        return hm is not None and not hm.remainder
    return False


def is_valid_skill(token: str) -> bool:
    """Final filter applied to every skill candidate."""
    if not (MIN_SKILL_LENGTH <= len(token) <= MAX_SKILL_LENGTH):
        return False
    if len(token.split()) > MAX_SKILL_WORDS:
        return False
    if not any(c.isalpha() for c in token):
        return False
    if token.lower() in NON_SKILL_WORDS:
        return False
    return not _looks_like_header(token)


def finalize_skills(candidates: List[str]) -> List[str]:
    """Filter and dedupe case-insensitively, keeping the first spelling and order."""
    seen = set()
    out: List[str] = []
    for raw in candidates:
        token = _clean_token(raw)
        if not is_valid_skill(token):
            continue
        key = token.lower()
        if key in seen:
            continue
        seen.add(key)
        out.append(token)
    return out


def _tokens_from_line(text: str) -> List[str]:
    bullet = is_bullet(text)
    cleaned = strip_bullet(text)
    if not cleaned:
        return []

    colon = cleaned.find(":")
    if 0 < colon < len(cleaned) / 2:
        # "Languages: Python, Go"
        listed = cleaned[colon + 1:].strip()
        if not bullet and (MONTH_YEAR_RE.search(listed) or YEAR_RE.search(listed)):
            return []
        return _split_list(listed)

    if "," in cleaned or ";" in cleaned or "|" in cleaned:
        return _split_list(cleaned)

    if bullet:
        return [cleaned]

    # Standalone short phrase, not a numbered item or a "skills" label
    if len(cleaned.split()) <= MAX_SKILL_WORDS and not NUMBERED_ITEM_RE.match(cleaned) and "skill" not in cleaned.lower():
        return [cleaned]
    return []


def _from_formatted_lines(lines: List[Line]) -> Optional[List[str]]:
    candidates: List[str] = []
    for line in lines:
        candidates.extend(_tokens_from_line(line.text))
    return finalize_skills(candidates) or None


def _from_vocabulary(lines: List[Line]) -> Optional[List[str]]:
    candidates: List[str] = []
    for line in lines:
        if not VOCABULARY_RE.search(line.text):
            continue
        parts = [_clean_token(p) for p in VOCAB_LINE_SPLIT_RE.split(line.text)]
        candidates.extend(p for p in parts if 1 < len(p) < 50)
    return finalize_skills(candidates) or None


SKILL_STRATEGIES = [
    ExtractionStrategy("formatted_lines", _from_formatted_lines),
    ExtractionStrategy("vocabulary", _from_vocabulary),
]


def extract_skills(lines: List[Line]) -> List[str]:
    """
    Extract skills from the lines of a SKILLS section.

    Examples:
        ["Languages: Python, Go", "• Docker"] -> ["Python", "Go", "Docker"]
        ["Python, Go, Docker"] -> ["Python", "Go", "Docker"]
    """
    skills, _ = run_strategies("skills", lines, SKILL_STRATEGIES)
    return skills


def find_technologies(text: str) -> List[str]:
    """Known technology names mentioned in text, in display spelling and first-seen order."""
    seen = set()
    out: List[str] = []
    for m in VOCABULARY_RE.finditer(text or ""):
        found = m.group(0)
        if found.lower() in AMBIGUOUS_TERMS and found.islower():
            continue
        display = SKILL_VOCABULARY.get(found.lower(), found)
        if display.lower() not in seen:
            seen.add(display.lower())
            out.append(display)
    return out
