from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import List, Literal, Optional


SectionType = Literal["SKILLS", "EXPERIENCE", "PROJECTS", "EDUCATION"]


class FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True)


class Line(FrozenModel):
    index: int = Field(..., description="Position in the normalized line sequence")
    text: str = Field(..., description="Trimmed, non-empty line text")


class SectionAnchor(FrozenModel):
    index: int = Field(..., description="Line index of the header")
    section_type: SectionType


class Section(FrozenModel):
    section_type: SectionType
    lines: List[Line] = Field(default_factory=list)  # header line excluded


class ExperienceEntry(FrozenModel):
    title: str = ""
    company: str = ""
    location: str = ""
    start_date: str = ""  # YYYY or YYYY-MM
    end_date: Optional[str] = None  # None means current
    description: str = ""


class ProjectEntry(FrozenModel):
    name: str = ""
    description: str = ""
    technologies: List[str] = Field(default_factory=list)
    url: str = ""


class EducationEntry(FrozenModel):
    """Education entry in a parsed resume."""
    name: str = ""  # "degree in field from institution"
    institution: str = ""
    degree: str = ""
    field: str = ""
    start_date: str = ""
    end_date: Optional[str] = None  # None means current or unknown
    gpa: str = ""


class ExtractedResume(FrozenModel):
    """Fields returned by the external structured extractor; education is always heuristic."""
    skills: List[str] = Field(default_factory=list)
    experience: List[ExperienceEntry] = Field(default_factory=list)
    projects: List[ProjectEntry] = Field(default_factory=list)


class ParsedResume(FrozenModel):
    skills: List[str] = Field(default_factory=list)
    experience: List[ExperienceEntry] = Field(default_factory=list)
    projects: List[ProjectEntry] = Field(default_factory=list)
    education: List[EducationEntry] = Field(default_factory=list)
    raw_text: str = ""


class ExperienceRequirement(FrozenModel):
    min_years: float = 0
    field: str = ""


class EducationRequirement(FrozenModel):
    required_degree: str = ""
    preferred_field: str = ""


class JobRequirement(FrozenModel):
    title: str = ""
    description: str = ""
    required_skills: List[str] = Field(default_factory=list)
    preferred_skills: List[str] = Field(default_factory=list)
    experience: ExperienceRequirement = Field(default_factory=ExperienceRequirement)
    education: EducationRequirement = Field(default_factory=EducationRequirement)


class MatchWeights(FrozenModel):
    """Composite score weights. Must be non-negative and sum to 1.0."""
    required_skills: float = Field(0.35, ge=0.0)
    preferred_skills: float = Field(0.15, ge=0.0)
    experience: float = Field(0.20, ge=0.0)
    education: float = Field(0.10, ge=0.0)
    projects: float = Field(0.10, ge=0.0)
    llm_analysis: float = Field(0.10, ge=0.0)

    @model_validator(mode="after")
    def _check_sum(self) -> "MatchWeights":
        total = (
            self.required_skills + self.preferred_skills + self.experience
            + self.education + self.projects + self.llm_analysis
        )
        if abs(total - 1.0) > 1e-6:
            raise ValueError(f"match weights must sum to 1.0, got {total:.4f}")
        return self


class SkillMatch(FrozenModel):
    required: int = Field(0, ge=0, le=100)
    preferred: int = Field(0, ge=0, le=100)
    total: int = Field(0, ge=0, le=100)
    matched_skills: List[str] = Field(default_factory=list)
    missing_skills: List[str] = Field(default_factory=list)


class ExperienceMatch(FrozenModel):
    score: int = Field(0, ge=0, le=100)
    years: float = 0.0
    relevance: float = 0.0
    insights: str = ""


class EducationMatch(FrozenModel):
    score: int = Field(0, ge=0, le=100)
    degree_match: bool = False
    field_match: bool = False


class ProjectMatch(FrozenModel):
    score: int = Field(0, ge=0, le=100)
    relevant_projects: List[str] = Field(default_factory=list)
    technologies_used: List[str] = Field(default_factory=list)


class LLMInsights(FrozenModel):
    score: int = Field(0, ge=0, le=100)
    confidence: float = Field(0.0, ge=0.0, le=1.0)
    recommendation: str = ""
    strengths: List[str] = Field(default_factory=list)
    gaps: List[str] = Field(default_factory=list)
    analysis: str = ""
    suggested_questions: List[str] = Field(default_factory=list)


class MatchBreakdown(FrozenModel):
    skill_match: SkillMatch = Field(default_factory=SkillMatch)
    experience_match: ExperienceMatch = Field(default_factory=ExperienceMatch)
    education_match: EducationMatch = Field(default_factory=EducationMatch)
    project_match: ProjectMatch = Field(default_factory=ProjectMatch)
    llm_insights: LLMInsights = Field(default_factory=LLMInsights)


class MatchResult(FrozenModel):
    score: int = Field(0, ge=0, le=100)
    breakdown: MatchBreakdown = Field(default_factory=MatchBreakdown)
    explanation: str = ""


class MatchRequest(BaseModel):
    resume: ParsedResume
    job: JobRequirement
    weights: Optional[MatchWeights] = None
    preset: Optional[str] = Field(default=None, description="Named weight preset from config (e.g. 'default', 'simple')")
