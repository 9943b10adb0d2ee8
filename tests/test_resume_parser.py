"""End-to-end tests for the heuristic resume pipeline and the async parse entry point."""

import asyncio

from app.core.resume_parser import parse, parse_resume_text
from app.core.schemas import ExtractedResume, ParsedResume


RESUME = """Jane Doe
jane@example.com
SKILLS
Python, Go, Docker
EXPERIENCE
Software Engineer at Acme Corp, Jan 2020 - Present
• Built billing APIs
PROJECTS
Chat App - realtime messaging using React (github.com/jane/chat)
EDUCATION
B.S. in Computer Science, State University, 2019
"""


class FixedExtractor:
    def __init__(self, result):
        self.result = result
        self.texts = []

    async def extract(self, text):
        self.texts.append(text)
        return self.result


def test_full_resume():
    resume = parse_resume_text(RESUME)

    assert resume.skills == ["Python", "Go", "Docker"]

    assert len(resume.experience) == 1
    job = resume.experience[0]
    assert (job.title, job.company) == ("Software Engineer", "Acme Corp")
    assert job.start_date == "2020-01"
    assert job.end_date is None
    assert job.description == "Built billing APIs"

    assert len(resume.projects) == 1
    assert resume.projects[0].name == "Chat App"
    assert resume.projects[0].technologies == ["React"]
    assert resume.projects[0].url == "github.com/jane/chat"

    assert len(resume.education) == 1
    assert resume.education[0].degree == "B.S."
    assert resume.education[0].institution == "State University"
    assert resume.education[0].end_date == "2019"

    assert resume.raw_text == RESUME


def test_parsing_is_deterministic():
    assert parse_resume_text(RESUME) == parse_resume_text(RESUME)


def test_empty_input():
    assert parse_resume_text("") == ParsedResume()
    assert parse_resume_text(None) == ParsedResume()
    assert asyncio.run(parse(b"")) == ParsedResume()


def test_headerless_resume_uses_classifier():
    text = "\n".join([
        "Jane Doe",
        "Python, JavaScript, Docker, Kubernetes",
        "Software Engineer, Acme Corp, Jan 2020 - Present",
        "Developed a mobile app for booking",
    ])
    resume = parse_resume_text(text)
    assert "Python" in resume.skills
    assert resume.experience
    assert resume.experience[0].start_date == "2020-01"


def test_parse_text_bytes():
    resume = asyncio.run(parse(RESUME.encode("utf-8"), content_type="text/plain", filename="resume.txt"))
    assert resume == parse_resume_text(RESUME)


def test_extractor_result_preferred_education_kept():
    extractor = FixedExtractor(ExtractedResume(skills=["Kubernetes"]))
    resume = asyncio.run(parse(RESUME, extractor=extractor))
    assert resume.skills == ["Kubernetes"]
    assert resume.experience == []
    assert resume.education[0].institution == "State University"
    assert extractor.texts == [RESUME]


def test_extractor_without_skills_falls_back():
    for result in (None, ExtractedResume()):
        resume = asyncio.run(parse(RESUME, extractor=FixedExtractor(result)))
        assert resume.skills == ["Python", "Go", "Docker"]
        assert len(resume.experience) == 1


def test_projects_named_after_header_words_are_kept():
    text = "\n".join([
        "Jane Doe",
        "PROJECTS",
        "Stack Overflow Clone - Q&A site built with Django",
        "Portfolio Site - personal website using React",
        "Tools Dashboard - admin panel built with Vue",
        "EDUCATION",
        "B.S. in Computer Science, State University, 2019",
    ])
    resume = parse_resume_text(text)
    assert [p.name for p in resume.projects] == ["Stack Overflow Clone", "Portfolio Site", "Tools Dashboard"]
