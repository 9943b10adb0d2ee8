"""Tests for header-less content classification and subsection division."""

from app.core.content_classifier import classify_line, classify_lines
from app.core.feature_rules import feature_score, rank_lines
from app.core.schemas import Line
from app.core.subsection_divider import attach_bullet_runs, divide_into_subsections
from app.core.text_normalization import normalize_lines


SKILLS_LINE = "Python, JavaScript, Docker, Kubernetes"
EXPERIENCE_LINE = "Software Engineer, Acme Corp, Jan 2020 - Present"
PROJECT_LINE = "Developed a mobile app for booking"
EDUCATION_LINE = "Bachelor of Science, State University"


def test_classify_single_lines():
    """Each line goes to the category with the most positive rule hits."""
    assert classify_line(SKILLS_LINE) == "SKILLS"
    assert classify_line(EXPERIENCE_LINE) == "EXPERIENCE"
    assert classify_line(PROJECT_LINE) == "PROJECTS"
    assert classify_line(EDUCATION_LINE) == "EDUCATION"


def test_unscored_line_is_unclassified():
    assert classify_line("Led a team of five") is None


def test_cluster_takes_neighbour_majority():
    """An unclassified line between experience lines becomes experience."""
    lines = normalize_lines(
        "\n".join([
            EXPERIENCE_LINE,
            "Led a team of five",
            "Senior Developer, Beta LLC, 2017 - 2019",
            SKILLS_LINE,
        ])
    )
    sections = classify_lines(lines)
    experience = [line.text for line in sections["EXPERIENCE"].lines]
    assert experience == [EXPERIENCE_LINE, "Led a team of five", "Senior Developer, Beta LLC, 2017 - 2019"]
    assert [line.text for line in sections["SKILLS"].lines] == [SKILLS_LINE]


def test_links_are_penalized():
    """Link lines score lower than the same line without a link."""
    assert feature_score("Python, Go, Docker https://github.com/me", "SKILLS") < feature_score("Python, Go, Docker", "SKILLS")


def test_rank_lines_drops_non_positive():
    ranked = rank_lines([EXPERIENCE_LINE, "hello world"], "EXPERIENCE")
    assert [line for line, _ in ranked] == [EXPERIENCE_LINE]


def test_subsections_split_on_caps_dates_and_bullets():
    """Short all-caps lines, year ranges and the first bullet each start a subsection."""
    lines = normalize_lines("ACME CORP\nEngineer 2019 - 2021\n• Built APIs\n• Led team")
    subsections = divide_into_subsections(lines)
    assert [[line.text for line in sub.lines] for sub in subsections] == [
        ["ACME CORP"],
        ["Engineer 2019 - 2021"],
        ["• Built APIs", "• Led team"],
    ]


def test_bullet_runs_attach_to_entry_above():
    lines = normalize_lines("ACME CORP\nEngineer 2019 - 2021\n• Built APIs\n• Led team")
    merged = attach_bullet_runs(divide_into_subsections(lines))
    assert len(merged) == 2
    assert merged[1].title == "Engineer 2019 - 2021"
    assert merged[1].description == "Built APIs | Led team"


def test_dated_line_after_bullets_splits_entry():
    lines = normalize_lines("Engineer, Acme, Jan 2021 - Dec 2022\n• Built APIs\nDeveloper, Beta, 06/2018 - 02/2021\n• Led team")
    merged = attach_bullet_runs(divide_into_subsections(lines))
    assert [sub.title for sub in merged] == ["Engineer, Acme, Jan 2021 - Dec 2022", "Developer, Beta, 06/2018 - 02/2021"]
    assert [sub.description for sub in merged] == ["Built APIs", "Led team"]


def test_divide_empty():
    assert divide_into_subsections([]) == []


def test_index_gap_splits_merged_sections():
    """Lines from two separate sections of the same type never share an entry."""
    lines = [
        Line(index=3, text="Engineer at Acme"),
        Line(index=4, text="Built internal tools"),
        Line(index=9, text="Analyst at Beta"),
    ]
    subsections = divide_into_subsections(lines)
    assert [sub.title for sub in subsections] == ["Engineer at Acme", "Analyst at Beta"]
