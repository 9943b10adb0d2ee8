"""Comprehensive tests for education extraction."""

from app.core.education_parser import (
    compose_name,
    extract_dates,
    extract_degree_from_text,
    extract_education,
    extract_field_of_study,
    extract_gpa,
    extract_institution,
    parse_education_entry,
)
from app.core.text_normalization import normalize_lines


def test_single_entry_with_gpa():
    text = "\n".join([
        "EDUCATION",
        "Bachelor of Science in Computer Science",
        "Stanford University, 2016 - 2020",
        "GPA: 3.8/4.0",
        "EXPERIENCE",
        "Software Engineer at Acme Corp, 2020 - Present",
    ])
    entries = extract_education(normalize_lines(text))
    assert len(entries) == 1
    entry = entries[0]
    assert entry.degree == "Bachelor of Science"
    assert entry.field == "Computer Science"
    assert entry.institution == "Stanford University"
    assert (entry.start_date, entry.end_date) == ("2016", "2020")
    assert entry.gpa == "3.8/4.0"
    assert entry.name == "Bachelor of Science in Computer Science from Stanford University"


def test_two_entries_split_on_repeated_degree():
    text = "\n".join([
        "EDUCATION",
        "Master of Science in Data Science, Stanford University, 2020 - 2022",
        "Bachelor of Science in Mathematics, University of Texas, 2016 - 2020",
    ])
    entries = extract_education(normalize_lines(text))
    assert [e.degree for e in entries] == ["Master of Science", "Bachelor of Science"]
    assert [e.field for e in entries] == ["Data Science", "Mathematics"]
    assert [e.institution for e in entries] == ["Stanford University", "University of Texas"]


def test_inline_education_header():
    text = "Jane Doe\njane@example.com\nEducation: B.S. Computer Science, MIT\nSKILLS\nPython"
    entries = extract_education(normalize_lines(text))
    assert len(entries) == 1
    assert entries[0].degree == "B.S."
    assert entries[0].field == "Computer Science"


def test_education_found_anywhere_in_document():
    """Education is scanned over the whole document, even after other sections."""
    text = "\n".join([
        "SKILLS",
        "Python, Go",
        "EXPERIENCE",
        "Engineer at Acme, 2019 - 2021",
        "EDUCATION",
        "B.S. in Physics from University of Texas, 2019",
    ])
    entries = extract_education(normalize_lines(text))
    assert len(entries) == 1
    assert entries[0].institution == "University of Texas"
    assert entries[0].field == "Physics"
    assert entries[0].end_date == "2019"
    assert entries[0].start_date == ""


def test_no_education_header():
    text = "SKILLS\nPython\nEXPERIENCE\nBachelor of Science in Education teacher at Lincoln School"
    assert extract_education(normalize_lines(text)) == []


def test_entries_without_degree_or_institution_are_dropped():
    text = "EDUCATION\nSelf-taught through online courses\nPROJECTS\nChat App"
    assert extract_education(normalize_lines(text)) == []


def test_degree_variants():
    assert extract_degree_from_text("Bachelor of Science in Computer Science") == "Bachelor of Science"
    assert extract_degree_from_text("M.S. in Engineering") == "M.S."
    assert extract_degree_from_text("PhD, Stanford University") == "PhD"
    assert extract_degree_from_text("Went to school") is None


def test_field_of_study_from_in_phrase():
    assert extract_field_of_study("B.S. in Marine Ecology, State University", "B.S.") == "Marine Ecology"


def test_field_is_not_taken_from_degree_name():
    """"Engineering" in "Bachelor of Engineering" is part of the degree, not the field."""
    entry = parse_education_entry(["Bachelor of Engineering in Robotics, Stanford University"])
    assert entry.degree == "Bachelor of Engineering"
    assert entry.field == "Robotics"
    assert extract_field_of_study("Master of Business Administration", "Master of Business Administration") is None
    assert extract_field_of_study("Computer Science, B.S.", "B.S.") == "Computer Science"


def test_institution_segment():
    assert extract_institution("Stanford University, Stanford, CA") == "Stanford University"


def test_gpa_forms():
    assert extract_gpa("GPA: 3.8/4.0") == "3.8/4.0"
    assert extract_gpa("3.6 GPA") == "3.6"
    assert extract_gpa("Dean's list") == ""


def test_compose_name():
    assert compose_name("B.S.", "Computer Science", "MIT") == "B.S. in Computer Science from MIT"
    assert compose_name("", "", "MIT") == "MIT"


def test_open_ended_education_has_no_end_date():
    """Ongoing studies end in None, like current roles in experience."""
    entries = extract_education(normalize_lines(
        "EDUCATION\nB.S. in Computer Science, State University, 2021 - Present\nSKILLS\nPython"
    ))
    assert (entries[0].start_date, entries[0].end_date) == ("2021", None)
    assert extract_dates("State University") == ("", None)
