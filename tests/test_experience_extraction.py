"""Tests for experience extraction."""

from app.core.experience_extractor import build_experience, extract_experience, finalize_experience
from app.core.schemas import ExperienceEntry
from app.core.text_normalization import normalize_lines


def test_title_at_company_with_open_range():
    entries = extract_experience(normalize_lines("Software Engineer at Acme Corp, Jan 2020 - Present"))
    assert len(entries) == 1
    entry = entries[0]
    assert entry.title == "Software Engineer"
    assert entry.company == "Acme Corp"
    assert entry.start_date == "2020-01"
    assert entry.end_date is None


def test_company_heading_above_role():
    """A lone all-caps line names the company of the entry below it; bullets become the description."""
    entries = extract_experience(normalize_lines("ACME CORP\nSoftware Engineer 2019 - 2021\n• Built APIs\n• Led team"))
    assert len(entries) == 1
    entry = entries[0]
    assert entry.title == "Software Engineer"
    assert entry.company == "ACME CORP"
    assert entry.start_date == "2019"
    assert entry.end_date == "2021"
    assert entry.description == "Built APIs | Led team"


def test_multiple_dated_entries():
    text = "\n".join([
        "Senior Developer at Beta LLC, 03/2021 - Present",
        "• Owned the payments service",
        "Developer at Gamma Inc, 2018 - 2021",
        "• Shipped the mobile app",
    ])
    entries = extract_experience(normalize_lines(text))
    assert [e.company for e in entries] == ["Beta LLC", "Gamma Inc"]
    assert entries[0].start_date == "2021-03"
    assert entries[1].end_date == "2021"
    assert entries[0].description == "Owned the payments service"
    assert entries[1].description == "Shipped the mobile app"


def test_role_signal_line_takes_next_line_as_description():
    entries = extract_experience(normalize_lines("Summer Internship, Google\nBuilt internal tooling in Go\nMore notes here\nAnd more"))
    assert entries[0].title == "Summer Internship"
    assert entries[0].company == "Google"
    assert entries[0].description == "Built internal tooling in Go"


def test_location_is_split_off():
    entry = build_experience("Data Analyst | Beta LLC | Austin, TX | 2018 - 2020")
    assert entry.title == "Data Analyst"
    assert entry.company == "Beta LLC"
    assert entry.location == "Austin, TX"
    assert (entry.start_date, entry.end_date) == ("2018", "2020")


def test_remote_location_segment():
    entry = build_experience("Backend Engineer - Delta Labs - Remote")
    assert entry.title == "Backend Engineer"
    assert entry.company == "Delta Labs"
    assert entry.location == "Remote"


def test_finalize_drops_duplicates_and_tiny_entries():
    entry = ExperienceEntry(title="Engineer", company="Acme")
    tiny = ExperienceEntry(title="QA")
    assert finalize_experience([entry, entry, tiny]) == [entry]


def test_no_lines():
    assert extract_experience([]) == []


def test_month_ranges_after_bullets_start_a_new_role():
    """A "Title, Company, Mon YYYY - Mon YYYY" line after bullets opens the next role."""
    text = "\n".join([
        "Backend Engineer, Acme Corp, Jan 2021 - Dec 2022",
        "• Built payment APIs in Go",
        "Software Engineer, Beta Labs, Jun 2018 - Dec 2020",
        "• Maintained CI pipelines",
    ])
    entries = extract_experience(normalize_lines(text))
    assert [e.company for e in entries] == ["Acme Corp", "Beta Labs"]
    assert [e.title for e in entries] == ["Backend Engineer", "Software Engineer"]
    assert [e.description for e in entries] == ["Built payment APIs in Go", "Maintained CI pipelines"]
    assert (entries[0].start_date, entries[0].end_date) == ("2021-01", "2022-12")
