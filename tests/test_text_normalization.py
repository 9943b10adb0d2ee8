"""
Unit tests for text_normalization module.

Covers line splitting, the degraded-text re-split and the small line predicates.
"""

from app.core.text_normalization import is_all_caps, is_bullet, normalize_lines, strip_bullet


class TestNormalizeLines:
    """Line splitting and trimming."""

    def test_empty_and_none(self):
        assert normalize_lines("") == []
        assert normalize_lines(None) == []
        assert normalize_lines("   \n\n  ") == []

    def test_trims_and_drops_blank_lines(self):
        lines = normalize_lines("  SKILLS  \n\n Python, Go \n\nEXPERIENCE\nEngineer")
        assert [line.text for line in lines] == ["SKILLS", "Python, Go", "EXPERIENCE", "Engineer"]

    def test_indexes_are_sequential(self):
        lines = normalize_lines("a line\nb line\n\nc line\nd line")
        assert [line.index for line in lines] == [0, 1, 2, 3]

    def test_windows_line_endings(self):
        lines = normalize_lines("one\r\ntwo\r\nthree\r\nfour")
        assert [line.text for line in lines] == ["one", "two", "three", "four"]

    def test_degraded_text_is_resplit(self):
        lines = normalize_lines("Built APIs. Led team.   • Python")
        assert [line.text for line in lines] == ["Built APIs.", "Led team.", "• Python"]

    def test_no_resplit_for_long_documents(self):
        text = "Line one. Still line one\nLine two\nLine three\nLine four"
        lines = normalize_lines(text)
        assert lines[0].text == "Line one. Still line one"
        assert len(lines) == 4

    def test_every_line_is_trimmed_and_non_empty(self):
        text = "  Jane Doe \n\t\n SKILLS:  Python \n   • Go   \nEXPERIENCE"
        for line in normalize_lines(text):
            assert line.text
            assert line.text == line.text.strip()


class TestLinePredicates:
    """strip_bullet / is_bullet / is_all_caps."""

    def test_strip_bullet(self):
        assert strip_bullet("• Python") == "Python"
        assert strip_bullet("- Built APIs") == "Built APIs"
        assert strip_bullet("Python") == "Python"

    def test_is_bullet(self):
        assert is_bullet("• Python")
        assert is_bullet("* Docker")
        assert not is_bullet("Python")

    def test_is_all_caps(self):
        assert is_all_caps("TECHNICAL SKILLS")
        assert is_all_caps("ACME CORP 2020")
        assert not is_all_caps("Acme Corp")
        assert not is_all_caps("2020 - 2021")
