"""Tests for portal_html.py – enrolled course extraction."""
import pytest

from concordia_schedule_export.portal_html import extract_enrolled_courses, parse_portal_html

PAGE = """
<html><head><title>My Class Schedule</title>
<script>var x = "COMP 999 should not count";</script></head>
<body>
<h1>Fall 2025</h1>
<div>COMP 248 - Object-Oriented Programming I LEC (51)</div>
<div>COMP 248 - Object-Oriented Programming I LEC (51)</div>
<div>COMP 248 - Object-Oriented Programming I TUT (52)</div>
<div>SOEN 287 - Web Programming</div>
<div>ENCS 282-A Technical Writing LEC (1)</div>
<div>Total units: 10.5</div>
<div>comp 352 lowercase is ignored</div>
</body></html>
"""


class TestExtractEnrolledCourses:
    def test_code_and_section(self):
        courses = extract_enrolled_courses("COMP 248 - OOP I LEC (51)", term="20251")
        assert courses == [{"code": "COMP 248", "section": "51", "term": "20251"}]

    def test_no_section(self):
        assert extract_enrolled_courses("SOEN  287 Web", term="20251") == [
            {"code": "SOEN 287", "section": "", "term": "20251"}
        ]

    def test_must_start_line(self):
        assert extract_enrolled_courses("Enrolled in COMP 248", term="20251") == []

    def test_default_term(self):
        (course,) = extract_enrolled_courses("COMP 248")
        assert len(course["term"]) == 5

    def test_empty(self):
        assert extract_enrolled_courses("", term="20251") == []


class TestParsePortalHtml:
    def test_content(self):
        courses = parse_portal_html(html_content=PAGE, term="20251")
        assert [(c["code"], c["section"]) for c in courses] == [
            ("COMP 248", "51"),
            ("COMP 248", "52"),
            ("SOEN 287", ""),
            ("ENCS 282-A", "1"),
        ]

    def test_path(self, tmp_path):
        p = tmp_path / "page.html"
        p.write_text(PAGE, encoding="utf-8")
        assert len(parse_portal_html(html_path=p, term="20251")) == 4

    def test_requires_input(self):
        with pytest.raises(ValueError):
            parse_portal_html()


def test_lines_are_not_html_escaped():
    # escaped, the ampersands alone would push "LEC (51)" past the length cap
    text = "COMP 248 " + "&" * 100 + " LEC (51)"
    assert extract_enrolled_courses(text, term="20251") == [
        {"code": "COMP 248", "section": "51", "term": "20251"}
    ]


def test_control_characters_stripped():
    assert extract_enrolled_courses("\x00COMP 248\x07 LEC (51)", term="20251") == [
        {"code": "COMP 248", "section": "51", "term": "20251"}
    ]
