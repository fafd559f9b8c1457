"""
Extract enrolled courses from the student portal page.

Usage pattern:
- Student opens the enrolment / class schedule page in the portal
- Either saves it ("Save As → Webpage, HTML only") or lets portal_fetch
  grab it through a browser
- This module reads the page text and finds lines such as
    "COMP 248 - Object-Oriented Programming I   LEC (51)"
  giving [{"code": "COMP 248", "section": "51", "term": "20251"}]
"""
from __future__ import annotations

import re
from pathlib import Path
from typing import Dict, List

from bs4 import BeautifulSoup  # type: ignore[import]

from .semester import current_term
from .text import sanitize_text

COURSE_LINE_PATTERN = re.compile(r"^([A-Z]{4}\s+\d{3}[A-Z\-]*)")
SECTION_PATTERN = re.compile(r"([A-Z]{2,3})\s*\((\d+)\)")


def extract_enrolled_courses(page_text: str, term: str | None = None) -> List[Dict[str, str]]:
    """
    Scan page text line by line for course codes.

    The section is the number in parentheses after a component code on the
    same line ("LEC (51)"), or "" when there is none. Repeated
    (code, section) pairs are reported once.
    """
    term = term or current_term()
    courses: List[Dict[str, str]] = []
    seen: set[tuple[str, str]] = set()

    for raw_line in (page_text or "").split("\n"):
        line = sanitize_text(raw_line)
        if not line:
            continue
        m = COURSE_LINE_PATTERN.match(line)
        if not m:
            continue
        code = " ".join(m.group(1).split())
        section_match = SECTION_PATTERN.search(line)
        section = section_match.group(2) if section_match else ""

        if (code, section) in seen:
            continue
        seen.add((code, section))
        courses.append({"code": code, "section": section, "term": term})

    return courses


def page_text_from_html(html: str) -> str:
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(["script", "style"]):
        tag.decompose()
    return soup.get_text(separator="\n")


def parse_portal_html(
    html_path: str | Path | None = None,
    html_content: str | None = None,
    term: str | None = None,
) -> List[Dict[str, str]]:
    """
    Parse a saved portal page (file or HTML string) into course requests.

    :param html_path: Path to HTML file saved from browser.
    :param html_content: Raw HTML string (e.g. from portal_fetch).
    :param term: Term code for every course found. Defaults to the current term.
    """
    if html_content is not None:
        html = html_content
    elif html_path is not None:
        html = Path(html_path).read_text(encoding="utf-8", errors="ignore")
    else:
        raise ValueError("Provide either html_path or html_content.")

    return extract_enrolled_courses(page_text_from_html(html), term)
