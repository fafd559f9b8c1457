"""
Fetch the student portal page: open a browser for the student to log in
and open their class schedule, then read the page and return its HTML.
"""
from __future__ import annotations

from selenium import webdriver
from selenium.webdriver.chrome.options import Options
from selenium.webdriver.chrome.service import Service
from selenium.webdriver.common.by import By
from webdriver_manager.chrome import ChromeDriverManager

from .portal_html import COURSE_LINE_PATTERN, page_text_from_html

DEFAULT_PORTAL_URL = "https://campus.concordia.ca/"


def _page_lists_courses(html: str) -> bool:
    text = page_text_from_html(html)
    return any(COURSE_LINE_PATTERN.match(line.strip()) for line in text.split("\n"))


def fetch_portal_html(url: str = DEFAULT_PORTAL_URL) -> str:
    """
    Open Chrome on the portal. The student logs in, opens the page listing
    their enrolled classes, then presses Enter in the terminal; the page
    source is returned.
    """
    options = Options()
    options.add_argument("--no-sandbox")
    options.add_argument("--disable-dev-shm-usage")
    try:
        service = Service(ChromeDriverManager().install())
        driver = webdriver.Chrome(service=service, options=options)
    except Exception as e:
        raise RuntimeError(
            f"Could not start Chrome for the student portal. Install Chrome and run again. Error: {e}"
        ) from e

    try:
        driver.get(url)
        driver.implicitly_wait(5)

        print()
        print("In the browser window:")
        print("  1. Log in to the student portal")
        print("  2. Open the page listing your enrolled classes")
        print("  3. Wait for the page to finish loading")
        print("  4. Come back to this terminal and press Enter")
        print()
        input("Press Enter when the class list is visible → ")

        # Portal pages usually render inside a frame
        html = driver.page_source
        if not _page_lists_courses(html):
            for frame in driver.find_elements(By.TAG_NAME, "iframe"):
                driver.switch_to.frame(frame)
                frame_html = driver.page_source
                driver.switch_to.default_content()
                if _page_lists_courses(frame_html):
                    return frame_html
            raise ValueError(
                "No course codes (e.g. COMP 248) found on the current page. "
                "Open your class schedule in the browser, then press Enter again."
            )
        return html
    finally:
        driver.quit()
