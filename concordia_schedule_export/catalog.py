"""
Thin client for the Concordia open-data course API.

Only fetches and normalizes; the schedule pipeline gets Course objects
and never talks to the network itself. Responses are kept in an injected
TTLCache when one is given.
"""
from __future__ import annotations

import logging
import os
from typing import Any, Optional, Tuple

import requests

from . import __version__
from .cache import TTLCache
from .course_normalize import combine_course_data, normalize_course_code, normalize_courses
from .model import Course

LOG = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://opendata.concordia.ca/API/v1"
DEFAULT_TIMEOUT = 30
ENTRY_TTL = 1800

ENV_API_KEY = "CONCORDIA_API_KEY"
ENV_BASE_URL = "CONCORDIA_API_BASE_URL"


class CatalogError(RuntimeError):
    """Raised when the open-data API cannot be reached or answers badly."""


class CatalogClient:
    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        cache: Optional[TTLCache] = None,
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.api_key = api_key if api_key is not None else os.environ.get(ENV_API_KEY, "")
        self.base_url = (base_url or os.environ.get(ENV_BASE_URL) or DEFAULT_BASE_URL).rstrip("/")
        self.cache = cache
        self.session = session or requests.Session()
        self.timeout = timeout
        self.headers = {
            "User-Agent": f"ConcordiaScheduleExport/{__version__}",
            "Accept": "application/json",
        }

    def _get(self, path: str) -> Any:
        """GET a JSON document. Returns None on 404."""
        url = f"{self.base_url}/{path.lstrip('/')}"
        params = {"key": self.api_key} if self.api_key else None
        LOG.debug("GET %s", url)
        try:
            resp = self.session.get(url, params=params, headers=self.headers, timeout=self.timeout)
        except requests.Timeout as e:
            raise CatalogError("Concordia API timeout - please try again") from e
        except requests.RequestException as e:
            raise CatalogError(f"Concordia API request failed: {e}") from e

        if resp.status_code == 404:
            return None
        try:
            resp.raise_for_status()
        except requests.HTTPError as e:
            LOG.error("Concordia API error: status=%s url=%s", resp.status_code, url)
            raise CatalogError(f"Concordia API returned HTTP {resp.status_code}") from e
        try:
            return resp.json()
        except ValueError as e:
            raise CatalogError(f"Concordia API returned invalid JSON for {url}") from e

    def _cached(self, key: str) -> Any:
        if self.cache is None:
            return None
        value = self.cache.get(key)
        if value is not None:
            LOG.debug("cache hit %s", key)
        return value

    def _store(self, key: str, value: Any) -> None:
        if self.cache is not None:
            self.cache.set(key, value, ENTRY_TTL)

    def get_course_details(self, course_code: str, term: str) -> Optional[Course]:
        """
        Schedule + description of one course in one term.

        Returns None when the course is not offered in that term (HTTP 404
        or an empty schedule). A failing description lookup is tolerated.
        """
        code = normalize_course_code(course_code)
        if not code:
            return None
        key = f"course_{code}_{term}"
        cached = self._cached(key)
        if cached is not None:
            return cached

        subject, number = code.split(" ", 1)
        schedule = self._get(f"course/schedule/filter/{subject}/{number}/*/{term}")
        if schedule is None:
            return None

        try:
            description = self._get(f"course/description/filter/{subject}/{number}") or []
        except CatalogError as e:
            LOG.debug("No description for %s: %s", code, e)
            description = []

        course = combine_course_data(schedule, description, code)
        if course is not None:
            self._store(key, course)
        return course

    def get_courses_by_term(self, term: str) -> Tuple[Course, ...]:
        """All catalog courses of a term that have at least one usable section."""
        key = f"courses_{term}"
        cached = self._cached(key)
        if cached is not None:
            return cached

        data = self._get(f"course/catalog/filter/*/*/*/{term}")
        courses = tuple(normalize_courses(data)) if data is not None else ()
        self._store(key, courses)
        return courses
