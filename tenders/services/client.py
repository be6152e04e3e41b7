"""HTTP client for the upstream tender API (g0v PCC mirror).

Endpoints used:
    GET {base}/searchbytitle?query=<keyword>&page=<n>
        -> {"page": n, "total_pages": N, "total_records": M, "records": [...]}
    GET {base}/tender?unit_id=<unit_id>&job_number=<job_number>
        -> {"records": [...]}

Every request is bounded by a timeout. HTTP 429 is retried with jittered
exponential backoff; anything else that is not a JSON 200 is reported as
`UpstreamUnavailable`.
"""

import logging
from typing import Dict, List, Optional

import requests
from django.conf import settings
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_random_exponential

from tenders.exceptions import UpstreamRateLimited, UpstreamUnavailable

logger = logging.getLogger(__name__)


class TenderAPIClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        max_pages: Optional[int] = None,
        max_attempts: Optional[int] = None,
        backoff: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = (base_url or settings.TENDER_API_BASE_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.TENDER_API_TIMEOUT
        self.max_pages = max_pages if max_pages is not None else settings.TENDER_API_MAX_PAGES
        self.max_attempts = max_attempts if max_attempts is not None else settings.TENDER_API_MAX_ATTEMPTS
        self.backoff = backoff if backoff is not None else settings.TENDER_API_BACKOFF
        if session is None:
            session = requests.Session()
            session.headers["User-Agent"] = settings.TENDER_API_USER_AGENT
        self.session = session

    def search(self, keyword: str) -> List[Dict]:
        """Return every record matching `keyword`, walking at most `max_pages` pages."""
        records = []
        page = 1
        while True:
            payload = self._get("searchbytitle", {"query": keyword, "page": page})
            records.extend(_records(payload, "searchbytitle"))
            total_pages = _as_int(payload.get("total_pages"), default=1)
            if page >= total_pages or page >= self.max_pages:
                break
            page += 1
        logger.info("Upstream search %r: %s records over %s page(s)", keyword, len(records), page)
        return records

    def fetch_details(self, unit_id: str, job_number: str) -> List[Dict]:
        payload = self._get("tender", {"unit_id": unit_id, "job_number": job_number})
        return _records(payload, "tender")

    def _get(self, path: str, params: Dict) -> Dict:
        retrying = Retrying(
            retry=retry_if_exception_type(UpstreamRateLimited),
            wait=wait_random_exponential(multiplier=self.backoff, max=60),
            stop=stop_after_attempt(self.max_attempts),
            before_sleep=_log_retry,
            reraise=True,
        )
        return retrying(self._get_once, path, params)

    def _get_once(self, path: str, params: Dict) -> Dict:
        url = f"{self.base_url}/{path}"
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
        except requests.Timeout as exc:
            raise UpstreamUnavailable(f"timeout after {self.timeout}s on {url}") from exc
        except requests.RequestException as exc:
            raise UpstreamUnavailable(f"request to {url} failed: {exc}") from exc

        if response.status_code == 429:
            raise UpstreamRateLimited(url, retry_after=response.headers.get("Retry-After"))
        if response.status_code != 200:
            raise UpstreamUnavailable(f"HTTP {response.status_code} on {url}")
        try:
            payload = response.json()
        except ValueError as exc:
            raise UpstreamUnavailable(f"invalid JSON from {url}") from exc
        if not isinstance(payload, dict):
            raise UpstreamUnavailable(f"unexpected payload from {url}")
        return payload


def _records(payload: Dict, path: str) -> List[Dict]:
    records = payload.get("records")
    if records is None:
        return []
    if not isinstance(records, list):
        raise UpstreamUnavailable(f"unexpected records from {path}: {type(records).__name__}")
    return records


def _as_int(value, default=0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _log_retry(retry_state):
    logger.warning(
        "Upstream rate limit, retrying (attempt %s): %s",
        retry_state.attempt_number,
        retry_state.outcome.exception(),
    )
