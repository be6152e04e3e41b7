"""Keyword search pipeline.

    fetch (one thread per keyword: search, then each hit's history)
        -> normalize -> resolve -> merge
        -> aggregate -> ensure views -> overlay user flags

Only the upstream fetches run in worker threads; every ORM write happens on
the calling thread once all fetches are back. A keyword whose fetch fails is
reported in `failures` and the other keywords are still processed.
"""

import calendar
import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, List, Optional, Tuple

from django.conf import settings

from accounts.models import normalize_keyword
from accounts.services import active_keywords, get_subscriber
from tenders.exceptions import UnidentifiableRecord, Unauthorized, UpstreamError, VersionConflict
from tenders.services.aggregator import aggregate
from tenders.services.client import TenderAPIClient
from tenders.services.merger import MergeResult, merge
from tenders.services.normalizer import normalize_record
from tenders.services.resolver import resolve
from tenders.services.views import DecoratedTender, ensure_views, overlay

logger = logging.getLogger(__name__)


@dataclass
class IngestReport:
    keyword: str
    results: List[MergeResult] = field(default_factory=list)
    skipped: int = 0
    filtered: int = 0
    conflicts: List[str] = field(default_factory=list)


@dataclass
class SearchOutcome:
    entries: List[DecoratedTender]
    keywords: List[str]
    truncated: List[str] = field(default_factory=list)
    failures: Dict[str, str] = field(default_factory=dict)
    skipped: int = 0
    filtered: int = 0
    conflicts: List[str] = field(default_factory=list)


def months_ago(months: int, today: Optional[date] = None) -> int:
    """YYYYMMDD of the day `months` months before `today`."""
    today = today or date.today()
    total = today.year * 12 + (today.month - 1) - months
    year, month = divmod(total, 12)
    month += 1
    day = min(today.day, calendar.monthrange(year, month)[1])
    return year * 10000 + month * 100 + day


def prepare_keywords(keywords: Iterable[str], limit: Optional[int]) -> Tuple[List[str], List[str]]:
    """Normalize and de-duplicate keywords, then split them at the tier limit."""
    seen = []
    for keyword in keywords:
        text = normalize_keyword(keyword)
        if text and text not in seen:
            seen.append(text)
    if limit is None:
        return seen, []
    return seen[:limit], seen[limit:]


def fetch_keyword(client, keyword: str, details: bool = False) -> List:
    """Search one keyword; with `details`, swap each hit for its tender's full history.

    Hits without a usable identity are passed through for `ingest_records` to
    skip. A tender whose history comes back empty keeps its search hit. Any
    `UpstreamError`, search or detail, fails the whole keyword.
    """
    hits = client.search(keyword)
    if not details:
        return hits
    records = []
    seen = set()
    for raw in hits:
        record = normalize_record(raw)
        if not (record.unit_id and record.job_number):
            records.append(raw)
            continue
        identity = (record.unit_id, record.job_number)
        if identity in seen:
            continue
        seen.add(identity)
        history = client.fetch_details(record.unit_id, record.job_number)
        if not history:
            records.append(raw)
            continue
        # oldest announcement first so version numbers follow the calendar
        for entry in sorted(history, key=lambda item: normalize_record(item).date):
            if isinstance(entry, dict):
                entry = {"unit_id": record.unit_id, "job_number": record.job_number, **entry}
            records.append(entry)
    logger.info("Keyword %r: %s search hits expanded to %s records", keyword, len(hits), len(records))
    return records


def fetch_all(client, keywords: List[str], workers: Optional[int] = None, details: Optional[bool] = None):
    """Run `fetch_keyword` for every keyword in parallel.

    Returns `(records_by_keyword, failures)`; a keyword is in exactly one of them.
    """
    records_by_keyword: Dict[str, list] = {}
    failures: Dict[str, str] = {}
    if not keywords:
        return records_by_keyword, failures
    workers = workers or settings.TENDER_FETCH_WORKERS
    if details is None:
        details = settings.TENDER_FETCH_DETAILS
    with ThreadPoolExecutor(max_workers=max(1, min(workers, len(keywords)))) as pool:
        futures = {pool.submit(fetch_keyword, client, keyword, details): keyword for keyword in keywords}
        for future in as_completed(futures):
            keyword = futures[future]
            try:
                records_by_keyword[keyword] = future.result()
            except UpstreamError as exc:
                logger.warning("Fetch failed for keyword %r: %s", keyword, exc)
                failures[keyword] = str(exc)
    return records_by_keyword, failures


def ingest_records(records: Iterable, keyword: str, since: Optional[int] = None) -> IngestReport:
    """Store one keyword's raw records; the storage half of the pipeline."""
    report = IngestReport(keyword=keyword)
    for raw in records:
        record = normalize_record(raw)
        if since and record.date < since:
            report.filtered += 1
            continue
        try:
            resolution = resolve(record, keyword)
        except UnidentifiableRecord as exc:
            logger.warning("Skipping upstream record for %r: %s", keyword, exc)
            report.skipped += 1
            continue
        try:
            report.results.append(merge(resolution))
        except VersionConflict as exc:
            logger.error("Giving up on tender %s: %s", resolution.tender_id, exc)
            report.conflicts.append(str(resolution.tender_id))
    return report


def run_search(user, keywords=None, since: Optional[int] = None, client=None) -> SearchOutcome:
    if user is None or not user.is_authenticated:
        raise Unauthorized()
    if keywords is None:
        keywords = active_keywords(user)

    kept, truncated = prepare_keywords(keywords, get_subscriber(user).keyword_limit)
    if truncated:
        logger.info("User %s is on the free plan, dropping keywords %s", user.username, truncated)

    fetched, failures = fetch_all(client or TenderAPIClient(), kept)
    reports = [ingest_records(fetched[keyword], keyword, since) for keyword in kept if keyword in fetched]

    entries = aggregate(*(report.results for report in reports))
    ensure_views(user, [entry.tender.pk for entry in entries])
    outcome = SearchOutcome(
        entries=overlay(entries, user),
        keywords=kept,
        truncated=truncated,
        failures=failures,
        skipped=sum(report.skipped for report in reports),
        filtered=sum(report.filtered for report in reports),
        conflicts=[tender_id for report in reports for tender_id in report.conflicts],
    )
    logger.info(
        "Search for %s: %s tenders, %s failed keyword(s), %s skipped record(s)",
        user.username,
        len(outcome.entries),
        len(failures),
        outcome.skipped,
    )
    return outcome
