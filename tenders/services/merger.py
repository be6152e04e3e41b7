"""Create tenders and append versions from resolved records.

A record classified NEW creates the tender and its version 1. A record that
matches an existing tender is compared with the latest stored version; an
equal payload is an exact duplicate and writes nothing, a different one is
appended as `latest.version + 1`.

Two writers appending to the same tender race on the `(tender, version)`
unique constraint. The loser retries once against the refreshed latest
version, then gives up with `VersionConflict`.

Every observation also unions its tags into `Tender.tags`: the matching
keyword as is, plus `category:`, `org:` and `company:` descriptors.
"""

import dataclasses
import hashlib
import json
import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

from django.conf import settings
from django.db import IntegrityError, transaction

from tenders.exceptions import VersionConflict
from tenders.models import Tender, TenderVersion
from tenders.services.normalizer import NormalizedRecord
from tenders.services.resolver import Classification, Resolution

logger = logging.getLogger(__name__)

MAX_APPEND_ATTEMPTS = 2

CATEGORY_TAG = "category:"
ORG_TAG = "org:"
COMPANY_TAG = "company:"
DESCRIPTOR_TAGS = (CATEGORY_TAG, ORG_TAG, COMPANY_TAG)


@dataclass
class MergeResult:
    tender: Tender
    keyword: str
    is_new: bool
    new_versions: int
    duplicate: bool = False


class _AppendRace(Exception):
    def __init__(self, version):
        self.version = version


def volatile_fields() -> frozenset:
    return frozenset(getattr(settings, "TENDERS_VOLATILE_FIELDS", ()))


def strip_volatile(payload, ignored: Optional[Iterable[str]] = None):
    """Drop volatile keys at every depth of a JSON payload."""
    ignored = volatile_fields() if ignored is None else frozenset(ignored)
    if isinstance(payload, dict):
        return {key: strip_volatile(value, ignored) for key, value in payload.items() if key not in ignored}
    if isinstance(payload, list):
        return [strip_volatile(value, ignored) for value in payload]
    return payload


def payloads_equal(left, right, ignored: Optional[Iterable[str]] = None) -> bool:
    return strip_volatile(left, ignored) == strip_volatile(right, ignored)


def fingerprint(payload, ignored: Optional[Iterable[str]] = None) -> str:
    canonical = json.dumps(
        strip_volatile(payload, ignored),
        sort_keys=True,
        ensure_ascii=False,
        separators=(",", ":"),
        default=str,
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def record_tags(record: NormalizedRecord, keyword: str = "") -> List[str]:
    """Tags contributed by one observation: the matching keyword plus prefixed descriptors."""
    tags = [keyword] if keyword else []
    if record.category:
        tags.append(CATEGORY_TAG + record.category)
    if record.unit_name:
        tags.append(ORG_TAG + record.unit_name)
    tags.extend(COMPANY_TAG + name for name in record.companies)
    return tags


def keyword_tags(tags: Iterable[str]) -> List[str]:
    return [tag for tag in tags if not tag.startswith(DESCRIPTOR_TAGS)]


def merge(resolution: Resolution) -> MergeResult:
    attempt = 1
    while True:
        try:
            with transaction.atomic():
                return _merge_once(resolution)
        except _AppendRace as race:
            logger.warning(
                "Version %s of tender %s was written concurrently (attempt %s/%s)",
                race.version,
                resolution.tender_id,
                attempt,
                MAX_APPEND_ATTEMPTS,
            )
            if attempt >= MAX_APPEND_ATTEMPTS:
                raise VersionConflict(resolution.tender_id, race.version) from race
            attempt += 1
            resolution = dataclasses.replace(
                resolution,
                classification=Classification.POSSIBLE_UPDATE,
                tender=Tender.objects.get(pk=resolution.tender_id),
            )


def _merge_once(resolution: Resolution) -> MergeResult:
    record = resolution.record
    keyword = resolution.keyword
    tender = resolution.tender

    if resolution.classification is Classification.NEW:
        tender, created = Tender.objects.get_or_create(
            pk=resolution.tender_id,
            defaults=dict(
                unit_id=record.unit_id,
                job_number=record.job_number,
                tags=record_tags(record, keyword),
                **_observed_fields(record),
            ),
        )
        if created:
            _append_version(tender, 1, record)
            logger.info("New tender %s (%s)", resolution.tender_id, record.title)
            return MergeResult(tender=tender, keyword=keyword, is_new=True, new_versions=0)

    latest = tender.latest_version()
    incoming = fingerprint(record.raw)
    if latest is not None and (
        payloads_equal(latest.data, record.raw) or tender.versions.filter(fingerprint=incoming).exists()
    ):
        _add_tags(tender, record, keyword)
        return MergeResult(tender=tender, keyword=keyword, is_new=False, new_versions=0, duplicate=True)

    next_version = latest.version + 1 if latest is not None else 1
    _append_version(tender, next_version, record, incoming)
    if record.date >= tender.date:
        for name, value in _observed_fields(record).items():
            setattr(tender, name, value)
    tender.tags = _merged_tags(tender.tags, record, keyword)
    tender.save()
    logger.info("Tender %s: appended version %s", tender.pk, next_version)
    return MergeResult(tender=tender, keyword=keyword, is_new=False, new_versions=1)


def _observed_fields(record: NormalizedRecord) -> dict:
    return {
        "title": record.title,
        "type": record.type,
        "date": record.date,
        "category": record.category,
        "unit_name": record.unit_name,
    }


def _append_version(tender, version, record, digest=None):
    try:
        with transaction.atomic():
            return TenderVersion.objects.create(
                tender=tender,
                version=version,
                date=record.date,
                type=record.type,
                data=record.raw,
                fingerprint=digest or fingerprint(record.raw),
            )
    except IntegrityError:
        raise _AppendRace(version)


def _merged_tags(existing, record, keyword):
    tags = list(existing)
    for tag in record_tags(record, keyword):
        if tag not in tags:
            tags.append(tag)
    return tags


def _add_tags(tender, record, keyword):
    tags = _merged_tags(tender.tags, record, keyword)
    if tags != tender.tags:
        tender.tags = tags
        tender.save(update_fields=["tags", "updated_at"])
