"""Identity resolution for normalized records.

Read-only: it computes the identity of a record and tells the merger whether
a tender with that identity is already stored. Content comparison belongs to
the merger.
"""

import enum
import uuid
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlencode

from tenders.exceptions import UnidentifiableRecord
from tenders.models import Tender
from tenders.services.normalizer import NormalizedRecord

TENDER_NAMESPACE = uuid.UUID("6f1c2b1e-8d2a-5b43-9a0e-3c7d1f4e2a90")


class Classification(enum.Enum):
    NEW = "new"
    POSSIBLE_UPDATE = "possible_update"


@dataclass
class Resolution:
    record: NormalizedRecord
    keyword: str
    tender_id: uuid.UUID
    classification: Classification
    tender: Optional[Tender] = None


def identity_key(unit_id, job_number) -> str:
    # escaped so "&" or "=" inside a part cannot collide with another pair
    return urlencode([("unit_id", str(unit_id).strip()), ("job_number", str(job_number).strip())])


def tender_id_for(unit_id, job_number) -> uuid.UUID:
    return uuid.uuid5(TENDER_NAMESPACE, identity_key(unit_id, job_number))


def check_identifiable(record: NormalizedRecord) -> None:
    missing = [name for name in ("unit_id", "job_number") if not getattr(record, name)]
    if missing:
        raise UnidentifiableRecord(record.raw, missing)


def resolve(record: NormalizedRecord, keyword: str = "") -> Resolution:
    check_identifiable(record)
    tender_id = tender_id_for(record.unit_id, record.job_number)
    tender = Tender.objects.filter(pk=tender_id).first()
    return Resolution(
        record=record,
        keyword=keyword,
        tender_id=tender_id,
        classification=Classification.POSSIBLE_UPDATE if tender else Classification.NEW,
        tender=tender,
    )
