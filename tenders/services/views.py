"""Per-user view state: archived and highlighted flags on shared tenders.

`overlay` only reads. The write helpers are keyed on `(user, tender)` so a
user can only ever touch their own rows.
"""

from dataclasses import dataclass, field
from typing import Iterable, List, Set

from tenders.exceptions import Unauthorized, ViewNotFound
from tenders.models import Tender, TenderView
from tenders.services.aggregator import AggregatedTender


@dataclass
class DecoratedTender:
    tender: Tender
    keywords: Set[str] = field(default_factory=set)
    is_new: bool = False
    new_versions: int = 0
    is_archived: bool = False
    is_highlighted: bool = False


def _require_user(user):
    if user is None or not user.is_authenticated:
        raise Unauthorized()


def overlay(entries: Iterable[AggregatedTender], user) -> List[DecoratedTender]:
    _require_user(user)
    entries = list(entries)
    flags = {
        view.tender_id: view
        for view in TenderView.objects.filter(user=user, tender_id__in=[entry.tender.pk for entry in entries])
    }
    decorated = []
    for entry in entries:
        view = flags.get(entry.tender.pk)
        decorated.append(
            DecoratedTender(
                tender=entry.tender,
                keywords=set(entry.keywords),
                is_new=entry.is_new,
                new_versions=entry.new_versions,
                is_archived=view.is_archived if view else False,
                is_highlighted=view.is_highlighted if view else False,
            )
        )
    return decorated


def ensure_views(user, tender_ids) -> None:
    """Create missing view rows with default flags; existing rows are left untouched."""
    _require_user(user)
    TenderView.objects.bulk_create(
        [TenderView(user=user, tender_id=tender_id) for tender_id in set(tender_ids)],
        ignore_conflicts=True,
    )


def user_views(user):
    _require_user(user)
    return TenderView.objects.filter(user=user).select_related("tender")


def _set_flag(user, tender_id, name, value) -> TenderView:
    _require_user(user)
    if not Tender.objects.filter(pk=tender_id).exists():
        raise ViewNotFound()
    view, _ = TenderView.objects.update_or_create(
        user=user,
        tender_id=tender_id,
        defaults={name: bool(value)},
    )
    return view


def set_archived(user, tender_id, value) -> TenderView:
    return _set_flag(user, tender_id, "is_archived", value)


def set_highlighted(user, tender_id, value) -> TenderView:
    return _set_flag(user, tender_id, "is_highlighted", value)
