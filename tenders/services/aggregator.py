from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Set

from tenders.models import Tender
from tenders.services.merger import MergeResult


@dataclass
class AggregatedTender:
    tender: Tender
    keywords: Set[str] = field(default_factory=set)
    is_new: bool = False
    new_versions: int = 0


def aggregate(*result_lists: Iterable[MergeResult]) -> List[AggregatedTender]:
    """Fold per-keyword merge results into one entry per tender.

    An entry found by several keywords carries all of them; it is new if any
    occurrence was new and counts every version appended during the pass.
    Entries keep the order in which their tender first appeared.
    """
    entries: Dict[str, AggregatedTender] = {}
    for results in result_lists:
        for result in results:
            key = str(result.tender.pk)
            entry = entries.get(key)
            if entry is None:
                entry = entries[key] = AggregatedTender(tender=result.tender)
            else:
                # later occurrences carry the freshest row
                entry.tender = result.tender
            if result.keyword:
                entry.keywords.add(result.keyword)
            entry.is_new = entry.is_new or result.is_new
            entry.new_versions += result.new_versions
    return list(entries.values())
