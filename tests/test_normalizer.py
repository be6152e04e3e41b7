import pytest

from tenders.services.normalizer import NO_DATE, UNKNOWN_TYPE, UNTITLED, date_from_int, normalize_date, normalize_record
from tenders.services.resolver import identity_key, tender_id_for


@pytest.mark.parametrize(
	"value, expected",
	[
		(20240101, 20240101),
		("20240101", 20240101),
		("2024-01-05", 20240105),
		("2024-01-05T10:30:00+08:00", 20240105),
		("2024/1/5", 20240105),
		(20240101.0, 20240101),
		("20241301", NO_DATE),
		("2024011", NO_DATE),
		("yesterday", NO_DATE),
		("", NO_DATE),
		(None, NO_DATE),
		(True, NO_DATE),
		({"y": 2024}, NO_DATE),
	],
)
def test_normalize_date(value, expected):
	assert normalize_date(value) == expected


def test_normalize_record_reads_brief_fields():
	record = normalize_record(
		{
			"unit_id": " 3.80.1 ",
			"job_number": 1130101,
			"date": 20240101,
			"unit_name": "Highway Bureau",
			"brief": {"title": "Road Repair", "type": "open tender", "category": "works"},
		}
	)

	assert record.unit_id == "3.80.1"
	assert record.job_number == "1130101"
	assert record.title == "Road Repair"
	assert record.type == "open tender"
	assert record.category == "works"
	assert record.unit_name == "Highway Bureau"
	assert record.date == 20240101


def test_normalize_record_title_falls_back_to_top_level_then_sentinel():
	assert normalize_record({"title": "Bridge works"}).title == "Bridge works"
	assert normalize_record({"brief": {"title": "   "}}).title == UNTITLED
	assert normalize_record({}).title == UNTITLED


def test_normalize_record_never_raises_on_malformed_input():
	for raw in (None, "oops", [], {"brief": "not an object", "date": [2024]}):
		record = normalize_record(raw)
		assert record.title == UNTITLED
		assert record.type == UNKNOWN_TYPE
		assert record.date == NO_DATE
		assert record.unit_id == ""


def test_date_from_int():
	assert date_from_int(20240229).day == 29
	assert date_from_int(0) is None
	assert date_from_int(20230229) is None


def test_identity_is_deterministic():
	first = normalize_record({"unit_id": "U1", "job_number": "J1", "brief": {"title": "A"}})
	second = normalize_record({"unit_id": " U1", "job_number": "J1 ", "brief": {"title": "B"}, "date": "20240202"})

	assert identity_key(first.unit_id, first.job_number) == "unit_id=U1&job_number=J1"
	assert tender_id_for(first.unit_id, first.job_number) == tender_id_for(second.unit_id, second.job_number)
	assert tender_id_for("U1", "J1") != tender_id_for("U1", "J2")


def test_identity_parts_cannot_bleed_into_each_other():
	assert identity_key("A", "B&job_number=C") != identity_key("A&job_number=B", "C")
	assert tender_id_for("A", "B&job_number=C") != tender_id_for("A&job_number=B", "C")


def test_company_names_from_award_briefs():
	award = normalize_record({"brief": {"companies": {"ids": ["1", "2"], "names": ["Acme Ltd", " Beta Co ", "Acme Ltd", None]}}})
	listed = normalize_record({"brief": {"companies": ["Acme Ltd"]}})
	broken = normalize_record({"brief": {"companies": "Acme Ltd"}})

	assert award.companies == ("Acme Ltd", "Beta Co")
	assert listed.companies == ("Acme Ltd",)
	assert broken.companies == ()
