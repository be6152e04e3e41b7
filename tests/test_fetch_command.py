import json
from io import StringIO

import pytest
from django.core.management import call_command
from django.core.management.base import CommandError

from accounts.services import add_keyword
from tenders.exceptions import UpstreamUnavailable
from tenders.management.commands import fetch_tenders
from tenders.models import Tender, TenderVersion

from .conftest import FakeSearchClient, road_record


@pytest.fixture
def upstream(monkeypatch):
	fake = FakeSearchClient(results={"road": [road_record()], "bridge": [road_record()]})
	created = []

	def factory(**kwargs):
		created.append(kwargs)
		return fake

	monkeypatch.setattr(fetch_tenders, "TenderAPIClient", factory)
	fake.created = created
	return fake


@pytest.mark.django_db
def test_import_from_file(tmp_path):
	path = tmp_path / "search.json"
	path.write_text(
		json.dumps({"page": 1, "total_pages": 1, "records": [road_record(), {"unit_id": "U2"}]}),
		encoding="utf-8",
	)
	out = StringIO()

	call_command("fetch_tenders", "--from-file", str(path), "--keyword", "Road", stdout=out)

	assert Tender.objects.get().tags == ["road"]
	assert "1 new tenders" in out.getvalue()
	assert "1 skipped" in out.getvalue()


@pytest.mark.django_db
def test_import_from_unreadable_file(tmp_path):
	path = tmp_path / "broken.json"
	path.write_text("{not json", encoding="utf-8")

	with pytest.raises(CommandError):
		call_command("fetch_tenders", "--from-file", str(path))


@pytest.mark.django_db
def test_polls_every_active_keyword(upstream, alice, bob):
	add_keyword(alice, "road")
	add_keyword(bob, "road")
	add_keyword(bob, "bridge")
	out = StringIO()

	call_command("fetch_tenders", "--pages", "2", stdout=out)

	assert sorted(upstream.calls) == ["bridge", "road"]
	assert upstream.created == [{"max_pages": 2}]
	assert Tender.objects.count() == 1
	assert TenderVersion.objects.count() == 1
	assert sorted(Tender.objects.get().tags) == ["bridge", "road"]


@pytest.mark.django_db
def test_months_filters_old_records(upstream):
	upstream.results["road"] = [road_record(date="19990101")]
	out = StringIO()

	call_command("fetch_tenders", "--keyword", "road", "--months", "6", stdout=out)

	assert Tender.objects.count() == 0
	assert "1 out of range" in out.getvalue()


@pytest.mark.django_db
def test_failed_keyword_is_reported(upstream):
	upstream.errors["bridge"] = UpstreamUnavailable("HTTP 503")
	out, err = StringIO(), StringIO()

	call_command("fetch_tenders", "--keyword", "road", "--keyword", "bridge", stdout=out, stderr=err)

	assert "[bridge] fetch failed" in err.getvalue()
	assert Tender.objects.count() == 1


@pytest.mark.django_db
def test_all_keywords_failing_is_an_error(upstream):
	upstream.errors["road"] = UpstreamUnavailable("HTTP 503")

	with pytest.raises(CommandError):
		call_command("fetch_tenders", "--keyword", "road", stdout=StringIO(), stderr=StringIO())


@pytest.mark.django_db
def test_no_keywords_is_a_noop(upstream):
	out = StringIO()

	call_command("fetch_tenders", stdout=out)

	assert "No active keywords" in out.getvalue()
	assert upstream.calls == []


@pytest.mark.django_db
def test_polling_fetches_each_tender_history(upstream):
	upstream.details[("U1", "J1")] = [
		{"date": 20240101, "brief": {"title": "Road Repair", "type": "tender notice"}},
		{"date": 20240301, "brief": {"title": "Road Repair", "type": "award notice"}},
	]
	out = StringIO()

	call_command("fetch_tenders", "--keyword", "road", stdout=out)

	assert upstream.detail_calls == [("U1", "J1")]
	assert TenderVersion.objects.count() == 2
	assert "1 new tenders, 1 new versions" in out.getvalue()


@pytest.mark.django_db
def test_skip_details_keeps_search_hits_only(upstream):
	upstream.details[("U1", "J1")] = [{"date": 20240301, "brief": {"title": "Road Repair"}}]

	call_command("fetch_tenders", "--keyword", "road", "--skip-details", stdout=StringIO())

	assert upstream.detail_calls == []
	assert TenderVersion.objects.get().data == road_record()
