import uuid

import pytest
from django.contrib.auth.models import User
from django.urls import reverse
from rest_framework.test import APIClient

from accounts.models import Subscriber
from tenders.exceptions import UpstreamError
from tenders.models import Tender, TenderView
from tenders.services import pipeline
from tenders.services.merger import merge
from tenders.services.normalizer import normalize_record
from tenders.services.resolver import resolve, tender_id_for
from tenders.services.views import ensure_views

from .conftest import FakeSearchClient, road_record


def as_user(user_id):
	client = APIClient()
	client.credentials(HTTP_X_USER_ID=user_id)
	return client


def store(raw, keyword="road"):
	return merge(resolve(normalize_record(raw), keyword)).tender


@pytest.fixture
def fake_upstream(monkeypatch):
	upstream = FakeSearchClient(
		results={
			"road": [road_record(url="https://web.pcc.gov.tw/tps/U1-J1")],
			"bridge": [
				road_record(url="https://web.pcc.gov.tw/tps/U1-J1"),
				road_record(job_number="J2", date="20240215", brief={"title": "Bridge Deck", "type": "award notice"}),
			],
		}
	)
	monkeypatch.setattr(pipeline, "TenderAPIClient", lambda: upstream)
	return upstream


@pytest.mark.django_db
def test_requests_without_identity_are_rejected():
	client = APIClient()

	response = client.get(reverse("tender-list"))

	assert response.status_code == 401
	assert User.objects.count() == 0


@pytest.mark.django_db
def test_identity_header_creates_local_user_and_subscriber():
	response = as_user("auth0|abc123").get(reverse("tender-list"))

	assert response.status_code == 200
	assert response.json()["count"] == 0
	user = User.objects.get(username="auth0|abc123")
	assert Subscriber.objects.get(user=user).tier == Subscriber.TIER_FREE


@pytest.mark.django_db
def test_search_returns_decorated_tenders(fake_upstream):
	client = as_user("alice")

	response = client.post(reverse("tender-search"), {"keywords": ["Road", "bridge"]}, format="json")

	assert response.status_code == 200
	payload = response.json()
	assert payload["keywords"] == ["road", "bridge"]
	assert payload["failures"] == {}
	by_job = {item["tender"]["job_number"]: item for item in payload["results"]}
	assert by_job["J1"]["keywords"] == ["bridge", "road"]
	assert by_job["J1"]["is_new"] is True
	assert by_job["J1"]["is_archived"] is False
	assert by_job["J1"]["tender"]["url"] == "https://web.pcc.gov.tw/tps/U1-J1"
	assert by_job["J1"]["tender"]["version_count"] == 1
	assert by_job["J2"]["tender"]["title"] == "Bridge Deck"
	assert TenderView.objects.filter(user__username="alice").count() == 2


@pytest.mark.django_db
def test_search_uses_saved_keywords_and_reports_failures(monkeypatch):
	upstream = FakeSearchClient(results={"road": [road_record()]})
	monkeypatch.setattr(pipeline, "TenderAPIClient", lambda: upstream)
	client = as_user("alice")
	client.post(reverse("keyword-list"), {"text": "road"}, format="json")
	client.post(reverse("keyword-list"), {"text": "tunnel"}, format="json")
	upstream.errors["tunnel"] = UpstreamError("HTTP 502")

	response = client.post(reverse("tender-search"), {}, format="json")

	assert response.status_code == 200
	payload = response.json()
	assert payload["keywords"] == ["road", "tunnel"]
	assert list(payload["failures"]) == ["tunnel"]
	assert len(payload["results"]) == 1


@pytest.mark.django_db
def test_search_validates_date_range(fake_upstream):
	response = as_user("alice").post(
		reverse("tender-search"), {"keywords": ["road"], "date_range_months": 0}, format="json"
	)

	assert response.status_code == 400
	assert "date_range_months" in response.json()
	assert fake_upstream.calls == []


@pytest.mark.django_db
def test_list_is_scoped_and_filterable():
	road = store(road_record())
	bridge = store(road_record(job_number="J2", brief={"title": "Bridge Deck"}), "bridge")
	alice = as_user("alice")
	alice.get(reverse("tender-list"))
	as_user("bob").get(reverse("tender-list"))
	ensure_views(User.objects.get(username="alice"), [road.pk, bridge.pk])
	ensure_views(User.objects.get(username="bob"), [road.pk])
	alice.post(reverse("tender-archive"), {"tender_id": str(road.pk), "is_archived": True}, format="json")

	everything = alice.get(reverse("tender-list")).json()
	archived = alice.get(reverse("tender-list"), {"is_archived": "true"}).json()
	searched = alice.get(reverse("tender-list"), {"search": "bridge"}).json()
	bob_rows = as_user("bob").get(reverse("tender-list")).json()

	assert everything["count"] == 2
	assert [row["tender"]["job_number"] for row in archived["results"]] == ["J1"]
	assert [row["tender"]["title"] for row in searched["results"]] == ["Bridge Deck"]
	assert bob_rows["count"] == 1
	assert bob_rows["results"][0]["is_archived"] is False


@pytest.mark.django_db
def test_detail_lists_versions_and_user_flags():
	store(road_record())
	tender = store(road_record(date="20240301", brief={"title": "Road Repair - Phase 2"}))
	client = as_user("alice")
	client.post(reverse("tender-highlight"), {"tender_id": str(tender.pk), "is_highlighted": True}, format="json")

	response = client.get(reverse("tender-detail", args=[tender.pk]))

	assert response.status_code == 200
	payload = response.json()
	assert payload["is_highlighted"] is True
	assert payload["is_archived"] is False
	assert payload["tender"]["id"] == str(tender_id_for("U1", "J1"))
	assert [v["version"] for v in payload["tender"]["versions"]] == [2, 1]


@pytest.mark.django_db
def test_detail_of_unknown_tender_is_404():
	response = as_user("alice").get(reverse("tender-detail", args=[uuid.uuid4()]))

	assert response.status_code == 404


@pytest.mark.django_db
def test_archive_and_highlight_are_independent_flags():
	tender = store(road_record())
	client = as_user("alice")

	archived = client.post(reverse("tender-archive"), {"tender_id": str(tender.pk), "is_archived": True}, format="json")
	highlighted = client.post(
		reverse("tender-highlight"), {"tender_id": str(tender.pk), "is_highlighted": True}, format="json"
	)
	restored = client.post(reverse("tender-archive"), {"tender_id": str(tender.pk), "is_archived": False}, format="json")

	assert archived.status_code == 200
	assert archived.json() == {"tender_id": str(tender.pk), "is_archived": True, "is_highlighted": False}
	assert highlighted.json()["is_archived"] is True
	assert restored.json() == {"tender_id": str(tender.pk), "is_archived": False, "is_highlighted": True}
	assert TenderView.objects.count() == 1


@pytest.mark.django_db
def test_archive_unknown_tender_is_404():
	response = as_user("alice").post(
		reverse("tender-archive"), {"tender_id": str(uuid.uuid4()), "is_archived": True}, format="json"
	)

	assert response.status_code == 404
	assert TenderView.objects.count() == 0


@pytest.mark.django_db
def test_archive_requires_valid_uuid():
	response = as_user("alice").post(reverse("tender-archive"), {"tender_id": "nope", "is_archived": True}, format="json")

	assert response.status_code == 400


@pytest.mark.django_db
def test_stats_count_only_the_callers_rows():
	road = store(road_record())
	bridge = store(road_record(job_number="J2", date="20240215", brief={"title": "Bridge", "type": "award notice"}))
	undated = store(road_record(job_number="J3", date=None))
	client = as_user("alice")
	client.get(reverse("tender-list"))
	ensure_views(User.objects.get(username="alice"), [road.pk, bridge.pk, undated.pk])
	client.post(reverse("tender-archive"), {"tender_id": str(bridge.pk), "is_archived": True}, format="json")

	payload = client.get(reverse("tender-stats")).json()

	assert payload["count"] == 3
	assert payload["archived"] == 1
	assert payload["highlighted"] == 0
	assert payload["types"] == [{"label": "tender notice", "count": 2}, {"label": "award notice", "count": 1}]
	assert payload["date_range"] == {"min": 20240101, "max": 20240215}
	assert Tender.objects.count() == 3
