import pytest
from django.contrib.auth.models import User

from accounts.models import Subscriber


class FakeResponse:
	def __init__(self, status_code=200, payload=None, headers=None, invalid_json=False):
		self.status_code = status_code
		self._payload = payload
		self.headers = headers or {}
		self._invalid_json = invalid_json

	def json(self):
		if self._invalid_json:
			raise ValueError("Expecting value")
		return self._payload


class FakeSearchClient:
	"""Stands in for TenderAPIClient: canned records or an error per keyword.

	`details` maps `(unit_id, job_number)` to a tender history, or to an error;
	unknown tenders have an empty history.
	"""

	def __init__(self, results=None, errors=None, details=None):
		self.results = results or {}
		self.errors = errors or {}
		self.details = details or {}
		self.calls = []
		self.detail_calls = []

	def search(self, keyword):
		self.calls.append(keyword)
		if keyword in self.errors:
			raise self.errors[keyword]
		return [dict(record) for record in self.results.get(keyword, [])]

	def fetch_details(self, unit_id, job_number):
		self.detail_calls.append((unit_id, job_number))
		history = self.details.get((unit_id, job_number), [])
		if isinstance(history, Exception):
			raise history
		return [dict(record) for record in history]


def road_record(**overrides):
	record = {
		"unit_id": "U1",
		"job_number": "J1",
		"date": "20240101",
		"brief": {"title": "Road Repair", "type": "tender notice"},
	}
	record.update(overrides)
	return record


@pytest.fixture
def alice(db):
	return User.objects.create_user(username="alice")


@pytest.fixture
def bob(db):
	return User.objects.create_user(username="bob")


@pytest.fixture
def pro_user(db):
	user = User.objects.create_user(username="carol")
	Subscriber.objects.create(user=user, tier=Subscriber.TIER_PRO, status=Subscriber.STATUS_ACTIVE)
	return user
