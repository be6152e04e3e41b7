"""Errors raised while fetching, merging and displaying tenders.

The first four stay inside the pipeline, which recovers from them per record
or per keyword. The last two are DRF exceptions and become HTTP answers.
"""

from rest_framework import status
from rest_framework.exceptions import APIException, NotAuthenticated


class UnidentifiableRecord(ValueError):
    """Upstream record without `unit_id` or `job_number`."""

    def __init__(self, record, missing):
        self.record = record
        self.missing = tuple(missing)
        super().__init__(f"record is missing {', '.join(self.missing)}")


class UpstreamError(Exception):
    """Base class for failures talking to the tender API."""


class UpstreamRateLimited(UpstreamError):
    def __init__(self, url, retry_after=None):
        self.url = url
        self.retry_after = retry_after
        super().__init__(f"rate limited by upstream on {url}")


class UpstreamUnavailable(UpstreamError):
    pass


class VersionConflict(Exception):
    """Another writer appended the same version number first, twice in a row."""

    def __init__(self, tender_id, version):
        self.tender_id = tender_id
        self.version = version
        super().__init__(f"version {version} of tender {tender_id} was written concurrently")


class ViewNotFound(APIException):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Tender not found."
    default_code = "view_not_found"


class Unauthorized(NotAuthenticated):
    default_detail = "A verified user id is required."
    default_code = "unauthorized"
