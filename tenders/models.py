from django.conf import settings
from django.db import models


class Tender(models.Model):
    """One public tender, identified by the `(unit_id, job_number)` pair.

    The primary key is derived from that pair (see `tenders.services.resolver`)
    so that repeated polls always land on the same row.
    """

    id = models.UUIDField(primary_key=True, editable=False)
    unit_id = models.CharField(max_length=100)
    job_number = models.CharField(max_length=100)
    title = models.CharField(max_length=500)
    type = models.CharField(max_length=100, blank=True)
    category = models.CharField(max_length=100, blank=True)
    unit_name = models.CharField(max_length=255, blank=True)
    date = models.BigIntegerField(default=0, help_text="YYYYMMDD of the latest observation, 0 when unknown")
    tags = models.JSONField(default=list, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-date", "-created_at"]
        constraints = [
            models.UniqueConstraint(fields=["unit_id", "job_number"], name="unique_tender_identity"),
        ]

    def __str__(self) -> str:
        return self.title

    @property
    def identity_key(self) -> str:
        from tenders.services.resolver import identity_key

        return identity_key(self.unit_id, self.job_number)

    def latest_version(self):
        return self.versions.order_by("-version").first()


class TenderVersion(models.Model):
    """Immutable snapshot of a tender's raw record at one observation."""

    tender = models.ForeignKey(Tender, on_delete=models.CASCADE, related_name="versions")
    version = models.PositiveIntegerField()
    date = models.BigIntegerField(default=0)
    type = models.CharField(max_length=100, blank=True)
    data = models.JSONField(default=dict)
    fingerprint = models.CharField(max_length=64, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["tender", "-version"]
        constraints = [
            models.UniqueConstraint(fields=["tender", "version"], name="unique_tender_version"),
        ]

    def __str__(self) -> str:
        return f"{self.tender_id} v{self.version}"


class TenderView(models.Model):
    """Per-user flags on a shared tender."""

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="tender_views")
    tender = models.ForeignKey(Tender, on_delete=models.CASCADE, related_name="views")
    is_archived = models.BooleanField(default=False)
    is_highlighted = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-tender__date", "-created_at"]
        constraints = [
            models.UniqueConstraint(fields=["user", "tender"], name="unique_tender_view_per_user"),
        ]

    def __str__(self) -> str:
        return f"{self.user_id}:{self.tender_id}"
