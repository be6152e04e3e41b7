"""
Subscribers and keyword subscriptions.

A `Subscriber` carries the coarse tier flag handed over by the payment
provider. A `Keyword` is one search term a user follows; its text is stored
in canonical form so that "Road  Repair " and "road repair" are the same
subscription.
"""

import re

from django.conf import settings
from django.db import models

_WHITESPACE = re.compile(r"\s+")


def normalize_keyword(text):
    """Return the canonical form of a keyword (trimmed, single spaces, lower case)."""
    if text is None:
        return ""
    return _WHITESPACE.sub(" ", str(text)).strip().lower()


class Subscriber(models.Model):
    TIER_FREE = "free"
    TIER_PRO = "pro"
    TIER_CHOICES = [
        (TIER_FREE, "Free"),
        (TIER_PRO, "Pro"),
    ]

    STATUS_ACTIVE = "ACTIVE"
    STATUS_PENDING = "PENDING"
    STATUS_CANCELLED = "CANCELLED"
    STATUS_EXPIRED = "EXPIRED"
    STATUS_CHOICES = [
        (STATUS_ACTIVE, "Active"),
        (STATUS_PENDING, "Pending"),
        (STATUS_CANCELLED, "Cancelled"),
        (STATUS_EXPIRED, "Expired"),
    ]

    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="subscriber")
    tier = models.CharField(max_length=10, choices=TIER_CHOICES, default=TIER_FREE)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_ACTIVE)
    subscription_id = models.CharField(max_length=100, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return f"{self.user.username} ({self.tier}/{self.status})"

    @property
    def is_pro(self) -> bool:
        return self.tier == self.TIER_PRO and self.status == self.STATUS_ACTIVE

    @property
    def keyword_limit(self):
        """Maximum number of keywords processed per search, None when unlimited."""
        if self.is_pro:
            return None
        return settings.TENDERS_FREE_KEYWORD_LIMIT


class Keyword(models.Model):
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="keywords")
    text = models.CharField(max_length=200)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        constraints = [
            models.UniqueConstraint(fields=["user", "text"], name="unique_keyword_per_user"),
        ]

    def __str__(self) -> str:
        return self.text

    def save(self, *args, **kwargs):
        self.text = normalize_keyword(self.text)
        return super().save(*args, **kwargs)
