from django.contrib.auth import get_user_model
from django.db import transaction

from accounts.models import Keyword, Subscriber, normalize_keyword


def ensure_user(external_id: str):
    """Get or create the local user mirroring an identity-provider user id."""
    User = get_user_model()
    with transaction.atomic():
        user, _ = User.objects.get_or_create(username=external_id)
        Subscriber.objects.get_or_create(user=user)
    return user


def get_subscriber(user) -> Subscriber:
    subscriber, _ = Subscriber.objects.get_or_create(user=user)
    return subscriber


def add_keyword(user, text: str):
    """Add a keyword for the user, reactivating it when it already exists.

    Returns `(keyword, created)`.
    """
    keyword, created = Keyword.objects.get_or_create(
        user=user,
        text=normalize_keyword(text),
        defaults={"is_active": True},
    )
    if not created and not keyword.is_active:
        keyword.is_active = True
        keyword.save(update_fields=["is_active", "updated_at"])
    return keyword, created


def active_keywords(user):
    return list(
        Keyword.objects.filter(user=user, is_active=True)
        .order_by("created_at", "id")
        .values_list("text", flat=True)
    )
