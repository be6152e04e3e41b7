"""Authentication backed by the external identity provider.

The identity gateway verifies the session and forwards a stable opaque user
id in a request header (`IDENTITY_HEADER`, `X-User-Id` by default). This
backend trusts that header and maps it onto a local Django user.
"""

import logging

from django.conf import settings
from rest_framework import authentication

from accounts.services import ensure_user

logger = logging.getLogger(__name__)

MAX_USER_ID_LENGTH = 150


class IdentityHeaderAuthentication(authentication.BaseAuthentication):
    def _header_key(self):
        return "HTTP_" + settings.IDENTITY_HEADER.upper().replace("-", "_")

    def authenticate(self, request):
        external_id = request.META.get(self._header_key(), "").strip()
        if not external_id:
            return None
        if len(external_id) > MAX_USER_ID_LENGTH:
            logger.warning("Rejected identity header longer than %s characters", MAX_USER_ID_LENGTH)
            return None
        return ensure_user(external_id), None

    def authenticate_header(self, request):
        # Lets DRF answer 401 instead of 403 for anonymous requests.
        return settings.IDENTITY_HEADER
