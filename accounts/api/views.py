import logging

from rest_framework import mixins, status, viewsets
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.models import Keyword
from accounts.serializers import KeywordSerializer, KeywordUpdateSerializer, SubscriberSerializer
from accounts.services import add_keyword, get_subscriber

logger = logging.getLogger(__name__)


class KeywordViewSet(
    mixins.ListModelMixin,
    mixins.CreateModelMixin,
    mixins.RetrieveModelMixin,
    mixins.UpdateModelMixin,
    mixins.DestroyModelMixin,
    viewsets.GenericViewSet,
):
    """Keyword subscriptions of the calling user.

    - create : POST /keywords/ -> adds or reactivates a keyword (201 when new, 200 otherwise)
    - partial_update : PATCH /keywords/{pk}/ -> toggles `is_active`
    - destroy : DELETE /keywords/{pk}/ -> removes the subscription, tenders are kept

    Every lookup is scoped to the caller, another user's keyword answers 404.
    """

    serializer_class = KeywordSerializer
    pagination_class = None
    filterset_fields = ["is_active"]

    def get_queryset(self):
        return Keyword.objects.filter(user=self.request.user).order_by("-created_at", "-id")

    def get_serializer_class(self):
        if self.action in ("update", "partial_update"):
            return KeywordUpdateSerializer
        return KeywordSerializer

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        keyword, created = add_keyword(request.user, serializer.validated_data["text"])
        if created:
            logger.info("User %s subscribed to keyword %r", request.user.username, keyword.text)
        return Response(
            KeywordSerializer(keyword).data,
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
        )


class MeView(APIView):
    def get(self, request):
        return Response(SubscriberSerializer(get_subscriber(request.user)).data)
