from django.db.models import Count, Max, Min
from django.shortcuts import get_object_or_404
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import filters, status, viewsets
from rest_framework.response import Response
from rest_framework.views import APIView

from tenders.models import Tender, TenderView
from tenders.serializers import (
    ArchiveSerializer,
    HighlightSerializer,
    SearchOutcomeSerializer,
    SearchRequestSerializer,
    TenderDetailSerializer,
    TenderViewSerializer,
)
from tenders.services.pipeline import months_ago, run_search
from tenders.services.views import set_archived, set_highlighted, user_views


class TenderViewSet(viewsets.ReadOnlyModelViewSet):
    """The calling user's tenders.

    - list : GET /tenders/ -> the user's view rows, `?is_archived=`, `?is_highlighted=`, `?search=`
    - retrieve : GET /tenders/{uuid}/ -> one shared tender with every version and the user's flags
    """

    serializer_class = TenderViewSerializer
    filter_backends = [filters.SearchFilter, filters.OrderingFilter, DjangoFilterBackend]
    search_fields = ["tender__title", "tender__unit_name", "tender__job_number"]
    ordering_fields = ["tender__date", "updated_at", "tender__title"]
    filterset_fields = ["is_archived", "is_highlighted", "tender__type"]
    lookup_value_regex = "[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}"

    def get_queryset(self):
        return user_views(self.request.user).order_by("-tender__date", "-created_at")

    def retrieve(self, request, *args, **kwargs):
        tender = get_object_or_404(Tender, pk=kwargs[self.lookup_field])
        view = TenderView.objects.filter(user=request.user, tender=tender).first()
        return Response(
            {
                "tender": TenderDetailSerializer(tender).data,
                "is_archived": view.is_archived if view else False,
                "is_highlighted": view.is_highlighted if view else False,
            }
        )


class TenderSearchView(APIView):
    """Run the keyword pipeline for the caller and return the decorated tenders."""

    def post(self, request):
        serializer = SearchRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        months = serializer.validated_data.get("date_range_months")
        outcome = run_search(
            request.user,
            keywords=serializer.validated_data.get("keywords"),
            since=months_ago(months) if months else None,
        )
        return Response(SearchOutcomeSerializer(outcome).data)


class TenderArchiveView(APIView):
    def post(self, request):
        serializer = ArchiveSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        view = set_archived(
            request.user,
            serializer.validated_data["tender_id"],
            serializer.validated_data["is_archived"],
        )
        return Response(
            {"tender_id": str(view.tender_id), "is_archived": view.is_archived, "is_highlighted": view.is_highlighted},
            status=status.HTTP_200_OK,
        )


class TenderHighlightView(APIView):
    def post(self, request):
        serializer = HighlightSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        view = set_highlighted(
            request.user,
            serializer.validated_data["tender_id"],
            serializer.validated_data["is_highlighted"],
        )
        return Response(
            {"tender_id": str(view.tender_id), "is_archived": view.is_archived, "is_highlighted": view.is_highlighted},
            status=status.HTTP_200_OK,
        )


class TenderStatsView(APIView):
    def get(self, request):
        qs = user_views(request.user)
        agg = qs.filter(tender__date__gt=0).aggregate(min_date=Min("tender__date"), max_date=Max("tender__date"))
        payload = {
            "count": qs.count(),
            "archived": qs.filter(is_archived=True).count(),
            "highlighted": qs.filter(is_highlighted=True).count(),
            "types": [
                {"label": row["tender__type"], "count": row["count"]}
                for row in qs.values("tender__type").annotate(count=Count("id")).order_by("-count", "tender__type")
            ],
            "date_range": {
                "min": agg["min_date"],
                "max": agg["max_date"],
            },
        }
        return Response(payload)
