from django.urls import path, include
from rest_framework.routers import SimpleRouter

from tenders.api.views import (
    TenderArchiveView,
    TenderHighlightView,
    TenderSearchView,
    TenderStatsView,
    TenderViewSet,
)

router = SimpleRouter()
router.register(r"", TenderViewSet, basename="tender")

urlpatterns = [
    path("search/", TenderSearchView.as_view(), name="tender-search"),
    path("archive/", TenderArchiveView.as_view(), name="tender-archive"),
    path("highlight/", TenderHighlightView.as_view(), name="tender-highlight"),
    path("stats/", TenderStatsView.as_view(), name="tender-stats"),
    path("", include(router.urls)),
]
