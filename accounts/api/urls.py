from django.urls import path
from rest_framework.routers import DefaultRouter

from accounts.api.views import KeywordViewSet, MeView

router = DefaultRouter()
router.register(r"keywords", KeywordViewSet, basename="keyword")

urlpatterns = [
    path("me/", MeView.as_view(), name="me"),
]

urlpatterns += router.urls
