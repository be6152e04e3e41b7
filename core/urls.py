from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/tenders/", include("tenders.api.urls")),
    path("api/", include("accounts.api.urls")),
]
