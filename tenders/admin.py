from django.contrib import admin

from .models import Tender, TenderVersion, TenderView


class TenderVersionInline(admin.TabularInline):
    model = TenderVersion
    extra = 0
    fields = ("version", "date", "type", "fingerprint", "created_at")
    readonly_fields = fields
    can_delete = False


@admin.register(Tender)
class TenderAdmin(admin.ModelAdmin):
    list_display = (
        "title",
        "unit_name",
        "job_number",
        "type",
        "date",
        "updated_at",
    )
    search_fields = ("title", "unit_name", "unit_id", "job_number")
    list_filter = ("type", "category")
    readonly_fields = ("id", "created_at", "updated_at")
    inlines = [TenderVersionInline]


@admin.register(TenderView)
class TenderViewAdmin(admin.ModelAdmin):
    list_display = ("user", "tender", "is_archived", "is_highlighted", "updated_at")
    list_filter = ("is_archived", "is_highlighted")
    search_fields = ("user__username", "tender__title")
