from django.contrib import admin

from .models import Keyword, Subscriber


@admin.register(Subscriber)
class SubscriberAdmin(admin.ModelAdmin):
    list_display = ("user", "tier", "status", "subscription_id", "updated_at")
    list_filter = ("tier", "status")
    search_fields = ("user__username", "subscription_id")


@admin.register(Keyword)
class KeywordAdmin(admin.ModelAdmin):
    list_display = ("text", "user", "is_active", "created_at")
    list_filter = ("is_active",)
    search_fields = ("text", "user__username")
