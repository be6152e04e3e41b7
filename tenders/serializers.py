from rest_framework import serializers

from .models import Tender, TenderVersion, TenderView


class TenderVersionSerializer(serializers.ModelSerializer):
    class Meta:
        model = TenderVersion
        fields = ("version", "date", "type", "data", "created_at")
        read_only_fields = fields


class TenderSerializer(serializers.ModelSerializer):
    url = serializers.SerializerMethodField()
    version_count = serializers.SerializerMethodField()

    class Meta:
        model = Tender
        fields = (
            "id",
            "unit_id",
            "job_number",
            "title",
            "type",
            "category",
            "unit_name",
            "date",
            "tags",
            "url",
            "version_count",
            "created_at",
            "updated_at",
        )
        read_only_fields = fields

    def get_url(self, obj):
        latest = obj.latest_version()
        if latest is None or not isinstance(latest.data, dict):
            return ""
        return latest.data.get("url") or ""

    def get_version_count(self, obj):
        return obj.versions.count()


class TenderDetailSerializer(TenderSerializer):
    versions = serializers.SerializerMethodField()

    class Meta(TenderSerializer.Meta):
        fields = TenderSerializer.Meta.fields + ("versions",)
        read_only_fields = fields

    def get_versions(self, obj):
        return TenderVersionSerializer(obj.versions.order_by("-version"), many=True).data


class TenderViewSerializer(serializers.ModelSerializer):
    """A user's row: the shared tender plus that user's flags."""

    tender = TenderSerializer(read_only=True)

    class Meta:
        model = TenderView
        fields = ("tender", "is_archived", "is_highlighted", "updated_at")
        read_only_fields = fields


class DecoratedTenderSerializer(serializers.Serializer):
    tender = TenderSerializer(read_only=True)
    keywords = serializers.SerializerMethodField()
    is_new = serializers.BooleanField(read_only=True)
    new_versions = serializers.IntegerField(read_only=True)
    is_archived = serializers.BooleanField(read_only=True)
    is_highlighted = serializers.BooleanField(read_only=True)

    def get_keywords(self, obj):
        return sorted(obj.keywords)


class SearchRequestSerializer(serializers.Serializer):
    keywords = serializers.ListField(
        child=serializers.CharField(max_length=200, allow_blank=False),
        required=False,
        allow_empty=False,
    )
    date_range_months = serializers.IntegerField(required=False, min_value=1, max_value=120, allow_null=True)


class SearchOutcomeSerializer(serializers.Serializer):
    results = DecoratedTenderSerializer(source="entries", many=True, read_only=True)
    keywords = serializers.ListField(child=serializers.CharField(), read_only=True)
    truncated = serializers.ListField(child=serializers.CharField(), read_only=True)
    failures = serializers.DictField(child=serializers.CharField(), read_only=True)
    skipped = serializers.IntegerField(read_only=True)
    filtered = serializers.IntegerField(read_only=True)
    conflicts = serializers.ListField(child=serializers.CharField(), read_only=True)


class ArchiveSerializer(serializers.Serializer):
    tender_id = serializers.UUIDField()
    is_archived = serializers.BooleanField()


class HighlightSerializer(serializers.Serializer):
    tender_id = serializers.UUIDField()
    is_highlighted = serializers.BooleanField()
