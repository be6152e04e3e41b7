from rest_framework import serializers

from accounts.models import Keyword, Subscriber, normalize_keyword


class KeywordSerializer(serializers.ModelSerializer):
    class Meta:
        model = Keyword
        fields = ("id", "text", "is_active", "created_at", "updated_at")
        read_only_fields = ("id", "created_at", "updated_at")

    def validate_text(self, value):
        text = normalize_keyword(value)
        if not text:
            raise serializers.ValidationError("Keyword is required.")
        return text


class KeywordUpdateSerializer(serializers.ModelSerializer):
    """Only the active flag can change once a keyword exists."""

    class Meta:
        model = Keyword
        fields = ("id", "text", "is_active", "created_at", "updated_at")
        read_only_fields = ("id", "text", "created_at", "updated_at")


class SubscriberSerializer(serializers.ModelSerializer):
    user_id = serializers.CharField(source="user.username", read_only=True)
    is_pro = serializers.BooleanField(read_only=True)
    keyword_limit = serializers.IntegerField(read_only=True, allow_null=True)

    class Meta:
        model = Subscriber
        fields = ("user_id", "tier", "status", "is_pro", "keyword_limit")
        read_only_fields = fields
