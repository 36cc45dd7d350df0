from rest_framework import serializers

from halogin.creators.models import CreatorProfile


class CreatorProfileSerializer(serializers.ModelSerializer):
    user_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = CreatorProfile
        fields = (
            "user_id",
            "given_name",
            "family_name",
            "pronouns",
            "profile_desc",
            "content_desc",
            "audience_desc",
            "pfp_path",
        )
        read_only_fields = fields


class CreatorSearchResultSerializer(serializers.ModelSerializer):
    user_id = serializers.UUIDField(read_only=True)
    score = serializers.FloatField(read_only=True)

    class Meta:
        model = CreatorProfile
        fields = (
            "user_id",
            "given_name",
            "family_name",
            "pronouns",
            "profile_desc",
            "content_desc",
            "audience_desc",
            "pfp_path",
            "score",
        )
        read_only_fields = fields


class SearchQuerySerializer(serializers.Serializer):
    q = serializers.CharField()
    limit = serializers.IntegerField(required=False, min_value=1, max_value=50, default=10)
