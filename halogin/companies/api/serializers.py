from rest_framework import serializers

from halogin.companies.models import Company
from halogin.companies.models import CompanyUserProfile


class CompanyCreatedSerializer(serializers.Serializer):
    company_id = serializers.UUIDField()


class CompanySerializer(serializers.ModelSerializer):
    class Meta:
        model = Company
        fields = ("id", "full_name", "banner_desc", "logo_url")
        read_only_fields = fields


class CompanySearchResultSerializer(CompanySerializer):
    score = serializers.FloatField(read_only=True)

    class Meta(CompanySerializer.Meta):
        fields = (*CompanySerializer.Meta.fields, "score")
        read_only_fields = fields


class MemberSerializer(serializers.Serializer):
    given_name = serializers.CharField()
    family_name = serializers.CharField()
    pronouns = serializers.CharField()
    pfp_path = serializers.CharField()
    is_admin = serializers.BooleanField()


class CompanyWithMembersSerializer(CompanySerializer):
    users = serializers.DictField(child=MemberSerializer())
    invites = serializers.ListField(child=serializers.DictField())

    class Meta(CompanySerializer.Meta):
        fields = (*CompanySerializer.Meta.fields, "users", "invites")


class InviteSerializer(serializers.Serializer):
    google_email = serializers.EmailField()
    is_admin = serializers.BooleanField(default=False)


class UninviteSerializer(serializers.Serializer):
    google_email = serializers.EmailField()


class CompanyUserProfileSerializer(serializers.ModelSerializer):
    user_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = CompanyUserProfile
        fields = ("user_id", "given_name", "family_name", "pronouns", "pfp_path")
        read_only_fields = fields
