from rest_framework import serializers


class LoginSerializer(serializers.Serializer):
    redirect_origin = serializers.URLField()
    code = serializers.CharField()
    keep_logged_in = serializers.BooleanField(default=False)


class LoginResponseSerializer(serializers.Serializer):
    user_id = serializers.UUIDField()
    created = serializers.BooleanField()
    redirect = serializers.ChoiceField(choices=["home", "build-profile"])


class ProfilePhotoSerializer(serializers.Serializer):
    primary = serializers.BooleanField()
    url = serializers.URLField()
