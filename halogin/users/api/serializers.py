from rest_framework import serializers

from halogin.users.models import User


class UserSerializer(serializers.ModelSerializer[User]):
    full_name = serializers.CharField(source="name", read_only=True)
    id = serializers.UUIDField(read_only=True)

    # Username & email are system-managed
    username = serializers.CharField(read_only=True)
    email = serializers.EmailField(read_only=True)
    has_profile = serializers.BooleanField(read_only=True)

    class Meta:
        model = User
        fields = [
            "id",
            "username",
            "first_name",
            "last_name",
            "full_name",
            "email",
            "has_profile",
        ]

    def update(self, instance, validated_data):
        forbidden = {k for k in ("username", "email") if k in self.initial_data}
        if forbidden:
            errors = {f: "This field is read-only." for f in forbidden}
            raise serializers.ValidationError(errors)
        instance.first_name = validated_data.get("first_name", instance.first_name)
        instance.last_name = validated_data.get("last_name", instance.last_name)
        instance.save()
        return instance
