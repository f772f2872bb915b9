"""Serializers for sign-up, sign-in, and the session profile."""

from typing import cast

from django.contrib.auth import get_user_model
from rest_framework import serializers
from rest_framework.exceptions import AuthenticationFailed

from access_control.models import Role

from .managers import UserManager

User = get_user_model()

SIGNUP_ROLES = (Role.WRITER, Role.READER)


class RegisterSerializer(serializers.Serializer):
    """Validate and create a writer or reader account."""

    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, min_length=6)
    repeat_password = serializers.CharField(write_only=True, min_length=6)
    role = serializers.ChoiceField(choices=SIGNUP_ROLES, default=Role.WRITER)
    first_name = serializers.CharField(required=False, allow_blank=True)
    last_name = serializers.CharField(required=False, allow_blank=True)

    @staticmethod
    def validate_email(value):
        """Ensure email is unique before creation."""
        if User.objects.filter(email__iexact=value).exists():
            raise serializers.ValidationError("This email is already registered.")
        return value

    def validate(self, attrs):
        """Ensure provided passwords match before creation."""
        if attrs.get("password") != attrs.get("repeat_password"):
            raise serializers.ValidationError("Passwords do not match")
        return attrs

    def create(self, validated_data):
        """Create the user under the requested role with a hashed password."""
        validated_data.pop("repeat_password")
        manager = cast(UserManager, User.objects)
        try:
            return manager.create_user(**validated_data)
        except ValueError as exc:
            raise serializers.ValidationError(str(exc)) from exc


class LoginSerializer(serializers.Serializer):
    """Authenticate a user via email/password using bcrypt verification."""

    email = serializers.EmailField()
    password = serializers.CharField(write_only=True)

    def validate(self, attrs):
        """Authenticate credentials and attach the user to validated_data."""
        email = attrs.get("email")
        password = attrs.get("password")
        try:
            user = User.objects.select_related("role").get(email__iexact=email)
        except User.DoesNotExist:
            raise AuthenticationFailed("Invalid login credentials")

        if not user.is_active:
            raise AuthenticationFailed("User is inactive")

        if not UserManager.verify_password(user, password):
            raise AuthenticationFailed("Invalid login credentials")

        attrs["user"] = user
        return attrs


class UserDetailSerializer(serializers.ModelSerializer):
    """Read-only session profile; ``is_writer`` gates the dashboard."""

    role = serializers.CharField(source="role.name")
    is_writer = serializers.BooleanField(read_only=True)

    class Meta:
        """Expose identity fields and role name."""
        model = User
        fields = [
            "id",
            "email",
            "first_name",
            "last_name",
            "role",
            "is_writer",
        ]
        read_only_fields = fields


class ProfileUpdateSerializer(serializers.ModelSerializer):
    """Patchable fields for /auth/me updates."""

    class Meta:
        """Allow partial updates of profile name fields."""
        model = User
        fields = ["first_name", "last_name"]
        extra_kwargs = {field: {"required": False, "allow_blank": True} for field in fields}

    def validate(self, attrs):
        """Reject email or role changes instead of silently ignoring them."""
        initial = getattr(self, "initial_data", {})
        if "email" in initial:
            raise serializers.ValidationError("Email cannot be updated via this endpoint")
        if "role" in initial:
            raise serializers.ValidationError("Role cannot be updated via this endpoint")
        return super().validate(attrs)
