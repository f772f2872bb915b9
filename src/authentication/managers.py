"""User manager: bcrypt hashing and role lookup by name."""

import bcrypt
from django.contrib.auth.base_user import BaseUserManager


def hash_password(raw_password: str) -> str:
    return bcrypt.hashpw(raw_password.encode(), bcrypt.gensalt()).decode()


class UserManager(BaseUserManager):
    """Creates writers and readers; ``role`` may be a Role or its name."""

    use_in_migrations = True

    @staticmethod
    def resolve_role(role):
        from access_control.models import Role

        if role is None or isinstance(role, Role):
            return role
        found = Role.objects.filter(name__iexact=role).first()
        if found is None:
            raise ValueError(f"Role '{role}' is not configured")
        return found

    def create_user(self, email: str, password: str | None = None, role=None, **extra_fields):
        if not email:
            raise ValueError("The Email must be set")
        if password is None:
            raise ValueError("Password must be provided")
        extra_fields.setdefault("is_staff", False)
        extra_fields.setdefault("is_superuser", False)

        user = self.model(
            email=self.normalize_email(email),
            role=self.resolve_role(role),
            password_hash=hash_password(password),
            **extra_fields,
        )
        user.save(using=self._db)
        return user

    def create_superuser(self, email: str, password: str, role=None, **extra_fields):
        """Superusers are writers unless told otherwise."""
        from access_control.models import Role

        extra_fields["is_staff"] = True
        extra_fields["is_superuser"] = True
        if role is None:
            role, _ = Role.objects.get_or_create(name=Role.WRITER)
        return self.create_user(email, password, role=role, **extra_fields)

    @staticmethod
    def verify_password(user, raw_password: str) -> bool:
        if not user.password_hash:
            return False
        return bcrypt.checkpw(raw_password.encode(), user.password_hash.encode())


__all__ = ["UserManager", "hash_password"]
