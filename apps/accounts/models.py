import hashlib
import secrets

from django.contrib.auth.models import AbstractUser
from django.db import models
from django.utils import timezone

from apps.common.models import BaseModel


class User(BaseModel, AbstractUser):
    """Custom User with UUID primary key, phone and a coarse role.

    `role` mirrors the storefront's two audiences; `is_staff` also counts as
    admin so Django superusers can use the admin API without extra setup.
    """

    ROLE_USER = "user"
    ROLE_ADMIN = "admin"
    ROLE_CHOICES = [(ROLE_USER, "User"), (ROLE_ADMIN, "Admin")]

    phone = models.CharField(max_length=20, blank=True)
    role = models.CharField(max_length=10, choices=ROLE_CHOICES, default=ROLE_USER)

    def save(self, *args, **kwargs):
        if self.email:
            self.email = str(self.email).strip().lower()
        return super().save(*args, **kwargs)

    @property
    def is_admin(self) -> bool:
        return self.role == self.ROLE_ADMIN or self.is_staff


def hash_token(raw: str) -> str:
    return hashlib.sha256(raw.encode()).hexdigest()


class ApiToken(BaseModel):
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name="api_tokens")
    name = models.CharField(max_length=80, blank=True)
    token_hash = models.CharField(max_length=64, unique=True)
    is_active = models.BooleanField(default=True)
    last_used_at = models.DateTimeField(blank=True, null=True)

    @classmethod
    def issue(cls, user, name: str = "") -> tuple["ApiToken", str]:
        """Create a token and return it with the raw value; only the digest is stored."""
        raw = secrets.token_urlsafe(32)
        token = cls.objects.create(user=user, name=name, token_hash=hash_token(raw))
        return token, raw

    @classmethod
    def authenticate(cls, raw: str):
        token = (
            cls.objects.select_related("user")
            .filter(token_hash=hash_token(raw), is_active=True, user__is_active=True)
            .first()
        )
        if not token:
            return None
        cls.objects.filter(pk=token.pk).update(last_used_at=timezone.now())
        return token.user
