from django.db import models, transaction
from django.contrib.auth.models import AbstractUser


class User(AbstractUser):
    """Platform account. The role decides which side of a match the user sits on."""

    class Role(models.TextChoices):
        MENTOR = 'mentor', 'Mentor'
        MENTEE = 'mentee', 'Mentee'
        UNSET = 'unset', 'Unset'

    name = models.CharField(max_length=255, blank=True, default='')
    avatar = models.URLField(max_length=500, blank=True, null=True)
    role = models.CharField(
        max_length=10,
        choices=Role.choices,
        default=Role.UNSET,
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'core_user'
        verbose_name = 'User'
        verbose_name_plural = 'Users'
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.username} ({self.role})"

    @property
    def display_name(self) -> str:
        return self.name or self.email or self.username

    def change_role(self, role: str) -> None:
        """
        Switch the user's role and the type of their profile together.

        Matching reads both the role and the profile type, so they are
        written in one transaction.
        """
        if role not in self.Role.values:
            from core.exceptions import ValidationError
            raise ValidationError(f"Unknown role: {role}")

        from matching.models import Profile

        with transaction.atomic():
            self.role = role
            self.save(update_fields=['role', 'updated_at'])
            if role != self.Role.UNSET:
                Profile.objects.filter(user=self).update(type=role)
