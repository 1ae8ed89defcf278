from django.conf import settings
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models
from django.utils import timezone


class Profile(models.Model):
    """
    Mentor or mentee profile. Tag-bearing fields are comma-separated strings.
    """

    class Type(models.TextChoices):
        MENTOR = 'mentor', 'Mentor'
        MENTEE = 'mentee', 'Mentee'

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        primary_key=True,
        related_name='profile'
    )
    type = models.CharField(max_length=10, choices=Type.choices)
    full_name = models.CharField(max_length=255, null=True, blank=True)
    headline = models.CharField(max_length=255, null=True, blank=True)
    bio = models.TextField(null=True, blank=True)
    background = models.TextField(null=True, blank=True)
    goals = models.TextField(null=True, blank=True)

    # Comma-separated tag strings
    expertise = models.CharField(max_length=500, null=True, blank=True)
    skills = models.CharField(max_length=500, null=True, blank=True)
    interests = models.CharField(max_length=500, null=True, blank=True)
    help_areas = models.CharField(max_length=500, null=True, blank=True)
    categories = models.CharField(max_length=500, null=True, blank=True)
    preferred_times = models.CharField(
        max_length=255,
        null=True,
        blank=True,
        help_text='e.g. "evenings,weekends"'
    )
    timezone = models.CharField(
        max_length=64,
        null=True,
        blank=True,
        help_text='e.g. "Asia/Kolkata"'
    )

    experience_years = models.IntegerField(null=True, blank=True)
    hourly_rate = models.FloatField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-updated_at']
        verbose_name = 'Profile'
        verbose_name_plural = 'Profiles'

    def __str__(self):
        return f"{self.full_name or self.user_id} ({self.type})"

    PUBLIC_FIELDS = [
        'full_name', 'headline', 'bio', 'background', 'goals',
        'expertise', 'skills', 'interests', 'help_areas', 'categories',
        'preferred_times', 'timezone', 'experience_years', 'hourly_rate',
    ]

    def to_dict(self) -> dict:
        data = {'user_id': self.user_id, 'type': self.type}
        data.update({name: getattr(self, name) for name in self.PUBLIC_FIELDS})
        data['updated_at'] = self.updated_at.isoformat() if self.updated_at else None
        return data


class AvailabilitySlot(models.Model):
    """A bookable time window published by a mentor."""

    class Status(models.TextChoices):
        AVAILABLE = 'available', 'Available'
        BOOKED = 'booked', 'Booked'
        BLOCKED = 'blocked', 'Blocked'

    mentor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='availability_slots'
    )
    start_time = models.DateTimeField()
    end_time = models.DateTimeField()
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.AVAILABLE
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['start_time']
        verbose_name = 'Availability slot'
        verbose_name_plural = 'Availability slots'
        indexes = [
            models.Index(fields=['mentor', 'status', 'start_time'], name='slot_mentor_status_start_idx'),
        ]

    def __str__(self):
        return f"{self.mentor_id}: {self.start_time:%Y-%m-%d %H:%M} ({self.status})"

    @property
    def is_future(self) -> bool:
        return self.start_time >= timezone.now()

    def book(self):
        """Mark the slot as taken by a booking request."""
        self.status = self.Status.BOOKED
        self.save(update_fields=['status', 'updated_at'])

    def release(self):
        """Reopen the slot after its booking was declined."""
        self.status = self.Status.AVAILABLE
        self.save(update_fields=['status', 'updated_at'])

    def to_dict(self) -> dict:
        return {
            'id': self.pk,
            'mentor_id': self.mentor_id,
            'start_time': self.start_time.isoformat(),
            'end_time': self.end_time.isoformat(),
            'status': self.status,
        }


class Review(models.Model):
    """A mentee's rating of a mentor. Ratings feed the suggestion boost."""

    MIN_RATING = 1
    MAX_RATING = 5

    mentor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='reviews_received'
    )
    mentee = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='reviews_given'
    )
    rating = models.FloatField(
        validators=[MinValueValidator(MIN_RATING), MaxValueValidator(MAX_RATING)],
        help_text='Rating from 1 to 5'
    )
    comment = models.TextField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']
        verbose_name = 'Review'
        verbose_name_plural = 'Reviews'

    def __str__(self):
        return f"Review for {self.mentor_id}: {self.rating}/5"

    @classmethod
    def clamp_rating(cls, value: float) -> float:
        return min(cls.MAX_RATING, max(cls.MIN_RATING, float(value)))

    def to_dict(self) -> dict:
        return {
            'id': self.pk,
            'mentor_id': self.mentor_id,
            'mentee_id': self.mentee_id,
            'rating': self.rating,
            'comment': self.comment,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }


class Booking(models.Model):
    """
    A mentee's request for one of a mentor's slots.

    Requesting books the slot; the mentor then accepts, or declines and the
    slot reopens.
    """

    class Status(models.TextChoices):
        PENDING = 'pending', 'Pending'
        ACCEPTED = 'accepted', 'Accepted'
        DECLINED = 'declined', 'Declined'

    mentor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='bookings_as_mentor'
    )
    mentee = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='bookings_as_mentee'
    )
    slot = models.ForeignKey(
        AvailabilitySlot,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='bookings'
    )
    start_time = models.DateTimeField()
    end_time = models.DateTimeField()
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.PENDING
    )
    notes = models.TextField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['start_time']
        verbose_name = 'Booking'
        verbose_name_plural = 'Bookings'

    def __str__(self):
        return f"{self.mentee_id} with {self.mentor_id} at {self.start_time:%Y-%m-%d %H:%M} ({self.status})"

    def to_dict(self) -> dict:
        return {
            'id': self.pk,
            'mentor_id': self.mentor_id,
            'mentee_id': self.mentee_id,
            'slot_id': self.slot_id,
            'start_time': self.start_time.isoformat(),
            'end_time': self.end_time.isoformat(),
            'status': self.status,
            'notes': self.notes,
        }
