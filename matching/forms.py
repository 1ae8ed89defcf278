"""
Input validation for the profile, scheduling and review endpoints.

Bound with decoded JSON bodies rather than POST data.
"""

import re

from django import forms

from .models import AvailabilitySlot, Profile, Review


class AvailabilitySlotForm(forms.ModelForm):
    """A mentor publishing a new slot. end_time must be after start_time."""

    class Meta:
        model = AvailabilitySlot
        fields = ['start_time', 'end_time']
        error_messages = {
            'start_time': {
                'required': 'start_time is required',
                'invalid': 'start_time must be an ISO date string',
            },
            'end_time': {
                'required': 'end_time is required',
                'invalid': 'end_time must be an ISO date string',
            },
        }

    def clean(self):
        cleaned = super().clean()
        start = cleaned.get('start_time')
        end = cleaned.get('end_time')
        if start and end and end <= start:
            raise forms.ValidationError('end_time must be after start_time')
        return cleaned


class ReviewForm(forms.Form):
    """A mentee rating a mentor. Out-of-range ratings are clamped, not rejected."""

    mentor_id = forms.IntegerField(error_messages={'required': 'mentor_id and rating are required'})
    rating = forms.FloatField(error_messages={
        'required': 'mentor_id and rating are required',
        'invalid': 'rating must be a number',
    })
    comment = forms.CharField(required=False, strip=True)

    def clean_rating(self):
        return Review.clamp_rating(self.cleaned_data['rating'])


_LEADING_INT = re.compile(r'^\s*([+-]?\d+)')


def _to_csv(value) -> str:
    """Lists become comma-separated strings; everything else is trimmed text."""
    if value is None:
        return ''
    if isinstance(value, (list, tuple)):
        return ', '.join(str(item).strip() for item in value if str(item).strip())
    return str(value).strip()


def _leading_int_or_none(value):
    if value is None or isinstance(value, bool):
        return None
    match = _LEADING_INT.match(str(value))
    return int(match.group(1)) if match else None


class ProfileForm(forms.ModelForm):
    """
    Profile create/replace from a JSON body.

    Tag fields may arrive as lists or comma-separated strings and are stored
    comma-separated. Numeric fields keep their leading integer ("5 years" ->
    5) and are left empty when there is none. `name` is accepted as an alias
    of full_name.
    """

    TAG_FIELDS = ['expertise', 'skills', 'interests', 'help_areas', 'categories', 'preferred_times']
    TEXT_FIELDS = ['full_name', 'headline', 'bio', 'background', 'goals', 'timezone']

    class Meta:
        model = Profile
        fields = [
            'full_name', 'headline', 'bio', 'background', 'goals',
            'expertise', 'skills', 'interests', 'help_areas', 'categories',
            'preferred_times', 'timezone', 'experience_years', 'hourly_rate',
        ]

    @classmethod
    def from_payload(cls, payload: dict, instance: Profile):
        data = {}
        for name in cls.TAG_FIELDS + cls.TEXT_FIELDS:
            data[name] = _to_csv(payload.get(name))
        if not data['full_name']:
            data['full_name'] = _to_csv(payload.get('name'))
        data['experience_years'] = _leading_int_or_none(payload.get('experience_years'))
        data['hourly_rate'] = _leading_int_or_none(payload.get('hourly_rate'))
        return cls(data, instance=instance)


class BookingForm(forms.Form):
    """A mentee requesting one of a mentor's slots."""

    slot_id = forms.IntegerField(error_messages={
        'required': 'slot_id is required',
        'invalid': 'slot_id must be a slot id',
    })
    notes = forms.CharField(required=False, strip=True)
