"""
Tests for the suggestions and explain endpoints (SuggestionRanker).

Covers:
- Mentor suggestions for a mentee: scores, reasons, rating boost
- Mentee suggestions for a mentor (no availability, no rating boost)
- requireAvailability hard filter
- Ordering and the id tie-break
- Limit clamping
- Missing profile (400), wrong role (403), bad direction (400), anonymous (401)
- Role/profile type mismatch keeps a candidate out of the pool
- explain breakdown
"""

import os
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.test_settings')

from datetime import timedelta

import pytest
from django.test import override_settings
from django.urls import reverse
from django.utils import timezone

from core.models import User
from matching.models import AvailabilitySlot, Profile, Review
from matching.services import SuggestionRanker

SUGGESTIONS = reverse('matching:suggestions')


def _slot(mentor, hours=24, status=AvailabilitySlot.Status.AVAILABLE):
    start = timezone.now() + timedelta(hours=hours)
    return AvailabilitySlot.objects.create(
        mentor=mentor, start_time=start, end_time=start + timedelta(hours=1), status=status,
    )


@pytest.fixture
def mentors(make_user, make_profile):
    """Two mentors with identical profiles."""
    first = make_user(User.Role.MENTOR, username='first')
    second = make_user(User.Role.MENTOR, username='second')
    for user in (first, second):
        make_profile(user, skills='react,python')
    return first, second


# =============================================================================
# MENTOR SUGGESTIONS
# =============================================================================

@pytest.mark.django_db
class TestMentorSuggestions:

    def test_scores_and_reasons(self, client_for, mentee, mentor):
        response = client_for(mentee).get(SUGGESTIONS)

        assert response.status_code == 200
        [item] = response.json()
        assert item['id'] == mentor.pk
        assert item['type'] == 'mentor'
        assert item['score'] == 4.0
        assert item['reasons'] == [{'k': 'help_vs_skills', 'v': 1, 'w': 4}]
        assert item['has_availability'] is False
        assert item['rating'] is None
        assert item['review_count'] == 0

    def test_rated_mentor_is_boosted_by_rating_weight(self, client_for, mentee, mentors):
        first, second = mentors
        Review.objects.create(mentor=second, mentee=mentee, rating=5.0)

        items = client_for(mentee).get(SUGGESTIONS).json()

        assert [item['id'] for item in items] == [second.pk, first.pk]
        assert items[0]['score'] - items[1]['score'] == 15.0
        assert items[0]['rating'] == 5.0
        assert items[0]['review_count'] == 1

    def test_ties_break_by_ascending_id(self, client_for, mentee, mentors):
        first, second = mentors

        items = client_for(mentee).get(SUGGESTIONS).json()

        assert [item['id'] for item in items] == sorted([first.pk, second.pk])
        assert items[0]['score'] == items[1]['score']

    def test_availability_adds_bonus(self, client_for, mentee, mentors):
        first, second = mentors
        _slot(second)

        items = client_for(mentee).get(SUGGESTIONS).json()

        assert items[0]['id'] == second.pk
        assert items[0]['score'] == 6.0
        assert items[0]['has_availability'] is True

    def test_require_availability_excludes_mentors_without_slots(self, client_for, mentee, mentors):
        first, second = mentors
        _slot(first, hours=-24)
        _slot(first, status=AvailabilitySlot.Status.BOOKED)
        _slot(second)

        items = client_for(mentee).get(SUGGESTIONS, {'requireAvailability': '1'}).json()

        assert [item['id'] for item in items] == [second.pk]

    def test_role_profile_mismatch_is_excluded(self, client_for, mentee, make_user, make_profile):
        half_changed = make_user(User.Role.MENTEE, username='halfway')
        make_profile(half_changed, type=Profile.Type.MENTOR, skills='react')

        assert client_for(mentee).get(SUGGESTIONS).json() == []

    def test_requester_is_never_a_candidate(self, client_for, mentee):
        assert client_for(mentee).get(SUGGESTIONS).json() == []


# =============================================================================
# MENTEE SUGGESTIONS
# =============================================================================

@pytest.mark.django_db
class TestMenteeSuggestions:

    def test_mentor_gets_mentees(self, client_for, mentee, mentor):
        response = client_for(mentor).get(SUGGESTIONS, {'for': 'mentees'})

        [item] = response.json()
        assert item['id'] == mentee.pk
        assert item['type'] == 'mentee'
        assert item['score'] == 4.0
        assert item['help_areas'] == 'react,node'
        assert 'has_availability' not in item

    def test_no_availability_or_rating_in_mentee_direction(self, client_for, mentee, mentor, make_user):
        _slot(mentor)
        other = make_user(User.Role.MENTEE)
        Review.objects.create(mentor=mentor, mentee=other, rating=5)

        [item] = client_for(mentor).get(SUGGESTIONS, {'for': 'mentees'}).json()

        assert item['score'] == 4.0


# =============================================================================
# ERRORS AND LIMITS
# =============================================================================

@pytest.mark.django_db
class TestSuggestionErrors:

    def test_anonymous_gets_401(self, client):
        response = client.get(SUGGESTIONS)

        assert response.status_code == 401
        assert response.json()['code'] == 'not_authenticated'

    def test_missing_profile(self, client_for, make_user):
        user = make_user(User.Role.MENTEE)

        response = client_for(user).get(SUGGESTIONS)

        assert response.status_code == 400
        assert response.json()['message'].startswith('Complete onboarding/profile first')
        assert response.json()['code'] == 'profile_missing'

    def test_mentor_cannot_fetch_mentors(self, client_for, mentor):
        response = client_for(mentor).get(SUGGESTIONS, {'for': 'mentors'})

        assert response.status_code == 403
        assert response.json()['message'] == 'Only mentees can fetch mentor suggestions'

    def test_mentee_cannot_fetch_mentees(self, client_for, mentee):
        response = client_for(mentee).get(SUGGESTIONS, {'for': 'mentees'})

        assert response.status_code == 403
        assert response.json()['message'] == 'Only mentors can fetch mentee suggestions'

    def test_invalid_direction(self, client_for, mentee):
        response = client_for(mentee).get(SUGGESTIONS, {'for': 'everyone'})

        assert response.status_code == 400
        assert response.json()['message'] == "Invalid 'for' parameter"

    def test_limit_truncates(self, client_for, mentee, mentors):
        items = client_for(mentee).get(SUGGESTIONS, {'limit': '1'}).json()

        assert len(items) == 1

    def test_fractional_limit_clamps_up_to_one(self, client_for, mentee, mentors):
        items = client_for(mentee).get(SUGGESTIONS, {'limit': '0.5'}).json()

        assert len(items) == 1


class TestClampLimit:

    @pytest.mark.parametrize('raw, expected', [
        (None, 12),
        ('', 12),
        ('abc', 12),
        (0, 12),
        ('0', 12),
        (-5, 1),
        (1, 1),
        ('20', 20),
        (999, 50),
        ('7.9', 7),
        (0.5, 1),
        ('0.5', 1),
        ('Infinity', 50),
        (float('inf'), 50),
        ('-Infinity', 1),
        ('nan', 12),
    ])
    def test_clamps_into_range(self, raw, expected):
        assert SuggestionRanker.clamp_limit(raw) == expected

    @override_settings(MATCHING_CONFIG={'default_limit': 5, 'max_limit': 8})
    def test_uses_configured_bounds(self):
        assert SuggestionRanker.clamp_limit(None) == 5
        assert SuggestionRanker.clamp_limit(100) == 8


# =============================================================================
# EXPLAIN
# =============================================================================

@pytest.mark.django_db
class TestExplain:

    def test_breakdown(self, client_for, mentee, mentor):
        Review.objects.create(mentor=mentor, mentee=mentee, rating=4.0)
        _slot(mentor)

        response = client_for(mentee).get(reverse('matching:explain', args=[mentor.pk]))

        assert response.status_code == 200
        body = response.json()
        assert body['mentor_id'] == mentor.pk
        assert body['score'] == 6.0
        assert body['rating'] == 4.0
        assert body['review_count'] == 1
        assert body['rating_boost'] == 12.0
        assert body['final_score'] == 18.0
        assert body['has_availability'] is True
        assert body['availability_degraded'] is False
        assert body['weights']['overlap_help_vs_skills'] == 4
        assert [reason['k'] for reason in body['reasons']] == ['help_vs_skills', 'availability_any_future']

    def test_unknown_mentor(self, client_for, mentee):
        response = client_for(mentee).get(reverse('matching:explain', args=[999999]))

        assert response.status_code == 404

    def test_mentee_profile_is_not_a_mentor(self, client_for, mentee, make_user, make_profile):
        other = make_user(User.Role.MENTEE)
        make_profile(other)

        response = client_for(mentee).get(reverse('matching:explain', args=[other.pk]))

        assert response.status_code == 404
        assert response.json()['message'] == 'Mentor not found'

    def test_requires_own_profile(self, client_for, make_user, mentor):
        user = make_user(User.Role.MENTEE)

        response = client_for(user).get(reverse('matching:explain', args=[mentor.pk]))

        assert response.status_code == 400
