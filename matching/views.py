"""
Views for the matching module.

Suggestions and score explanations, the requester's own profile, mentor
availability, bookings and reviews.
All endpoints are JSON and use the session login shared with the chat socket.
"""

import logging

from asgiref.sync import async_to_sync
from django.db import transaction
from django.db.models import Avg, Count, Q
from django.http import JsonResponse
from django.utils import timezone

from core.api import ApiView
from core.exceptions import AuthorizationError, NotFoundError, ProfileMissing, ValidationError
from core.forms import validate
from core.models import User

from .forms import AvailabilitySlotForm, BookingForm, ProfileForm, ReviewForm
from .models import AvailabilitySlot, Booking, Profile, Review
from .services import SuggestionRanker

logger = logging.getLogger(__name__)


# =============================================================================
# SUGGESTIONS
# =============================================================================

class SuggestionsView(ApiView):
    """
    GET /api/match/suggestions?for=mentors|mentees&limit=12&requireAvailability=0

    for=mentors: a mentee asks for mentors (default).
    for=mentees: a mentor asks for mentees.
    """

    def get(self, request):
        ranker = SuggestionRanker()
        results = async_to_sync(ranker.rank)(
            request.user,
            direction=request.GET.get('for', 'mentors'),
            limit=request.GET.get('limit'),
            require_availability=request.GET.get('requireAvailability', '0') == '1',
        )
        return JsonResponse(results, safe=False)


class ExplainView(ApiView):
    """GET /api/match/explain/<mentor_id>: score breakdown for one mentor."""

    def get(self, request, mentor_id):
        ranker = SuggestionRanker()
        return JsonResponse(async_to_sync(ranker.explain)(request.user, mentor_id))


# =============================================================================
# PROFILE
# =============================================================================

MATCHABLE_ROLES = (User.Role.MENTOR, User.Role.MENTEE)


def save_profile(user, payload: dict) -> Profile:
    """
    Create or replace the user's profile.

    An optional `role` switches the user's role and the profile type
    together; without one the current role is kept (mentee when unset).
    """
    role = payload.get('role')
    if role not in MATCHABLE_ROLES:
        role = user.role if user.role in MATCHABLE_ROLES else User.Role.MENTEE

    instance = Profile.objects.filter(user=user).first() or Profile(user=user)
    form = ProfileForm.from_payload(payload, instance)
    validate(form)

    with transaction.atomic():
        if user.role != role:
            user.change_role(role)
        profile = form.save(commit=False)
        profile.type = role
        profile.save()

    logger.info("Saved %s profile for user %s", role, user.pk)
    return profile


class ProfileView(ApiView):
    """GET / PUT /api/match/profile: the requester's own profile."""

    def get(self, request):
        profile = Profile.objects.filter(user=request.user).first()
        if profile is None:
            raise ProfileMissing()
        return JsonResponse(profile.to_dict())

    def put(self, request):
        return JsonResponse(save_profile(request.user, self.parse_json()).to_dict())


class OnboardingView(ApiView):
    """POST /api/match/onboarding: first profile, with the chosen role."""

    def post(self, request):
        profile = save_profile(request.user, self.parse_json())
        return JsonResponse(profile.to_dict(), status=201)


# =============================================================================
# AVAILABILITY
# =============================================================================

class AvailabilityCreateView(ApiView):
    """POST /api/match/availability: a mentor publishes a slot."""

    def post(self, request):
        if request.user.role != User.Role.MENTOR:
            raise AuthorizationError('Mentor only')

        form = AvailabilitySlotForm(self.parse_json())
        validate(form)
        slot = form.save(commit=False)
        slot.mentor = request.user
        slot.save()

        logger.info("Mentor %s published slot %s", request.user.pk, slot.pk)
        return JsonResponse(slot.to_dict(), status=201)


class MentorAvailabilityView(ApiView):
    """GET /api/match/availability/<mentor_id>: upcoming open slots."""

    def get(self, request, mentor_id):
        slots = AvailabilitySlot.objects.filter(
            mentor_id=mentor_id,
            status=AvailabilitySlot.Status.AVAILABLE,
            start_time__gte=timezone.now(),
        ).order_by('start_time')
        return JsonResponse([slot.to_dict() for slot in slots], safe=False)


class AvailabilitySlotDeleteView(ApiView):
    """DELETE /api/match/availability/slots/<slot_id>: only while still available."""

    def delete(self, request, slot_id):
        slot = AvailabilitySlot.objects.filter(pk=slot_id, mentor=request.user).first()
        if slot is None:
            raise NotFoundError('Slot not found')
        if slot.status != AvailabilitySlot.Status.AVAILABLE:
            raise ValidationError('Only available slots can be deleted')

        slot.delete()
        return JsonResponse({'deleted': slot_id})


# =============================================================================
# BOOKINGS
# =============================================================================

def _party(user) -> dict:
    return {'id': user.pk, 'name': user.display_name, 'avatar': user.avatar}


class BookingCreateView(ApiView):
    """POST /api/match/bookings: body {slot_id, notes?}; books the slot."""

    def post(self, request):
        if request.user.role != User.Role.MENTEE:
            raise AuthorizationError('Mentee only')
        data = validate(BookingForm(self.parse_json()))

        with transaction.atomic():
            slot = AvailabilitySlot.objects.select_for_update().filter(
                pk=data['slot_id'],
                status=AvailabilitySlot.Status.AVAILABLE,
            ).first()
            if slot is None or not slot.is_future:
                raise ValidationError('Slot not available')

            slot.book()
            booking = Booking.objects.create(
                mentor_id=slot.mentor_id,
                mentee=request.user,
                slot=slot,
                start_time=slot.start_time,
                end_time=slot.end_time,
                notes=data['notes'] or None,
            )

        logger.info("Mentee %s booked slot %s of mentor %s", request.user.pk, slot.pk, slot.mentor_id)
        return JsonResponse(booking.to_dict(), status=201)


class BookingDecisionView(ApiView):
    """
    PATCH /api/match/bookings/<booking_id>/accept|decline (the slot's mentor).

    Declining reopens the slot.
    """

    decision = None

    def patch(self, request, booking_id):
        with transaction.atomic():
            booking = Booking.objects.select_for_update().filter(
                pk=booking_id, mentor=request.user,
            ).first()
            if booking is None:
                raise NotFoundError('Booking not found')
            if booking.status != Booking.Status.PENDING:
                raise ValidationError(f'Booking already {booking.status}')

            booking.status = self.decision
            booking.save(update_fields=['status', 'updated_at'])

            slot = booking.slot
            if self.decision == Booking.Status.DECLINED and slot and slot.status == AvailabilitySlot.Status.BOOKED:
                slot.release()

        logger.info("Mentor %s %s booking %s", request.user.pk, self.decision, booking.pk)
        return JsonResponse(booking.to_dict())


class MyBookingsView(ApiView):
    """GET /api/match/bookings/mine: bookings on either side, by start time."""

    def get(self, request):
        bookings = Booking.objects.filter(
            Q(mentor=request.user) | Q(mentee=request.user)
        ).select_related('mentor', 'mentee').order_by('start_time')

        items = []
        for booking in bookings:
            item = booking.to_dict()
            item['mentor'] = _party(booking.mentor)
            item['mentee'] = _party(booking.mentee)
            items.append(item)
        return JsonResponse(items, safe=False)


# =============================================================================
# REVIEWS
# =============================================================================

class ReviewCreateView(ApiView):
    """POST /api/match/reviews: body {mentor_id, rating, comment?}."""

    def post(self, request):
        data = validate(ReviewForm(self.parse_json()))

        if data['mentor_id'] == request.user.pk:
            raise ValidationError('You cannot review yourself')
        mentor = User.objects.filter(pk=data['mentor_id'], role=User.Role.MENTOR).first()
        if mentor is None:
            raise NotFoundError('Mentor not found')

        review = Review.objects.create(
            mentor=mentor,
            mentee=request.user,
            rating=data['rating'],
            comment=data['comment'] or None,
        )
        return JsonResponse(review.to_dict(), status=201)


class MentorReviewsView(ApiView):
    """GET /api/match/reviews/mentor/<mentor_id>: {avg, count, items}."""

    def get(self, request, mentor_id):
        mentor = User.objects.filter(pk=mentor_id).first()
        if mentor is None:
            raise NotFoundError('Mentor not found')
        reviews = Review.objects.filter(mentor=mentor).select_related('mentee')
        summary = reviews.aggregate(avg=Avg('rating'), count=Count('id'))

        items = []
        for review in reviews:
            item = review.to_dict()
            item['mentee'] = {
                'id': review.mentee.pk,
                'name': review.mentee.display_name,
                'avatar': review.mentee.avatar,
            }
            items.append(item)

        return JsonResponse({
            'avg': summary['avg'],
            'count': summary['count'],
            'items': items,
        })
