"""
URL patterns for the matching module.

Mounted at /api/match/.
"""

from django.urls import path

from . import views

app_name = 'matching'

urlpatterns = [
    # Suggestions
    path('suggestions', views.SuggestionsView.as_view(), name='suggestions'),
    path('explain/<int:mentor_id>', views.ExplainView.as_view(), name='explain'),

    # Profile
    path('profile', views.ProfileView.as_view(), name='profile'),
    path('onboarding', views.OnboardingView.as_view(), name='onboarding'),

    # Availability
    path('availability', views.AvailabilityCreateView.as_view(), name='availability-create'),
    path('availability/<int:mentor_id>', views.MentorAvailabilityView.as_view(), name='availability-mentor'),
    path('availability/slots/<int:slot_id>', views.AvailabilitySlotDeleteView.as_view(), name='availability-delete'),

    # Bookings
    path('bookings', views.BookingCreateView.as_view(), name='booking-create'),
    path('bookings/mine', views.MyBookingsView.as_view(), name='bookings-mine'),
    path('bookings/<int:booking_id>/accept', views.BookingDecisionView.as_view(decision='accepted'), name='booking-accept'),
    path('bookings/<int:booking_id>/decline', views.BookingDecisionView.as_view(decision='declined'), name='booking-decline'),

    # Reviews
    path('reviews', views.ReviewCreateView.as_view(), name='review-create'),
    path('reviews/mentor/<int:mentor_id>', views.MentorReviewsView.as_view(), name='reviews-mentor'),
]
