"""
URL configuration for the Mentor Match platform.
"""

from django.contrib import admin
from django.urls import path, include

from core.views_health import HealthCheckView, ReadinessCheckView

urlpatterns = [
    # Admin
    path("admin/", admin.site.urls),

    # Health checks
    path('health/', HealthCheckView.as_view(), name='health'),
    path('health/ready/', ReadinessCheckView.as_view(), name='health-ready'),

    # Feature apps
    path("api/match/", include("matching.urls")),
    path("api/chat/", include("chat.urls")),
]
