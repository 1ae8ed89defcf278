"""
Root conftest for the Mentor Match test suite.

Handles:
- Django settings configuration (SQLite file database, in-memory channel layer)
- Factories for users and profiles on both sides of a match
- Resetting the lookup degradation counters between tests
"""

import os

import pytest

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.test_settings')


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------

@pytest.fixture
def make_user(db):
    """Create a user with the given role."""
    from core.models import User

    counter = {'n': 0}

    def _make_user(role=User.Role.MENTEE, username=None, **kwargs):
        counter['n'] += 1
        username = username or f"{role}{counter['n']}"
        return User.objects.create_user(
            username=username,
            email=kwargs.pop('email', f"{username}@example.com"),
            password='testpass',
            role=role,
            **kwargs,
        )

    return _make_user


@pytest.fixture
def make_profile(db):
    """Create a Profile whose type follows the user's role."""
    from matching.models import Profile

    def _make_profile(user, **kwargs):
        kwargs.setdefault('type', user.role)
        kwargs.setdefault('full_name', user.username.title())
        return Profile.objects.create(user=user, **kwargs)

    return _make_profile


@pytest.fixture
def mentee(make_user, make_profile):
    from core.models import User

    user = make_user(User.Role.MENTEE, username='mentee')
    make_profile(user, help_areas='react,node')
    return user


@pytest.fixture
def mentor(make_user, make_profile):
    from core.models import User

    user = make_user(User.Role.MENTOR, username='mentor')
    make_profile(user, skills='react,python')
    return user


@pytest.fixture
def client_for(client):
    """Django test client logged in as the given user."""

    def _client_for(user):
        client.force_login(user)
        return client

    return _client_for


# ---------------------------------------------------------------------------
# Global state
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _reset_degradation_tracker():
    from matching.lookups import degradation_tracker

    degradation_tracker.reset()
    yield
    degradation_tracker.reset()


@pytest.fixture(autouse=True)
def _fresh_channel_layer():
    """Each test gets its own in-memory channel layer."""
    from channels.layers import channel_layers

    channel_layers.backends = {}
    yield
    channel_layers.backends = {}
