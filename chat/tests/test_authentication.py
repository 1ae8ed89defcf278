"""
Tests for chat/authentication.py.
"""

import os
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.test_settings')

import pytest
from asgiref.sync import async_to_sync
from django.contrib.auth.models import AnonymousUser

from chat.authentication import ConnectionAuthenticator, Identity, SessionConnectionAuthenticator


def test_interface_cannot_be_instantiated():
    with pytest.raises(TypeError):
        ConnectionAuthenticator()


def test_anonymous_scope_is_rejected():
    authenticate = SessionConnectionAuthenticator().authenticate

    assert async_to_sync(authenticate)({'user': AnonymousUser()}) is None
    assert async_to_sync(authenticate)({}) is None


@pytest.mark.django_db
def test_authenticated_user_becomes_identity(mentee):
    identity = async_to_sync(SessionConnectionAuthenticator().authenticate)({'user': mentee})

    assert identity == Identity(user_id=mentee.pk)
