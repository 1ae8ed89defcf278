"""
Tests for chat/views.py - HTTP send, seen, conversations and history.
"""

import json
import os
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.test_settings')

from unittest.mock import AsyncMock, patch

import pytest
from django.urls import reverse

from chat.models import Message
from chat.services import ChannelLayerNotifier


def _send(client, payload):
    return client.post(reverse('chat:send'), data=json.dumps(payload), content_type='application/json')


@pytest.fixture
def emitted():
    with patch.object(ChannelLayerNotifier, 'emit', new_callable=AsyncMock) as mock_emit:
        yield mock_emit


@pytest.mark.django_db
class TestSendView:

    def test_send_returns_201_with_message(self, client_for, mentee, mentor, emitted):
        response = _send(client_for(mentee), {'receiver_id': mentor.pk, 'text': 'hi'})

        assert response.status_code == 201
        body = response.json()
        assert body['sender_id'] == mentee.pk
        assert body['receiver_id'] == mentor.pk
        assert body['text'] == 'hi'
        assert body['read_at'] is None
        assert [c.args[:2] for c in emitted.await_args_list] == [
            (mentor.pk, 'receive_message'),
            (mentee.pk, 'message_sent'),
        ]

    def test_sender_comes_from_the_session(self, client_for, mentee, mentor, emitted):
        _send(client_for(mentee), {'sender_id': mentor.pk, 'receiver_id': mentor.pk, 'text': 'hi'})

        assert Message.objects.get().sender_id == mentee.pk

    def test_blank_text(self, client_for, mentee, mentor, emitted):
        response = _send(client_for(mentee), {'receiver_id': mentor.pk, 'text': '   '})

        assert response.status_code == 400
        assert response.json() == {'message': 'receiver_id and text are required', 'code': 'validation_error'}
        emitted.assert_not_awaited()

    def test_unknown_receiver(self, client_for, mentee, emitted):
        response = _send(client_for(mentee), {'receiver_id': 999999, 'text': 'hi'})

        assert response.status_code == 404

    def test_body_must_be_an_object(self, client_for, mentee):
        response = client_for(mentee).post(reverse('chat:send'), data='[1, 2]', content_type='application/json')

        assert response.status_code == 400
        assert response.json()['message'] == 'Expected a JSON object'

    def test_anonymous(self, client, mentor):
        response = _send(client, {'receiver_id': mentor.pk, 'text': 'hi'})

        assert response.status_code == 401
        assert not Message.objects.exists()


@pytest.mark.django_db
class TestSeenView:

    def test_marks_and_reports_count(self, client_for, mentee, mentor, emitted):
        Message.objects.create(sender=mentee, receiver=mentor, text='a')
        Message.objects.create(sender=mentee, receiver=mentor, text='b')

        client = client_for(mentor)
        first = client.post(reverse('chat:seen', args=[mentee.pk]))
        second = client.post(reverse('chat:seen', args=[mentee.pk]))

        assert first.json() == {'updated': 2}
        assert second.json() == {'updated': 0}
        emitted.assert_awaited_once_with(mentee.pk, 'message:seen', {'from': mentor.pk})


@pytest.mark.django_db
class TestReadViews:

    def test_conversations(self, client_for, mentee, mentor):
        Message.objects.create(sender=mentor, receiver=mentee, text='welcome')

        response = client_for(mentee).get(reverse('chat:conversations'))

        [conversation] = response.json()
        assert conversation['other_user_id'] == mentor.pk
        assert conversation['last_message'] == 'welcome'
        assert conversation['unread_count'] == 1

    def test_history(self, client_for, mentee, mentor):
        Message.objects.create(sender=mentee, receiver=mentor, text='question')
        Message.objects.create(sender=mentor, receiver=mentee, text='answer')

        response = client_for(mentor).get(reverse('chat:history', args=[mentee.pk]))

        assert [m['text'] for m in response.json()] == ['question', 'answer']

    def test_history_requires_login(self, client, mentee):
        assert client.get(reverse('chat:history', args=[mentee.pk])).status_code == 401
