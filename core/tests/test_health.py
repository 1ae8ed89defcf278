"""
Tests for core/views_health.py and the correlation id middleware.
"""

import os
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.test_settings')

from unittest.mock import patch

import pytest
from django.db import DatabaseError
from django.urls import reverse


@pytest.mark.django_db
class TestHealthViews:

    def test_liveness(self, client):
        response = client.get(reverse('health'))

        assert response.status_code == 200
        assert response.json() == {'status': 'ok'}

    def test_readiness_checks_database_and_channel_layer(self, client):
        response = client.get(reverse('health-ready'))

        assert response.status_code == 200
        assert response.json() == {
            'status': 'ready',
            'checks': {'database': 'ok', 'channel_layer': 'ok'},
        }

    def test_readiness_degraded_when_database_down(self, client):
        with patch('core.views_health.connection') as mock_connection:
            mock_connection.cursor.side_effect = DatabaseError('gone')
            response = client.get(reverse('health-ready'))

        assert response.status_code == 503
        body = response.json()
        assert body['status'] == 'degraded'
        assert body['checks']['database'].startswith('error')


@pytest.mark.django_db
class TestCorrelationId:

    def test_generated_when_missing(self, client):
        response = client.get(reverse('health'))

        assert len(response['X-Correlation-ID']) == 8

    def test_propagated_from_request(self, client):
        response = client.get(reverse('health'), HTTP_X_CORRELATION_ID='abc123')

        assert response['X-Correlation-ID'] == 'abc123'
