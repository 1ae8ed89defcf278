"""
Tests for system checks and alert routing.
"""

import logging
import os
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.test_settings')

from unittest.mock import patch

import requests
from django.test import override_settings

from config.alerting import send_alert
from config.checks import check_required_settings


def _ids(messages):
    return [message.id for message in messages]


class TestSystemChecks:

    def test_default_settings_pass(self):
        assert 'mentor.E001' not in _ids(check_required_settings(None))

    @override_settings(MATCHING_CONFIG={'scoring_weights': {'timezone_hint': -1}, 'rating_weight': 15})
    def test_negative_weight(self):
        assert 'mentor.E001' in _ids(check_required_settings(None))

    @override_settings(MATCHING_CONFIG={'scoring_weights': {}, 'rating_weight': 'high'})
    def test_non_numeric_rating_weight(self):
        assert 'mentor.E001' in _ids(check_required_settings(None))

    @override_settings(DEBUG=False, SECRET_KEY='django-insecure-x')
    def test_insecure_secret_in_production(self):
        with patch.dict(os.environ, {'DATABASE_URL': 'postgres://db/mentor'}):
            ids = _ids(check_required_settings(None))

        assert 'mentor.E003' in ids
        assert 'mentor.E002' not in ids
        assert 'mentor.W001' in ids


class TestSendAlert:

    @override_settings(ALERT_WEBHOOK_URL='')
    @patch('config.alerting.logger')
    @patch('config.alerting.requests.post')
    def test_no_webhook_only_logs(self, mock_post, mock_logger):
        send_alert('warning', 'ratings lookups degraded', '5 consecutive failures')

        mock_post.assert_not_called()
        level, _, severity, title, _ = mock_logger.log.call_args[0]
        assert level == logging.WARNING
        assert (severity, title) == ('WARNING', 'ratings lookups degraded')

    @override_settings(ALERT_WEBHOOK_URL='https://hooks.example.com/x')
    @patch('config.alerting.requests.post')
    def test_posts_to_webhook(self, mock_post):
        send_alert('critical', 'Chat down', 'channel layer unreachable')

        mock_post.assert_called_once()
        assert mock_post.call_args[0][0] == 'https://hooks.example.com/x'
        text = mock_post.call_args[1]['json']['text']
        assert text.startswith(':red_circle: *Chat down*')

    @override_settings(ALERT_WEBHOOK_URL='https://hooks.example.com/x')
    @patch('config.alerting.logger')
    @patch('config.alerting.requests.post', side_effect=requests.ConnectionError('no route'))
    def test_webhook_failure_is_logged(self, mock_post, mock_logger):
        send_alert('warning', 'availability lookups degraded')

        mock_post.assert_called_once()
        mock_logger.exception.assert_called_once()
