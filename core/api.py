"""
Base view for the JSON API.

Session authentication (same session as the chat socket), JSON error bodies,
and a small JSON body parser.
"""

import json
import logging

from django.contrib.auth.mixins import LoginRequiredMixin
from django.http import JsonResponse
from django.views import View

from .exceptions import MentorshipError, ValidationError

logger = logging.getLogger(__name__)


def error_response(message: str, status: int, code: str = 'error') -> JsonResponse:
    return JsonResponse({'message': message, 'code': code}, status=status)


class ApiView(LoginRequiredMixin, View):
    """
    Login-protected JSON view.

    Unauthenticated requests get a 401 JSON body instead of a login redirect.
    MentorshipError subclasses raised by handlers become JSON error responses
    with the status the error declares.
    """

    def handle_no_permission(self):
        return error_response('Authentication required', 401, 'not_authenticated')

    def dispatch(self, request, *args, **kwargs):
        try:
            return super().dispatch(request, *args, **kwargs)
        except MentorshipError as exc:
            log_fn = logger.error if exc.status_code >= 500 else logger.info
            log_fn(
                "%s %s -> %s (%s)",
                request.method, request.path, exc.status_code, exc.message,
            )
            return error_response(exc.message, exc.status_code, exc.code)

    def parse_json(self) -> dict:
        """Decode the request body as a JSON object."""
        if not self.request.body:
            return {}
        try:
            payload = json.loads(self.request.body)
        except (json.JSONDecodeError, UnicodeDecodeError):
            raise ValidationError('Invalid JSON')
        if not isinstance(payload, dict):
            raise ValidationError('Expected a JSON object')
        return payload
