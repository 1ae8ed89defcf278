"""
HTTP side of chat: conversation list, history, send and mark-seen.

send and seen go through the same MessageService as the socket events.
"""

from asgiref.sync import async_to_sync
from django.http import JsonResponse

from core.api import ApiView

from .services import MessageService, conversation_list, message_history


class ConversationsView(ApiView):
    """GET /api/chat/conversations"""

    def get(self, request):
        return JsonResponse(conversation_list(request.user), safe=False)


class HistoryView(ApiView):
    """GET /api/chat/history/<other_id>"""

    def get(self, request, other_id):
        return JsonResponse(message_history(request.user, other_id), safe=False)


class SendView(ApiView):
    """POST /api/chat/send with {receiver_id, text}"""

    def post(self, request):
        data = self.parse_json()
        message = async_to_sync(MessageService().send)(
            request.user.pk, data.get('receiver_id'), data.get('text'),
        )
        return JsonResponse(message.to_dict(), status=201)


class SeenView(ApiView):
    """POST /api/chat/seen/<other_id>"""

    def post(self, request, other_id):
        updated = async_to_sync(MessageService().mark_seen)(request.user.pk, other_id)
        return JsonResponse({'updated': updated})
