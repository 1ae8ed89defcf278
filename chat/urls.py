from django.urls import path

from . import views

app_name = 'chat'

urlpatterns = [
    path('conversations', views.ConversationsView.as_view(), name='conversations'),
    path('history/<int:other_id>', views.HistoryView.as_view(), name='history'),
    path('send', views.SendView.as_view(), name='send'),
    path('seen/<int:other_id>', views.SeenView.as_view(), name='seen'),
]
