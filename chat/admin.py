from django.contrib import admin

from .models import Message


@admin.register(Message)
class MessageAdmin(admin.ModelAdmin):
    list_display = ['sender', 'receiver', 'short_text', 'created_at', 'read_at']
    list_filter = ['read_at']
    search_fields = ['text', 'sender__email', 'receiver__email']
    readonly_fields = ['created_at', 'updated_at', 'read_at']

    def short_text(self, obj):
        return obj.text[:60]
    short_text.short_description = 'Text'
