from django.contrib import admin

from .models import AvailabilitySlot, Booking, Profile, Review


@admin.register(Profile)
class ProfileAdmin(admin.ModelAdmin):
    list_display = ['user', 'type', 'full_name', 'headline', 'timezone', 'experience_years', 'updated_at']
    list_filter = ['type']
    search_fields = ['full_name', 'user__email', 'skills', 'expertise', 'help_areas']
    readonly_fields = ['created_at', 'updated_at']


@admin.register(AvailabilitySlot)
class AvailabilitySlotAdmin(admin.ModelAdmin):
    list_display = ['mentor', 'start_time', 'end_time', 'status']
    list_filter = ['status']
    actions = ['block_slots']

    def block_slots(self, request, queryset):
        updated = queryset.filter(status=AvailabilitySlot.Status.AVAILABLE).update(
            status=AvailabilitySlot.Status.BLOCKED
        )
        self.message_user(request, f'Blocked {updated} slots.')
    block_slots.short_description = 'Block selected available slots'


@admin.register(Review)
class ReviewAdmin(admin.ModelAdmin):
    list_display = ['mentor', 'mentee', 'rating', 'created_at']
    search_fields = ['mentor__email', 'mentee__email', 'comment']
    readonly_fields = ['created_at']


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = ['mentee', 'mentor', 'start_time', 'status', 'created_at']
    list_filter = ['status']
    search_fields = ['mentor__email', 'mentee__email', 'notes']
    readonly_fields = ['created_at', 'updated_at']
