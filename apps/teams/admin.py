# ==========================================
# apps/teams/admin.py
# ==========================================

from django.contrib import admin
from .models import Team, TeamMembership, PlayerInfoSubmission, ShippingAddress


class TeamMembershipInline(admin.TabularInline):
    model = TeamMembership
    extra = 0
    fields = ['user', 'role', 'joined_at']
    readonly_fields = ['joined_at']


@admin.register(Team)
class TeamAdmin(admin.ModelAdmin):
    list_display = ['name', 'slug', 'sport', 'owner', 'get_member_count', 'created_at']
    list_filter = ['sport', 'created_at']
    search_fields = ['name', 'slug', 'owner__email']
    prepopulated_fields = {'slug': ('name',)}
    inlines = [TeamMembershipInline]

    def get_member_count(self, obj):
        return obj.memberships.count()
    get_member_count.short_description = 'Members'


@admin.register(PlayerInfoSubmission)
class PlayerInfoSubmissionAdmin(admin.ModelAdmin):
    list_display = ['player_name', 'jersey_number', 'size', 'team', 'confirmed_by_player', 'created_at']
    list_filter = ['confirmed_by_player', 'submitted_by_manager']
    search_fields = ['player_name', 'team__name', 'user__email']


@admin.register(ShippingAddress)
class ShippingAddressAdmin(admin.ModelAdmin):
    list_display = ['recipient_name', 'team', 'commune', 'city', 'region']
    search_fields = ['recipient_name', 'team__name', 'street_address']
