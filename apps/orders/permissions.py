from rest_framework import permissions


class IsOrderTeamMember(permissions.BasePermission):
    """
    Permission: User must be a member of the team owning the object.

    Works for orders and design requests (both carry ``team``).
    Staff can view everything.
    """

    message = 'You must be a member of this team.'

    def has_object_permission(self, request, view, obj):
        if request.user.is_staff:
            return True
        return obj.team.has_member(request.user)
