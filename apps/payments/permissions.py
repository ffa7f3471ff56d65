from rest_framework.permissions import BasePermission


class CanViewContribution(BasePermission):
    """
    Permission to view a payment contribution.

    Allows if:
    - User owns the contribution
    - User is a member of the order's team
    """

    message = 'You do not have permission to view this contribution.'

    def has_object_permission(self, request, view, obj):
        if obj.user_id == request.user.id:
            return True
        return obj.order.team.has_member(request.user)
