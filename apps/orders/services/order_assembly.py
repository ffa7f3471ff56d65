"""
Order assembly service.

Turns an approved design request into an order with one line item per
team member. The conditional update of the design request is the commit
point: two concurrent approvals of the same request cannot both produce
an order, the loser gets AlreadyApprovedError and its writes are rolled
back with the surrounding transaction.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Union
from uuid import UUID

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import transaction, DatabaseError
from django.db.models import F, Sum
from django.utils import timezone

from apps.accounts.models import User
from apps.catalog.models import Product
from apps.catalog.services import resolve_product
from apps.orders.models import (
    ApprovalStatus,
    DesignRequest,
    DesignRequestStatus,
    Order,
    OrderItem,
)
from apps.teams.models import Team, TeamMembership
from apps.teams.services import get_team, get_team_members

from .exceptions import (
    AlreadyApprovedError,
    DependencyFailureError,
    DesignRequestCancelledError,
    DesignRequestNotFoundError,
    EmptyRosterError,
    InsufficientPermissionsError,
    OrderLockedError,
    OrderNotFoundError,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OrderCreated:
    """A new order was created for the design request."""
    order: Order
    design_request: DesignRequest
    items: List[OrderItem] = field(default_factory=list)
    action = 'created'


@dataclass(frozen=True)
class OrderExtended:
    """The design request's items were added to an existing order."""
    order: Order
    design_request: DesignRequest
    items: List[OrderItem] = field(default_factory=list)
    action = 'extended'


AssemblyResult = Union[OrderCreated, OrderExtended]


def approve_design_request(
    *,
    design_request_id: int,
    team_id: UUID,
    user: User,
    order_id: Optional[UUID] = None
) -> AssemblyResult:
    """
    Approve a design request and assemble its order.

    Steps:
    1. Check team, caller role and design request state
    2. Resolve the product that prices the order
    3. Create a new order, or lock the existing one being extended
    4. Batch insert one item per team member
    5. Recompute order totals from its items
    6. Mark the design request approved (conditional update)

    Args:
        design_request_id: ID of the design request to approve
        team_id: UUID of the team owning the request
        user: User approving (must be team owner or manager)
        order_id: Optional existing order to add the items to

    Returns:
        OrderCreated or OrderExtended

    Raises:
        TeamNotFoundError: If team doesn't exist
        InsufficientPermissionsError: If user is not owner/manager
        DesignRequestNotFoundError: If the request is not in this team
        AlreadyApprovedError: If the request was already approved
        DesignRequestCancelledError: If the request was rejected
        EmptyRosterError: If the team has no members
        NoProductAvailableError: If the catalog is empty
        OrderNotFoundError: If order_id is not an order of this team
        OrderLockedError: If the existing order no longer accepts items
        DependencyFailureError: If the items could not be inserted
    """
    team = get_team(team_id=team_id)

    if not team.is_manager(user):
        raise InsufficientPermissionsError(
            "Only team owners and managers can approve design requests"
        )

    with transaction.atomic():
        design_request = _lock_design_request(design_request_id, team)

        if design_request.is_approved:
            raise AlreadyApprovedError(
                f"Design request {design_request.id} is already approved"
            )
        if design_request.status == DesignRequestStatus.CANCELLED:
            raise DesignRequestCancelledError(
                f"Design request {design_request.id} was rejected and cannot be approved"
            )

        members = list(get_team_members(team_id=team.id))
        if not members:
            raise EmptyRosterError(f"Team {team.name} has no members")

        product = resolve_product(design_request)
        batch_total = product.price_clp * len(members)

        if order_id is None:
            order = Order.objects.create(
                team=team,
                created_by=user,
                subtotal_clp=batch_total,
                total_amount_clp=batch_total,
                currency=settings.PAYMENT_CURRENCY,
            )
            result_class = OrderCreated
        else:
            order = _lock_order_for_extension(order_id, team)
            result_class = OrderExtended

        items = _insert_items(
            order=order,
            design_request=design_request,
            product=product,
            members=members,
            is_new_order=result_class is OrderCreated,
        )

        order = recompute_order_totals(order_id=order.id)
        design_request = _mark_approved(design_request, order, user)

    logger.info(
        "Design request %s approved by %s: %s order %s with %d items (total %s CLP)",
        design_request.id, user.id, result_class.action, order.id,
        len(items), order.total_amount_clp,
    )

    return result_class(order=order, design_request=design_request, items=items)


def reject_design_request(
    *,
    design_request_id: int,
    team_id: UUID,
    user: User,
    reason: str = ''
) -> DesignRequest:
    """
    Cancel a design request that has not been approved.

    Raises:
        TeamNotFoundError: If team doesn't exist
        InsufficientPermissionsError: If user is not owner/manager
        DesignRequestNotFoundError: If the request is not in this team
        AlreadyApprovedError: If the request was already approved
    """
    team = get_team(team_id=team_id)

    if not team.is_manager(user):
        raise InsufficientPermissionsError(
            "Only team owners and managers can reject design requests"
        )

    with transaction.atomic():
        design_request = _lock_design_request(design_request_id, team)

        if design_request.is_approved:
            raise AlreadyApprovedError(
                f"Design request {design_request.id} is already approved and cannot be rejected"
            )

        design_request.status = DesignRequestStatus.CANCELLED
        design_request.rejection_reason = reason
        design_request.save(update_fields=['status', 'rejection_reason', 'updated_at'])

    logger.info("Design request %s rejected by %s", design_request.id, user.id)
    return design_request


@transaction.atomic
def recompute_order_totals(*, order_id: UUID) -> Order:
    """
    Recalculate order totals from its items and re-evaluate payment status.

    The order row is re-read under lock so concurrent item additions and
    contribution settlements never work from a stale total.

    Raises:
        OrderNotFoundError: If order doesn't exist
    """
    try:
        order = Order.objects.select_for_update().get(id=order_id)
    except Order.DoesNotExist:
        raise OrderNotFoundError(f"Order {order_id} not found")

    total = order.items.aggregate(
        total=Sum(F('unit_price_clp') * F('quantity'))
    )['total'] or 0

    if order.subtotal_clp != total or order.total_amount_clp != total:
        order.subtotal_clp = total
        order.total_amount_clp = total
        order.save(update_fields=['subtotal_clp', 'total_amount_clp', 'updated_at'])

    order.refresh_payment_status()
    return order


def _lock_design_request(design_request_id, team: Team) -> DesignRequest:
    try:
        return DesignRequest.objects.select_for_update().get(
            id=design_request_id,
            team=team
        )
    except (DesignRequest.DoesNotExist, ValueError):
        raise DesignRequestNotFoundError(
            f"Design request {design_request_id} not found in team {team.name}"
        )


def _lock_order_for_extension(order_id, team: Team) -> Order:
    try:
        order = Order.objects.select_for_update().get(id=order_id, team=team)
    except (Order.DoesNotExist, ValidationError):
        raise OrderNotFoundError(f"Order {order_id} not found in team {team.name}")

    if not order.can_accept_items:
        raise OrderLockedError(
            f"Order {order.id} is {order.status} and no longer accepts items"
        )
    return order


def _insert_items(
    *,
    order: Order,
    design_request: DesignRequest,
    product: Product,
    members: List[TeamMembership],
    is_new_order: bool
) -> List[OrderItem]:
    items = [
        OrderItem(
            order=order,
            design_request=design_request,
            product=product,
            product_name=product.name,
            unit_price_clp=product.price_clp,
            quantity=1,
            player=membership.user,
            customization={'size': '', 'number': '', 'notes': ''},
        )
        for membership in members
    ]

    try:
        with transaction.atomic():
            return OrderItem.objects.bulk_create(items)
    except DatabaseError:
        logger.exception("Failed to insert items for order %s", order.id)
        if is_new_order:
            order.delete()
        raise DependencyFailureError(
            f"Could not create order items for design request {design_request.id}"
        )


def _mark_approved(design_request: DesignRequest, order: Order, user: User) -> DesignRequest:
    now = timezone.now()

    try:
        with transaction.atomic():
            updated = (
                DesignRequest.objects
                .filter(id=design_request.id)
                .exclude(approval_status=ApprovalStatus.APPROVED)
                .update(
                    status=DesignRequestStatus.READY,
                    approval_status=ApprovalStatus.APPROVED,
                    order=order,
                    approved_at=now,
                    approved_by=user,
                    updated_at=now,
                )
            )
    except DatabaseError:
        # Order stays; approval can be re-run to fix the request
        logger.exception(
            "Order %s assembled but design request %s could not be marked approved",
            order.id, design_request.id,
        )
        return design_request

    if updated == 0:
        raise AlreadyApprovedError(
            f"Design request {design_request.id} was approved concurrently"
        )

    design_request.refresh_from_db()
    return design_request
