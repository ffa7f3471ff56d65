"""
Fulfillment stage advancement.

Staff move a paid order through the production pipeline. The tracker
only reads the result.
"""

import logging
from typing import Optional
from uuid import UUID

from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone

from apps.accounts.models import User
from apps.orders.models import (
    Order,
    OrderPaymentStatus,
    OrderStatus,
    ProductionStage,
    PRODUCTION_STAGES,
)

from .exceptions import (
    InsufficientPermissionsError,
    InvalidStageTransitionError,
    OrderNotFoundError,
)

logger = logging.getLogger(__name__)


def _status_for_stage(stage: str) -> str:
    if stage == ProductionStage.DELIVERED:
        return OrderStatus.DELIVERED
    if stage == ProductionStage.SHIPPING:
        return OrderStatus.SHIPPED
    return OrderStatus.PROCESSING


@transaction.atomic
def advance_production_stage(
    *,
    order_id: UUID,
    user: User,
    stage: Optional[str] = None
) -> Order:
    """
    Move an order forward in the production pipeline.

    Args:
        order_id: UUID of the order
        user: Staff user performing the change
        stage: Target stage, defaults to the next one

    Returns:
        Updated Order

    Raises:
        InsufficientPermissionsError: If user is not staff
        OrderNotFoundError: If order doesn't exist
        InvalidStageTransitionError: If the order is unpaid, cancelled,
            already delivered, or the target is not a later stage
    """
    if not user.is_staff:
        raise InsufficientPermissionsError("Only staff can advance production stages")

    try:
        order = Order.objects.select_for_update().get(id=order_id)
    except (Order.DoesNotExist, ValidationError):
        raise OrderNotFoundError(f"Order {order_id} not found")

    if order.payment_status != OrderPaymentStatus.PAID:
        raise InvalidStageTransitionError("Production can only start on a paid order")
    if order.status == OrderStatus.CANCELLED:
        raise InvalidStageTransitionError("Cancelled orders cannot be produced")

    if order.current_stage in PRODUCTION_STAGES:
        current_index = PRODUCTION_STAGES.index(order.current_stage)
    else:
        current_index = -1

    if stage is None:
        if current_index + 1 >= len(PRODUCTION_STAGES):
            raise InvalidStageTransitionError(f"Order {order.id} is already delivered")
        target = PRODUCTION_STAGES[current_index + 1]
    else:
        if stage not in PRODUCTION_STAGES:
            raise InvalidStageTransitionError(f"Unknown production stage: {stage}")
        target = ProductionStage(stage)
        if PRODUCTION_STAGES.index(target) <= current_index:
            raise InvalidStageTransitionError(
                f"Cannot move order from {order.current_stage} back to {stage}"
            )

    previous = order.current_stage
    order.current_stage = target
    order.status = _status_for_stage(target)
    update_fields = ['current_stage', 'status', 'updated_at']

    if target in (ProductionStage.SHIPPING, ProductionStage.DELIVERED) and order.locked_at is None:
        order.locked_at = timezone.now()
        update_fields.append('locked_at')

    order.save(update_fields=update_fields)

    logger.info(
        "Order %s advanced from %s to %s by %s",
        order.id, previous, target, user.id,
    )
    return order
