"""
Payment contribution ledger.

Several team members fund one order through independent contributions.
Approved contributions are the only source of truth for what has been
paid: the order's payment status is always recomputed by summing them
under an order row lock, never from a cached counter, so duplicated or
out-of-order processor callbacks converge on the same state.

Invariants:
- approved amounts of an order (contributions plus bulk payments) never
  exceed its total
- at most one approved contribution per (order, user)
- approved is terminal
"""

import logging
import uuid
from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from django.core.exceptions import ValidationError
from django.db import transaction, IntegrityError
from django.db.models import Count, Q, Sum

from apps.accounts.models import User
from apps.orders.models import Order, OrderPaymentStatus, OrderStatus, PaymentMode
from apps.orders.services import OrderNotFoundError, InsufficientPermissionsError
from apps.payments.models import BulkPayment, BulkPaymentOrder, PaymentContribution, ContributionStatus
from apps.teams.services import require_membership

from . import mercadopago_client
from .exceptions import (
    BulkPaymentNotFoundError,
    ContributionNotFoundError,
    DuplicateContributionError,
    InvalidAmountError,
    OrderAlreadyPaidError,
    OrderNotPayableError,
    PaymentProcessorError,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ContributionInitiated:
    contribution: PaymentContribution
    preference_id: str
    init_point: Optional[str]
    sandbox_init_point: Optional[str]


def build_external_reference(order_id, user_id, attempt):
    return f"split_{order_id}_{user_id}_{attempt}"


def _lock_order(order_id) -> Order:
    try:
        return Order.objects.select_for_update().get(id=order_id)
    except (Order.DoesNotExist, ValidationError):
        raise OrderNotFoundError(f"Order {order_id} not found")


def _create_pending_contribution(
    *,
    order: Order,
    user: User,
    amount_clp: int,
    max_retries: int = 5
) -> PaymentContribution:
    attempt = PaymentContribution.objects.filter(order=order, user=user).count() + 1

    for _ in range(max_retries):
        reference = build_external_reference(order.id, user.id, attempt)
        try:
            with transaction.atomic():
                return PaymentContribution.objects.create(
                    order=order,
                    user=user,
                    amount_clp=amount_clp,
                    currency=order.currency,
                    status=ContributionStatus.PENDING,
                    external_reference=reference,
                )
        except IntegrityError:
            # Concurrent initiation took this attempt number
            attempt += 1

    raise RuntimeError(
        f"Failed to generate unique external reference after {max_retries} attempts"
    )


def initiate_contribution(*, order_id: UUID, user: User, amount_clp: int) -> ContributionInitiated:
    """
    Start a member's contribution towards an order.

    Creates a pending contribution, then asks Mercado Pago for a checkout
    preference. If the processor fails the contribution stays pending.

    Args:
        order_id: UUID of the order being paid
        user: Contributing team member
        amount_clp: Amount in whole CLP

    Returns:
        ContributionInitiated with the contribution and checkout URLs

    Raises:
        InvalidAmountError: If amount is not positive or exceeds the balance
        OrderNotFoundError: If order doesn't exist
        OrderNotPayableError: If the order is cancelled
        OrderAlreadyPaidError: If the order is already paid
        NotTeamMemberError: If user is not in the order's team
        DuplicateContributionError: If user already has an approved contribution
        PaymentProcessorError: If the preference could not be created
    """
    if amount_clp is None or amount_clp <= 0:
        raise InvalidAmountError("Amount must be greater than zero")

    with transaction.atomic():
        order = _lock_order(order_id)

        if order.status == OrderStatus.CANCELLED:
            raise OrderNotPayableError(f"Order {order.id} is cancelled")
        if order.payment_status == OrderPaymentStatus.PAID:
            raise OrderAlreadyPaidError(f"Order {order.id} is already paid")

        require_membership(team=order.team, user=user)

        if PaymentContribution.objects.filter(
            order=order,
            user=user,
            status=ContributionStatus.APPROVED
        ).exists():
            raise DuplicateContributionError(
                "You have already paid for this order; a team manager can settle the remaining balance"
            )

        outstanding = order.get_outstanding_balance()
        if amount_clp > outstanding:
            raise InvalidAmountError(
                f"Amount {amount_clp} exceeds the outstanding balance of {outstanding} CLP"
            )

        contribution = _create_pending_contribution(order=order, user=user, amount_clp=amount_clp)

    payload = mercadopago_client.build_split_preference(
        order=order,
        user=user,
        amount_clp=amount_clp,
        external_reference=contribution.external_reference,
    )
    try:
        preference = mercadopago_client.create_preference(payload)
    except PaymentProcessorError:
        logger.error(
            "Contribution %s left pending: preference creation failed",
            contribution.id,
        )
        raise

    PaymentContribution.objects.filter(id=contribution.id).update(mp_preference_id=preference['id'])
    contribution.mp_preference_id = preference['id']

    logger.info(
        "Contribution %s initiated by %s for order %s (%s CLP)",
        contribution.id, user.id, order.id, amount_clp,
    )

    return ContributionInitiated(
        contribution=contribution,
        preference_id=preference['id'],
        init_point=preference['init_point'],
        sandbox_init_point=preference['sandbox_init_point'],
    )


def _approval_refusal(contribution: PaymentContribution, order: Order) -> Optional[str]:
    """Reason an approval cannot be accepted, or None."""
    approved = PaymentContribution.objects.filter(
        order=order,
        status=ContributionStatus.APPROVED
    ).exclude(id=contribution.id)

    if approved.filter(user_id=contribution.user_id).exists():
        return 'user already has an approved contribution'

    # This contribution is not approved yet, so it is not part of the sum
    paid = order.get_paid_amount()
    if paid + contribution.amount_clp > order.total_amount_clp:
        return f'approval would overpay the order ({paid} + {contribution.amount_clp} > {order.total_amount_clp})'

    return None


def settle_contribution(
    *,
    contribution_id: UUID,
    outcome: str,
    payment_id=None,
    raw_payment_data=None
) -> PaymentContribution:
    """
    Apply a processor outcome to a contribution. Idempotent.

    Approved is terminal: replays and late rejections are ignored.
    A rejected contribution may still be approved. An approval that
    would break the ledger invariants is stored as rejected and flagged
    for refund.

    Args:
        contribution_id: UUID of the contribution
        outcome: 'approved' or 'rejected'
        payment_id: Processor payment id
        raw_payment_data: Processor payment payload

    Returns:
        The settled contribution

    Raises:
        ValueError: If outcome is not approved/rejected
        ContributionNotFoundError: If contribution doesn't exist
    """
    if outcome not in (ContributionStatus.APPROVED, ContributionStatus.REJECTED):
        raise ValueError(f"Unknown settlement outcome: {outcome}")

    try:
        order_id = PaymentContribution.objects.values_list('order_id', flat=True).get(id=contribution_id)
    except (PaymentContribution.DoesNotExist, ValidationError):
        raise ContributionNotFoundError(f"Contribution {contribution_id} not found")

    with transaction.atomic():
        # Order first, then contribution
        order = _lock_order(order_id)
        contribution = PaymentContribution.objects.select_for_update().get(id=contribution_id)

        if contribution.is_approved:
            logger.info(
                "Contribution %s already approved, ignoring %s",
                contribution.id, outcome,
            )
        elif outcome == ContributionStatus.REJECTED:
            contribution.mark_rejected(payment_id=payment_id, raw_payment_data=raw_payment_data)
            logger.info("Contribution %s rejected", contribution.id)
        else:
            refusal = _approval_refusal(contribution, order)
            if refusal:
                logger.warning(
                    "Refusing approval of contribution %s (payment %s): %s; flagged for refund",
                    contribution.id, payment_id, refusal,
                )
                contribution.mark_rejected(
                    payment_id=payment_id,
                    raw_payment_data=raw_payment_data,
                    needs_refund=True,
                )
            else:
                contribution.mark_approved(payment_id=payment_id, raw_payment_data=raw_payment_data)
                logger.info("Contribution %s approved", contribution.id)

        order.refresh_payment_status()

    return contribution


def settle_by_external_reference(
    *,
    external_reference: str,
    outcome: str,
    payment_id=None,
    raw_payment_data=None
) -> PaymentContribution:
    """
    Settle the contribution carrying a processor external reference.

    Raises:
        ContributionNotFoundError: If no contribution has this reference
    """
    contribution_id = (
        PaymentContribution.objects
        .filter(external_reference=external_reference)
        .values_list('id', flat=True)
        .first()
    )
    if contribution_id is None:
        raise ContributionNotFoundError(
            f"No contribution with external reference {external_reference}"
        )

    return settle_contribution(
        contribution_id=contribution_id,
        outcome=outcome,
        payment_id=payment_id,
        raw_payment_data=raw_payment_data,
    )


def _final_payment(payments):
    """
    Pick the processor payment that decides a settlement, as (outcome, payment).

    An approved payment wins over failed retries. Returns None while no
    payment has a final status.
    """
    for payment in payments:
        if mercadopago_client.outcome_for_status(payment.get('status')) == ContributionStatus.APPROVED:
            return ContributionStatus.APPROVED, payment

    for payment in payments:
        outcome = mercadopago_client.outcome_for_status(payment.get('status'))
        if outcome is not None:
            return outcome, payment

    return None


def reconcile_contribution(*, contribution: PaymentContribution) -> Optional[PaymentContribution]:
    """
    Settle a pending contribution from the processor's own records.

    Returns the settled contribution, or None while the processor has
    nothing final for it.

    Raises:
        PaymentProcessorError: If the processor search fails
    """
    payments = mercadopago_client.search_payments(external_reference=contribution.external_reference)

    final = _final_payment(payments)
    if final is None:
        return None

    outcome, payment = final
    return settle_contribution(
        contribution_id=contribution.id,
        outcome=outcome,
        payment_id=payment.get('id'),
        raw_payment_data=payment,
    )


# =============================================================================
# Bulk payments
# =============================================================================

@dataclass(frozen=True)
class BulkPaymentInitiated:
    bulk_payment: BulkPayment
    preference_id: str
    init_point: Optional[str]
    sandbox_init_point: Optional[str]


def build_bulk_reference(bulk_payment_id):
    return f"bulk_{bulk_payment_id}"


def _lock_orders(order_ids) -> list:
    """Lock several orders, always in id order."""
    try:
        order_ids = sorted({str(UUID(str(order_id))) for order_id in order_ids})
    except ValueError:
        raise OrderNotFoundError("Invalid order id")

    orders = list(
        Order.objects.select_for_update()
        .filter(id__in=order_ids)
        .order_by('id')
    )

    found = {str(order.id) for order in orders}
    missing = [order_id for order_id in order_ids if order_id not in found]
    if missing:
        raise OrderNotFoundError(f"Order {missing[0]} not found")
    return orders


def initiate_bulk_payment(*, order_ids, user: User) -> BulkPaymentInitiated:
    """
    Start a manager's payment of the remaining balance of one or more orders.

    Each order is charged its outstanding balance at initiation time.
    Members' approved contributions are kept, so an order reopened after
    it was paid off can still be settled this way.

    Args:
        order_ids: UUIDs of the orders being paid
        user: Paying team manager

    Returns:
        BulkPaymentInitiated with the bulk payment and checkout URLs

    Raises:
        InvalidAmountError: If no orders are given or an order has nothing left to pay
        OrderNotFoundError: If an order doesn't exist
        OrderNotPayableError: If an order is cancelled
        OrderAlreadyPaidError: If an order is already paid
        InsufficientPermissionsError: If user does not manage an order's team
        PaymentProcessorError: If the preference could not be created
    """
    order_ids = list(order_ids or [])
    if not order_ids:
        raise InvalidAmountError("At least one order is required")

    with transaction.atomic():
        orders = _lock_orders(order_ids)

        allocations = []
        for order in orders:
            if order.status == OrderStatus.CANCELLED:
                raise OrderNotPayableError(f"Order {order.id} is cancelled")
            if order.payment_status == OrderPaymentStatus.PAID:
                raise OrderAlreadyPaidError(f"Order {order.id} is already paid")
            if not order.team.is_manager(user):
                raise InsufficientPermissionsError(
                    f"Only team managers can pay for order {order.id}"
                )

            outstanding = order.get_outstanding_balance()
            if outstanding <= 0:
                raise InvalidAmountError(f"Order {order.id} has no outstanding balance")
            allocations.append((order, outstanding))

        bulk_id = uuid.uuid4()
        bulk_payment = BulkPayment.objects.create(
            id=bulk_id,
            user=user,
            total_amount_clp=sum(amount for _, amount in allocations),
            currency=orders[0].currency,
            status=ContributionStatus.PENDING,
            external_reference=build_bulk_reference(bulk_id),
        )
        BulkPaymentOrder.objects.bulk_create([
            BulkPaymentOrder(bulk_payment=bulk_payment, order=order, amount_clp=amount)
            for order, amount in allocations
        ])

    payload = mercadopago_client.build_bulk_preference(
        bulk_payment=bulk_payment,
        user=user,
        allocations=allocations,
    )
    try:
        preference = mercadopago_client.create_preference(payload)
    except PaymentProcessorError:
        logger.error(
            "Bulk payment %s left pending: preference creation failed",
            bulk_payment.id,
        )
        raise

    BulkPayment.objects.filter(id=bulk_payment.id).update(mp_preference_id=preference['id'])
    bulk_payment.mp_preference_id = preference['id']

    logger.info(
        "Bulk payment %s initiated by %s for %d order(s) (%s CLP)",
        bulk_payment.id, user.id, len(allocations), bulk_payment.total_amount_clp,
    )

    return BulkPaymentInitiated(
        bulk_payment=bulk_payment,
        preference_id=preference['id'],
        init_point=preference['init_point'],
        sandbox_init_point=preference['sandbox_init_point'],
    )


def _bulk_approval_refusal(links, orders_by_id) -> Optional[str]:
    """Reason a bulk approval cannot be accepted, or None."""
    for link in links:
        order = orders_by_id[link.order_id]
        if order.status == OrderStatus.CANCELLED:
            return f'order {order.id} is cancelled'
        paid = order.get_paid_amount()
        if paid + link.amount_clp > order.total_amount_clp:
            return (
                f'approval would overpay order {order.id} '
                f'({paid} + {link.amount_clp} > {order.total_amount_clp})'
            )
    return None


def settle_bulk_payment(
    *,
    bulk_payment_id: UUID,
    outcome: str,
    payment_id=None,
    raw_payment_data=None
) -> BulkPayment:
    """
    Apply a processor outcome to a bulk payment. Idempotent.

    Follows the same rules as contributions. On approval every covered
    order switches to manager-pays-all and has its payment status
    recomputed from the ledger. An approval that would overpay any
    covered order is stored as rejected and flagged for refund.

    Raises:
        ValueError: If outcome is not approved/rejected
        BulkPaymentNotFoundError: If the bulk payment doesn't exist
    """
    if outcome not in (ContributionStatus.APPROVED, ContributionStatus.REJECTED):
        raise ValueError(f"Unknown settlement outcome: {outcome}")

    try:
        exists = BulkPayment.objects.filter(id=bulk_payment_id).exists()
    except ValidationError:
        exists = False
    if not exists:
        raise BulkPaymentNotFoundError(f"Bulk payment {bulk_payment_id} not found")

    order_ids = list(
        BulkPaymentOrder.objects.filter(bulk_payment_id=bulk_payment_id)
        .values_list('order_id', flat=True)
    )

    with transaction.atomic():
        # Orders first, then the bulk payment
        orders = _lock_orders(order_ids)
        bulk_payment = BulkPayment.objects.select_for_update().get(id=bulk_payment_id)
        links = list(bulk_payment.order_links.all())

        if bulk_payment.is_approved:
            logger.info(
                "Bulk payment %s already approved, ignoring %s",
                bulk_payment.id, outcome,
            )
        elif outcome == ContributionStatus.REJECTED:
            bulk_payment.mark_rejected(payment_id=payment_id, raw_payment_data=raw_payment_data)
            logger.info("Bulk payment %s rejected", bulk_payment.id)
        else:
            refusal = _bulk_approval_refusal(links, {order.id: order for order in orders})
            if refusal:
                logger.warning(
                    "Refusing approval of bulk payment %s (payment %s): %s; flagged for refund",
                    bulk_payment.id, payment_id, refusal,
                )
                bulk_payment.mark_rejected(
                    payment_id=payment_id,
                    raw_payment_data=raw_payment_data,
                    needs_refund=True,
                )
            else:
                bulk_payment.mark_approved(payment_id=payment_id, raw_payment_data=raw_payment_data)
                for order in orders:
                    if order.payment_mode != PaymentMode.MANAGER_PAYS_ALL:
                        order.payment_mode = PaymentMode.MANAGER_PAYS_ALL
                        order.save(update_fields=['payment_mode', 'updated_at'])
                logger.info(
                    "Bulk payment %s approved for %d order(s)",
                    bulk_payment.id, len(orders),
                )

        for order in orders:
            order.refresh_payment_status()

    return bulk_payment


def settle_bulk_by_external_reference(
    *,
    external_reference: str,
    outcome: str,
    payment_id=None,
    raw_payment_data=None
) -> BulkPayment:
    """
    Settle the bulk payment carrying a processor external reference.

    Raises:
        BulkPaymentNotFoundError: If no bulk payment has this reference
    """
    bulk_payment_id = (
        BulkPayment.objects
        .filter(external_reference=external_reference)
        .values_list('id', flat=True)
        .first()
    )
    if bulk_payment_id is None:
        raise BulkPaymentNotFoundError(
            f"No bulk payment with external reference {external_reference}"
        )

    return settle_bulk_payment(
        bulk_payment_id=bulk_payment_id,
        outcome=outcome,
        payment_id=payment_id,
        raw_payment_data=raw_payment_data,
    )


def reconcile_bulk_payment(*, bulk_payment: BulkPayment) -> Optional[BulkPayment]:
    """
    Settle a pending bulk payment from the processor's own records.

    Raises:
        PaymentProcessorError: If the processor search fails
    """
    payments = mercadopago_client.search_payments(external_reference=bulk_payment.external_reference)

    final = _final_payment(payments)
    if final is None:
        return None

    outcome, payment = final
    return settle_bulk_payment(
        bulk_payment_id=bulk_payment.id,
        outcome=outcome,
        payment_id=payment.get('id'),
        raw_payment_data=payment,
    )


# =============================================================================
# Summary
# =============================================================================

def get_order_payment_summary(*, order_id: UUID) -> dict:
    """
    Get split payment progress for an order.

    Paid amounts include approved bulk payments covering the order.

    Raises:
        OrderNotFoundError: If order doesn't exist
    """
    try:
        order = Order.objects.get(id=order_id)
    except (Order.DoesNotExist, ValidationError):
        raise OrderNotFoundError(f"Order {order_id} not found")

    totals = order.payment_contributions.aggregate(
        pending=Sum('amount_clp', filter=Q(status=ContributionStatus.PENDING)),
        approved_count=Count('id', filter=Q(status=ContributionStatus.APPROVED)),
        pending_count=Count('id', filter=Q(status=ContributionStatus.PENDING)),
        contributor_count=Count('user', distinct=True),
    )
    bulk_paid = order.bulk_payment_links.filter(
        bulk_payment__status=ContributionStatus.APPROVED
    ).aggregate(total=Sum('amount_clp'))['total'] or 0

    paid = order.get_paid_amount()
    total = order.total_amount_clp
    percentage = round(paid / total * 100, 2) if total else 0.0

    return {
        'order_id': order.id,
        'total_amount_clp': total,
        'paid_amount_clp': paid,
        'pending_amount_clp': totals['pending'] or 0,
        'remaining_amount_clp': max(0, total - paid),
        'percentage_paid': percentage,
        'payment_status': order.payment_status,
        'payment_mode': order.payment_mode,
        'bulk_paid_amount_clp': bulk_paid,
        'contributor_count': totals['contributor_count'],
        'approved_count': totals['approved_count'],
        'pending_count': totals['pending_count'],
    }
