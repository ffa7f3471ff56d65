import pytest
from uuid import uuid4

from apps.orders.models import Order, OrderPaymentStatus, OrderStatus, ProductionStage
from apps.orders.services import advance_production_stage
from apps.orders.services.exceptions import (
    InsufficientPermissionsError,
    InvalidStageTransitionError,
    OrderNotFoundError,
)


@pytest.fixture
def paid_order(team, team_owner):
    return Order.objects.create(
        team=team,
        created_by=team_owner,
        status=OrderStatus.PAID,
        payment_status=OrderPaymentStatus.PAID,
        total_amount_clp=10000,
        subtotal_clp=10000,
    )


@pytest.mark.django_db
class TestAdvanceProductionStage:

    def test_first_step_starts_processing(self, paid_order, staff_user):
        order = advance_production_stage(order_id=paid_order.id, user=staff_user)

        assert order.current_stage == ProductionStage.PRINTING
        assert order.status == OrderStatus.PROCESSING
        assert order.locked_at is None

    def test_steps_in_order(self, paid_order, staff_user):
        advance_production_stage(order_id=paid_order.id, user=staff_user)
        order = advance_production_stage(order_id=paid_order.id, user=staff_user)
        assert order.current_stage == ProductionStage.CUTTING

    def test_explicit_forward_jump(self, paid_order, staff_user):
        order = advance_production_stage(order_id=paid_order.id, user=staff_user, stage='quality_control')
        assert order.current_stage == ProductionStage.QUALITY_CONTROL

    def test_shipping_locks_order(self, paid_order, staff_user):
        order = advance_production_stage(order_id=paid_order.id, user=staff_user, stage='shipping')

        assert order.status == OrderStatus.SHIPPED
        assert order.locked_at is not None
        assert order.can_accept_items is False

    def test_delivered(self, paid_order, staff_user):
        order = advance_production_stage(order_id=paid_order.id, user=staff_user, stage='delivered')

        assert order.status == OrderStatus.DELIVERED
        assert order.locked_at is not None

        with pytest.raises(InvalidStageTransitionError):
            advance_production_stage(order_id=paid_order.id, user=staff_user)

    def test_cannot_move_backwards(self, paid_order, staff_user):
        advance_production_stage(order_id=paid_order.id, user=staff_user, stage='sewing')

        with pytest.raises(InvalidStageTransitionError):
            advance_production_stage(order_id=paid_order.id, user=staff_user, stage='cutting')
        with pytest.raises(InvalidStageTransitionError):
            advance_production_stage(order_id=paid_order.id, user=staff_user, stage='sewing')

    def test_unknown_stage(self, paid_order, staff_user):
        with pytest.raises(InvalidStageTransitionError):
            advance_production_stage(order_id=paid_order.id, user=staff_user, stage='dyeing')

    def test_unpaid_order(self, team, team_owner, staff_user):
        order = Order.objects.create(team=team, created_by=team_owner)

        with pytest.raises(InvalidStageTransitionError):
            advance_production_stage(order_id=order.id, user=staff_user)

    def test_requires_staff(self, paid_order, team_owner):
        with pytest.raises(InsufficientPermissionsError):
            advance_production_stage(order_id=paid_order.id, user=team_owner)

        paid_order.refresh_from_db()
        assert paid_order.current_stage == ProductionStage.PENDING

    def test_unknown_order(self, staff_user):
        with pytest.raises(OrderNotFoundError):
            advance_production_stage(order_id=uuid4(), user=staff_user)
