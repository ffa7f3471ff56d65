"""
Production progress tracking.

Progress is never stored. It is derived on demand from facts about the
team's design requests, player submissions and orders:

Phase 1 (order placement) counts four independent steps.
Phase 2 (production) walks the fixed stage pipeline and only starts
once every team order is paid.
"""

from dataclasses import dataclass, asdict
from typing import List, Optional
from uuid import UUID

from apps.orders.models import (
    ApprovalStatus,
    DesignRequest,
    DesignRequestStatus,
    Order,
    OrderPaymentStatus,
    OrderStatus,
    ProductionStage,
    PRODUCTION_STAGES,
)
from apps.teams.models import ShippingAddress
from apps.teams.services import get_team, players_confirmed


# Request states that count as a confirmed design, legacy values included
CONFIRMED_DESIGN_STATUSES = (DesignRequestStatus.READY, 'design_ready', 'approved')

PHASE_ONE_STEPS = [
    ('design_requested', 'Design requested'),
    ('design_confirmed', 'Design confirmed'),
    ('players_added', 'Players added'),
    ('payment_complete', 'Payment complete'),
]

STAGE_COMPLETE = 'complete'
STAGE_ACTIVE = 'active'
STAGE_LOCKED = 'locked'


@dataclass(frozen=True)
class ProgressFacts:
    """Everything the tracker needs to know about a team."""
    design_requested: bool = False
    design_confirmed: bool = False
    players_added: bool = False
    payment_complete: bool = False
    current_stage: Optional[str] = None
    order_status: Optional[str] = None
    address_set: bool = False


@dataclass(frozen=True)
class ProgressStep:
    key: str
    label: str
    completed: bool


@dataclass(frozen=True)
class StageState:
    key: str
    label: str
    state: str


@dataclass(frozen=True)
class TeamProgress:
    phase1_steps: List[ProgressStep]
    phase1_completion: int
    phase2_stages: List[StageState]
    phase2_completion: int
    current_stage_index: Optional[int]
    address_set: bool

    def as_dict(self):
        return asdict(self)


def stage_index(current_stage: Optional[str], order_status: Optional[str] = None) -> Optional[int]:
    """
    Position of an order in the production pipeline.

    Delivered and shipped order statuses win over the stored stage.
    Returns None when production has not started.
    """
    if order_status == OrderStatus.DELIVERED:
        return PRODUCTION_STAGES.index(ProductionStage.DELIVERED)
    if order_status == OrderStatus.SHIPPED:
        return PRODUCTION_STAGES.index(ProductionStage.SHIPPING)
    if current_stage in PRODUCTION_STAGES:
        return PRODUCTION_STAGES.index(current_stage)
    return None


def compute_progress(facts: ProgressFacts) -> TeamProgress:
    """Derive both phases of team progress from facts. Pure function."""
    steps = [
        ProgressStep(key=key, label=label, completed=bool(getattr(facts, key)))
        for key, label in PHASE_ONE_STEPS
    ]
    done = sum(1 for step in steps if step.completed)
    phase1_completion = round(done / len(steps) * 100)

    index = None
    if facts.payment_complete:
        index = stage_index(facts.current_stage, facts.order_status)

    stages = []
    for position, stage in enumerate(PRODUCTION_STAGES):
        if index is None or position > index:
            state = STAGE_LOCKED
        elif position < index:
            state = STAGE_COMPLETE
        else:
            state = STAGE_ACTIVE
        stages.append(StageState(key=stage.value, label=stage.label, state=state))

    phase2_completion = 0
    if index is not None:
        phase2_completion = round((index + 1) / len(PRODUCTION_STAGES) * 100)

    return TeamProgress(
        phase1_steps=steps,
        phase1_completion=phase1_completion,
        phase2_stages=stages,
        phase2_completion=phase2_completion,
        current_stage_index=index,
        address_set=facts.address_set,
    )


def gather_progress_facts(*, team_id: UUID) -> ProgressFacts:
    """
    Read the progress facts for a team. Read-only.

    The most recent order supplies the production stage.

    Raises:
        TeamNotFoundError: If team doesn't exist
    """
    team = get_team(team_id=team_id)

    requests = DesignRequest.objects.filter(team=team)
    design_confirmed = any(
        bool(request.mockup_urls)
        or request.status in CONFIRMED_DESIGN_STATUSES
        or request.approval_status == ApprovalStatus.APPROVED
        for request in requests.only('mockup_urls', 'status', 'approval_status')
    )

    orders = Order.objects.filter(team=team)
    payment_complete = (
        orders.exists()
        and not orders.exclude(payment_status=OrderPaymentStatus.PAID).exists()
    )
    latest_order = orders.order_by('-created_at').first()

    return ProgressFacts(
        design_requested=requests.exists(),
        design_confirmed=design_confirmed,
        players_added=players_confirmed(team_id=team.id),
        payment_complete=payment_complete,
        current_stage=latest_order.current_stage if latest_order else None,
        order_status=latest_order.status if latest_order else None,
        address_set=ShippingAddress.objects.filter(team=team).exists(),
    )


def get_team_progress(*, team_id: UUID) -> TeamProgress:
    """Gather facts for a team and compute its progress."""
    return compute_progress(gather_progress_facts(team_id=team_id))
