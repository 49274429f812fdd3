# deal_tracker/analysis/change_detector.py

"""Field-by-field comparison of two pricing snapshots."""

import logging

from deal_tracker.models.changes import ChangeSet, ChangeType, PlanChange
from deal_tracker.models.pricing import PricingSnapshot

logger = logging.getLogger("deal_tracker.changes")


def _price_change(
    plan_key: str, old_price: float, new_price: float,
) -> PlanChange:
    """Build a price-drop or price-increase change for one plan."""
    amount = new_price - old_price
    percentage = amount / old_price * 100 if old_price else 0.0
    dropped = amount < 0
    verb = "decreased" if dropped else "increased"
    sign = "-" if dropped else "+"
    return PlanChange(
        type=ChangeType.PRICE_DROP if dropped else ChangeType.PRICE_INCREASE,
        plan=plan_key,
        old_price=old_price,
        new_price=new_price,
        change_amount=amount,
        change_percentage=percentage,
        message=(
            f"{plan_key} {verb} by {abs(percentage):.1f}% "
            f"({sign}${abs(amount):.2f})"
        ),
    )


def detect_changes(
    previous: PricingSnapshot | None,
    current: PricingSnapshot,
) -> ChangeSet:
    """Compare *current* against *previous* and return the diff.

    With no previous snapshot the result is a single
    ``initial_tracking`` change and promotions are not compared.
    Plans that disappear from *current* are not reported.
    """
    changes = ChangeSet()

    if previous is None:
        changes.plan_changes.append(
            PlanChange(
                type=ChangeType.INITIAL_TRACKING,
                message="Started tracking this software",
            )
        )
        return changes

    for plan_key, new_plan in current.plans.items():
        old_plan = previous.plans.get(plan_key)
        if old_plan is None:
            changes.plan_changes.append(
                PlanChange(
                    type=ChangeType.NEW_PLAN,
                    plan=plan_key,
                    new_price=new_plan.current_price,
                    message=(
                        f"New {plan_key} plan introduced at "
                        f"${new_plan.current_price}"
                    ),
                )
            )
        elif old_plan.current_price != new_plan.current_price:
            changes.plan_changes.append(
                _price_change(
                    plan_key,
                    old_plan.current_price,
                    new_plan.current_price,
                )
            )

    old_descriptions = {p.description for p in previous.promotions}
    new_descriptions = {p.description for p in current.promotions}

    changes.new_promotions.extend(
        p for p in current.promotions
        if p.description not in old_descriptions
    )
    changes.ended_promotions.extend(
        p for p in previous.promotions
        if p.description not in new_descriptions
    )

    if changes.has_changes:
        logger.debug(
            "Detected %d plan changes, %d new and %d ended promotions",
            len(changes.plan_changes),
            len(changes.new_promotions),
            len(changes.ended_promotions),
        )
    return changes
