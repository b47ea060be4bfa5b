"""
Order tracking derivation.

Pure functions turning an order's status and estimated delivery time into
what a customer sees: step number, progress bar, ETA text and the step
list. Nothing here touches the database or mutates the order.
"""

from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Any

from marketplace_shared.config.constants import (
    ORDER_ETA_CANCELED,
    ORDER_ETA_FALLBACK,
    ORDER_ETA_PASSED,
    ORDER_ETA_UNKNOWN,
    ORDER_STATUS_SEQUENCE,
    ORDER_STEP_TEXTS,
    OrderStatus,
)
from marketplace_shared.utils.schemas import OrderTrackingOutput, OrderTrackingStepOutput

TOTAL_STEPS = len(ORDER_STATUS_SEQUENCE)


def _as_utc(value: datetime) -> datetime:
    """Naive datetimes are taken to be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def status_step(status: str) -> int | None:
    """1-based position of the status in the progression, None when off it."""
    try:
        return ORDER_STATUS_SEQUENCE.index(status) + 1
    except ValueError:
        return None


def progress_percentage(status: str) -> float:
    """Share of the progression completed, 0-100."""
    step = status_step(status)
    if step is None:
        return 0.0
    return step / TOTAL_STEPS * 100


def format_minutes(minutes: int) -> str:
    """Render a positive minute count: "25 minutes" or "1h 30m"."""
    if minutes < 60:
        return f"{minutes} minutes"
    return f"{minutes // 60}h {minutes % 60}m"


def estimated_delivery_text(
    status: str,
    estimated_delivery_time: datetime | None,
    now: datetime | None = None,
) -> str:
    """
    Human-readable delivery estimate.

    Terminal statuses always read "Delivered" / "Canceled". Otherwise an
    explicit ETA wins over the per-status fallback ranges.

    Args:
        status: Order status.
        estimated_delivery_time: Explicit ETA, if the restaurant set one.
        now: Reference time (defaults to the current UTC time).
    """
    if status == OrderStatus.DELIVERED:
        return ORDER_ETA_FALLBACK[OrderStatus.DELIVERED]
    if status == OrderStatus.CANCELED:
        return ORDER_ETA_CANCELED

    if estimated_delivery_time is not None:
        now = _as_utc(now) if now is not None else datetime.now(timezone.utc)
        remaining = _as_utc(estimated_delivery_time) - now
        minutes = math.ceil(remaining.total_seconds() / 60)
        if minutes <= 0:
            return ORDER_ETA_PASSED
        return format_minutes(minutes)

    return ORDER_ETA_FALLBACK.get(status, ORDER_ETA_UNKNOWN)


def build_steps(status: str) -> list[OrderTrackingStepOutput]:
    """Step list with completed/current flags. Canceled orders have none completed."""
    current = status_step(status)
    steps = []
    for index, key in enumerate(ORDER_STATUS_SEQUENCE, start=1):
        label, description = ORDER_STEP_TEXTS[key]
        steps.append(
            OrderTrackingStepOutput(
                key=key,
                label=label,
                description=description,
                step=index,
                is_completed=current is not None and index <= current,
                is_current=current == index,
            )
        )
    return steps


def build_tracking(order: Any, now: datetime | None = None) -> OrderTrackingOutput:
    """
    Build the tracking view of an order.

    Args:
        order: Anything with id, status and estimated_delivery_time.
        now: Reference time for the ETA text.
    """
    return OrderTrackingOutput(
        order_id=order.id,
        status=order.status,
        step=status_step(order.status),
        total_steps=TOTAL_STEPS,
        progress_percentage=progress_percentage(order.status),
        estimated_delivery_text=estimated_delivery_text(
            order.status, order.estimated_delivery_time, now
        ),
        is_canceled=order.status == OrderStatus.CANCELED,
        steps=build_steps(order.status),
    )
