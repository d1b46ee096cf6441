"""Trigger evaluator for automatic resets.

One evaluation per request cycle walks the weekly store cycle:

    open    -> drq_completed = no             (arm the next closing)
    closed  -> drq_should_run = yes           (if not yet completed)
    next    -> reset, then should_run = no, completed = yes

Decisions are made on the flags as read at the start of the
evaluation, so the reset runs on the evaluation after the closing was
seen. A missing ``store_status`` forces ``drq_completed = yes`` and
cancels any pending reset; automatic resets stay off until the store
is seen open again.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from .flag_store import (
    COMPLETED_KEY,
    SHOULD_RUN_KEY,
    FlagStore,
    read_state,
    write_flag,
)
from .models import (
    ResetReport,
    ResetState,
    StoreStatus,
    TriggerAction,
    TriggerOutcome,
    YesNo,
)

logger = logging.getLogger("drq.trigger")


def advance(
    state: ResetState,
    flags: FlagStore,
    run_reset: Callable[[], ResetReport],
) -> TriggerOutcome:
    """Apply one step of the flag machine to ``state``, writing through ``flags``."""
    if state.auto_reset is not YesNo.YES:
        return TriggerOutcome(TriggerAction.DISABLED)

    should_run = state.should_run
    completed = state.completed
    if should_run is None:
        write_flag(flags, SHOULD_RUN_KEY, YesNo.NO)
        should_run = YesNo.NO
    if completed is None:
        write_flag(flags, COMPLETED_KEY, YesNo.NO)
        completed = YesNo.NO

    if state.store_status is None:
        write_flag(flags, COMPLETED_KEY, YesNo.YES)
        if should_run is YesNo.YES:
            write_flag(flags, SHOULD_RUN_KEY, YesNo.NO)
            logger.warning("store_status missing, pending reset cancelled")
        else:
            logger.warning("store_status missing, automatic reset suppressed")
        return TriggerOutcome(TriggerAction.FAIL_CLOSED)

    if should_run is YesNo.NO:
        if state.store_status is StoreStatus.CLOSED and completed is YesNo.NO:
            write_flag(flags, SHOULD_RUN_KEY, YesNo.YES)
            logger.info("Store closed, reset scheduled for the next cycle")
            return TriggerOutcome(TriggerAction.ARMED)
        if state.store_status is StoreStatus.OPEN:
            if write_flag(flags, COMPLETED_KEY, YesNo.NO):
                logger.info("Store open, next closing will reset quantities")
                return TriggerOutcome(TriggerAction.REARMED)
        return TriggerOutcome(TriggerAction.IDLE)

    if completed is YesNo.NO:
        report = run_reset()
        write_flag(flags, SHOULD_RUN_KEY, YesNo.NO)
        write_flag(flags, COMPLETED_KEY, YesNo.YES)
        logger.info("Automatic reset completed (%d items)", report.total)
        return TriggerOutcome(TriggerAction.RESET, report)

    # should_run and completed both yes: the reset already happened
    write_flag(flags, SHOULD_RUN_KEY, YesNo.NO)
    logger.warning("Cleared stale drq_should_run after a completed reset")
    return TriggerOutcome(TriggerAction.IDLE)


def evaluate(
    flags: FlagStore,
    run_reset: Callable[[], ResetReport],
    *,
    auto_reset_default: YesNo = YesNo.YES,
    integration_active: bool = True,
) -> TriggerOutcome:
    """Read the flags and run one evaluation.

    Args:
        flags: Flag store holding the four flags.
        run_reset: Called at most once, when a reset is due.
        auto_reset_default: Value of ``auto_reset_quantities`` when unset.
        integration_active: False when no store-status publisher is
            configured; no flag is written in that case.
    """
    state = read_state(flags, auto_reset_default)
    if state.auto_reset is not YesNo.YES:
        return TriggerOutcome(TriggerAction.DISABLED)
    if not integration_active:
        return TriggerOutcome(TriggerAction.INTEGRATION_INACTIVE)
    return advance(state, flags, run_reset)
