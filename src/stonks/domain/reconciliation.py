"""Diff scraped earnings instants against the stored ones and apply the delta.

Planning is a pure set difference. Application is best-effort: every delete and
insert is attempted, each failure is reported and counted, and the caller decides
what a partial failure means for the cycle.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING, Protocol

from stonks.domain.ports.persistence import PersistenceError

if TYPE_CHECKING:
    from collections.abc import Set
    from datetime import datetime

log = getLogger(__name__)


class ReconciliationAction(StrEnum):
    DELETE = "delete"
    INSERT = "insert"


@dataclass(frozen=True, slots=True)
class ReconciliationPlan:
    to_delete: frozenset[datetime]
    to_insert: frozenset[datetime]

    @property
    def is_empty(self) -> bool:
        return not self.to_delete and not self.to_insert


@dataclass(frozen=True, slots=True)
class ReconciliationFailure:
    action: ReconciliationAction
    instant: datetime
    error: PersistenceError


@dataclass(slots=True)
class ReconciliationOutcome:
    added: int = 0
    removed: int = 0
    failures: list[ReconciliationFailure] = field(
        default_factory=list["ReconciliationFailure"]
    )

    @property
    def failed(self) -> bool:
        return bool(self.failures)


class EarningsDateWriter(Protocol):
    """Applies single earnings-date changes, each durable on its own.

    Implementations raise ``PersistenceError`` when one change cannot be stored.
    """

    def delete(self, instant: datetime) -> None: ...

    def insert(self, instant: datetime) -> None: ...


FailureHandler = Callable[[ReconciliationFailure], None]


def plan_reconciliation(
    persisted: Set[datetime],
    discovered: Set[datetime],
) -> ReconciliationPlan:
    """Return the minimal delta turning ``persisted`` into ``discovered``.

    An empty ``discovered`` set plans the removal of everything persisted; callers
    that cannot tell "no dates" from "extraction found nothing" must gate first.
    """

    return ReconciliationPlan(
        to_delete=frozenset(persisted - discovered),
        to_insert=frozenset(discovered - persisted),
    )


def apply_reconciliation(
    plan: ReconciliationPlan,
    *,
    writer: EarningsDateWriter,
    on_failure: FailureHandler | None = None,
) -> ReconciliationOutcome:
    """Apply deletions then insertions, never stopping on a single failure."""

    outcome = ReconciliationOutcome()

    for instant in sorted(plan.to_delete):
        try:
            writer.delete(instant)
        except PersistenceError as exc:
            _record_failure(outcome, ReconciliationAction.DELETE, instant, exc, on_failure)
        else:
            outcome.removed += 1

    for instant in sorted(plan.to_insert):
        try:
            writer.insert(instant)
        except PersistenceError as exc:
            _record_failure(outcome, ReconciliationAction.INSERT, instant, exc, on_failure)
        else:
            outcome.added += 1

    log.debug(
        "Reconciliation applied: added=%s, removed=%s, failed=%s",
        outcome.added,
        outcome.removed,
        len(outcome.failures),
    )
    return outcome


def reconcile(
    persisted: Set[datetime],
    discovered: Set[datetime],
    *,
    writer: EarningsDateWriter,
    on_failure: FailureHandler | None = None,
) -> tuple[ReconciliationPlan, ReconciliationOutcome]:
    plan = plan_reconciliation(persisted, discovered)
    return plan, apply_reconciliation(plan, writer=writer, on_failure=on_failure)


def _record_failure(
    outcome: ReconciliationOutcome,
    action: ReconciliationAction,
    instant: datetime,
    error: PersistenceError,
    on_failure: FailureHandler | None,
) -> None:
    failure = ReconciliationFailure(action=action, instant=instant, error=error)
    outcome.failures.append(failure)
    if on_failure is not None:
        on_failure(failure)
