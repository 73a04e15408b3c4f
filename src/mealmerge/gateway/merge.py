"""Saga-style ownership transfer across independently addressed record stores.

A :class:`MigrationPlan` lists the stores to migrate in order and marks each
step as required or tolerated. A required step that fails aborts the merge with
:class:`FatalMergeError`; a tolerated step that fails is recorded as a
:class:`PartialMergeWarning` and the merge carries on. Required steps must come
first so that nothing has been mutated when a required step aborts.

Transferred counts are re-read from the stores rather than taken from UPDATE
row counts: the count owned by the target afterwards minus the count it owned
before. Every step is a plain transfer-by-filter, so repeating a merge matches
no rows and reports zero.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from mealmerge import metrics
from mealmerge.db.owned_records import (
    DAILY_SUMMARIES,
    MEAL_LOGS,
    PUSH_SUBSCRIPTIONS,
    USER_NAMES,
    OwnedRecordStore,
)
from mealmerge.errors import FatalMergeError, PartialMergeWarning
from mealmerge.logging_utils import describe_identifier

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MigrationStep:
    store: OwnedRecordStore
    required: bool = False


@dataclass(frozen=True)
class MigrationPlan:
    name: str
    steps: Tuple[MigrationStep, ...]

    def __post_init__(self) -> None:
        if not self.steps:
            raise ValueError("A migration plan needs at least one step")
        seen_tolerated = False
        for step in self.steps:
            if step.required and seen_tolerated:
                raise ValueError(
                    f"Required step {step.store.name!r} follows a tolerated step in {self.name!r}"
                )
            seen_tolerated = seen_tolerated or not step.required

    @property
    def stores(self) -> List[OwnedRecordStore]:
        return [step.store for step in self.steps]


MERGE_PLAN = MigrationPlan(
    name="merge_user_data",
    steps=(
        MigrationStep(MEAL_LOGS, required=True),
        MigrationStep(USER_NAMES),
        MigrationStep(PUSH_SUBSCRIPTIONS),
    ),
)

RECOVERY_PLAN = MigrationPlan(
    name="recover_legacy_data",
    steps=(
        MigrationStep(MEAL_LOGS, required=True),
        MigrationStep(USER_NAMES),
        MigrationStep(DAILY_SUMMARIES),
    ),
)


@dataclass
class MergeResult:
    """Per-store transferred counts plus any tolerated failures."""

    transferred: Dict[str, int] = field(default_factory=dict)
    warnings: List[PartialMergeWarning] = field(default_factory=list)

    def count(self, store: str) -> int:
        return self.transferred.get(store, 0)

    @property
    def failed_stores(self) -> List[str]:
        return [warning.store for warning in self.warnings]


class MergeExecutor:
    """Run a :class:`MigrationPlan` from one owner to another."""

    def __init__(self, plan: MigrationPlan = MERGE_PLAN, *, development: bool = False) -> None:
        self._plan = plan
        self._development = development

    @property
    def plan(self) -> MigrationPlan:
        return self._plan

    def _ref(self, value: str) -> str:
        return describe_identifier(value, self._development)

    def owned_counts(self, owner_id: str) -> Dict[str, int]:
        return {store.name: store.count(owner_id) for store in self._plan.stores}

    def has_records(self, owner_id: str) -> bool:
        return any(count > 0 for count in self.owned_counts(owner_id).values())

    def _baseline(self, target_id: str) -> Dict[str, Optional[int]]:
        baseline: Dict[str, Optional[int]] = {}
        for step in self._plan.steps:
            try:
                baseline[step.store.name] = step.store.count(target_id)
            except Exception as exc:
                if step.required:
                    logger.error("Unable to read %s before merge", step.store.name)
                    raise FatalMergeError("Failed to merge user data") from exc
                logger.warning("Unable to read %s before merge; reporting raw count", step.store.name)
                baseline[step.store.name] = None
        return baseline

    def _run_step(self, step: MigrationStep, source_id: str, target_id: str) -> Optional[PartialMergeWarning]:
        try:
            affected = step.store.transfer(source_id, target_id)
        except Exception as exc:
            metrics.MIGRATION_STEP_FAILURES.labels(
                store=step.store.name, required=str(step.required).lower()
            ).inc()
            if step.required:
                logger.error(
                    "Required transfer of %s failed (%s); aborting %s",
                    step.store.name,
                    exc.__class__.__name__,
                    self._plan.name,
                )
                raise FatalMergeError("Failed to merge user data") from exc
            warning = PartialMergeWarning(step.store.name, exc)
            logger.warning("%s; continuing %s", warning, self._plan.name)
            return warning
        logger.debug(
            "Transferred %s from %s to %s (driver reported %s rows)",
            step.store.name,
            self._ref(source_id),
            self._ref(target_id),
            affected,
        )
        return None

    def execute(self, source_id: str, target_id: str) -> MergeResult:
        """Transfer every planned store from ``source_id`` to ``target_id``."""

        if source_id == target_id:
            raise ValueError("source and target owners must differ")

        baseline = self._baseline(target_id)
        result = MergeResult()
        for step in self._plan.steps:
            warning = self._run_step(step, source_id, target_id)
            if warning is not None:
                result.warnings.append(warning)

        for store in self._plan.stores:
            try:
                after = store.count(target_id)
            except Exception as exc:
                logger.warning("Unable to re-read %s after merge", store.name)
                result.warnings.append(PartialMergeWarning(store.name, exc))
                result.transferred[store.name] = 0
                continue
            before = baseline.get(store.name)
            result.transferred[store.name] = max(after - (before or 0), 0)

        logger.info(
            "%s finished source=%s target=%s transferred=%s failed=%s",
            self._plan.name,
            self._ref(source_id),
            self._ref(target_id),
            result.transferred,
            result.failed_stores or "none",
        )
        return result


__all__ = [
    "MigrationStep",
    "MigrationPlan",
    "MERGE_PLAN",
    "RECOVERY_PLAN",
    "MergeResult",
    "MergeExecutor",
]
