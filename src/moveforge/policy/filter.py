"""Event filter - applies module / batch criteria to classified events."""

from __future__ import annotations

import logging

from moveforge.models.events import TypedEvent
from moveforge.models.records import FilterCriteria, FilterResult

log = logging.getLogger(__name__)

_ACCEPTED = FilterResult(accepted=True, reason="accepted")
_MODULE_MISMATCH = FilterResult(accepted=False, reason="module_mismatch")
_BATCH_MISMATCH = FilterResult(accepted=False, reason="batch_mismatch")


class CriteriaEventFilter:
    """Evaluates events against an immutable FilterCriteria snapshot.

    Checks, in order:
    1. The event's module equals the module filter (when set)
    2. ``data["batch_id"]`` equals the batch filter (when set)

    Both comparisons are exact; an unset criterion matches everything.
    """

    def __init__(self, criteria: FilterCriteria) -> None:
        self._criteria = criteria

    @property
    def criteria(self) -> FilterCriteria:
        return self._criteria

    def evaluate(self, event: TypedEvent) -> FilterResult:
        module = self._criteria.module
        if module and event.event_type.module != module:
            log.debug("Skipping %s: module %s", event.event_type, event.event_type.module)
            return _MODULE_MISMATCH

        batch_id = self._criteria.batch_id
        if batch_id and event.data.get("batch_id") != batch_id:
            log.debug("Skipping %s: batch %s", event.event_type, event.data.get("batch_id"))
            return _BATCH_MISMATCH

        return _ACCEPTED
