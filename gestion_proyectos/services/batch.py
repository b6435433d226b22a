"""Result accumulator for best-effort batch operations.

Group-wide attach/detach, group deletion file cleanup and catalog import apply
independent per-item steps. Failures are recorded and logged, never raised, and
callers report the aggregate.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)


@dataclass
class ItemOutcome:
    item: Any
    ok: bool
    error: str | None = None


@dataclass
class BatchResult:
    operation: str
    outcomes: list[ItemOutcome] = field(default_factory=list)

    def success(self, item: Any) -> None:
        self.outcomes.append(ItemOutcome(item=item, ok=True))

    def failure(self, item: Any, error: BaseException | str) -> None:
        message = str(error)
        self.outcomes.append(ItemOutcome(item=item, ok=False, error=message))
        logger.warning("%s failed for %r: %s", self.operation, item, message)

    @property
    def applied(self) -> int:
        return sum(1 for o in self.outcomes if o.ok)

    @property
    def failed(self) -> int:
        return sum(1 for o in self.outcomes if not o.ok)

    @property
    def failed_items(self) -> list[Any]:
        return [o.item for o in self.outcomes if not o.ok]
