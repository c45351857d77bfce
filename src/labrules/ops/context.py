"""Per-call context handed to every operation function."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field

from labrules.core.execution import ExecutionRunner
from labrules.core.store import DocumentStore


@dataclass
class OperationContext:
    """Where an operation reads and writes, and on whose behalf.

    ``caller`` is ``"api"``, ``"cli"`` or ``"sdk"`` and only tags log lines.
    With ``dry_run`` set, writing operations validate and return a preview.
    """

    store: DocumentStore
    runner: ExecutionRunner | None = None
    request_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    caller: str = "sdk"
    dry_run: bool = False

    def get_runner(self) -> ExecutionRunner:
        if self.runner is None:
            self.runner = ExecutionRunner()
        return self.runner
