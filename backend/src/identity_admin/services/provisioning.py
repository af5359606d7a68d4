"""Multi-step provisioning with optional compensation.

Creating a pool needs an IAM role first; creating a user is followed by
setting its password. When a later step fails, the resources made by the
earlier steps either get removed (compensation enabled) or are reported
as orphans in the logs.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any
from typing import Callable
from typing import Optional

from identity_admin.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class CompletedStep:
    name: str
    result: Any
    undo: Optional[Callable[[Any], Any]] = None
    resource: Optional[str] = None

    @property
    def label(self) -> str:
        return f"{self.name}:{self.resource}" if self.resource else self.name


class Saga:
    """Context manager tracking completed steps of one operation.

    Usage::

        with Saga("create_user_pool", compensate=True) as saga:
            role = saga.run("create_role", create_role, undo=delete_role)
            saga.run("create_user_pool", lambda: create_pool(role))

    An exception inside the block triggers :meth:`rollback` and is then
    re-raised unchanged.
    """

    def __init__(self, name: str, compensate: bool = False):
        self.name = name
        self.compensate = compensate
        self.completed: list[CompletedStep] = []
        self.orphans: list[str] = []

    def __enter__(self) -> "Saga":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc is not None:
            self.rollback(exc)
        return False

    def run(
        self,
        step: str,
        action: Callable[[], Any],
        undo: Optional[Callable[[Any], Any]] = None,
        resource: Optional[str] = None,
    ) -> Any:
        """Execute *action*; remember *undo* to reverse it later.

        *resource* names what the step created, for orphan reports.
        """
        result = action()
        self.completed.append(CompletedStep(step, result, undo, resource))
        return result

    def rollback(self, cause: BaseException) -> None:
        """Compensate or report every completed, reversible step."""
        reversible = [step for step in reversed(self.completed) if step.undo]
        if not reversible:
            return

        if not self.compensate:
            self.orphans = [step.label for step in reversible]
            logger.warning(
                f"{self.name} failed after partial success; "
                "resources left in place",
                extra={"orphaned_steps": self.orphans, "cause": str(cause)},
            )
            return

        for step in reversible:
            try:
                step.undo(step.result)
                logger.info(f"Compensated step {step.name} of {self.name}")
            except Exception:
                self.orphans.append(step.label)
                logger.error(
                    f"Compensation for {step.name} of {self.name} failed",
                    exc_info=True,
                )
