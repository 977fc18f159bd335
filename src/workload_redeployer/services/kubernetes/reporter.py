"""Per-target outcome reporting."""

from __future__ import annotations

import structlog
from rich.console import Console
from rich.markup import escape

from workload_redeployer.integrations.kubernetes.models.workloads import RestartOutcome

logger = structlog.get_logger()


class OutcomeReporter:
    """Print one line per restart outcome as it arrives.

    Successes go to stdout and failures to stderr. Outcomes are also kept in
    arrival order for callers that want to inspect them; no summary is printed.
    """

    def __init__(self, console: Console | None = None, err_console: Console | None = None) -> None:
        self._console = console or Console(soft_wrap=True, highlight=False)
        self._err_console = err_console or Console(stderr=True, soft_wrap=True, highlight=False)
        self._outcomes: list[RestartOutcome] = []

    def report(self, outcome: RestartOutcome) -> None:
        """Print and record a single outcome."""
        self._outcomes.append(outcome)
        if outcome.success:
            self._console.print(escape(f"Successfully restarted {outcome.kind} {outcome.name}"))
        else:
            self._err_console.print(
                escape(f"Error restarting {outcome.kind} {outcome.name}: {outcome.error}")
            )

    def log_summary(self) -> None:
        """Emit a structured log event describing the batch."""
        logger.info(
            "restart_batch_complete",
            total=len(self._outcomes),
            succeeded=len(self.succeeded),
            failed=len(self.failed),
        )

    @property
    def outcomes(self) -> list[RestartOutcome]:
        return list(self._outcomes)

    @property
    def succeeded(self) -> list[RestartOutcome]:
        return [o for o in self._outcomes if o.success]

    @property
    def failed(self) -> list[RestartOutcome]:
        return [o for o in self._outcomes if not o.success]
