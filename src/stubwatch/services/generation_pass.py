"""
One generation pass: filter, reload, classify, run.

Shared by the watch loop (once per debounced batch) and the one-shot CLI
commands. Downstream failures from the reloader or the runner propagate to
the caller.
"""

import logging
import time
from dataclasses import dataclass, field

from stubwatch.core.classifier import ChangeClassifier
from stubwatch.core.file_events import ChangeBatch
from stubwatch.core.interfaces import ApplicationReloader, GenerationRunner
from stubwatch.core.models import GenerationPlan
from stubwatch.core.path_filter import PathFilter

logger = logging.getLogger(__name__)


@dataclass
class PassResult:
    """
    Outcome of a generation pass.

    Attributes:
        relevant: Whether the batch passed the relevance filter
        plan: The classifier's plan, None for irrelevant batches
        ran: Whether the runner was invoked
        duration_ms: Wall time of the whole pass
    """

    relevant: bool
    plan: GenerationPlan | None = None
    ran: bool = False
    duration_ms: float = 0.0
    relevant_paths: list[str] = field(default_factory=list)


@dataclass
class GenerationPass:
    """Wires the filter, reloader, classifier and runner for one batch."""

    path_filter: PathFilter
    reloader: ApplicationReloader
    classifier: ChangeClassifier
    runner: GenerationRunner

    def plan(self, batch: ChangeBatch) -> PassResult:
        """Filter, reload and classify without running generation."""
        return self.execute(batch, dry_run=True)

    def execute(self, batch: ChangeBatch, dry_run: bool = False) -> PassResult:
        """
        Process one batch.

        Args:
            batch: The change batch
            dry_run: Classify but do not invoke the runner

        Returns:
            PassResult describing what happened
        """
        start_time = time.time()

        if not self.path_filter.is_relevant(batch):
            logger.debug(
                "Ignoring batch with no relevant paths",
                extra={"batch": batch.to_dict()},
            )
            return PassResult(relevant=False, duration_ms=(time.time() - start_time) * 1000)

        relevant_paths = self.path_filter.relevant_paths(batch)
        logger.info(
            "Change detected in %d relevant file(s)",
            len(relevant_paths),
            extra={"relevant_paths": relevant_paths[:10], "total_changes": batch.total_count()},
        )

        self.reloader.reload()
        plan = self.classifier.classify(batch)
        for line in plan.summary_lines():
            logger.info(line)

        result = PassResult(relevant=True, plan=plan, relevant_paths=relevant_paths)

        if not plan.is_actionable():
            logger.warning(
                "Plan has nothing to run (scope: %s, generators: %d); skipping generation",
                plan.scope,
                len(plan.selected_generators),
                extra={"plan": plan.to_dict()},
            )
        elif not dry_run:
            self.runner.run(plan)
            result.ran = True

        result.duration_ms = (time.time() - start_time) * 1000
        return result
