"""
Generation runner that hands a plan to the project's generator command.

The plan becomes a command line (scope as positional arguments, generator
subset and options as flags) executed with subprocess. Every run, whether
it succeeds or fails, leaves a ``.gitattributes`` marker in the output
directory flagging its contents as generated.
"""

import logging
import subprocess
import time
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from stubwatch.core.config import GenerationConfig
from stubwatch.core.errors import GenerationError
from stubwatch.core.models import GenerationPlan

logger = logging.getLogger(__name__)

GENERATED_ATTRIBUTES = "**/*.rbi linguist-generated=true\n"


def write_generated_marker(output_dir: Path, content: str = GENERATED_ATTRIBUTES) -> Path:
    """Write the ``.gitattributes`` file marking ``output_dir`` as generated."""
    output_dir.mkdir(parents=True, exist_ok=True)
    marker = output_dir / ".gitattributes"
    marker.write_text(content, encoding="utf-8")
    return marker


@contextmanager
def generated_marker(output_dir: Path, enabled: bool = True) -> Iterator[None]:
    """Run the enclosed block, then write the generated marker even if it raised."""
    try:
        yield
    finally:
        if enabled:
            try:
                write_generated_marker(output_dir)
            except OSError as e:
                logger.warning(f"Could not write generated marker in {output_dir}: {e}")


def build_command(plan: GenerationPlan, config: GenerationConfig) -> list[str]:
    """
    Translate a plan into the generator command line.

    Args:
        plan: The plan to run
        config: Generation options

    Returns:
        argv list
    """
    argv = list(config.command)
    argv.extend(plan.requested_entities or plan.requested_paths)

    if plan.selected_generators:
        argv.append("--only")
        argv.extend(plan.selected_generators)
    if config.exclude:
        argv.append("--exclude")
        argv.extend(config.exclude)

    argv.extend(["--workers", str(config.workers)])
    argv.extend(["--outdir", config.output_dir])

    if config.quiet:
        argv.append("--quiet")
    elif config.verbose:
        argv.append("--verbose")
    if not config.file_header:
        argv.append("--no-file-header")
    if not config.halt_upon_load_error:
        argv.append("--no-halt-upon-load-error")
    if not config.auto_strictness:
        argv.append("--no-auto-strictness")

    return argv


class CommandGenerationRunner:
    """
    Runs the configured generator command for each plan.

    Attributes:
        config: Generation options
        project_root: Working directory for the command
    """

    def __init__(self, config: GenerationConfig, project_root: Path | str = "."):
        self._config = config
        self._project_root = Path(project_root)

    @property
    def output_dir(self) -> Path:
        output_dir = Path(self._config.output_dir)
        if output_dir.is_absolute():
            return output_dir
        return self._project_root / output_dir

    def run(self, plan: GenerationPlan) -> None:
        """
        Run generation for a plan.

        Raises:
            GenerationError: If the plan is not actionable, the command cannot
                be started, times out, or exits non-zero
        """
        if not plan.is_actionable():
            raise GenerationError(
                f"Refusing to run a plan with scope '{plan.scope}' and "
                f"{len(plan.selected_generators)} generator(s)"
            )

        argv = build_command(plan, self._config)
        logger.info(
            "Running generator: %s",
            " ".join(argv[: len(self._config.command)]),
            extra={"argv": argv, "cwd": str(self._project_root), "scope": plan.scope},
        )

        start_time = time.time()
        with generated_marker(self.output_dir, enabled=self._config.write_generated_marker):
            try:
                completed = subprocess.run(
                    argv,
                    cwd=str(self._project_root),
                    check=False,
                    timeout=self._config.timeout,
                )
            except FileNotFoundError as e:
                raise GenerationError(f"Generator command not found: {argv[0]}") from e
            except OSError as e:
                raise GenerationError(f"Cannot start generator {argv[0]}: {e}") from e
            except subprocess.TimeoutExpired as e:
                raise GenerationError(
                    f"Generator timed out after {self._config.timeout}s"
                ) from e

            duration_ms = (time.time() - start_time) * 1000
            if completed.returncode != 0:
                raise GenerationError(
                    f"Generator exited with status {completed.returncode}",
                    returncode=completed.returncode,
                )

        logger.info(
            "Generator finished in %.2fms",
            duration_ms,
            extra={"duration_ms": duration_ms, "output_dir": str(self.output_dir)},
        )
