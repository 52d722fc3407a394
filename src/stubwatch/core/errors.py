"""Exception types for stubwatch."""


class StubwatchError(Exception):
    """Base exception for stubwatch errors."""

    pass


class PlanInvariantError(StubwatchError):
    """A GenerationPlan was built with both entity and path scope."""

    pass


class ManifestError(StubwatchError):
    """The host manifest is missing or cannot be parsed."""

    pass


class GenerationError(StubwatchError):
    """The generation runner failed or was handed a plan it cannot run.

    Carries the runner's exit code when the failure came from the
    generation command itself.
    """

    def __init__(self, message: str, returncode: int | None = None):
        self.returncode = returncode
        super().__init__(message)
