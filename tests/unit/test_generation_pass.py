import logging

import pytest

from stubwatch.core.classifier import ChangeClassifier
from stubwatch.core.errors import GenerationError, ManifestError
from stubwatch.core.file_events import ChangeBatch
from stubwatch.core.path_filter import PathFilter
from stubwatch.infrastructure.fakes import CountingReloader, RecordingGenerationRunner
from stubwatch.services.generation_pass import GenerationPass
from tests.strategies import ALL_GENERATORS, build_registries


def _pass(models=("User", "Order"), generators=None, reloader=None, runner=None):
    entity_registry, generator_registry = build_registries(list(models), generators=generators)
    return GenerationPass(
        path_filter=PathFilter(),
        reloader=reloader or CountingReloader(),
        classifier=ChangeClassifier(entity_registry, generator_registry),
        runner=runner or RecordingGenerationRunner(),
    )


def test_irrelevant_batch_skips_reload_and_run():
    generation_pass = _pass()

    result = generation_pass.execute(ChangeBatch(modified=["sorbet/rbi/shims/foo.rbi"]))

    assert result.relevant is False
    assert result.plan is None
    assert generation_pass.reloader.calls == 0
    assert generation_pass.runner.plans == []


def test_relevant_batch_reloads_classifies_and_runs_once():
    generation_pass = _pass()
    batch = ChangeBatch(modified=["app/models/user.rb", "README.md"])

    result = generation_pass.execute(batch)

    assert result.relevant is True
    assert result.ran is True
    assert result.relevant_paths == ["app/models/user.rb"]
    assert generation_pass.reloader.calls == 1
    assert generation_pass.runner.plans == [result.plan]
    # Classification sees the whole batch, not just the relevant paths
    assert result.plan.requested_paths == ["app/models/user.rb", "README.md"]
    assert result.plan.selected_generators == ALL_GENERATORS


def test_plan_is_a_dry_run():
    generation_pass = _pass()

    result = generation_pass.plan(ChangeBatch(modified=["db/schema.rb"]))

    assert result.ran is False
    assert result.plan.requested_entities == ["User", "Order"]
    assert generation_pass.reloader.calls == 1
    assert generation_pass.runner.plans == []


def test_summary_lines_are_logged(caplog):
    generation_pass = _pass()

    with caplog.at_level(logging.INFO, logger="stubwatch.services.generation_pass"):
        generation_pass.execute(ChangeBatch(modified=["db/schema.rb"]))

    assert "Detected the following entities to be changed: User, Order" in caplog.text
    assert "Using the following generators:" in caplog.text


def test_plan_without_generators_is_skipped_with_warning(caplog):
    generation_pass = _pass(generators=[])

    with caplog.at_level(logging.WARNING):
        result = generation_pass.execute(ChangeBatch(modified=["app/models/user.rb"]))

    assert result.relevant is True
    assert result.ran is False
    assert generation_pass.runner.plans == []
    assert "skipping generation" in caplog.text


def test_reload_failure_propagates_before_classification():
    reloader = CountingReloader(error=ManifestError("Host manifest not found"))
    generation_pass = _pass(reloader=reloader)

    with pytest.raises(ManifestError):
        generation_pass.execute(ChangeBatch(modified=["app/models/user.rb"]))

    assert generation_pass.runner.plans == []


def test_runner_failure_propagates():
    runner = RecordingGenerationRunner(error=GenerationError("exit 1", returncode=1))
    generation_pass = _pass(runner=runner)

    with pytest.raises(GenerationError):
        generation_pass.execute(ChangeBatch(added=["app/models/user.rb"]))

    assert len(runner.plans) == 1
