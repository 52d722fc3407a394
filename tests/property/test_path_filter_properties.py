"""
Property-based tests for PathFilter.

**Feature: change-classification, Property: Filter Purity**
Batches made only of tooling-directory or non-source paths are never
relevant; a single tracked source path makes a batch relevant.
"""

from hypothesis import given, settings
from hypothesis import strategies as st

from stubwatch.core.file_events import ChangeBatch
from stubwatch.core.path_filter import PathFilter
from tests.strategies import (
    change_batch_strategy,
    ignored_path,
    source_path,
)


@given(batch=change_batch_strategy(paths=ignored_path))
@settings(max_examples=100)
def test_batches_of_ignored_paths_are_not_relevant(batch: ChangeBatch):
    """Only reserved-directory or wrong-extension paths: never relevant."""
    path_filter = PathFilter()

    assert path_filter.is_relevant(batch) is False
    assert path_filter.relevant_paths(batch) == []


@given(
    batch=change_batch_strategy(paths=ignored_path),
    extra=source_path,
    target=st.sampled_from(["modified", "added", "removed"]),
)
@settings(max_examples=100)
def test_one_source_path_makes_batch_relevant(batch: ChangeBatch, extra: str, target: str):
    """A tracked source path in any of the three lists makes the batch relevant."""
    getattr(batch, target).append(extra)

    path_filter = PathFilter()

    assert path_filter.is_relevant(batch) is True
    assert extra in path_filter.relevant_paths(batch)


@given(batch=change_batch_strategy())
@settings(max_examples=100)
def test_filter_is_deterministic_and_side_effect_free(batch: ChangeBatch):
    """Repeated calls agree and never mutate the batch."""
    before = batch.copy()
    path_filter = PathFilter()

    first = path_filter.is_relevant(batch)
    second = path_filter.is_relevant(batch)

    assert first == second
    assert batch == before
    assert first == bool(path_filter.relevant_paths(batch))


def test_empty_batch_is_not_relevant():
    """An empty batch on all three lists is not relevant."""
    assert PathFilter().is_relevant(ChangeBatch()) is False


def test_model_file_change_is_relevant():
    """A modified model file is relevant."""
    batch = ChangeBatch(modified=["app/models/user.rb"])

    assert PathFilter().is_relevant(batch) is True


def test_change_inside_reserved_directory_is_not_relevant():
    """A shim inside the tooling directory is ignored."""
    batch = ChangeBatch(modified=[".sorbet/rbi/shims/foo.rbi"])

    assert PathFilter().is_relevant(batch) is False


def test_reserved_marker_matches_by_substring():
    """A .rb file anywhere under a path containing the marker is ignored."""
    path_filter = PathFilter()

    assert path_filter.is_ignored("sorbet/rbi/dsl/user.rb")
    assert path_filter.is_ignored("lib/sorbet_helpers/thing.rb")
    assert not path_filter.is_ignored("lib/helpers/thing.rb")


def test_custom_extension_and_markers():
    """Extension and markers are configurable."""
    path_filter = PathFilter(source_extension=".py", reserved_markers=["__generated__", "stubs"])

    assert path_filter.is_relevant(ChangeBatch(added=["pkg/models.py"]))
    assert not path_filter.is_relevant(ChangeBatch(added=["pkg/models.rb"]))
    assert not path_filter.is_relevant(ChangeBatch(added=["pkg/__generated__/models.py"]))
    assert not path_filter.is_relevant(ChangeBatch(removed=["stubs/models.py"]))


def test_relevant_paths_preserve_order():
    """Surviving paths come back in modified, added, removed order."""
    batch = ChangeBatch(
        modified=["b.rb", "notes.md"],
        added=["sorbet/x.rb", "a.rb"],
        removed=["c.rb"],
    )

    assert PathFilter().relevant_paths(batch) == ["b.rb", "a.rb", "c.rb"]
