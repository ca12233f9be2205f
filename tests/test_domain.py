"""
Tests for repofleet domain objects.

Tests cover:
- RepositoryDescriptor name derivation and validation
- OperationOutcome construction and serialization
- RunSummary folding and exit codes
- OperationReport ordering and error lines
"""

import pytest
from pathlib import Path

from repofleet.domain import (
    ErrorKind,
    LocalRepository,
    OperationOutcome,
    OperationReport,
    OperationStatus,
    RepositoryDescriptor,
    RunSummary,
    derive_name,
    exit_code_for,
    summarize,
)


# ============================================================================
# Descriptor Tests
# ============================================================================

class TestDeriveName:
    """Tests for derive_name()."""

    @pytest.mark.parametrize("identifier,expected", [
        ("git@github.com:katakumby/ticker-archit.git", "ticker-archit"),
        ("https://github.com/katakumby/hl-iso20022.git", "hl-iso20022"),
        ("https://example.com/org/tool/", "tool"),
        ("host:org/a.git", "a"),
        ("host:repo.git", "repo"),
        ("/srv/git/project", "project"),
        ("file:///srv/git/project.git", "project"),
    ])
    def test_derive_name(self, identifier, expected):
        assert derive_name(identifier) == expected

    def test_only_trailing_git_suffix_is_stripped(self):
        assert derive_name("host:org/my.git.tools.git") == "my.git.tools"


class TestRepositoryDescriptor:
    """Tests for RepositoryDescriptor."""

    def test_derived_name(self):
        descriptor = RepositoryDescriptor("host:org/a.git")
        assert descriptor.derived_name == "a"

    def test_explicit_name_wins(self):
        descriptor = RepositoryDescriptor("host:org/a.git", name="alpha")
        assert descriptor.derived_name == "alpha"

    def test_empty_identifier_rejected(self):
        with pytest.raises(ValueError):
            RepositoryDescriptor("")
        with pytest.raises(ValueError):
            RepositoryDescriptor("   ")

    def test_unnameable_identifier_rejected(self):
        with pytest.raises(ValueError):
            RepositoryDescriptor("host:")

    def test_is_immutable(self):
        descriptor = RepositoryDescriptor("host:org/a.git")
        with pytest.raises(Exception):
            descriptor.identifier = "other"

    def test_from_config_string(self):
        descriptor = RepositoryDescriptor.from_config("git@github.com:org/tool.git")
        assert descriptor.identifier == "git@github.com:org/tool.git"
        assert descriptor.derived_name == "tool"

    def test_from_config_mapping(self):
        descriptor = RepositoryDescriptor.from_config({"url": "host:org/a.git", "name": "alpha"})
        assert descriptor.derived_name == "alpha"

    def test_from_config_rejects_other_types(self):
        with pytest.raises(ValueError):
            RepositoryDescriptor.from_config(42)

    def test_from_config_mapping_without_url(self):
        with pytest.raises(ValueError):
            RepositoryDescriptor.from_config({"name": "alpha"})


class TestLocalRepository:
    """Tests for LocalRepository."""

    def test_to_dict(self):
        repo = LocalRepository("a", Path("/repos/a"), materialized=True, has_commit_history=True)
        assert repo.to_dict() == {
            'name': 'a',
            'path': '/repos/a',
            'materialized': True,
            'has_commit_history': True,
        }


# ============================================================================
# Outcome / Summary Tests
# ============================================================================

class TestOperationOutcome:
    """Tests for OperationOutcome."""

    def test_success(self):
        outcome = OperationOutcome.success("a", "/repos/a", lines=12)

        assert outcome.status == OperationStatus.SUCCESS
        assert outcome.reason is None
        assert outcome.metadata == {"lines": 12}
        assert not outcome.is_failure

    def test_skipped(self):
        outcome = OperationOutcome.skipped("a", "/repos/a", "already exists", ErrorKind.ALREADY_EXISTS)

        assert outcome.status == OperationStatus.SKIPPED
        assert outcome.reason == "already exists"
        assert not outcome.is_failure

    def test_failed(self):
        outcome = OperationOutcome.failed("b", "/repos/b", "clone error",
                                          ErrorKind.TRANSPORT_FAILURE, detail="fatal: not found")

        assert outcome.is_failure
        assert outcome.kind == ErrorKind.TRANSPORT_FAILURE

    def test_to_dict(self):
        outcome = OperationOutcome.failed("b", "/repos/b", "clone error",
                                          ErrorKind.TRANSPORT_FAILURE, detail="fatal: not found")

        d = outcome.to_dict()

        assert d == {
            'name': 'b',
            'path': '/repos/b',
            'status': 'failed',
            'reason': 'clone error',
            'kind': 'transport_failure',
            'detail': 'fatal: not found',
        }

    def test_to_dict_includes_metadata(self):
        d = OperationOutcome.success("a", "/repos/a", lines=3).to_dict()
        assert d['lines'] == 3
        assert 'reason' not in d


class TestRunSummary:
    """Tests for RunSummary."""

    def test_empty(self):
        summary = RunSummary.from_outcomes([])

        assert summary.total == 0
        assert summary.success is True
        assert summary.exit_code == 0

    def test_counts(self):
        outcomes = [
            OperationOutcome.success("a", "/a"),
            OperationOutcome.skipped("b", "/b", "already exists"),
            OperationOutcome.failed("c", "/c", "clone error"),
            OperationOutcome.success("d", "/d"),
        ]

        summary = summarize(outcomes)

        assert summary.total == 4
        assert summary.succeeded == 2
        assert summary.skipped == 1
        assert summary.failed == 1
        assert summary.total == summary.succeeded + summary.failed + summary.skipped

    def test_exit_code(self):
        assert exit_code_for(RunSummary(total=2, succeeded=1, skipped=1)) == 0
        assert exit_code_for(RunSummary(total=2, succeeded=1, failed=1)) == 1

    def test_skips_do_not_fail_the_run(self):
        summary = summarize([OperationOutcome.skipped("a", "/a", "no commits")] * 3)
        assert summary.exit_code == 0

    def test_to_dict(self):
        summary = RunSummary(total=3, succeeded=1, failed=1, skipped=1)
        assert summary.to_dict() == {'total': 3, 'succeeded': 1, 'failed': 1, 'skipped': 1}


class TestOperationReport:
    """Tests for OperationReport."""

    def test_build(self):
        outcomes = [
            OperationOutcome.success("a", "/a"),
            OperationOutcome.failed("b", "/b", "clone error"),
        ]

        report = OperationReport.build("fetch", outcomes)

        assert [o.name for o in report.outcomes] == ["a", "b"]
        assert report.summary.total == 2
        assert report.errors == ("b: clone error",)

    def test_to_dict(self):
        report = OperationReport.build("changelog", [OperationOutcome.success("a", "/a")])

        d = report.to_dict()

        assert d['type'] == 'summary'
        assert d['operation'] == 'changelog'
        assert d['total'] == 1
        assert d['succeeded'] == 1
        assert d['errors'] == []
