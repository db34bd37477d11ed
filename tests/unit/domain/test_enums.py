"""Tests for domain enums."""

from app.domain.value_objects.enums import BatchStatus, CaseStatus, JobKind


def test_case_statuses():
    assert [s.value for s in CaseStatus] == ["PENDING", "ASSIGNED", "IN_PROGRESS", "COMPLETED"]


def test_job_kind_tags():
    assert {k.value for k in JobKind} == {"single", "bulk", "reassign"}


def test_terminal_batch_states():
    assert not BatchStatus.PENDING.is_terminal()
    assert not BatchStatus.PROCESSING.is_terminal()
    assert BatchStatus.COMPLETED.is_terminal()
    assert BatchStatus.CANCELLED.is_terminal()
    assert BatchStatus.FAILED.is_terminal()
