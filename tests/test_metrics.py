from __future__ import annotations

from erase_background.domain.errors import ErrorKind
from erase_background.domain.removal import RequestState
from erase_background.infrastructure.metrics import MetricsStore


def test_record_outcome_counts_by_state_and_kind() -> None:
    store = MetricsStore()

    store.record_outcome(RequestState.SUCCEEDED)
    store.record_outcome(RequestState.FAILED, ErrorKind.BACKEND_FAILURE)
    store.record_outcome(RequestState.CANCELLED)

    snapshot = store.snapshot()
    assert snapshot['removals_succeeded_total'] == 1
    assert snapshot['removals_failed_total'] == 1
    assert snapshot['removals_failed_backend_failure_total'] == 1
    assert snapshot['removals_cancelled_total'] == 1


def test_observe_duration_accumulates() -> None:
    store = MetricsStore()

    store.observe_duration(0.25)
    store.observe_duration(0.5)

    snapshot = store.snapshot()
    assert snapshot['removal_duration_count'] == 2
    assert snapshot['removal_duration_seconds_sum'] == 0.75
    assert snapshot['removal_duration_seconds_last'] == 0.5


def test_prometheus_text() -> None:
    store = MetricsStore()
    store.incr('removals_submitted_total')

    text = store.to_prometheus_text()

    assert 'erase_bg_removals_submitted_total 1' in text
    assert text.endswith('\n')
