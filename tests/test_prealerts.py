from __future__ import annotations

from tests.factories import NOW, RecordingNotifier
from tornwatch.models.profile import CoarseState
from tornwatch.notify.events import NotificationKind
from tornwatch.pollers.prealerts import evaluate_pre_alerts
from tornwatch.travel import TravelInfo


def _evaluate(
    notifier: RecordingNotifier,
    pre_fired: dict[str, set[int]],
    *,
    until: int | None,
    now: int,
    thresholds: list[int],
    state: CoarseState = CoarseState.HOSPITAL,
    travel: TravelInfo | None = None,
) -> list[int]:
    return evaluate_pre_alerts(
        subject_id="1",
        name="Alice",
        state=state,
        until=until,
        travel=travel,
        thresholds=thresholds,
        pre_fired=pre_fired,
        now=now,
        notifier=notifier,
    )


def test_each_threshold_fires_once_per_episode() -> None:
    notifier = RecordingNotifier()
    pre_fired: dict[str, set[int]] = {}
    until = NOW + 250

    assert _evaluate(notifier, pre_fired, until=until, now=NOW, thresholds=[60, 300]) == [300]
    assert _evaluate(notifier, pre_fired, until=until, now=NOW + 10, thresholds=[60, 300]) == []
    assert _evaluate(notifier, pre_fired, until=until, now=NOW + 200, thresholds=[60, 300]) == [60]
    assert _evaluate(notifier, pre_fired, until=until, now=NOW + 220, thresholds=[60, 300]) == []

    assert notifier.kinds() == [NotificationKind.PRE_ALERT, NotificationKind.PRE_ALERT]
    assert pre_fired == {f"H:{until}": {300, 60}}


def test_late_poll_fires_every_elapsed_threshold_largest_first() -> None:
    notifier = RecordingNotifier()
    pre_fired: dict[str, set[int]] = {}

    fired = _evaluate(notifier, pre_fired, until=NOW + 30, now=NOW, thresholds=[60, 300, 120])

    assert fired == [300, 120, 60]
    assert len(notifier.sent) == 3
    assert notifier.sent[0].title == "Alice - Hospital ending soon!"


def test_new_episode_drops_old_history() -> None:
    notifier = RecordingNotifier()
    pre_fired: dict[str, set[int]] = {}

    _evaluate(notifier, pre_fired, until=NOW + 100, now=NOW, thresholds=[300])
    fired = _evaluate(notifier, pre_fired, until=NOW + 900, now=NOW + 800, thresholds=[300])

    assert fired == [300]
    assert list(pre_fired) == [f"H:{NOW + 900}"]


def test_nothing_fires_after_the_end_or_without_thresholds() -> None:
    notifier = RecordingNotifier()
    pre_fired: dict[str, set[int]] = {}

    assert _evaluate(notifier, pre_fired, until=NOW - 5, now=NOW, thresholds=[300]) == []
    assert _evaluate(notifier, pre_fired, until=NOW + 5, now=NOW, thresholds=[]) == []
    assert _evaluate(notifier, pre_fired, until=None, now=NOW, thresholds=[300]) == []
    assert _evaluate(notifier, pre_fired, until=NOW + 5, now=NOW, thresholds=[300], state=CoarseState.OKAY) == []
    assert notifier.sent == []
    assert pre_fired == {}


def test_flights_count_down_to_earliest_arrival() -> None:
    notifier = RecordingNotifier()
    pre_fired: dict[str, set[int]] = {}
    travel = TravelInfo(started_at=NOW * 1000, earliest=NOW + 90, latest=NOW + 200)

    fired = _evaluate(
        notifier,
        pre_fired,
        until=None,
        now=NOW,
        thresholds=[120, 60],
        state=CoarseState.TRAVELING,
        travel=travel,
    )

    assert fired == [120]
    assert list(pre_fired) == [f"T:outbound:{NOW * 1000}"]
