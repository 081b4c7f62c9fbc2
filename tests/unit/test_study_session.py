"""
Unit tests for focus sessions, card sessions and the session context.
"""

from datetime import timedelta

import pytest
from pydantic import ValidationError

from zap.study.focus_monitor import FocusEventType, FocusIntegrityMonitor, SignalBus
from zap.study.models import SessionType
from zap.study.scheduler import ReviewScheduler
from zap.study.session import (
    CardReviewSession,
    FocusPhase,
    FocusSession,
    SessionContext,
    StudyPreferences,
)


def _run_countdown(session: FocusSession) -> int:
    ticks = 0
    while not session.tick():
        ticks += 1
    return ticks + 1


class TestFocusSession:
    def test_countdown_completes_after_duration(self, now):
        session = FocusSession(duration_minutes=2)
        session.start(now)

        assert _run_countdown(session) == 120
        assert session.phase == FocusPhase.AWAITING_CARD_COUNT
        assert session.dialog_open
        assert not session.is_active
        assert session.focus_minutes == 2

    def test_ticks_ignored_unless_running(self, now):
        session = FocusSession(duration_minutes=1)
        assert session.tick() is False
        assert session.time_left == 60

        session.start(now)
        session.tick()
        session.pause(now)
        session.tick()
        assert session.time_left == 59

    def test_pause_accumulates_paused_time(self, now):
        session = FocusSession()
        session.start(now)
        session.pause(now + timedelta(minutes=1))
        session.resume(now + timedelta(minutes=3))

        assert session.paused_seconds == 120
        assert session.is_active

    def test_start_while_paused_resumes(self, now):
        session = FocusSession()
        session.start(now)
        session.pause(now)
        session.start(now + timedelta(seconds=30))

        assert session.phase == FocusPhase.RUNNING
        assert session.start_time == now
        assert session.paused_seconds == 30

    def test_interrupted_session_scenario(self, now):
        session = FocusSession(duration_minutes=25)
        session.start(now)
        session.record_interruption(now)
        session.record_interruption(now)
        _run_countdown(session)

        record = session.finish(correct_cards=4)

        assert record.session_type == SessionType.FOCUS
        assert record.duration_minutes == 25
        assert record.focus_interrupted is True
        assert record.xp_earned == 49
        assert session.phase == FocusPhase.COMPLETED

    def test_finish_before_countdown_rejected(self, now):
        session = FocusSession()
        session.start(now)
        with pytest.raises(ValueError):
            session.finish(3)

    def test_set_duration_bounds(self):
        session = FocusSession()

        assert session.set_duration(45) is True
        assert session.time_left == 45 * 60
        assert session.set_duration(0) is False
        assert session.set_duration(121) is False
        assert session.duration_minutes == 45

    def test_set_duration_ignored_while_running(self, now):
        session = FocusSession()
        session.start(now)
        assert session.set_duration(10) is False

    def test_reset_discards_progress(self, now):
        session = FocusSession(duration_minutes=5)
        session.start(now)
        session.tick()
        session.record_interruption(now)
        session.reset()

        assert session.phase == FocusPhase.READY
        assert session.time_left == 300
        assert session.interruptions == 0
        assert session.start_time is None


class TestCardReviewSession:
    def test_answers_advance_and_count(self, now, make_card):
        session = CardReviewSession(cards=[make_card("a"), make_card("b")], started_at=now)
        scheduler = ReviewScheduler()

        first = session.answer(True, scheduler, 1.0, now)
        session.answer(False, scheduler, 1.0, now)

        assert first.card_id == "a"
        assert first.interval_days == 6
        assert session.is_complete
        assert session.current_card is None
        assert (session.correct_count, session.incorrect_count) == (1, 1)

    def test_answer_after_completion_rejected(self, now):
        session = CardReviewSession(cards=[], started_at=now)
        with pytest.raises(ValueError):
            session.answer(True, ReviewScheduler())

    def test_outcome_scores_correct_cards_only(self, now, make_card):
        session = CardReviewSession(cards=[make_card(str(i)) for i in range(3)], started_at=now)
        scheduler = ReviewScheduler()
        for correct in (True, True, False):
            session.answer(correct, scheduler, 1.0, now)

        record = session.outcome(now + timedelta(minutes=4, seconds=30))

        assert record.session_type == SessionType.CARDS
        assert record.xp_earned == 10
        assert record.cards_studied == 3
        assert record.correct_cards == 2
        assert record.duration_minutes == 4
        assert record.focus_interrupted is False


class TestSessionContext:
    def test_interruptions_flow_from_signals(self):
        bus = SignalBus()
        context = SessionContext(StudyPreferences(focus_duration_minutes=1), FocusIntegrityMonitor(bus))

        focus = context.start_focus()
        bus.emit(FocusEventType.BLUR)
        bus.emit(FocusEventType.FOCUS)
        bus.emit(FocusEventType.HIDDEN)

        assert focus.interruptions == 2

    def test_completion_prompt_suspends_monitor(self):
        bus = SignalBus()
        context = SessionContext(StudyPreferences(focus_duration_minutes=1), FocusIntegrityMonitor(bus))
        focus = context.start_focus()

        while not context.tick_focus():
            pass
        assert context.monitor.is_suspended

        bus.emit(FocusEventType.BLUR)  # the prompt itself steals focus
        record = context.finish_focus(correct_cards=2)

        assert record.focus_interrupted is False
        assert record.xp_earned == 1 * 2 + 2 * 5
        assert focus.interruptions == 0
        assert not context.monitor.is_suspended
        assert context.focus is None

    def test_navigation_dialog_suppresses_counting(self):
        bus = SignalBus()
        context = SessionContext(monitor=FocusIntegrityMonitor(bus))
        focus = context.start_focus()

        context.open_dialog()
        bus.emit(FocusEventType.BLUR)
        bus.emit(FocusEventType.FOCUS)
        context.close_dialog()

        assert focus.interruptions == 0
        assert focus.dialog_open is False

    def test_reset_focus_records_nothing(self):
        context = SessionContext()
        context.start_focus()
        context.tick_focus()
        context.reset_focus()

        assert context.focus is None
        with pytest.raises(ValueError):
            context.finish_focus(3)

    def test_reset_releases_prompt_and_dialog_suspends(self):
        bus = SignalBus()
        context = SessionContext(StudyPreferences(focus_duration_minutes=1), FocusIntegrityMonitor(bus))
        context.start_focus()
        while not context.tick_focus():
            pass
        context.open_dialog()

        context.reset_focus()
        assert not context.monitor.is_suspended

        focus = context.start_focus()
        bus.emit(FocusEventType.BLUR)
        assert focus.interruptions == 1

    def test_close_dialog_keeps_prompt_suspend(self):
        context = SessionContext(StudyPreferences(focus_duration_minutes=1))
        context.start_focus()
        while not context.tick_focus():
            pass

        context.open_dialog()
        context.close_dialog()
        context.close_dialog()

        assert context.monitor.is_suspended
        context.finish_focus(correct_cards=0)
        assert not context.monitor.is_suspended

    def test_difficulty_multiplier_from_preferences(self):
        assert SessionContext(StudyPreferences(card_difficulty="hard")).difficulty_multiplier == 0.7

    def test_only_preferences_are_serialised(self, make_card):
        context = SessionContext(StudyPreferences(card_difficulty="easy", focus_duration_minutes=40))
        context.start_focus()
        context.start_cards([make_card("a")])

        restored = SessionContext.from_json(context.to_json())

        assert restored.preferences == context.preferences
        assert restored.focus is None
        assert restored.cards is None
        assert "cards" not in context.to_json()

    def test_preferences_validate_duration(self):
        with pytest.raises(ValidationError):
            StudyPreferences(focus_duration_minutes=0)
        with pytest.raises(ValidationError):
            StudyPreferences(focus_duration_minutes=121)
