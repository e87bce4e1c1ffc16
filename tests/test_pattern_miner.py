"""Tests for behavior pattern mining."""

import asyncio

import pytest

from behavior.models import ActionType
from behavior.pattern_miner import PatternMiner
from behavior.session_manager import SessionManager


@pytest.fixture
def miner(session_manager):
    return PatternMiner(session_manager)


def record_path(manager, steps):
    for action_type, page in steps:
        manager.record_action(action_type, page=page)


HOME_SERVICES_HOME_CONTACT = [
    (ActionType.PAGE_VIEW, "/"),
    (ActionType.SERVICE_VIEW, "/services"),
    (ActionType.PAGE_VIEW, "/"),
    (ActionType.FORM_START, "/contact"),
]


class TestAnalyzePatterns:
    def test_empty_history_is_noop(self, miner):
        miner.analyze_patterns()
        assert miner.get_patterns() == []
        assert miner.runs == 0

    def test_single_action_has_no_transitions(self, session_manager, miner):
        session_manager.record_action(ActionType.PAGE_VIEW, page="/")
        miner.analyze_patterns()
        assert miner.get_patterns() == []

    def test_transition_table(self, session_manager, miner):
        record_path(session_manager, HOME_SERVICES_HOME_CONTACT)
        miner.analyze_patterns()

        home = miner.get_pattern("page_view:/")
        assert home.frequency == 2
        assert home.predicted_next == ["service_view:/services", "form_start:/contact"]
        assert home.confidence == pytest.approx(50.0)

        services = miner.get_pattern("service_view:/services")
        assert services.frequency == 1
        assert services.predicted_next == ["page_view:/"]
        assert services.confidence == pytest.approx(25.0)

        assert miner.get_pattern("form_start:/contact") is None

    def test_analysis_is_idempotent(self, session_manager, miner):
        record_path(session_manager, HOME_SERVICES_HOME_CONTACT)
        miner.analyze_patterns()
        first = {p.pattern: (p.frequency, p.confidence) for p in miner.get_patterns()}
        miner.analyze_patterns()
        second = {p.pattern: (p.frequency, p.confidence) for p in miner.get_patterns()}
        assert first == second
        assert miner.runs == 2

    def test_spans_archived_sessions(self, session_manager, miner):
        session_manager.record_action(ActionType.PAGE_VIEW, page="/")
        session_manager.end_session()
        session_manager.record_action(ActionType.CHAT_OPEN, page="/")
        miner.analyze_patterns()
        assert miner.predict_next(ActionType.PAGE_VIEW, "/") == ["chat_open:/"]

    def test_confidence_bounded(self, session_manager, miner):
        for _ in range(10):
            session_manager.record_action(ActionType.PAGE_VIEW, page="/")
        miner.analyze_patterns()
        for pattern in miner.get_patterns():
            assert 0 <= pattern.confidence <= 100

    def test_patterns_survive_history_eviction(self, store, clock):
        manager = SessionManager(store=store, max_sessions=1, clock=clock)
        miner = PatternMiner(manager)
        record_path(manager, [(ActionType.PAGE_VIEW, "/a"), (ActionType.PAGE_VIEW, "/b")])
        manager.end_session()
        miner.analyze_patterns()

        record_path(manager, [(ActionType.PAGE_VIEW, "/c"), (ActionType.PAGE_VIEW, "/d")])
        manager.end_session()
        miner.analyze_patterns()

        assert miner.get_pattern("page_view:/a") is not None
        assert miner.get_pattern("page_view:/c") is not None

    def test_predict_next_unknown(self, miner):
        assert miner.predict_next("page_view", "/nowhere") == []

    def test_top_patterns(self, session_manager, miner):
        record_path(session_manager, HOME_SERVICES_HOME_CONTACT)
        miner.analyze_patterns()
        top = miner.top_patterns(limit=1)
        assert [p.pattern for p in top] == ["page_view:/"]


class TestScheduling:
    def test_start_and_stop(self):
        async def scenario():
            manager = SessionManager()
            record_path(manager, HOME_SERVICES_HOME_CONTACT)
            miner = PatternMiner(manager, interval=0.01)
            miner.start()
            assert miner.is_running
            await asyncio.sleep(0.05)
            await miner.stop()
            manager.shutdown()
            return miner

        miner = asyncio.run(scenario())
        assert miner.runs >= 1
        assert not miner.is_running
        assert miner.get_pattern("page_view:/") is not None

    def test_start_is_idempotent(self):
        async def scenario():
            miner = PatternMiner(SessionManager(), interval=10)
            miner.start()
            task = miner._task
            miner.start()
            same = miner._task is task
            await miner.stop()
            return same

        assert asyncio.run(scenario())

    def test_stop_without_start(self, miner):
        asyncio.run(miner.stop())
        assert not miner.is_running
