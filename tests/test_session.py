# tests/test_session.py

from src.orchestrator.session import SessionStore
from src.orchestrator.state import AgentStatus, PipelineResult, Stage, make_log_entry


def _entry():
    return make_log_entry(Stage.PLANNING, AgentStatus.WORKING, "Planning...")


def test_start_run_sets_processing_and_new_id():
    store = SessionStore()
    before = store.current.id
    sid = store.start_run("q")
    assert sid is not None and sid != before
    assert store.is_processing
    assert store.current.query == "q"


def test_second_start_while_busy_is_a_noop():
    store = SessionStore()
    sid = store.start_run("first")
    assert store.start_run("second") is None
    assert store.current.id == sid
    assert store.current.query == "first"


def test_finish_publishes_results_and_clears_flag():
    store = SessionStore()
    sid = store.start_run("q")
    assert store.append_log(sid, _entry())
    result = PipelineResult(plan=["a"], insights=[{"title": "t"}], recommendations=[])
    assert store.finish_run(sid, result=result)
    assert not store.is_processing
    assert store.current.plan == ["a"]
    assert store.current.insights == [{"title": "t"}]
    assert len(store.current.logs) == 1


def test_finish_with_error_keeps_results_empty():
    store = SessionStore()
    sid = store.start_run("q")
    assert store.finish_run(sid, error="Analysis failed. Please try again.")
    assert not store.is_processing
    assert store.current.error == "Analysis failed. Please try again."
    assert store.current.insights == []


def test_calls_for_a_discarded_session_are_dropped():
    store = SessionStore()
    sid = store.start_run("q")
    fresh = store.reset()
    assert not store.append_log(sid, _entry())
    assert not store.finish_run(sid, result=PipelineResult(plan=["a"], insights=[], recommendations=[]))
    assert store.current is fresh
    assert fresh.logs == [] and fresh.plan == []
    assert not store.is_processing


def test_reset_clears_everything():
    store = SessionStore()
    sid = store.start_run("q")
    store.append_log(sid, _entry())
    session = store.reset()
    assert session.id != sid
    assert session.query == "" and session.logs == [] and not session.is_processing
