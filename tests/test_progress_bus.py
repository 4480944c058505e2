import io
import logging

import pytest

from core import DAGNode, SimpleDAGExecutor
from core.progress import LoggingProgressObserver, ProgressBus, ProgressEvent, TerminalProgressObserver


def test_progress_bus_stage_and_dag_callbacks():
    events = []
    bus = ProgressBus().subscribe(lambda e: events.append(e))

    bus.stage_callback("filter3d")(55, "filtering")
    bus.dag_callback()(20, "Running: filter3d")

    assert len(events) == 2
    assert isinstance(events[0], ProgressEvent)
    assert events[0].channel == "stage"
    assert events[0].stage == "filter3d"
    assert events[0].percent == 55
    assert events[1].channel == "dag"
    assert events[1].stage is None
    assert events[1].percent == 20


def test_progress_is_clamped_and_unsubscribe_stops_delivery():
    events = []
    observer = events.append
    bus = ProgressBus().subscribe(observer)
    bus.stage_callback("load")(150, "over")
    bus.unsubscribe(observer)
    bus.stage_callback("load")(10, "ignored")
    assert [e.percent for e in events] == [100]


def test_terminal_observer_renders_bar():
    stream = io.StringIO()
    bus = ProgressBus().subscribe(TerminalProgressObserver(bar_width=10, stream=stream))
    bus.stage_callback("reduce")(100, "MIP complete.")
    bus.dag_callback()(50, "Running: export")
    text = stream.getvalue()
    assert "[reduce] [##########] 100%" in text
    assert "[pipeline  50%] Running: export" in text


def test_dag_runs_in_dependency_order():
    calls = []
    dag = SimpleDAGExecutor()
    dag.add(DAGNode("export", lambda deps: calls.append("export") or deps["filter"] + 1, depends_on=("filter",)))
    dag.add(DAGNode("filter", lambda deps: calls.append("filter") or deps["load"] * 2, depends_on=("load",)))
    dag.add(DAGNode("load", lambda deps: calls.append("load") or 3))

    results = dag.run()
    assert calls == ["load", "filter", "export"]
    assert results == {"load": 3, "filter": 6, "export": 7}


def test_dag_rejects_cycles_and_unknown_dependencies():
    dag = SimpleDAGExecutor()
    dag.add(DAGNode("a", lambda deps: None, depends_on=("b",)))
    dag.add(DAGNode("b", lambda deps: None, depends_on=("a",)))
    with pytest.raises(ValueError):
        dag.run()

    dag = SimpleDAGExecutor().add(DAGNode("a", lambda deps: None, depends_on=("missing",)))
    with pytest.raises(KeyError):
        dag.run()


def test_logging_observer_forwards_events(caplog):
    bus = ProgressBus().subscribe(LoggingProgressObserver(level=logging.INFO))
    with caplog.at_level(logging.INFO, logger="core.progress"):
        bus.stage_callback("load")(40, "Loaded 2/5: s02.png")
    assert "[load  40%] Loaded 2/5: s02.png" in caplog.text
