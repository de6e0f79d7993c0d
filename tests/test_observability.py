from __future__ import annotations

import json
import logging

from shellkit.util.observability import EventLogger, MetricsCollector, create_observability_manager


def test_metrics_collector_snapshot() -> None:
    metrics = MetricsCollector()
    metrics.increment("commands.total", 2)
    metrics.record_duration("command.duration", 1.5)
    metrics.record_duration("command.duration", 0.5)

    snapshot = metrics.snapshot()

    assert snapshot["counters"]["commands.total"] == 2
    assert snapshot["durations"]["command.duration"]["count"] == 2.0
    assert snapshot["durations"]["command.duration"]["avg_s"] == 1.0


def test_event_logger_emits_json(caplog) -> None:
    logger = EventLogger("test.events", context={"component": "shell"})
    caplog.set_level(logging.INFO, logger="test.events")

    logger.log("command.finished", {"exit_code": 0})

    assert caplog.records
    payload = json.loads(caplog.records[-1].message)
    assert payload["event_type"] == "command.finished"
    assert payload["payload"]["exit_code"] == 0
    assert payload["context"]["component"] == "shell"


def test_manager_log_event_merges_context(caplog) -> None:
    manager = create_observability_manager()
    caplog.set_level(logging.INFO, logger="shellkit.events")

    manager.log_event("command.failed", {"exit_code": 2}, context={"shell_binary": "/bin/sh"})

    payload = json.loads(caplog.records[-1].getMessage())
    assert payload["event_type"] == "command.failed"
    assert payload["context"] == {"shell_binary": "/bin/sh"}
