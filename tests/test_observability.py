import json

import pytest

from wayfarer.obs.context import clear_context, request_id_var, set_route
from wayfarer.obs.logger import log_event, log_provider_empty, log_provider_failure
from wayfarer.obs.metrics import get_counter, get_metrics_snapshot, inc_counter, record_timing, timed


def test_scaffold_modules_exist():
    import wayfarer.obs.context as ctx
    import wayfarer.obs.logger as log
    import wayfarer.obs.metrics as met
    import wayfarer.obs.middleware as mid

    assert hasattr(ctx, "request_id_var")
    assert hasattr(log, "log_event")
    assert hasattr(met, "record_timing")
    assert hasattr(met, "inc_counter")
    assert hasattr(met, "get_metrics_snapshot")
    assert hasattr(mid, "ObservabilityMiddleware")


def test_log_event_carries_request_context(capsys):
    request_id_var.set("req-123")
    set_route("Vapi, India", "Pune, India")
    try:
        log_event("journey_requested", date="2025-12-20")
    finally:
        clear_context()

    line = json.loads(capsys.readouterr().out.strip())
    assert line["event"] == "journey_requested"
    assert line["level"] == "INFO"
    assert line["request_id"] == "req-123"
    assert line["route"] == "Vapi, India -> Pune, India"
    assert line["date"] == "2025-12-20"


def test_provider_failure_is_counted_and_logged(capsys):
    labels = {"provider": "rail", "reason": "timeout"}
    before = get_counter("provider_failures_total", labels)

    log_provider_failure("rail", "timeout", origin="Vapi")

    assert get_counter("provider_failures_total", labels) == before + 1
    line = json.loads(capsys.readouterr().out.strip())
    assert line["event"] == "provider_failure"
    assert line["level"] == "WARNING"
    assert line["provider"] == "rail"


def test_provider_empty_is_separate_from_failure():
    before = get_counter("provider_empty_total", {"provider": "flights"})
    log_provider_empty("flights")
    assert get_counter("provider_empty_total", {"provider": "flights"}) == before + 1


def test_histogram_bins():
    record_timing("unit_test_ms", 75, {"case": "bins"})
    with timed("unit_test_ms", {"case": "bins"}):
        pass
    inc_counter("unit_test_total", {"case": "bins"}, amount=3)

    snap = get_metrics_snapshot()
    hist = next(h for h in snap["histograms"] if h["name"] == "unit_test_ms" and h["labels"] == {"case": "bins"})
    assert hist["counts"][0] >= 1      # timed block under 50ms
    assert hist["counts"][1] >= 1      # 75ms lands in the 100ms bin
    assert any(c["name"] == "unit_test_total" and c["value"] >= 3 for c in snap["counters"])
