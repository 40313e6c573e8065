import threading
import time
from dataclasses import replace

from labor_radar.models import FetchStatus, SourceResult
from labor_radar.services.labor_service import build_dashboard_payload, country_row, fetch_all_sources
from labor_radar.utils.country_codes import EU_COUNTRY_CODES
from tests.payloads import live_results, outage_results

METRICS = ["unemployment", "employment", "avgSalary", "medSalary", "minimumWage"]


def _adapters(results):
    return {key: (lambda settings, r=result: r) for key, result in results.items()}


def test_full_live_success(settings, tables):
    live = live_results()
    payload = build_dashboard_payload(settings, tables, _adapters(live))

    quality = payload["metadata"]["dataQuality"]
    assert quality == {"oecdData": "live", "unemploymentData": "live", "employmentData": "live"}

    # overrides still beat live wages
    for code, rec in tables.overrides.items():
        assert payload["avgSalary"][code] == {rec["period"]: rec["avgSalary"]}
        assert payload["medSalary"][code] == {rec["period"]: rec["medSalary"]}
        assert payload["avgSalary"][code] != live["oecdData"].data[code]

    assert payload["employment"]["DE"] == live["employmentData"].data["DE"]
    assert payload["salarySource"]["DE"] == "OECD"


def test_total_upstream_outage(settings, tables):
    payload = build_dashboard_payload(settings, tables, _adapters(outage_results()))

    assert set(payload["metadata"]["dataQuality"].values()) == {"fallback"}
    for metric in METRICS:
        assert list(payload[metric]) == EU_COUNTRY_CODES, metric
    assert payload["unemployment"]["DE"] == tables.fallback["unemployment"]["DE"]
    assert payload["employment"]["DE"] == tables.fallback["employment"]["DE"]
    assert payload["avgSalary"]["DE"] == tables.fallback["avgSalary"]["DE"]


def test_partial_outage_only_flags_the_failed_source(settings, tables):
    results = live_results()
    results["unemploymentData"] = SourceResult.failed("unemploymentData", "HTTP 500")
    payload = build_dashboard_payload(settings, tables, _adapters(results))

    assert payload["metadata"]["dataQuality"] == {
        "oecdData": "live",
        "unemploymentData": "fallback",
        "employmentData": "live",
    }
    assert payload["unemployment"]["FR"] == tables.fallback["unemployment"]["FR"]
    assert payload["employment"]["FR"] == results["employmentData"].data["FR"]
    assert payload["avgSalary"]["FR"] == results["oecdData"].data["FR"]


def test_raising_adapter_becomes_failed_result(settings):
    def boom(_settings):
        raise RuntimeError("kaboom")

    adapters = _adapters(live_results())
    adapters["employmentData"] = boom
    results = fetch_all_sources(settings, adapters)

    assert results["employmentData"].status is FetchStatus.FAILED
    assert "kaboom" in results["employmentData"].reason
    assert results["oecdData"].is_live


def test_slow_adapter_does_not_block_the_join(settings):
    def slow(_settings):
        time.sleep(1.5)
        return SourceResult.ok("unemploymentData", {"DE": {"2025-09": 3.3}})

    adapters = _adapters(live_results())
    adapters["unemploymentData"] = slow

    started = time.monotonic()
    results = fetch_all_sources(replace(settings, join_timeout_sec=0.2), adapters)

    assert time.monotonic() - started < 1.0
    assert results["unemploymentData"].status is FetchStatus.FAILED
    assert results["unemploymentData"].reason == "timed out"
    assert results["employmentData"].is_live


def test_adapters_run_concurrently(settings):
    def sleepy(key):
        def run(_settings):
            time.sleep(0.3)
            return SourceResult.ok(key, {"AT": {"2024": 1}})
        return run

    adapters = {key: sleepy(key) for key in ("oecdData", "unemploymentData", "employmentData")}
    started = time.monotonic()
    results = fetch_all_sources(settings, adapters)

    assert time.monotonic() - started < 0.8
    assert all(r.is_live for r in results.values())


def test_ses_adapters_only_when_enabled(settings):
    calls = []

    def record(key):
        def run(_settings):
            calls.append(key)
            return SourceResult.ok(key, {})
        return run

    keys = ["oecdData", "unemploymentData", "employmentData", "meanEarningsData", "medianEarningsData"]
    adapters = {k: record(k) for k in keys}

    assert set(fetch_all_sources(settings, adapters)) == set(keys[:3])
    assert set(fetch_all_sources(replace(settings, use_ses_earnings=True), adapters)) == set(keys)


def test_country_row_latest_values(settings, tables):
    payload = build_dashboard_payload(settings, tables, _adapters(outage_results()), fetched_at="2026-01-01T00:00:00Z")

    row = country_row(payload, "el")

    assert row["code"] == "EL"
    assert row["name"] == "Greece"
    assert row["unemployment"] == {"value": 9.6, "period": "2025-11", "provenance": "fallback"}
    assert row["medSalary"]["value"] == 16925
    assert row["medSalary"]["provenance"] == "derived"
    assert row["minimumWage"]["monthly"] == 968.33
    assert row["taxBracket"]["max"] == 44
    assert row["isOverride"] is False
    assert country_row(payload, "GR") is None


def test_stuck_branches_from_earlier_requests_do_not_starve_later_ones(settings):
    release = threading.Event()

    def stuck(key):
        def run(_settings):
            release.wait(5)
            return SourceResult.ok(key, {"AT": {"2024": 1}})
        return run

    keys = ("oecdData", "unemploymentData", "employmentData")
    try:
        for _ in range(4):
            stale = fetch_all_sources(replace(settings, join_timeout_sec=0.05), {k: stuck(k) for k in keys})
            assert all(r.reason == "timed out" for r in stale.values())

        results = fetch_all_sources(replace(settings, join_timeout_sec=1.0), _adapters(live_results()))
    finally:
        release.set()

    assert {k: r.quality for k, r in results.items()} == {k: "live" for k in keys}
