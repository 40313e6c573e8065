import pytest

from labor_radar.utils.cube_decoder import (
    LATEST_PERIOD,
    decode_cube,
    decode_jsonstat,
    decode_sdmx_observations,
    join_flat_index,
    split_flat_index,
)
from tests.payloads import jsonstat_payload, sdmx_payload

GEOS = ["AT", "BE", "BG"]
PERIODS = ["2024-01", "2024-02", "2024-03", "2024-04"]


def test_row_major_decoding_geo_slower_than_time():
    """A [3, 4] geo x time cube: flat index = geo * 4 + time."""
    categories = {
        "geo": {g: i for i, g in enumerate(GEOS)},
        "time": {p: i for i, p in enumerate(PERIODS)},
    }
    values = {str(i): float(i) for i in range(12)}

    result = decode_cube(["geo", "time"], categories, values)

    assert result.problem is None
    assert result.skipped == 0
    expected = {g: {p: float(gi * 4 + ti) for ti, p in enumerate(PERIODS)} for gi, g in enumerate(GEOS)}
    assert result.data == expected


def test_jsonstat_with_pinned_dimensions():
    values = {("AT", "2024-01"): 5.3, ("BG", "2024-04"): 4.2, ("BE", "2024-02"): 5.7}
    result = decode_jsonstat(jsonstat_payload(GEOS, PERIODS, values))
    assert result.data == {"AT": {"2024-01": 5.3}, "BE": {"2024-02": 5.7}, "BG": {"2024-04": 4.2}}


def test_missing_value_field_decodes_to_empty():
    payload = jsonstat_payload(GEOS, PERIODS, {("AT", "2024-01"): 1.0})
    del payload["value"]
    result = decode_jsonstat(payload)
    assert result.data == {}
    assert result.problem == "missing value collection"


@pytest.mark.parametrize("payload", [None, [], "oops", {"value": {"0": 1}}, {"value": {"0": 1}, "dimension": {}}])
def test_broken_payloads_never_raise(payload):
    result = decode_jsonstat(payload)
    assert result.data == {}
    assert result.problem


def _with_geo_index(index):
    payload = jsonstat_payload(GEOS, PERIODS, {("AT", "2024-01"): 1.0})
    payload["dimension"]["geo"]["category"]["index"] = index
    return payload


@pytest.mark.parametrize("index", [
    {"AT": "zero", "DE": 1},
    {"AT": -1, "DE": 0},
    {"AT": 0, "DE": 10**9},
    {"AT": True, "DE": 0},
    {"AT": 0.0, "DE": 1},
])
def test_bad_category_positions_are_malformed_not_raised(index):
    result = decode_jsonstat(_with_geo_index(index))
    assert result.data == {}
    assert result.problem == "dimension 'geo' has invalid category positions"


@pytest.mark.parametrize("ids", ["geo", 7, [["geo"], "time"]])
def test_bad_dimension_ids_are_malformed(ids):
    payload = jsonstat_payload(GEOS, PERIODS, {("AT", "2024-01"): 1.0})
    payload["id"] = ids
    result = decode_jsonstat(payload)
    assert result.data == {}
    assert result.problem


def test_missing_geo_dimension():
    payload = jsonstat_payload(GEOS, PERIODS, {("AT", "2024-01"): 1.0})
    payload["id"] = ["freq", "unit", "time"]
    del payload["dimension"]["geo"]
    result = decode_jsonstat(payload)
    assert result.data == {}
    assert "geography" in result.problem


def test_no_time_dimension_uses_latest_sentinel():
    categories = {"geo": {"AT": 0, "DE": 1}}
    result = decode_cube(["geo"], categories, {"0": 10, "1": 20})
    assert result.data == {"AT": {LATEST_PERIOD: 10}, "DE": {LATEST_PERIOD: 20}}


def test_bad_observations_are_skipped_individually():
    categories = {"geo": {"AT": 0, "BE": 1}, "time": {"2023": 0, "2024": 1}}
    values = {"0": 1.0, "1": "n/a", "2": 3.0, "99": 4.0, "x": 5.0, "3": None}
    result = decode_cube(["geo", "time"], categories, values)
    assert result.data == {"AT": {"2023": 1.0}, "BE": {"2023": 3.0}}
    assert result.skipped == 3  # "n/a", out-of-range 99, non-integer "x"


def test_unknown_geo_codes_are_dropped():
    geos = ["AT", "NO", "EA20", "EL"]
    values = {("AT", "2024-01"): 5.0, ("NO", "2024-01"): 4.0, ("EA20", "2024-01"): 6.3, ("EL", "2024-01"): 9.6}
    result = decode_jsonstat(jsonstat_payload(geos, PERIODS, values))
    assert result.data == {"AT": {"2024-01": 5.0}, "EL": {"2024-01": 9.6}}
    assert result.skipped == 2


def test_dense_value_list_and_list_category_index():
    payload = {
        "id": ["geo", "time"],
        "dimension": {
            "geo": {"category": {"index": ["DE", "FR"]}},
            "time": {"category": {"index": ["2023", "2024"]}},
        },
        "value": [1, None, 3, 4],
    }
    result = decode_jsonstat(payload)
    assert result.data == {"DE": {"2023": 1}, "FR": {"2023": 3, "2024": 4}}


def test_category_positions_not_in_key_order():
    payload = {
        "id": ["geo", "time"],
        "dimension": {
            "geo": {"category": {"index": {"FR": 1, "DE": 0}}},
            "time": {"category": {"index": {"2024": 1, "2023": 0}}},
        },
        "value": {"0": 1, "3": 4},
    }
    assert decode_jsonstat(payload).data == {"DE": {"2023": 1}, "FR": {"2024": 4}}


def test_flat_index_round_trip_and_bounds():
    sizes = [3, 1, 4]
    assert split_flat_index(join_flat_index([2, 0, 3], sizes), sizes) == [2, 0, 3]
    with pytest.raises(ValueError):
        split_flat_index(12, sizes)
    with pytest.raises(ValueError):
        join_flat_index([3, 0, 0], sizes)


def test_sdmx_translates_oecd_codes_and_drops_non_eu():
    areas = ["DEU", "GRC", "USA"]
    periods = ["2023", "2024"]
    values = {("DEU", "2024"): 53760.4, ("GRC", "2023"): 20640.0, ("USA", "2024"): 80000.0}
    result = decode_sdmx_observations(sdmx_payload(areas, periods, values))
    assert result.data == {"DE": {"2024": 53760.4}, "EL": {"2023": 20640.0}}
    assert result.skipped == 1


def test_sdmx_accepts_single_structure_object():
    payload = sdmx_payload(["AUT"], ["2024"], {("AUT", "2024"): 1.0})
    payload["data"]["structure"] = payload["data"].pop("structures")[0]
    assert decode_sdmx_observations(payload).data == {"AT": {"2024": 1.0}}


def test_sdmx_without_observations_is_malformed():
    result = decode_sdmx_observations({"data": {"dataSets": []}})
    assert result.data == {}
    assert result.problem == "missing observations"


def _sdmx_with_dimensions(dimensions):
    payload = sdmx_payload(["AUT"], ["2024"], {("AUT", "2024"): 1.0})
    payload["data"]["structures"][0]["dimensions"] = dimensions
    return payload


@pytest.mark.parametrize("dimensions", [
    ["REF_AREA"],
    {"observation": ["REF_AREA", "TIME_PERIOD"]},
    {"observation": [{"id": "REF_AREA", "values": "AUT"}]},
    {"observation": [{"id": "REF_AREA", "values": ["AUT"]}]},
])
def test_sdmx_broken_dimension_nodes_are_malformed(dimensions):
    result = decode_sdmx_observations(_sdmx_with_dimensions(dimensions))
    assert result.data == {}
    assert result.problem
