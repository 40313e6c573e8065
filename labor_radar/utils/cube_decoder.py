# labor_radar/utils/cube_decoder.py
from __future__ import annotations

"""
Decoder for statistical cubes delivered as one flat value collection.

Eurostat (JSON-stat 2.0) and OECD (SDMX-JSON with dimensionAtObservation=AllDimensions)
both describe a cube as:
  - an ordered list of dimension ids,
  - per dimension, a category -> ordinal mapping,
  - observations addressed by a single row-major index (last dimension fastest).

Everything is reduced to {country: {period: value}}. Broken payloads decode to {}
with a `problem` string; a single bad observation is skipped, never fatal.
"""

import logging
import math
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union

from labor_radar.models import DecodeResult, MetricDataset
from labor_radar.utils.country_codes import eurostat_geo, oecd_to_eurostat

logger = logging.getLogger("labor-radar")

LATEST_PERIOD = "latest"

GeoTranslator = Callable[[Optional[str]], Optional[str]]
Number = Union[int, float]


def _category_positions(index: Any) -> Dict[str, Any]:
    """JSON-stat allows category.index as {code: pos} or as an ordered [code, ...]."""
    if isinstance(index, Mapping):
        return {str(k): v for k, v in index.items()}
    if isinstance(index, (list, tuple)):
        return {str(code): pos for pos, code in enumerate(index)}
    return {}


def _valid_positions(positions: Mapping[str, Any]) -> bool:
    size = len(positions)
    return all(
        isinstance(pos, int) and not isinstance(pos, bool) and 0 <= pos < size
        for pos in positions.values()
    )


def _ordinal_labels(positions: Mapping[str, int]) -> List[Optional[str]]:
    if not positions:
        return []
    labels: List[Optional[str]] = [None] * (max(positions.values()) + 1)
    for code, pos in positions.items():
        labels[pos] = code
    return labels


def _as_number(v: Any) -> Optional[Number]:
    if v is None or isinstance(v, bool):
        return None
    if isinstance(v, int):
        return v
    fv = float(v)
    if math.isnan(fv) or math.isinf(fv):
        return None
    return fv


def split_flat_index(flat: int, sizes: Sequence[int]) -> List[int]:
    """Mixed-radix decomposition, least significant (last) dimension first."""
    if flat < 0:
        raise ValueError(f"negative observation index {flat}")
    ordinals = [0] * len(sizes)
    remaining = flat
    for i in range(len(sizes) - 1, -1, -1):
        ordinals[i] = remaining % sizes[i]
        remaining //= sizes[i]
    if remaining:
        raise ValueError(f"observation index {flat} outside cube of sizes {list(sizes)}")
    return ordinals


def join_flat_index(ordinals: Sequence[int], sizes: Sequence[int]) -> int:
    if len(ordinals) != len(sizes):
        raise ValueError("ordinal tuple does not match dimension count")
    flat = 0
    for ordinal, size in zip(ordinals, sizes):
        if not 0 <= ordinal < size:
            raise ValueError(f"ordinal {ordinal} outside dimension of size {size}")
        flat = flat * size + ordinal
    return flat


def _iter_values(values: Any):
    if isinstance(values, Mapping):
        return values.items()
    if isinstance(values, (list, tuple)):
        return enumerate(values)
    return ()


def decode_cube(
    dimension_ids: Sequence[str],
    categories: Mapping[str, Mapping[str, Any]],
    values: Any,
    *,
    geo_dim: str = "geo",
    time_dim: str = "time",
    translate_geo: GeoTranslator = eurostat_geo,
) -> DecodeResult:
    if values is None:
        return DecodeResult({}, "missing value collection")
    if not dimension_ids or not categories:
        return DecodeResult({}, "missing dimension metadata")
    if geo_dim not in dimension_ids:
        return DecodeResult({}, f"missing geography dimension '{geo_dim}'")

    sizes: List[int] = []
    for dim_id in dimension_ids:
        cats = categories.get(dim_id)
        if not cats:
            return DecodeResult({}, f"dimension '{dim_id}' has no categories")
        if not _valid_positions(cats):
            return DecodeResult({}, f"dimension '{dim_id}' has invalid category positions")
        sizes.append(len(cats))

    geo_pos = list(dimension_ids).index(geo_dim)
    time_pos = list(dimension_ids).index(time_dim) if time_dim in dimension_ids else None
    geo_labels = _ordinal_labels(categories[geo_dim])
    time_labels = _ordinal_labels(categories[time_dim]) if time_pos is not None else []

    out: MetricDataset = {}
    skipped = 0
    for key, raw in _iter_values(values):
        try:
            value = _as_number(raw)
            if value is None:
                continue
            ordinals = split_flat_index(int(key), sizes)
            country = translate_geo(geo_labels[ordinals[geo_pos]])
            if country is None:
                skipped += 1
                continue
            if time_pos is None:
                period = LATEST_PERIOD
            else:
                period = time_labels[ordinals[time_pos]]
                if period is None:
                    raise ValueError(f"no time category at ordinal {ordinals[time_pos]}")
            out.setdefault(country, {})[period] = value
        except (TypeError, ValueError, IndexError) as e:
            skipped += 1
            logger.debug("[decode] skipped observation %r: %s", key, e)
    return DecodeResult(out, None, skipped)


# ------------------------------------------------------------------------------
# Eurostat JSON-stat 2.0
# ------------------------------------------------------------------------------
def decode_jsonstat(
    payload: Any,
    translate_geo: GeoTranslator = eurostat_geo,
) -> DecodeResult:
    """
    {"id": ["freq", "unit", "geo", "time"],
     "dimension": {"geo": {"category": {"index": {"AT": 0, ...}}}, ...},
     "value": {"0": 5.3, ...}}
    """
    if not isinstance(payload, Mapping):
        return DecodeResult({}, "payload is not a JSON object")
    if payload.get("value") is None:
        return DecodeResult({}, "missing value collection")
    dims = payload.get("dimension")
    if not isinstance(dims, Mapping) or not dims:
        return DecodeResult({}, "missing dimension metadata")

    ids = payload.get("id") or [k for k in dims.keys() if k not in ("id", "size")]
    if not isinstance(ids, list) or not all(isinstance(d, str) for d in ids):
        return DecodeResult({}, "dimension ids are not a list of names")
    categories: Dict[str, Dict[str, Any]] = {}
    for dim_id in ids:
        node = dims.get(dim_id)
        cat = node.get("category", {}) if isinstance(node, Mapping) else {}
        categories[dim_id] = _category_positions(cat.get("index") if isinstance(cat, Mapping) else None)

    return decode_cube(
        ids, categories, payload.get("value"),
        geo_dim="geo", time_dim="time", translate_geo=translate_geo,
    )


# ------------------------------------------------------------------------------
# OECD SDMX-JSON (dimensionAtObservation=AllDimensions)
# ------------------------------------------------------------------------------
def _sdmx_structure(payload: Mapping[str, Any]) -> Mapping[str, Any]:
    data = payload.get("data") if isinstance(payload.get("data"), Mapping) else payload
    structure = data.get("structure")
    if isinstance(structure, Mapping):
        return structure
    structures = data.get("structures")
    if isinstance(structures, list) and structures and isinstance(structures[0], Mapping):
        return structures[0]
    return {}


def _sdmx_observations(payload: Mapping[str, Any]) -> Optional[Mapping[str, Any]]:
    data = payload.get("data") if isinstance(payload.get("data"), Mapping) else payload
    datasets = data.get("dataSets")
    if not isinstance(datasets, list) or not datasets or not isinstance(datasets[0], Mapping):
        return None
    obs = datasets[0].get("observations")
    return obs if isinstance(obs, Mapping) else None


def decode_sdmx_observations(
    payload: Any,
    translate_geo: GeoTranslator = oecd_to_eurostat,
) -> DecodeResult:
    """
    Observation keys are colon-joined ordinals ("0:2:0:0:5"), values are
    [value, *attributes]. Keys are re-encoded into the flat row-major index so
    the same cube decoder applies.
    """
    if not isinstance(payload, Mapping):
        return DecodeResult({}, "payload is not a JSON object")
    observations = _sdmx_observations(payload)
    if observations is None:
        return DecodeResult({}, "missing observations")

    dimensions = _sdmx_structure(payload).get("dimensions")
    dim_nodes = dimensions.get("observation") if isinstance(dimensions, Mapping) else None
    if not isinstance(dim_nodes, list) or not dim_nodes:
        return DecodeResult({}, "missing dimension metadata")

    ids: List[str] = []
    categories: Dict[str, Dict[str, int]] = {}
    for node in dim_nodes:
        if not isinstance(node, Mapping):
            return DecodeResult({}, "dimension node is not an object")
        members = node.get("values") or []
        if not isinstance(members, list) or not all(isinstance(v, Mapping) for v in members):
            return DecodeResult({}, f"dimension '{node.get('id')}' has malformed values")
        dim_id = str(node.get("id"))
        ids.append(dim_id)
        categories[dim_id] = {str(v.get("id")): pos for pos, v in enumerate(members)}
    sizes = [len(categories[d]) for d in ids]

    flat_values: Dict[int, Any] = {}
    skipped = 0
    for key, obs in observations.items():
        try:
            ordinals = [int(part) for part in str(key).split(":")]
            raw = obs[0] if isinstance(obs, list) else obs
            flat_values[join_flat_index(ordinals, sizes)] = raw
        except (TypeError, ValueError, IndexError) as e:
            skipped += 1
            logger.debug("[decode] skipped SDMX observation %r: %s", key, e)

    # decode in index order so repeated (country, period) pairs resolve deterministically
    ordered = dict(sorted(flat_values.items()))
    result = decode_cube(
        ids, categories, ordered,
        geo_dim="REF_AREA", time_dim="TIME_PERIOD", translate_geo=translate_geo,
    )
    return DecodeResult(result.data, result.problem, result.skipped + skipped)
