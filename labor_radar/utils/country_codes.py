# labor_radar/utils/country_codes.py
from __future__ import annotations

from typing import Dict, List, Optional

import pycountry

# Eurostat two-letter codes of the 27 EU members, in dashboard order.
# Eurostat deviates from ISO 3166-1 for Greece only (EL, not GR).
EU_COUNTRY_CODES: List[str] = [
    "AT", "BE", "BG", "HR", "CY", "CZ", "DK", "EE", "FI",
    "FR", "DE", "EL", "HU", "IE", "IT", "LV", "LT", "LU",
    "MT", "NL", "PL", "PT", "RO", "SK", "SI", "ES", "SE",
]

_EU_SET = frozenset(EU_COUNTRY_CODES)

_EUROSTAT_TO_ISO2: Dict[str, str] = {"EL": "GR"}

# pycountry names that differ from the usual dashboard label.
_DISPLAY_NAMES: Dict[str, str] = {"NL": "Netherlands"}

# OECD alpha-3 -> Eurostat alpha-2 (all 27, including non-OECD members).
OECD_TO_EUROSTAT: Dict[str, str] = {
    "AUT": "AT", "BEL": "BE", "BGR": "BG", "HRV": "HR", "CYP": "CY",
    "CZE": "CZ", "DNK": "DK", "EST": "EE", "FIN": "FI", "FRA": "FR",
    "DEU": "DE", "GRC": "EL", "HUN": "HU", "IRL": "IE", "ITA": "IT",
    "LVA": "LV", "LTU": "LT", "LUX": "LU", "MLT": "MT", "NLD": "NL",
    "POL": "PL", "PRT": "PT", "ROU": "RO", "SVK": "SK", "SVN": "SI",
    "ESP": "ES", "SWE": "SE",
}

EUROSTAT_TO_OECD: Dict[str, str] = {eu: oecd for oecd, eu in OECD_TO_EUROSTAT.items()}

# EU members that report to the OECD earnings database.
OECD_EU_MEMBERS: List[str] = [
    "AUT", "BEL", "CZE", "DNK", "EST", "FIN", "FRA", "DEU",
    "GRC", "HUN", "IRL", "ITA", "LVA", "LTU", "LUX", "NLD",
    "POL", "PRT", "SVK", "SVN", "ESP", "SWE",
]


def is_eu_code(code: Optional[str]) -> bool:
    return isinstance(code, str) and code in _EU_SET


def eurostat_geo(code: Optional[str]) -> Optional[str]:
    """Return the code if it is one of the 27 Eurostat geo codes, else None."""
    if not isinstance(code, str):
        return None
    code = code.strip().upper()
    return code if code in _EU_SET else None


def oecd_to_eurostat(code: Optional[str]) -> Optional[str]:
    """Translate an OECD alpha-3 area code; None for anything outside the EU-27."""
    if not isinstance(code, str):
        return None
    return OECD_TO_EUROSTAT.get(code.strip().upper())


def country_name(code: str) -> str:
    """English short name for a Eurostat code (pycountry lookup, EL -> GR)."""
    if code in _DISPLAY_NAMES:
        return _DISPLAY_NAMES[code]
    iso2 = _EUROSTAT_TO_ISO2.get(code, code)
    match = pycountry.countries.get(alpha_2=iso2)
    if match is None:
        return code
    return getattr(match, "common_name", None) or match.name


def eu_country_names() -> Dict[str, str]:
    return {code: country_name(code) for code in EU_COUNTRY_CODES}
