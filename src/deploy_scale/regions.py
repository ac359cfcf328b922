"""Region and DC identifier normalization."""
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from deploy_scale.errors import AllRegionsConflictError, InvalidRegionError

ALL_REGIONS = "all"

# Region code -> DC identifiers hosted in that region
DEFAULT_REGION_TABLE: Dict[str, List[str]] = {
    "bru": ["bru1"],
    "gru": ["gru1"],
    "hnd": ["hnd1"],
    "iad": ["iad1"],
    "sfo": ["sfo1"],
}


def _dc_index(table: Mapping[str, Sequence[str]]) -> Dict[str, str]:
    return {
        dc.lower(): region.lower()
        for region, dcs in table.items()
        for dc in dcs
    }


def normalize_regions(tokens: Iterable[str],
                      table: Optional[Mapping[str, Sequence[str]]] = None) -> List[str]:
    """Turn raw region tokens into canonical region codes.

    Args:
        tokens: Raw identifiers, usually a comma-separated designator split on ","
        table: Region table to validate against (defaults to DEFAULT_REGION_TABLE)

    Returns:
        Region codes, duplicates removed, in first-seen order. A lone "all"
        expands to every region of the table.

    Raises:
        AllRegionsConflictError: "all" was combined with other identifiers
        InvalidRegionError: a token is neither a region nor a DC identifier
    """
    if table is None:
        table = DEFAULT_REGION_TABLE
    tokens = list(tokens)
    keys = [token.strip().lower() for token in tokens]

    if ALL_REGIONS in keys:
        if len(keys) > 1:
            raise AllRegionsConflictError(tokens)
        return [region.lower() for region in table]

    regions = {region.lower() for region in table}
    dcs = _dc_index(table)
    normalized: List[str] = []

    for token, key in zip(tokens, keys):
        if key in regions:
            region = key
        elif key in dcs:
            region = dcs[key]
        else:
            raise InvalidRegionError(token)

        if region not in normalized:
            normalized.append(region)

    return normalized
