import pytest
from deploy_scale.errors import AllRegionsConflictError, ErrorCode, InvalidRegionError
from deploy_scale.regions import DEFAULT_REGION_TABLE, normalize_regions


def test_all_expands_to_every_region_in_table_order():
    assert normalize_regions(["all"]) == list(DEFAULT_REGION_TABLE)


def test_dc_identifiers_map_to_their_region():
    assert normalize_regions(["sfo1", "iad"]) == ["sfo", "iad"]


def test_duplicates_are_dropped_keeping_first_seen_order():
    assert normalize_regions(["iad", "sfo", "iad1", "SFO"]) == ["iad", "sfo"]


def test_unknown_identifier():
    with pytest.raises(InvalidRegionError) as exc_info:
        normalize_regions(["sfo", "lon"])
    assert exc_info.value.region_id == "lon"
    assert '"lon"' in str(exc_info.value)


def test_empty_token_is_invalid():
    with pytest.raises(InvalidRegionError):
        normalize_regions(["sfo", ""])


def test_all_cannot_be_combined():
    with pytest.raises(AllRegionsConflictError):
        normalize_regions(["sfo", "all"])


def test_custom_table():
    table = {"fra": ["fra1", "fra2"], "syd": ["syd1"]}
    assert normalize_regions(["fra2", "syd"], table=table) == ["fra", "syd"]
    assert normalize_regions(["all"], table=table) == ["fra", "syd"]
    with pytest.raises(InvalidRegionError):
        normalize_regions(["sfo"], table=table)


@pytest.mark.parametrize("token", ["ALL", "All", " all "])
def test_all_is_case_insensitive(token):
    assert normalize_regions([token]) == list(DEFAULT_REGION_TABLE)


def test_all_in_any_case_cannot_be_combined():
    with pytest.raises(AllRegionsConflictError) as exc_info:
        normalize_regions(["All", "sfo"])
    assert exc_info.value.code == ErrorCode.INVALID_REGION_ALL
