import json

import pytest

from hkflea.document import dump_document
from hkflea.fields import (
    FLEA_FIELDS,
    MALFORMED_REPORT,
    REPORT_FOOTER,
    REPORT_HEADER,
    REPORT_LINE,
    FlagValue,
    extract_flags,
    merge,
    parse_report,
    project,
    set_flag,
)


def _flag_lines(report):
    return [line for line in report.splitlines() if not line.startswith("#")]


def _player_data(text):
    return json.loads(text)["playerData"]


# ============================================================================
# Projection
# ============================================================================

def test_allow_list_is_fixed():
    assert isinstance(FLEA_FIELDS, tuple)
    assert len(FLEA_FIELDS) == 27
    assert len(set(FLEA_FIELDS)) == 27
    assert FLEA_FIELDS[0] == "SavedFlea_Bone_06"
    assert FLEA_FIELDS[-1] == "SavedFlea_Slab_06"


def test_project_lists_every_flag_in_order(sample_text):
    lines = _flag_lines(project(sample_text))
    assert [line.split(":")[0] for line in lines] == list(FLEA_FIELDS)
    assert lines[0] == "SavedFlea_Bone_06: false"
    assert lines[1] == "SavedFlea_Dock_16: true"
    assert lines[4] == "SavedFlea_Ant_03: true"
    assert lines[2] == "SavedFlea_Bone_East_05: n/a"


def test_project_banners(sample_text):
    report = project(sample_text)
    lines = report.splitlines()
    assert tuple(lines[:len(REPORT_HEADER)]) == REPORT_HEADER
    assert tuple(lines[-len(REPORT_FOOTER):]) == REPORT_FOOTER
    assert report.endswith("\n")


def test_banner_lines_never_parse():
    for line in REPORT_HEADER + REPORT_FOOTER:
        assert not REPORT_LINE.match(line)


def test_project_accepts_parsed_document(sample_document, sample_text):
    assert project(sample_document) == project(sample_text)


def test_project_is_idempotent(sample_text):
    assert project(sample_text) == project(sample_text)


def test_project_without_player_data():
    lines = _flag_lines(project("{}"))
    assert all(line.endswith(": n/a") for line in lines)
    assert len(lines) == len(FLEA_FIELDS)


def test_project_null_player_data():
    lines = _flag_lines(project('{"playerData": null}'))
    assert lines == [f"{name}: n/a" for name in FLEA_FIELDS]
    assert extract_flags('{"playerData": null}') == [(name, FlagValue.ABSENT) for name in FLEA_FIELDS]


def test_project_uses_truthiness():
    lines = _flag_lines(project('{"playerData": {"SavedFlea_Bone_06": 1, "SavedFlea_Dock_16": 0}}'))
    assert lines[0] == "SavedFlea_Bone_06: true"
    assert lines[1] == "SavedFlea_Dock_16: false"


@pytest.mark.parametrize("document", ["not json", "[1, 2]", '{"playerData": 3}', None])
def test_project_malformed_document(document):
    assert project(document) == MALFORMED_REPORT


def test_project_custom_allow_list(sample_text):
    report = project(sample_text, ("SavedFlea_Ant_03", "geo"))
    assert _flag_lines(report) == ["SavedFlea_Ant_03: true", "geo: true"]


def test_extract_flags(sample_text):
    flags = dict(extract_flags(sample_text))
    assert flags["SavedFlea_Bone_06"] is FlagValue.FALSE
    assert flags["SavedFlea_Dock_16"] is FlagValue.TRUE
    assert flags["SavedFlea_Slab_06"] is FlagValue.ABSENT


def test_extract_flags_malformed():
    assert extract_flags("{") == [(name, FlagValue.ABSENT) for name in FLEA_FIELDS]


# ============================================================================
# Report parsing
# ============================================================================

def test_parse_report_values_case_insensitive():
    edits = parse_report("SavedFlea_Bone_06: TRUE\nSavedFlea_Dock_16:False\nSavedFlea_Ant_03:   N/A\n")
    assert edits == {
        "SavedFlea_Bone_06": FlagValue.TRUE,
        "SavedFlea_Dock_16": FlagValue.FALSE,
        "SavedFlea_Ant_03": FlagValue.ABSENT,
    }


def test_parse_report_ignores_noise():
    text = "\n".join([
        "# a comment",
        "random text",
        "SavedFlea_Bone_06: maybe",
        "savedflea_bone_06: true",
        "SavedFlea_Nowhere_99: true",
        "geo: true",
        "SavedFlea_Bone_06 true",
        "",
    ])
    assert parse_report(text) == {}


def test_parse_report_tolerates_crlf_and_indent():
    assert parse_report("  SavedFlea_Bone_06: true\r\n") == {"SavedFlea_Bone_06": FlagValue.TRUE}


def test_parse_report_last_line_wins():
    edits = parse_report("SavedFlea_Bone_06: true\nSavedFlea_Bone_06: n/a\n")
    assert edits == {"SavedFlea_Bone_06": FlagValue.ABSENT}


# ============================================================================
# Merge
# ============================================================================

def test_merge_scenario():
    base = dump_document({"playerData": {"SavedFlea_Bone_06": False, "SavedFlea_Dock_16": True, "other": 5}})
    result = merge("SavedFlea_Bone_06: true\nSavedFlea_Dock_16: n/a\n", base)
    assert json.loads(result) == {"playerData": {"SavedFlea_Bone_06": True, "other": 5}}


def test_merge_unchanged_report_is_identity(sample_text):
    assert merge(project(sample_text), sample_text) == sample_text


def test_merge_keeps_non_boolean_values_that_already_match():
    base = dump_document({"playerData": {"SavedFlea_Bone_06": 1}})
    assert merge(project(base), base) == base


def test_merge_then_project(sample_text):
    report = project(sample_text).replace("SavedFlea_Slab_06: n/a", "SavedFlea_Slab_06: true")
    merged = merge(report, sample_text)
    assert project(merged) == report


def test_merge_sets_missing_flag(sample_text):
    merged = _player_data(merge("SavedFlea_Coral_35: false", sample_text))
    assert merged["SavedFlea_Coral_35"] is False


def test_merge_na_removes_flag(sample_text):
    merged = _player_data(merge("SavedFlea_Dock_16: n/a\nSavedFlea_Bone_06: n/a", sample_text))
    assert "SavedFlea_Dock_16" not in merged
    assert "SavedFlea_Bone_06" not in merged


def test_merge_na_on_absent_flag_is_noop(sample_text):
    assert merge("SavedFlea_Coral_35: n/a", sample_text) == sample_text


def test_merge_preserves_unrelated_fields(sample_document, sample_text):
    merged = json.loads(merge("SavedFlea_Bone_06: true", sample_text))
    expected = json.loads(sample_text)
    expected["playerData"]["SavedFlea_Bone_06"] = True
    assert merged == expected
    assert list(merged["playerData"]) == list(sample_document["playerData"])


def test_merge_ignores_names_outside_allow_list(sample_text):
    merged = _player_data(merge("geo: false\nfleaGamesStarted: true\nhealth: n/a", sample_text))
    assert merged["geo"] == 1234
    assert merged["fleaGamesStarted"] is False
    assert merged["health"] == 5


def test_merge_respects_custom_allow_list(sample_text):
    merged = _player_data(merge("SavedFlea_Bone_06: true\nSavedFlea_Dock_16: n/a", sample_text, ("SavedFlea_Bone_06",)))
    assert merged["SavedFlea_Bone_06"] is True
    assert merged["SavedFlea_Dock_16"] is True


@pytest.mark.parametrize("base", ["not json", "[1]", "{}", '{"playerData": []}'])
def test_merge_fails_closed(base):
    assert merge("SavedFlea_Bone_06: true", base) is base


def test_merge_mapping_without_player_data_returns_text():
    result = merge("SavedFlea_Bone_06: true", {"other": 1})
    assert isinstance(result, str)
    assert result == dump_document({"other": 1})


def test_merge_does_not_touch_input_mapping(sample_document):
    before = json.dumps(sample_document)
    merge("SavedFlea_Bone_06: true", sample_document)
    assert json.dumps(sample_document) == before


# ============================================================================
# Single flag edits
# ============================================================================

@pytest.mark.parametrize("value, expected", [
    (True, FlagValue.TRUE),
    ("false", FlagValue.FALSE),
    ("N/A", FlagValue.ABSENT),
    (None, FlagValue.ABSENT),
    (FlagValue.TRUE, FlagValue.TRUE),
])
def test_set_flag(sample_text, value, expected):
    result = set_flag(sample_text, "SavedFlea_Dock_16", value)
    assert dict(extract_flags(result))["SavedFlea_Dock_16"] is expected


def test_set_flag_unknown_name(sample_text):
    with pytest.raises(KeyError):
        set_flag(sample_text, "geo", True)


def test_set_flag_bad_value(sample_text):
    with pytest.raises(ValueError, match="Invalid flag value"):
        set_flag(sample_text, "SavedFlea_Dock_16", "yes")
