# tests/analysis/test_structure_pass.py
from headmap.model import Severity
from headmap.validation import validate_structure


def test_page_starting_with_h2_misses_h1_twice(heading):
    result = validate_structure([heading(2, "Intro")])

    assert result.codes() == ["missing_h1_start", "missing_h1"]
    assert len(result.errors) == 2
    assert all(i.severity == Severity.CRITICAL for i in result.errors)
    assert result.warnings == [] and result.info == []


def test_skipped_level_names_missing_levels(heading):
    result = validate_structure([heading(1, "Twenty Character Title!"), heading(3, "Sub")])

    skipped = [i for i in result.errors if i.type == "heading_skipped"]
    assert len(skipped) == 1
    assert "from H1 to H3" in skipped[0].message
    assert "(missing H2)" in skipped[0].message


def test_empty_h1_still_counts_as_h1(heading):
    result = validate_structure([heading(1, "")])

    assert "empty_heading" in [i.type for i in result.errors]
    assert "missing_h1" not in result.codes()
    assert "missing_h1_start" not in result.codes()


def test_no_headings_short_circuits(heading):
    result = validate_structure([])
    assert result.codes() == ["no_headings"]
    assert result.errors[0].severity == Severity.CRITICAL


def test_multiple_h1_reports_running_total(heading):
    result = validate_structure([
        heading(1, "The first main heading of this page"),
        heading(1, "The second main heading of this page"),
        heading(1, "The third main heading of this page"),
    ])

    messages = [i.message for i in result.warnings if i.type == "multiple_h1"]
    assert messages == ["Multiple H1 tags found (2 total)", "Multiple H1 tags found (3 total)"]


def test_h1_length_outside_optimal_range(heading):
    short = validate_structure([heading(1, "Too short")])
    long = validate_structure([heading(1, "A" + " very" * 15 + " long page title")])

    assert "too short" in [i for i in short.warnings if i.type == "h1_length"][0].message
    assert "too long" in [i for i in long.warnings if i.type == "h1_length"][0].message


def test_empty_heading_is_not_a_skip_reference(heading):
    """An empty H2 does not become the previous level, so H1 -> H4 is still reported."""
    result = validate_structure([
        heading(1, "A descriptive page title"),
        heading(2, ""),
        heading(4, "Deep section"),
    ])

    skipped = [i for i in result.errors if i.type == "heading_skipped"]
    assert len(skipped) == 1
    assert "(missing H2, H3)" in skipped[0].message


def test_content_checks(heading):
    result = validate_structure([
        heading(1, "A descriptive page title"),
        heading(2, "Overview"),
        heading(2, "Shoes shoes shoes for cheap"),
        heading(2, "OUR LATEST NEWS"),
    ])

    assert "generic_heading" in [i.type for i in result.warnings]
    stuffing = [i for i in result.warnings if i.type == "keyword_stuffing"]
    assert stuffing and '"shoes"' in stuffing[0].message
    assert [i.type for i in result.info] == ["all_caps"]


def test_all_caps_needs_letters(heading):
    result = validate_structure([heading(1, "A descriptive page title"), heading(2, "2024")])
    assert "all_caps" not in result.codes()


def test_too_many_deep_headings(heading):
    headings = [heading(1, "A descriptive page title"), heading(2, "Section"), heading(3, "Topic"),
                heading(4, "Detail")]
    headings += [heading(5, f"Fine print {i}") for i in range(6)]

    result = validate_structure(headings)
    assert "excessive_depth" in [i.type for i in result.warnings]
