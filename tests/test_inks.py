import pytest

from cartoniq.errors import CartonIQError, InvalidColorFormat
from cartoniq.inks import (CMYK, PURE_BLACK, RGB, RICH_BLACK, cmyk_comment, format_cmyk,
                           hex_to_cmyk, hex_to_rgb, ink_coverage, is_print_safe, rgb_to_cmyk,
                           validate_color_for_print)


@pytest.mark.parametrize("hex_color, expected", [
    ("#000000", (0.0, 0.0, 0.0, 100.0)),
    ("#FFFFFF", (0.0, 0.0, 0.0, 0.0)),
    ("#FF0000", (0.0, 100.0, 100.0, 0.0)),
    ("#8B7355", (0.0, 17.3, 38.8, 45.5)),
])
def test_hex_to_cmyk_known_colors(hex_color, expected):
    assert hex_to_cmyk(hex_color).as_tuple() == expected


def test_hex_without_hash_and_lowercase():
    assert hex_to_rgb("8b7355") == RGB(139, 115, 85)
    assert hex_to_cmyk("ff0000") == hex_to_cmyk("#FF0000")


def test_pure_black_does_not_divide_by_zero():
    assert rgb_to_cmyk(RGB(0, 0, 0)) == PURE_BLACK


@pytest.mark.parametrize("bad", ["#FFF", "#GGGGGG", "", "#1234567", "red"])
def test_malformed_hex_raises(bad):
    with pytest.raises(InvalidColorFormat):
        hex_to_cmyk(bad)


def test_rgb_channel_out_of_range():
    with pytest.raises(InvalidColorFormat):
        rgb_to_cmyk(RGB(256, 0, 0))


def test_color_errors_share_base_class():
    with pytest.raises(CartonIQError):
        hex_to_rgb(None)


def test_ink_coverage_and_print_safety():
    assert ink_coverage(RICH_BLACK) == 240.0
    assert is_print_safe(RICH_BLACK)
    heavy = CMYK(100, 100, 100, 100)
    assert ink_coverage(heavy) == 400.0
    assert not is_print_safe(heavy)
    assert is_print_safe(heavy, max_coverage=400)


def test_format_cmyk():
    assert format_cmyk(CMYK(0, 17.3, 38.8, 45.5)) == "cmyk(0%, 17.3%, 38.8%, 45.5%)"


def test_cmyk_comment_flags_high_coverage():
    note = cmyk_comment("#8B7355", "Cocoa")
    assert "Cocoa" in note
    assert "HIGH INK COVERAGE" not in note
    assert "HIGH INK COVERAGE" in cmyk_comment("#8B7355", "Cocoa", max_coverage=100)


def test_validate_color_reports_instead_of_raising():
    check = validate_color_for_print("#8B7355")
    assert check.is_valid
    assert check.errors == []
    assert check.cmyk == hex_to_cmyk("#8B7355")

    # Coverage 101.6%
    over = validate_color_for_print("#8B7355", max_coverage=100)
    assert not over.is_valid
    assert len(over.errors) == 1

    near = validate_color_for_print("#8B7355", warn_coverage=100)
    assert near.is_valid
    assert len(near.warnings) == 1


def test_very_light_color_gets_hint():
    check = validate_color_for_print("#FFFFFF")
    assert check.is_valid
    assert any("light" in w for w in check.warnings)
