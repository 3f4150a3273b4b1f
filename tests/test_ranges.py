from pngscan.ihdr import ImageDescriptor
from pngscan.ranges import ScanLineLayoutError, ScanLineRanges, expected_length, line_length, scan_line_lengths
from png_fixtures import reference_layout
import pytest


def ranges_for(width, height, bits_per_pixel, interlaced):
    descriptor = ImageDescriptor(width, height, bits_per_pixel, interlaced)
    return list(ScanLineRanges(descriptor, expected_length(descriptor)))


def test_non_interlaced_lines():
    # Arrange
    descriptor = ImageDescriptor(width=10, height=3, bits_per_pixel=8, interlaced=False)

    # Act
    ranges = list(ScanLineRanges(descriptor, 33))

    # Assert
    assert ranges == [(11, None), (11, None), (11, None)]


def test_interlaced_single_pixel():
    descriptor = ImageDescriptor(width=1, height=1, bits_per_pixel=8, interlaced=True)

    assert expected_length(descriptor) == 2
    assert list(ScanLineRanges(descriptor, 2)) == [(2, 1)]


def test_interlaced_8x8():
    ranges = ranges_for(8, 8, 8, True)

    assert ranges == [
        (2, 1),
        (2, 2),
        (3, 3),
        (3, 4), (3, 4),
        (5, 5), (5, 5),
        (5, 6), (5, 6), (5, 6), (5, 6),
        (9, 7), (9, 7), (9, 7), (9, 7),
    ]
    assert sum(length for length, _ in ranges) == 79


@pytest.mark.parametrize(["width", "height", "bits_per_pixel"], (
    (1, 1, 1),
    (3, 1, 8),
    (4, 4, 32),
    (4, 9, 24),
    (9, 4, 2),
    (2, 2, 16),
    (1, 17, 4),
    (17, 1, 48),
    (13, 11, 64),
    (32, 32, 8),
    (33, 7, 3),
))
@pytest.mark.parametrize(["interlaced"], ((False,), (True,)))
def test_matches_reference_layout(width, height, bits_per_pixel, interlaced):
    expected = reference_layout(width, height, bits_per_pixel, interlaced)

    assert ranges_for(width, height, bits_per_pixel, interlaced) == expected
    assert list(scan_line_lengths(ImageDescriptor(width, height, bits_per_pixel, interlaced))) == expected


def test_every_small_size_matches_reference_layout():
    for width in range(1, 20):
        for height in range(1, 20):
            expected = reference_layout(width, height, 8, True)
            actual = ranges_for(width, height, 8, True)
            assert actual == expected, f"{width=} {height=}"


@pytest.mark.parametrize(["width", "height"], [(w, h) for w in range(1, 5) for h in (1, 3, 8, 20)])
def test_narrow_interlaced_image_skips_pass_2(width, height):
    passes = [pass_ for _, pass_ in ranges_for(width, height, 8, True)]

    assert 2 not in passes
    assert 3 in passes or height < 5


@pytest.mark.parametrize(["width", "height"], [(w, h) for w in (1, 4, 8, 20) for h in range(1, 5)])
def test_short_interlaced_image_skips_pass_3(width, height):
    passes = [pass_ for _, pass_ in ranges_for(width, height, 8, True)]

    assert 3 not in passes


def test_pass_numbers_never_decrease():
    passes = [pass_ for _, pass_ in ranges_for(37, 29, 24, True)]

    assert passes == sorted(passes)
    assert set(passes) == {1, 2, 3, 4, 5, 6, 7}


@pytest.mark.parametrize(["pixels", "bits_per_pixel", "expected"], (
    (10, 8, 11),
    (3, 1, 2),
    (8, 1, 2),
    (9, 1, 3),
    (5, 2, 3),
    (3, 4, 3),
    (0, 8, 1),
    (2, 48, 13),
))
def test_line_length_rounds_bits_up_to_bytes(pixels, bits_per_pixel, expected):
    assert line_length(pixels, bits_per_pixel) == expected


def test_same_descriptor_same_sequence():
    descriptor = ImageDescriptor(21, 13, 4, True)
    length = expected_length(descriptor)

    assert list(ScanLineRanges(descriptor, length)) == list(ScanLineRanges(descriptor, length))


def test_empty_buffer_has_no_lines():
    assert list(ScanLineRanges(ImageDescriptor(4, 4, 8), 0)) == []


def test_short_buffer_is_a_layout_error():
    # Arrange
    ranges = ScanLineRanges(ImageDescriptor(10, 3, 8), 30)

    # Act
    lines = [next(ranges), next(ranges)]

    # Assert
    assert lines == [(11, None), (11, None)]
    with pytest.raises(ScanLineLayoutError, match="scan line 2 needs 11 bytes but only 8 remain"):
        next(ranges)
    assert list(ranges) == [], "Ranges should stay exhausted after a layout error"


def test_long_buffer_is_a_layout_error():
    with pytest.raises(ScanLineLayoutError, match="remain after all 3 rows"):
        list(ScanLineRanges(ImageDescriptor(10, 3, 8), 34))


def test_long_interlaced_buffer_is_a_layout_error():
    with pytest.raises(ScanLineLayoutError, match="after the last Adam7 pass"):
        list(ScanLineRanges(ImageDescriptor(1, 1, 8, True), 3))

    descriptor = ImageDescriptor(8, 8, 8, True)
    with pytest.raises(ScanLineLayoutError, match="after the last Adam7 pass"):
        list(ScanLineRanges(descriptor, expected_length(descriptor) + 9))


def test_layout_error_is_a_value_error():
    assert issubclass(ScanLineLayoutError, ValueError)


@pytest.mark.parametrize(["descriptor"], (
    (ImageDescriptor(0, 1, 8),),
    (ImageDescriptor(1, 0, 8),),
    (ImageDescriptor(1, 1, 0),),
    (ImageDescriptor(1, 1, 65),),
))
def test_invalid_descriptor(descriptor):
    with pytest.raises(ValueError):
        ScanLineRanges(descriptor, 0)


def test_layout_error_is_not_logged_as_error(caplog):
    with caplog.at_level("DEBUG", logger="pngscan.ranges"):
        with pytest.raises(ScanLineLayoutError):
            list(ScanLineRanges(ImageDescriptor(10, 3, 8), 34))

    assert not [record for record in caplog.records if record.levelname == "ERROR"]
    assert any("remain after all 3 rows" in record.getMessage() for record in caplog.records)
