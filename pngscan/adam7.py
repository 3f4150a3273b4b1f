from typing import NamedTuple


# https://www.w3.org/TR/png-3/#8Interlace

class Adam7Pass(NamedTuple):
    number: int
    start_col: int
    start_row: int
    horiz_factor: int
    vert_step: int
    # A trailing partial block adds one pixel when width % horiz_factor >= threshold.
    # 0 means the division is always exact.
    threshold: int


ADAM7_PASSES = (
    Adam7Pass(number=1, start_col=0, start_row=0, horiz_factor=8, vert_step=8, threshold=1),
    Adam7Pass(number=2, start_col=4, start_row=0, horiz_factor=8, vert_step=8, threshold=5),
    Adam7Pass(number=3, start_col=0, start_row=4, horiz_factor=4, vert_step=8, threshold=1),
    Adam7Pass(number=4, start_col=2, start_row=0, horiz_factor=4, vert_step=4, threshold=3),
    Adam7Pass(number=5, start_col=0, start_row=2, horiz_factor=2, vert_step=4, threshold=1),
    Adam7Pass(number=6, start_col=1, start_row=0, horiz_factor=2, vert_step=2, threshold=2),
    Adam7Pass(number=7, start_col=0, start_row=1, horiz_factor=1, vert_step=2, threshold=0),
)

FIRST_PASS = 1
LAST_PASS = len(ADAM7_PASSES)


def adam7_pass(pass_number: int) -> Adam7Pass:
    if not FIRST_PASS <= pass_number <= LAST_PASS:
        raise ValueError(f"Adam7 pass number must be in 1..7. Got {pass_number}")
    return ADAM7_PASSES[pass_number - 1]


def pass_pixels(width: int, pass_number: int) -> int:
    """
    Number of pixels in one scan line of the given pass.

    Whole sampling blocks contribute one pixel each. The final, incomplete block
    contributes one more if it is wide enough to reach the pass's starting column.
    """
    p = adam7_pass(pass_number)
    pixels = width // p.horiz_factor
    gap = width % p.horiz_factor
    if p.threshold and gap >= p.threshold:
        pixels += 1
    return pixels


def pass_rows(height: int, pass_number: int) -> int:
    p = adam7_pass(pass_number)
    if p.start_row >= height:
        return 0
    return (height - p.start_row + p.vert_step - 1) // p.vert_step


def pass_is_empty(width: int, height: int, pass_number: int) -> bool:
    return pass_pixels(width, pass_number) == 0 or pass_rows(height, pass_number) == 0


def next_pass(pass_number: int) -> tuple[int, int] | None:
    """
    The cursor position a pass hands over to once its last row is done.

    Returns:
        (pass_number, start_row) of the following pass, or None after pass 7.
    """
    if pass_number >= LAST_PASS:
        return None
    following = adam7_pass(pass_number + 1)
    return following.number, following.start_row
