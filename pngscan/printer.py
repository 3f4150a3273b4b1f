from typing import Iterable

from pngscan.scan_lines import ScanLine, ScanLineMut


class Printer:
    """Prints a scan-line layout to the terminal, one row per scan line, coloured by Adam7 pass."""
    ESC = "\x1B"
    CSI = f"{ESC}["

    PASS_COLOURS = {
        None: (200, 200, 200),
        1: (255, 85, 85),
        2: (255, 170, 0),
        3: (255, 255, 85),
        4: (85, 255, 85),
        5: (85, 255, 255),
        6: (85, 85, 255),
        7: (255, 85, 255),
    }

    @classmethod
    def paint(cls, s: str, r: int, g: int, b: int) -> str:
        return "".join(
            [
                f"{cls.CSI}38;2;{r};{g};{b}m",
                s,
                f"{cls.CSI}0m",
            ]
        )

    def __init__(self, max_bytes: int = 16, colour: bool = True):
        self.max_bytes = max_bytes
        self.colour = colour

    def hex_data(self, data: memoryview) -> str:
        shown = bytes(data[:self.max_bytes]).hex(" ")
        if len(data) > self.max_bytes:
            shown += f" ... (+{len(data) - self.max_bytes})"
        return shown

    def format_line(self, i: int, line: ScanLine | ScanLineMut) -> str:
        pass_label = "-" if line.pass_ is None else str(line.pass_)
        s = f"{i:>5d} {line.offset:>8d} {pass_label:>4} {line.filter:>6d} {len(line.data):>6d}  {self.hex_data(line.data)}"
        if self.colour:
            return self.paint(s, *self.PASS_COLOURS.get(line.pass_, self.PASS_COLOURS[None]))
        return s

    def print(self, lines: Iterable[ScanLine | ScanLineMut]):
        print(f"{'line':>5} {'offset':>8} {'pass':>4} {'filter':>6} {'bytes':>6}  data")
        for i, line in enumerate(lines):
            print(self.format_line(i, line))
