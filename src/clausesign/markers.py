"""
Placeholder scanner.

A signature marker is a maximal run of exactly twenty underscores inside a
block's text. Runs of exactly ten underscores are generic fill-in blanks
(amounts, dates, names left for the parties) and never carry a signature
binding. Any other run length is ordinary text.
"""

from dataclasses import dataclass

MARKER_CHAR = "_"
SIGNATURE_RUN = 20
FILL_IN_RUN = 10

SIGNATURE_MARKER = MARKER_CHAR * SIGNATURE_RUN
FILL_IN_MARKER = MARKER_CHAR * FILL_IN_RUN

SIGNATURE = "signature"
FILL_IN = "fill_in"

_KINDS = {SIGNATURE_RUN: SIGNATURE, FILL_IN_RUN: FILL_IN}


@dataclass(frozen=True)
class Marker:
    """A recognised underscore run in block text."""

    start: int
    length: int
    kind: str

    @property
    def end(self) -> int:
        return self.start + self.length


def scan_markers(text: str) -> list[Marker]:
    """
    Find every signature marker and fill-in blank in ``text``.

    Args:
        text: Block text

    Returns:
        Markers ordered by start offset
    """
    found: list[Marker] = []
    i = 0
    size = len(text)
    while i < size:
        if text[i] != MARKER_CHAR:
            i += 1
            continue
        start = i
        while i < size and text[i] == MARKER_CHAR:
            i += 1
        kind = _KINDS.get(i - start)
        if kind is not None:
            found.append(Marker(start=start, length=i - start, kind=kind))
    return found


def signature_markers(text: str) -> list[Marker]:
    """Signature markers only, in ordinal order."""
    return [m for m in scan_markers(text) if m.kind == SIGNATURE]


def fill_in_markers(text: str) -> list[Marker]:
    """Fill-in blanks only, in field order."""
    return [m for m in scan_markers(text) if m.kind == FILL_IN]


def count_signature_markers(text: str) -> int:
    return len(signature_markers(text))
