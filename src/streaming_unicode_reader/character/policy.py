"""Content policies deciding which decoded scalars may reach the parser.

A policy is applied after a scalar has been decoded successfully, so it never
needs to know which encoding the scalar came from. Swap the policy to change
what the downstream grammar may see without touching the decoders.
"""

from typing import ClassVar, Dict, List, Tuple, Type

# Printable subset of Unicode admitted by the default policy
PRINTABLE_RANGES: List[Tuple[int, int]] = [
    (0x0009, 0x0009),  # Tab
    (0x000A, 0x000A),  # Line Feed
    (0x000D, 0x000D),  # Carriage Return
    (0x0020, 0x007E),  # Printable ASCII
    (0x0085, 0x0085),  # Next Line
    (0x00A0, 0xD7FF),  # BMP, excluding C1 controls and surrogates
    (0xE000, 0xFFFD),  # Private use and the rest of the BMP
    (0x10000, 0x10FFFF),  # Supplementary planes
]

# XML 1.0 Char production
XML10_RANGES: List[Tuple[int, int]] = [
    (0x0009, 0x0009),
    (0x000A, 0x000A),
    (0x000D, 0x000D),
    (0x0020, 0xD7FF),
    (0xE000, 0xFFFD),
    (0x10000, 0x10FFFF),
]


class ContentPolicy:
    """Admissibility check over a fixed list of inclusive ranges."""

    name: ClassVar[str] = "custom"
    ranges: ClassVar[List[Tuple[int, int]]] = []

    def is_allowed(self, value: int) -> bool:
        """Return whether the scalar value may appear in the decoded stream."""
        for low, high in self.ranges:
            if value < low:
                return False
            if value <= high:
                return True
        return False

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class PrintablePolicy(ContentPolicy):
    """Printable characters plus tab, line feed, carriage return and NEL."""

    name = "printable"
    ranges = PRINTABLE_RANGES


class Xml10Policy(ContentPolicy):
    """Characters allowed by the XML 1.0 ``Char`` production."""

    name = "xml10"
    ranges = XML10_RANGES


_POLICIES: Dict[str, Type[ContentPolicy]] = {
    PrintablePolicy.name: PrintablePolicy,
    Xml10Policy.name: Xml10Policy,
}


def get_policy(name: str) -> ContentPolicy:
    """Instantiate a registered policy by name.

    Raises:
        ValueError: If no policy is registered under ``name``
    """
    try:
        return _POLICIES[name]()
    except KeyError:
        raise ValueError(
            f"Unknown content policy {name!r}; expected one of {sorted(_POLICIES)}"
        ) from None
