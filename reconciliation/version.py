"""
Version ordinal codec for patch-compatibility checks.

The installer's patch engine compares file versions as four 16-bit segments
packed into a single 64-bit number, first segment most significant:

    "1.2.3.4" -> 0x0001_0002_0003_0004

Missing trailing segments count as zero, so "1.2" and "1.2.0.0" encode to
the same ordinal. The engine only looks at the first three segments when
deciding whether a file changed, which is why truncate3() exists: a change
confined to the 4th segment has to be reported separately.
"""

import re
from dataclasses import dataclass
from enum import Enum


SEGMENT_BITS = 16
SEGMENT_MAX = (1 << SEGMENT_BITS) - 1  # 65535
SEGMENT_COUNT = 4

_SEGMENT_RE = re.compile(r'[0-9]+')


class InvalidVersion(ValueError):
    """Raised when a version string cannot be encoded as an ordinal."""
    pass


class Ordering(int, Enum):
    LESS = -1
    EQUAL = 0
    GREATER = 1


@dataclass(frozen=True, order=True)
class VersionOrdinal:
    """Packed, order-preserving encoding of a dotted version string."""
    value: int

    @property
    def segments(self) -> tuple[int, int, int, int]:
        """The four segments, most significant first."""
        return tuple(
            (self.value >> (SEGMENT_BITS * shift)) & SEGMENT_MAX
            for shift in range(SEGMENT_COUNT - 1, -1, -1)
        )

    def __str__(self) -> str:
        return '.'.join(str(s) for s in self.segments)


ZERO = VersionOrdinal(0)


def encode(version: str) -> VersionOrdinal:
    """
    Encode a dotted version string as a VersionOrdinal.

    Args:
        version: Version string such as "1.2.3.4". The empty string encodes
                 to ZERO.

    Returns:
        VersionOrdinal for the version

    Raises:
        InvalidVersion: If there are more than four segments, or a segment is
                        empty, non-numeric or larger than 65535
    """
    if version == '':
        return ZERO

    parts = version.split('.')
    if len(parts) > SEGMENT_COUNT:
        raise InvalidVersion(
            f"Version {version} has {len(parts)} segments; at most {SEGMENT_COUNT} are allowed."
        )

    value = 0
    for index, part in enumerate(parts):
        if not _SEGMENT_RE.fullmatch(part):
            raise InvalidVersion(f"Segment index {index} of version {version} is not a number.")
        segment = int(part)
        if segment > SEGMENT_MAX:
            raise InvalidVersion(
                f"Segment index {index} of version {version} is more than {SEGMENT_MAX}."
            )
        value |= segment << (SEGMENT_BITS * (SEGMENT_COUNT - 1 - index))

    return VersionOrdinal(value)


def compare(a: VersionOrdinal, b: VersionOrdinal) -> Ordering:
    """Total order over ordinals."""
    if a.value < b.value:
        return Ordering.LESS
    if a.value > b.value:
        return Ordering.GREATER
    return Ordering.EQUAL


def truncate3(ordinal: VersionOrdinal) -> VersionOrdinal:
    """Drop the 4th segment, which the patch engine ignores."""
    return VersionOrdinal(ordinal.value & ~SEGMENT_MAX)
