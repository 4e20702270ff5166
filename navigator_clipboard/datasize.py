"""Human readable data sizes ("500mb", "10 KB", "2G") expressed in bytes."""
import re

B = 1
KB = B << 10
MB = KB << 10
GB = MB << 10
TB = GB << 10
PB = TB << 10
EB = PB << 10

MAX_SIZE = (1 << 64) - 1

_UNITS = {
    "": B,
    "b": B,
    "k": KB,
    "m": MB,
    "g": GB,
    "t": TB,
    "p": PB,
    "e": EB,
}

_SIZE_PATTERN = re.compile(r"^(\d+)\s*([A-Za-z]*)$")


def parse_size(text: str) -> int:
    """Convert a size string into a number of bytes.

    Units are 1024 based and case-insensitive, with one exception:
    an uppercase prefix followed by a lowercase ``b`` ("Mb") means bits
    and is rejected.

    Raises:
        ValueError: If the text is not a valid size or overflows 64 bits.
    """
    match = _SIZE_PATTERN.match(text.strip())
    if not match:
        raise ValueError(f"invalid data size: {text!r}")
    number, unit = match.groups()
    if len(unit) > 2:
        raise ValueError(f"invalid data size unit: {unit!r}")
    if len(unit) == 2:
        prefix, suffix = unit
        if suffix not in ("b", "B") or prefix.lower() == "b":
            raise ValueError(f"invalid data size unit: {unit!r}")
        if prefix.isupper() and suffix == "b":
            raise ValueError(f"bits are not supported: {unit!r}")
        unit = prefix
    multiplier = _UNITS.get(unit.lower())
    if multiplier is None:
        raise ValueError(f"invalid data size unit: {unit!r}")
    size = int(number) * multiplier
    if size > MAX_SIZE:
        raise ValueError(f"data size overflows: {text!r}")
    return size


def format_size(size: int) -> str:
    """Render a byte count using the largest exact unit."""
    for name, unit in (("EB", EB), ("PB", PB), ("TB", TB), ("GB", GB), ("MB", MB), ("KB", KB)):
        if size and size % unit == 0:
            return f"{size // unit}{name}"
    return f"{size}B"
