from jalloc._errors import InvalidClassNameError

PRIMITIVE_TYPE_NAMES = {
    "B": "byte",
    "C": "char",
    "I": "int",
    "J": "long",
}


def fmt_size(size: int, separator: str = "'") -> str:
    """Format a byte count with its digits grouped by thousands."""
    return f"{size:,}".replace(",", separator)


def fmt_percent(size: int, total: int, digits: int = 2) -> str:
    """Format ``size`` as a percentage of ``total``.

    Integer arithmetic is used so that the digits are truncated, never
    rounded: ``fmt_percent(1, 3)`` is ``"00.03%"``.
    """
    scaled = size * 10 ** (digits + 2) // total if total > 0 else 0
    text = str(scaled).zfill(digits + 2)
    return f"{text[:-digits]}.{text[-digits:]}%"


def demangle_class_name(name: str) -> str:
    """Convert a class name from the runtime's internal encoding.

    ``"[[Ljava/lang/String;"`` becomes ``"java.lang.String[][]"`` and
    ``"[I"`` becomes ``"int[]"``. Names that are already readable are
    returned unchanged.
    """
    dimensions = len(name) - len(name.lstrip("["))
    name = name[dimensions:]
    if name.endswith(";"):
        if not name.startswith("L"):
            raise InvalidClassNameError(f"Invalid class name: {name!r}")
        name = name[1:-1]
    name = PRIMITIVE_TYPE_NAMES.get(name, name)
    return name.replace("/", ".") + "[]" * dimensions
