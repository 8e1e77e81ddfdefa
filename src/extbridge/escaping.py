def escape_literal(value: str) -> str:
    """Double every single quote so ``value`` can sit inside a '...' SQL literal."""
    return value.replace("'", "''")


def unescape_literal(value: str) -> str:
    """Collapse doubled single quotes produced by :func:`escape_literal`."""
    result = []
    i = 0
    while i < len(value):
        ch = value[i]
        if ch == "'" and i + 1 < len(value) and value[i + 1] == "'":
            result.append("'")
            i += 2
            continue
        result.append(ch)
        i += 1
    return "".join(result)


def quote_literal(value: str) -> str:
    """Return ``value`` escaped and wrapped in single quotes."""
    return f"'{escape_literal(value)}'"
