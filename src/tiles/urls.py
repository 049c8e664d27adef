"""Tile URL templates with {x}, {y}, {z} placeholders."""

from __future__ import annotations

from yarl import URL


def substitute(template: str, token: str, value: str) -> str:
    """Replace every case-insensitive occurrence of `token` with `value`."""
    # ASCII-only lowering keeps indices aligned with the template
    lowered = ''.join(c.lower() if c.isascii() else c for c in template)
    needle = token.lower()
    parts: list[str] = []
    start = 0
    while True:
        idx = lowered.find(needle, start)
        if idx < 0:
            break
        parts.append(template[start:idx])
        parts.append(value)
        start = idx + len(needle)
    parts.append(template[start:])
    return ''.join(parts)


def format_template(template: str, x: int, y: int, z: int) -> str:
    """Substitute tile coordinates into a template without parsing it."""
    out = substitute(template, '{x}', str(x))
    out = substitute(out, '{y}', str(y))
    return substitute(out, '{z}', str(z))


def resolve_url(template: str, x: int, y: int, z: int) -> URL:
    """
    Build the request URL for tile (x, y, z).

    Raises:
        ValueError: If the substituted string is not a parseable URL.
    """
    # encoded=True keeps the provider's query string exactly as written
    return URL(format_template(template, x, y, z), encoded=True)
