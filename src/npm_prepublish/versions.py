"""Minimal npm range matching built atop packaging.version.

Supported expressions:
- exact versions (e.g., "1.2.3", "v1.2.3", "=1.2.3")
- partial versions ("1" → 1.x, "1.2" → 1.2.x), also as caret/tilde bases (~1 → <2.0.0)
- "*" and "" (any version)
- caret ranges ^x.y.z, including the 0.x rules (^0.2.3 → <0.3.0, ^0.0.3 → <0.0.4)
- tilde ranges ~x.y.z → >=x.y.z,<x.y+1.0
- comparator sets split by spaces, e.g., ">=1.0.0 <2.0.0"
- alternatives joined with "||"

Anything else (dist-tags, x-ranges, hyphen ranges, git/file/npm: specifiers)
raises UnsupportedRange.
"""

from __future__ import annotations

from packaging.version import InvalidVersion, Version


class UnsupportedRange(ValueError):
    """Raised for range expressions this module does not evaluate."""


def normalise(version: str) -> str:
    return version.strip().lstrip("=v").strip()


def parse_version(version: str) -> Version:
    try:
        return Version(normalise(version))
    except InvalidVersion as exc:
        raise UnsupportedRange(f"not a version: {version!r}") from exc


def _precision(version: str) -> int:
    """Number of release parts written out: "1" → 1, "1.2" → 2, "1.2.3-rc.1" → 3."""
    release = normalise(version).split("-", 1)[0].split("+", 1)[0]
    return len(release.split("."))


def _next_major(v: Version) -> Version:
    return Version(f"{v.major + 1}.0.0")


def _next_minor(v: Version) -> Version:
    return Version(f"{v.major}.{v.minor + 1}.0")


def _caret_upper(v: Version, precision: int) -> Version:
    if v.major > 0 or precision == 1:
        return _next_major(v)
    if v.minor > 0 or precision == 2:
        return Version(f"0.{v.minor + 1}.0")
    return Version(f"0.0.{v.micro + 1}")


def _tilde_upper(v: Version, precision: int) -> Version:
    return _next_major(v) if precision == 1 else _next_minor(v)


def _partial_upper(v: Version, precision: int) -> Version | None:
    # "1" means 1.x and "1.2" means 1.2.x; a full version has no upper bound
    if precision == 1:
        return _next_major(v)
    if precision == 2:
        return _next_minor(v)
    return None


def _comparator(v: Version, token: str) -> bool:
    for op in (">=", "<=", ">", "<", "=="):
        if token.startswith(op):
            text = token[len(op):]
            break
    else:
        op = "="
        text = token
    bound = parse_version(text)
    upper = _partial_upper(bound, _precision(text))

    if op == ">=":
        return v >= bound
    if op == "<":
        return v < bound
    if op in ("<=", ">"):
        if upper is not None:
            raise UnsupportedRange(f"unsupported partial comparator: {token!r}")
        return v <= bound if op == "<=" else v > bound
    if upper is not None:
        return bound <= v < upper
    return v == bound


def _satisfies_one(v: Version, expr: str) -> bool:
    expr = expr.strip()

    if expr in ("", "*"):
        return True

    if " - " in expr or any(part in ("x", "X") for part in expr.replace("*", "x").split(".")):
        raise UnsupportedRange(f"unsupported range: {expr!r}")

    if expr.startswith("^"):
        base = parse_version(expr[1:])
        return base <= v < _caret_upper(base, _precision(expr[1:]))

    if expr.startswith("~"):
        text = expr[1:].lstrip(">")
        base = parse_version(text)
        return base <= v < _tilde_upper(base, _precision(text))

    return all(_comparator(v, token) for token in expr.split())


def satisfies(installed: str, expr: str) -> bool:
    """Return True when ``installed`` falls inside the npm range ``expr``."""
    v = parse_version(installed)
    return any(_satisfies_one(v, part) for part in expr.split("||"))
