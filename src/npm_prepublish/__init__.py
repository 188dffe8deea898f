"""npm-prepublish core package.

This package provides the pre-publish checks for a built npm package, callable
from the ``npm-prepublish`` console script, ``scripts/verify.py`` or directly
via :func:`npm_prepublish.core.verify_package`.
"""

__all__ = [
    "core",
]
