"""
Package version.

``pyproject.toml`` reads ``__version__`` from this file at build time
(``[tool.hatch.version] path``); bump it here when cutting a release.
"""

__version__ = "0.1.0"
