"""Entry-point plugins: third-party source scanners for extra languages.

A package registers a scanner under the ``constructkit.scanners`` group, keyed
by language name::

    [project.entry-points."constructkit.scanners"]
    rust = "my_package.scanners:RustScanner"
"""

from __future__ import annotations

import logging
from importlib.metadata import entry_points

log = logging.getLogger(__name__)

SCANNER_GROUP = "constructkit.scanners"


def discover_scanners() -> dict[str, type]:
    """Load every registered scanner class. Returns {language: scanner_class}.

    Entry points that fail to import or do not name a ``SourceScanner``
    subclass are logged and skipped.
    """
    from constructkit.scanners import SourceScanner

    found: dict[str, type] = {}
    for ep in entry_points(group=SCANNER_GROUP):
        try:
            loaded = ep.load()
        except Exception as exc:
            log.warning("Failed to load scanner plugin %s: %s", ep.name, exc)
            continue
        if not (isinstance(loaded, type) and issubclass(loaded, SourceScanner)):
            log.warning("Scanner plugin %s is not a SourceScanner subclass; skipped", ep.name)
            continue
        found[ep.name.lower()] = loaded
        log.debug("Loaded scanner plugin %s", ep.name)
    return found


def list_scanner_plugins() -> list[str]:
    return sorted(discover_scanners())
