"""Back-end and tooling for the GeoExpert land-surveying website."""

from __future__ import annotations

__version__ = "0.1.0"
