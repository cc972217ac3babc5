"""depfetch: Workspace-aware dependency resolution and artifact fetching."""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"
