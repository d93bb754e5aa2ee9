# SPDX-License-Identifier: MIT
"""State container for the TUI app.

Keeps the view-only state (what the suggestion list shows, where exports
go) out of TrackerSession, which owns the domain state.
"""
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional


@dataclass
class AppState:
    """View state for DrinkTrackerApp."""

    suggestions: List[str] = field(default_factory=list)
    input_active: bool = False
    export_dir: Path = field(default_factory=Path.cwd)
    last_export_path: Optional[Path] = None
    refresh_seconds: float = 30.0
