from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from ..input.keys import KeySequence
from ..invoker import RenderCommand


@dataclass
class AppState:
    path: Path
    command: RenderCommand
    lines: list[str] = field(default_factory=list)
    display_lines: list[str] = field(default_factory=list)
    start: int = 0
    rows: int = 1
    columns: int = 80
    loaded: bool = False
    show_status: bool = True
    status_message: str = ""
    reload_count: int = 0
    key_sequence: KeySequence = field(default_factory=KeySequence)
    dirty: bool = True
