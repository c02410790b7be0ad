"""Level discovery and registry."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from voicequiz.engine.errors import LevelFormatError, LevelNotFoundError
from voicequiz.engine.level_loader import LEVEL_FILE, Level, load_level


class LevelRegistry:
    """Discovers and loads levels from the levels directory."""

    def __init__(self, levels_dir: Path | None = None):
        self.levels_dir = levels_dir or Path(__file__).parent
        self._levels: Optional[list[Level]] = None

    def list_levels(self) -> list[Level]:
        """All levels with a level.yaml, ordered by level number."""
        if self._levels is None:
            levels = [
                load_level(path)
                for path in sorted(self.levels_dir.iterdir())
                if path.is_dir() and (path / LEVEL_FILE).exists()
            ]
            levels.sort(key=lambda lv: lv.number)

            seen: dict[int, str] = {}
            for level in levels:
                if level.number in seen:
                    raise LevelFormatError(
                        f"Level number {level.number} used by both {seen[level.number]} and {level.id}"
                    )
                seen[level.number] = level.id
            self._levels = levels
        return self._levels

    def numbers(self) -> list[int]:
        return [lv.number for lv in self.list_levels()]

    def get_level(self, number: int) -> Level:
        for level in self.list_levels():
            if level.number == number:
                return level
        raise LevelNotFoundError(f"Unknown level: {number}")

    def next_number(self, number: int) -> Optional[int]:
        """The level unlocked by completing ``number``, if the catalogue has one."""
        candidate = number + 1
        return candidate if candidate in self.numbers() else None
