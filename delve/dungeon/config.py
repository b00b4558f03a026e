from dataclasses import dataclass
from typing import Optional


@dataclass
class DungeonConfig:
    width: int = 48
    height: int = 24
    # Rects with either side below this stop splitting and become leaves
    min_partition: int = 8
    # Smallest side a split may leave on either half
    min_leaf: int = 4
    min_room: int = 3
    # Extra room-to-room links as a fraction of the room count
    braid_factor: float = 0.5
    seed: Optional[int] = None
    enable_metrics: bool = True


__all__ = ["DungeonConfig"]
