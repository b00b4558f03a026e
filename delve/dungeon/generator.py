"""Structural generation phases: grid init, BSP partitioning, room placement, corridor graph & carving."""

from __future__ import annotations

import random
import time
from typing import Any, Dict, List, NamedTuple, Optional

from .config import DungeonConfig
from .connectivity import is_connected, unreachable_rooms
from .level import LevelMap
from .rooms import Rect, Room, carve_room, place_rooms
from .tiles import WALL, Tile
from .tunnels import braid, connect_in_order

Grid = List[List[Tile]]


class GeneratedLevel(NamedTuple):
    grid: Grid
    rooms: List[Room]
    metrics: Dict[str, Any]


class Generator:
    def __init__(self, config: DungeonConfig, rng: Optional[random.Random] = None):
        self.config = config
        if rng is None:
            if config.seed is None:
                config.seed = random.randint(0, 2**31 - 1)
            rng = random.Random(config.seed)
        self.rng = rng

    def init_grid(self) -> Grid:
        return [[WALL for _ in range(self.config.width)] for _ in range(self.config.height)]

    def bsp_partition(self) -> List[Rect]:
        cfg = self.config
        leaves: List[Rect] = []
        root = Rect(1, 1, cfg.width - 2, cfg.height - 2)
        if root.w <= 0 or root.h <= 0:
            return leaves

        def split(r: Rect):
            if r.w < cfg.min_partition or r.h < cfg.min_partition:
                leaves.append(r)
                return
            split_h = self.rng.random() < 0.5
            limit = (r.h if split_h else r.w) - cfg.min_leaf
            if limit < cfg.min_leaf:
                leaves.append(r)
                return
            span = limit - cfg.min_leaf
            cut = cfg.min_leaf + (self.rng.randrange(span) if span > 0 else 0)
            if split_h:
                split(Rect(r.x, r.y, r.w, cut))
                split(Rect(r.x, r.y + cut, r.w, r.h - cut))
            else:
                split(Rect(r.x, r.y, cut, r.h))
                split(Rect(r.x + cut, r.y, r.w - cut, r.h))

        split(root)
        return leaves

    def run(self) -> GeneratedLevel:
        started = time.perf_counter()
        grid = self.init_grid()
        leaves = self.bsp_partition()
        rooms = place_rooms(grid, leaves, self.config, self.rng)
        fallback = False
        if not rooms:
            # Degenerate partition: keep the level playable with one interior room
            w, h = self.config.width - 2, self.config.height - 2
            if w > 0 and h > 0:
                room = Room(1, 1, w, h)
                carve_room(grid, room)
                rooms.append(room)
                fallback = True
        links = connect_in_order(grid, rooms, self.rng)
        braids = braid(grid, rooms, self.config, self.rng)
        metrics: Dict[str, Any] = {}
        if self.config.enable_metrics:
            metrics = {
                "seed": self.config.seed,
                "leaves": len(leaves),
                "rooms": len(rooms),
                "links": links,
                "braids": braids,
                "fallback_room": fallback,
                "floor_tiles": sum(1 for row in grid for t in row if t != WALL),
                "connected": is_connected(grid),
                "unreachable_rooms": len(unreachable_rooms(grid, rooms)),
                "generation_ms": round((time.perf_counter() - started) * 1000.0, 3),
            }
        return GeneratedLevel(grid, rooms, metrics)


def generate(width: int, height: int, rng: Optional[random.Random] = None, config: DungeonConfig | None = None):
    """Build a grid and room list; deterministic up to the supplied rng."""
    config = config or DungeonConfig()
    config.width, config.height = width, height
    return Generator(config, rng).run()


def generate_level(width: int, height: int, seed: Optional[int] = None, config: DungeonConfig | None = None):
    """Generate a fresh `LevelMap` with no entities placed yet."""
    config = config or DungeonConfig()
    config.width, config.height = width, height
    if seed is not None:
        config.seed = seed
    result = Generator(config).run()
    return LevelMap(width, height, result.grid, result.rooms, metrics=result.metrics, seed=config.seed)


__all__ = ["Generator", "GeneratedLevel", "generate", "generate_level"]
