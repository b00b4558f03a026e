# Model package init
from .models import GameConfig, HighScore, SaveGame  # noqa: F401 re-export

__all__ = [
    "GameConfig",
    "HighScore",
    "SaveGame",
]
