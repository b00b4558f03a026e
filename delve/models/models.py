"""
project: Delve
module: models.py
License: MIT

Database models used by the Delve application.

Notes:
- A save game stores the whole run (map, entities, player) as one JSON text
  blob produced by `services.persistence.game_to_dict`; only the lookup fields
  (depth, class) are broken out into columns.
- High scores are append-only rows trimmed to the configured table size.
"""

import uuid

from delve import db


def _uuid_hex():
    return uuid.uuid4().hex


class SaveGame(db.Model):
    """Persisted run for one player.

    Attributes:
        id: Opaque save key handed to the client (uuid4 hex).
        state_json: Serialized game state (see persistence.game_to_dict).
        depth: Current dungeon depth, duplicated for listings.
        class_key: Character class of the saved player.
        pending_score: Score awaiting a leaderboard name after death, else None.
    """

    __tablename__ = "save_game"

    id = db.Column(db.String(32), primary_key=True, default=_uuid_hex)
    state_json = db.Column(db.Text, nullable=True)
    depth = db.Column(db.Integer, nullable=False, default=1)
    class_key = db.Column(db.String(20), nullable=False, default="warrior")
    # Set on death when the run qualified for the leaderboard
    pending_score_json = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime, nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def __repr__(self):
        return f"<SaveGame {self.id} depth={self.depth} class={self.class_key}>"


class HighScore(db.Model):
    """Leaderboard row written when a qualifying run is named."""

    __tablename__ = "high_score"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(40), nullable=False)
    score = db.Column(db.Integer, nullable=False, index=True)
    depth = db.Column(db.Integer, nullable=False, default=1)
    cause = db.Column(db.String(200), nullable=True)
    class_name = db.Column(db.String(40), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, server_default=db.func.now())

    def to_dict(self):
        return {
            "name": self.name,
            "score": self.score,
            "depth": self.depth,
            "cause": self.cause,
            "class_name": self.class_name,
            "date": self.created_at.isoformat() if self.created_at else None,
        }


class GameConfig(db.Model):
    """Key/value style game configuration storage.

    Stores tunable gameplay constants (aggro range, leash, bot thresholds,
    map size) so they can be adjusted without code changes. Values are
    persisted as JSON-serializable text.

    Example rows:
        key='rules', value='{"aggro_range":8,"leash":8,"fov_radius":3}'
    """

    id = db.Column(db.Integer, primary_key=True)
    key = db.Column(db.String(80), unique=True, nullable=False)
    value = db.Column(db.Text, nullable=False)

    @classmethod
    def get(cls, key: str):
        row = db.session.execute(db.select(cls).filter_by(key=key)).scalar_one_or_none()
        return None if row is None else row.value

    @classmethod
    def set(cls, key: str, value: str):
        row = db.session.execute(db.select(cls).filter_by(key=key)).scalar_one_or_none()
        if row is None:
            db.session.add(cls(key=key, value=value))
        else:
            row.value = value
        db.session.commit()
