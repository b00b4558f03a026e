"""Payload checks for the game Socket.IO events.

Each schema maps a field name to a :class:`Field`. ``validate`` returns
``(True, cleaned)`` or ``(False, error)`` where ``error`` carries the
offending ``field``, a human ``error`` string and a machine ``code``
(``required``, ``type``, ``empty``, ``min_len``, ``max_len``, ``min``, ``max``).
Handlers emit the error dict unchanged on the ``error`` channel.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

_TYPES = {
    'str': (str,),
    'int': (int,),
    'float': (int, float),
    'bool': (bool,),
}


@dataclass(frozen=True)
class Field:
    kind: str
    required: bool = False
    min_len: Optional[int] = None
    max_len: Optional[int] = None
    min: Optional[float] = None
    max: Optional[float] = None


def _error(field: str, message: str, code: str) -> Tuple[bool, Dict[str, Any]]:
    return False, {'field': field, 'error': message, 'code': code}


def _check(name: str, value: Any, rule: Field) -> Tuple[bool, Any]:
    accepted = _TYPES[rule.kind]
    # bool is an int subclass
    if isinstance(value, bool) != (rule.kind == 'bool') or not isinstance(value, accepted):
        return _error(name, f'expected {rule.kind}', 'type')
    if rule.kind == 'str':
        value = value.strip()
        if not value:
            return _error(name, 'must not be empty', 'empty')
        if rule.min_len is not None and len(value) < rule.min_len:
            return _error(name, f'shorter than {rule.min_len}', 'min_len')
        if rule.max_len is not None and len(value) > rule.max_len:
            return _error(name, f'longer than {rule.max_len}', 'max_len')
    elif rule.kind in ('int', 'float'):
        if rule.min is not None and value < rule.min:
            return _error(name, f'below {rule.min}', 'min')
        if rule.max is not None and value > rule.max:
            return _error(name, f'above {rule.max}', 'max')
    return True, value


def validate(payload: Any, schema: Dict[str, Field]) -> Tuple[bool, Dict[str, Any]]:
    if not isinstance(payload, dict):
        return _error('__root__', 'payload must be an object', 'type')
    cleaned: Dict[str, Any] = {}
    for name, rule in schema.items():
        if name not in payload:
            if rule.required:
                return _error(name, 'missing required field', 'required')
            continue
        ok, value = _check(name, payload[name], rule)
        if not ok:
            return ok, value
        cleaned[name] = value
    return True, cleaned


_SAVE_ID = Field('str', required=True, min_len=1, max_len=32)

JOIN_GAME = {'save_id': _SAVE_ID}
START_AUTOPLAY = {
    'save_id': _SAVE_ID,
    'interval': Field('float', min=0.05, max=10.0),
}
STOP_AUTOPLAY = JOIN_GAME
