"""Player save-file loading.

The connection request embeds the player's saved state. Its shape belongs to
the game; here it is an opaque JSON object.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


def load_player_state(path: str | Path) -> dict[str, Any] | None:
    """Read a JSON save file.

    Returns ``None`` when the file cannot be read or does not hold a JSON
    object; the connection request then carries no state.
    """
    path = Path(path)
    try:
        raw = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Cannot read save file %s: %s", path, e)
        return None

    try:
        state = json.loads(raw)
    except (ValueError, RecursionError) as e:
        logger.warning("Malformed save file %s: %s", path, e)
        return None

    if not isinstance(state, dict):
        logger.warning("Save file %s does not hold an object", path)
        return None
    return state
