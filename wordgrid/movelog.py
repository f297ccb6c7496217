"""Write-only sink for committed moves. Nothing reads it back during play."""

from __future__ import annotations
import logging
import uuid
from pathlib import Path
from typing import List, Optional

from .schemas import MoveRecord

logger = logging.getLogger(__name__)


class MoveLog:
    def __init__(self, path: Optional[str] = None):
        self.path = Path(path) if path else None
        self.records: List[MoveRecord] = []
        if self.path:
            self.path.parent.mkdir(parents=True, exist_ok=True)

    def write(self, record: MoveRecord) -> str:
        move_id = uuid.uuid4().hex
        if self.path:
            with self.path.open('a', encoding='utf-8') as f:
                f.write(record.model_dump_json() + '\n')
        else:
            self.records.append(record)
        logger.debug("Logged move %s for game %s player %s", move_id, record.gameId, record.playerId)
        return move_id
