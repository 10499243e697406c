"""
Audit log infrastructure for orgsync.

Append-only, newline-delimited JSON record of every executed git command:
- One JSON object per line
- Appends serialized through a single lock so concurrent updates never
  interleave or merge lines
- Automatic parent directory creation
"""

import asyncio
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict

RECORD_TYPE_EXEC_RESULT = "exec-result"


class AuditLog:
    """
    Append-only JSONL audit log.

    Example:
        log = AuditLog(Path("~/src/.orgsync.log"))
        await log.append("group/repo", {"command": ["git", "fetch"], ...})
    """

    def __init__(self, path: Path):
        """
        Initialize AuditLog.

        Args:
            path: Path to the log file
        """
        self.path = Path(path).expanduser()
        self._lock = asyncio.Lock()

    @staticmethod
    def make_record(context: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "time": datetime.now(timezone.utc).isoformat(),
            "context": context,
            "type": RECORD_TYPE_EXEC_RESULT,
            "payload": payload,
        }

    def _write_line(self, line: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, 'a', encoding='utf-8') as f:
            f.write(line)

    async def append(self, context: str, payload: Dict[str, Any]) -> None:
        """
        Append one exec-result record.

        Args:
            context: Path of the checkout relative to the root directory
            payload: Command result or error
        """
        line = json.dumps(self.make_record(context, payload), ensure_ascii=False) + "\n"
        async with self._lock:
            await asyncio.to_thread(self._write_line, line)

    def sink(self, context: str):
        """Bind a context, returning the callable a GitRepo reports to."""
        async def _sink(payload: Dict[str, Any]) -> None:
            await self.append(context, payload)
        return _sink
