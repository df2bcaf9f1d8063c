from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

from void_checks.models.error_record import ErrorRecord

"""Error log buffering.

- JSON Lines 固定スキーマ (追加キー禁止)
- 起動ごとに `logs/errors-YYYYMMDD-HHMMSS.log` (UTC) を生成 (必要時のみ)
- apply 中の書き込み失敗 / アップロード単位の致命エラーを溜めて、最後に一括 flush
"""

__all__ = [
    "ErrorRecord",
    "ErrorLogBuffer",
]

LOGS_DIR = Path("./logs")
TIMESTAMP_FMT = "%Y%m%d-%H%M%S"


class ErrorLogBuffer:
    """In-memory buffer for error records. flush() appends JSON Lines.

    スレッド安全性不要 (1 リクエスト / 1 CLI 実行ごとに生成)
    """
    def __init__(self, logs_dir: Path | None = None) -> None:
        self._records: list[ErrorRecord] = []
        self._file_path: Path | None = None
        self._logs_dir = logs_dir or LOGS_DIR

    @property
    def file_path(self) -> Path:
        if self._file_path is None:
            self._logs_dir.mkdir(parents=True, exist_ok=True)
            stamp = datetime.now(UTC).strftime(TIMESTAMP_FMT)
            self._file_path = self._logs_dir / f"errors-{stamp}.log"
        return self._file_path

    def append(self, record: ErrorRecord) -> None:
        self._records.append(record)

    def __len__(self) -> int:
        return len(self._records)

    def flush(self) -> Path | None:
        """Write buffered records; returns the file path, or None when empty."""
        if not self._records:
            return None
        fp = self.file_path
        with fp.open("a", encoding="utf-8") as f:
            for r in self._records:
                f.write(r.to_json_line() + "\n")
        self._records.clear()
        return fp
