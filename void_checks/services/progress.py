from __future__ import annotations

import sys
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

"""Progress display for apply-phase writes (tqdm, TTY only).

Disabled in non-TTY environments (CI, web workers) to avoid ANSI control
sequence spam, and only enabled when the caller asks for it (CLI).
"""

__all__ = [
    "ProgressTracker",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    return sys.stdout.isatty()


class ProgressTracker:
    """Progress bar over the rows being written to the record store."""

    def __init__(self, total: int, *, description: str = "Applying updates", enabled: bool = True) -> None:
        self.total = total
        self.description = description
        self.done = 0
        self.failed = 0

        self.enabled = enabled and is_tty_enabled()
        self.pbar: TqdmType[Any] | None
        if self.enabled:
            self.pbar = tqdm(
                total=total,
                desc=description,
                unit="row",
                leave=True,
                position=0,
                ncols=80,
                ascii=True,
            )
        else:
            self.pbar = None

    def advance(self, success: bool = True) -> None:
        self.done += 1
        if not success:
            self.failed += 1
        if self.enabled and self.pbar is not None:
            self.pbar.update(1)
            self.pbar.set_postfix(failed=self.failed)

    def close(self) -> None:
        if self.enabled and self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> ProgressTracker:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
