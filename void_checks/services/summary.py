from __future__ import annotations

from ..models.import_result import ApplyResult, PreviewResult

"""SUMMARY line rendering for import runs.

Format:
SUMMARY mode={mode} rows={rows} updates={updates} applied={applied}
errors={errors} warnings={warnings} skipped={skipped}
"""


def render_summary_line(mode: str, result: PreviewResult | ApplyResult) -> str:
    """Render a SUMMARY line from a preview or apply result.

    rows counts every surviving (non-blank, keyed) row: updates + warnings + skipped.
    applied/errors are always 0 for a preview.

    Examples:
        >>> render_summary_line("preview", PreviewResult())
        'SUMMARY mode=preview rows=0 updates=0 applied=0 errors=0 warnings=0 skipped=0'
    """
    if isinstance(result, ApplyResult):
        diff = result.diff
        applied = len(result.applied)
        errors = len(result.errors)
    else:
        diff = result
        applied = 0
        errors = 0

    return (
        f"SUMMARY mode={mode} "
        f"rows={diff.total_rows} "
        f"updates={len(diff.updates)} "
        f"applied={applied} "
        f"errors={errors} "
        f"warnings={len(diff.warnings)} "
        f"skipped={len(diff.skipped)}"
    )
