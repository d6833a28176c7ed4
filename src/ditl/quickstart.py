"""Quick-start suggestions built from tracking history."""

from __future__ import annotations

from typing import Sequence

from .config import DEFAULT_QUICK_STARTS


def resolve_quick_starts(
    top: Sequence[str],
    defaults: Sequence[str] = DEFAULT_QUICK_STARTS,
    slots: int = 4,
) -> list[str]:
    """Pad the historical favourites with defaults up to ``slots`` titles.

    Historical titles keep their order and come first; defaults already
    present are skipped.
    """
    resolved = list(top)
    if len(resolved) >= slots:
        return resolved
    for title in defaults:
        if len(resolved) >= slots:
            break
        if title not in resolved:
            resolved.append(title)
    return resolved
