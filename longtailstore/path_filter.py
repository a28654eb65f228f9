"""Include/exclude path filtering driven by lists of regular expressions."""

from __future__ import annotations

import logging
import re

logger = logging.getLogger(__name__)


def split_regexes(regexes: str) -> list[tuple[str, re.Pattern[str]]]:
    """Split ``regexes`` on unescaped ``**`` and compile each piece.

    Returns ``(source, compiled)`` pairs in order. Raises ``re.error`` for an
    invalid expression.
    """
    pieces: list[str] = []
    state = 0
    start = 0
    for i, c in enumerate(regexes):
        if c == "\\":
            state = -1
        elif state == 0 and c == "*":
            state = 1
        elif state == 1 and c == "*":
            pieces.append(regexes[start : i - 1])
            start = i + 1
            state = 0
        else:
            state = 0
    if start < len(regexes):
        pieces.append(regexes[start:])
    return [(piece, re.compile(piece)) for piece in pieces]


class RegexPathFilter:
    """Decides which assets to include based on include and exclude regexes."""

    def __init__(
        self,
        include_filter_regex: str | None = None,
        exclude_filter_regex: str | None = None,
    ) -> None:
        self._includes = (
            split_regexes(include_filter_regex)
            if include_filter_regex is not None
            else None
        )
        self._excludes = (
            split_regexes(exclude_filter_regex)
            if exclude_filter_regex is not None
            else None
        )

    @staticmethod
    def _first_match(patterns, asset_path: str, is_dir: bool):
        for source, pattern in patterns:
            if pattern.search(asset_path):
                return source, asset_path
            if is_dir and pattern.search(f"{asset_path}/"):
                return source, f"{asset_path}/"
        return None

    def include(
        self,
        root_path: str,
        asset_path: str,
        asset_name: str,
        is_dir: bool,
        size: int,
        permissions: int,
    ) -> bool:
        """Return whether the asset at ``asset_path`` passes the filter."""
        if self._excludes is not None:
            hit = self._first_match(self._excludes, asset_path, is_dir)
            if hit is not None:
                logger.debug("Excluded `%s` (match for `%s`)", hit[1], hit[0])
                return False
        if self._includes is None:
            return True
        hit = self._first_match(self._includes, asset_path, is_dir)
        if hit is not None:
            logger.debug("Included `%s` (match for `%s`)", hit[1], hit[0])
            return True
        logger.debug("Skipping `%s`", asset_path)
        return False