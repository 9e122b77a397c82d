"""Filterable list over the bookmark tree used by the search picker.

Unlike :class:`~bookmarkcaller.app.navigator.PagedNavigator`, this navigator
never mutates itself when the layer changes: descending into a group or going
back returns a fresh instance that carries the same list options and its own
copy of the layer stack.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from rapidfuzz import fuzz

from bookmarkcaller.app.bookmarks import BookmarkItem, SORT_ORIGINAL, flatten, sort_by_ctime
from bookmarkcaller.app.display import display_name
from bookmarkcaller.app.dispatch import OpenDispatcher, Outcome

logger = logging.getLogger(__name__)

STRUCTURE_FLAT = "flat"
STRUCTURE_ORIGINAL = "original"

FUZZY_SCORE_CUTOFF = 75.0


@dataclass(frozen=True)
class FuzzyMatch:
    score: float
    # Half-open character ranges of ``text`` that matched, for highlighting.
    ranges: tuple[tuple[int, int], ...] = ()


Matcher = Callable[[str, str], Optional[FuzzyMatch]]


def _fold_case(text: str) -> str:
    # Characters whose lowercase form is longer (e.g. "İ") are kept so offsets stay valid.
    folded = []
    for char in text:
        lower = char.lower()
        folded.append(lower if len(lower) == 1 else char)
    return "".join(folded)


def fuzzy_score(query: str, text: str) -> Optional[FuzzyMatch]:
    """Score ``text`` against ``query``; None when it does not match.

    An empty query matches everything with a neutral score.
    """
    needle = _fold_case(query.strip())
    if not needle:
        return FuzzyMatch(score=0.0)
    if not text:
        return None
    alignment = fuzz.partial_ratio_alignment(needle, _fold_case(text), score_cutoff=FUZZY_SCORE_CUTOFF)
    if alignment is None:
        return None
    return FuzzyMatch(score=alignment.score, ranges=((alignment.dest_start, alignment.dest_end),))


class FuzzyNavigator:
    def __init__(
        self,
        items: Sequence[BookmarkItem],
        dispatcher: OpenDispatcher,
        *,
        structure_type: str = STRUCTURE_FLAT,
        sort_order: str = SORT_ORIGINAL,
        recursively_open: bool = True,
        layers: Optional[tuple[Sequence[BookmarkItem], ...]] = None,
        matcher: Matcher = fuzzy_score,
        resolve_basename: Optional[Callable[[str], Optional[str]]] = None,
    ) -> None:
        self.dispatcher = dispatcher
        self.structure_type = structure_type
        self.sort_order = sort_order
        self.recursively_open = recursively_open
        self.matcher = matcher
        self.resolve_basename = resolve_basename
        self.layers: tuple[Sequence[BookmarkItem], ...] = layers if layers is not None else (items,)
        arranged = list(items) if structure_type == STRUCTURE_ORIGINAL else flatten(items)
        self.items: list[BookmarkItem] = sort_by_ctime(arranged, sort_order)

    @property
    def can_go_back(self) -> bool:
        return len(self.layers) > 1

    @property
    def depth(self) -> int:
        return len(self.layers) - 1

    def item_text(self, item: BookmarkItem) -> str:
        return display_name(item, self.resolve_basename)

    def filter(self, query: str) -> list[tuple[BookmarkItem, FuzzyMatch]]:
        """Return matching items, best first; an empty query keeps the list order."""
        results: list[tuple[BookmarkItem, FuzzyMatch]] = []
        for item in self.items:
            match = self.matcher(query, self.item_text(item))
            if match is not None:
                results.append((item, match))
        if query.strip():
            results.sort(key=lambda pair: pair[1].score, reverse=True)
        return results

    def choose(self, item: BookmarkItem) -> tuple[Outcome, Optional["FuzzyNavigator"]]:
        """Open ``item``; for a group the second value is the navigator for its children."""
        outcome = self.dispatcher.open_bookmark(item)
        if outcome is Outcome.DESCEND:
            return outcome, self._spawn(item.children, self.layers + (item.children,))
        return outcome, None

    def back(self) -> Optional["FuzzyNavigator"]:
        if not self.can_go_back:
            return None
        layers = self.layers[:-1]
        return self._spawn(layers[-1], layers)

    def open_all(self) -> int:
        # A flat list already contains every nested file, so recursing would open them twice.
        recursive = self.recursively_open and self.structure_type == STRUCTURE_ORIGINAL
        return self.dispatcher.open_all(self.items, recursive)

    def _spawn(self, items: Sequence[BookmarkItem], layers: tuple[Sequence[BookmarkItem], ...]) -> "FuzzyNavigator":
        logger.debug("Switching search layer (depth %d)", len(layers) - 1)
        return FuzzyNavigator(
            items,
            self.dispatcher,
            structure_type=self.structure_type,
            sort_order=self.sort_order,
            recursively_open=self.recursively_open,
            layers=layers,
            matcher=self.matcher,
            resolve_basename=self.resolve_basename,
        )
