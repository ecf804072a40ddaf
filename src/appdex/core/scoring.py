"""
Appdex Scoring

Fuzzy subsequence matching and the fixed score constants shared by every
query mode.

Score bands, highest first::

    exact name match      EXACT_MATCH_SCORE + usage + icon
    binary fallback       BINARY_FALLBACK_SCORE
    ".." navigation       PARENT_ENTRY_SCORE
    directory listing     DIRECTORY_BONUS
    file listing          FILE_LISTING_SCORE
    fuzzy match           clamp(fuzzy) + usage + icon

Usage is capped at ``MAX_COUNTED_LAUNCHES`` and the fuzzy component is
clamped at ``FUZZY_SCORE_CEILING`` so no amount of launches can lift a
fuzzy hit into a higher band.
"""

from typing import Optional

from appdex.core.engine import GENERIC_EXECUTABLE_ICON, Entry

LAUNCH_WEIGHT = 100
MAX_COUNTED_LAUNCHES = 5_000
ICON_BONUS = 500
FUZZY_SCORE_CEILING = 10_000

FILE_LISTING_SCORE = 1_000_000
DIRECTORY_BONUS = 2_000_000
PARENT_ENTRY_SCORE = 3_000_000
BINARY_FALLBACK_SCORE = 5_000_000
EXACT_MATCH_SCORE = 10_000_000

# Per-character rewards/penalties of the subsequence matcher.
_MATCH_REWARD = 16
_RUN_REWARD_STEP = 4
_RUN_REWARD_MAX = 16
_BOUNDARY_REWARD = 32
_GAP_PENALTY = 2
_GAP_PENALTY_MAX = 30
_WORD_SEPARATORS = " -_./"


def fuzzy_score(query: str, candidate: str) -> Optional[int]:
    """
    Score *candidate* as a case-insensitive subsequence match of *query*.

    Returns ``None`` when the characters of *query* do not all appear in
    order.  Consecutive runs and matches at word boundaries are rewarded,
    gaps are penalised.  Unmatched trailing characters cost nothing, so
    "Files" and "FileRoller" score the same for "file".
    """
    if not query:
        return 0
    needle = query.casefold()
    haystack = candidate.casefold()

    score = 0
    prev_idx = -1
    run = 0
    for ch in needle:
        if ch.isspace():
            continue
        idx = haystack.find(ch, prev_idx + 1)
        if idx < 0:
            return None
        if idx == prev_idx + 1:
            run += 1
            score += _MATCH_REWARD + min(_RUN_REWARD_MAX, run * _RUN_REWARD_STEP)
        else:
            run = 0
            score += _MATCH_REWARD
            if prev_idx >= 0:
                score -= min(_GAP_PENALTY_MAX, (idx - prev_idx - 1) * _GAP_PENALTY)
            else:
                score -= min(_GAP_PENALTY_MAX, idx * _GAP_PENALTY)
        if idx == 0 or haystack[idx - 1] in _WORD_SEPARATORS:
            score += _BOUNDARY_REWARD
        prev_idx = idx
    return score


def usage_bonus(entry: Entry) -> int:
    """Launch-frequency bonus; non-decreasing in ``launch_count``."""
    return min(entry.launch_count, MAX_COUNTED_LAUNCHES) * LAUNCH_WEIGHT


def icon_bonus(entry: Entry) -> int:
    return ICON_BONUS if entry.icon_id != GENERIC_EXECUTABLE_ICON else 0


def popularity_score(entry: Entry) -> int:
    """Score used for the empty query: usage plus icon presence."""
    return usage_bonus(entry) + icon_bonus(entry)


def text_score(query: str, entry: Entry) -> Optional[int]:
    """
    Score *entry* for a non-empty text *query*.

    An exact case-insensitive name match short-circuits to
    ``EXACT_MATCH_SCORE``; otherwise the clamped fuzzy score is used.
    ``None`` means the entry does not match at all.
    """
    if entry.name.casefold() == query.casefold():
        return EXACT_MATCH_SCORE + popularity_score(entry)
    raw = fuzzy_score(query, entry.name)
    if raw is None:
        return None
    return min(raw, FUZZY_SCORE_CEILING) + popularity_score(entry)


def max_fuzzy_band_score() -> int:
    return FUZZY_SCORE_CEILING + MAX_COUNTED_LAUNCHES * LAUNCH_WEIGHT + ICON_BONUS


def check_score_ordering() -> bool:
    """Return True when the band constants are strictly ordered."""
    bands = [
        max_fuzzy_band_score(),
        FILE_LISTING_SCORE,
        DIRECTORY_BONUS,
        PARENT_ENTRY_SCORE,
        BINARY_FALLBACK_SCORE,
        EXACT_MATCH_SCORE,
    ]
    return all(low < high for low, high in zip(bands, bands[1:]))
