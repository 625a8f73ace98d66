"""Trailing-token policy that vetoes near-duplicate label pairs.

Jaro-Winkler rewards shared prefixes, so labels that share a leading word
but end in a different, meaningful word score high:

    "React" vs "React Native"           -> ~0.88
    "Founded StartupA" vs "Founded StartupB"

The guard compares the last meaningful token of each label. Filler words
("and", "of", "skills", ...) are dropped from the end first, and the
remaining tokens are reduced to a crude stem so inflections still agree:

    "React Development" vs "React Developer"   develop == develop -> kept
    "Team Leadership" vs "Team Leading"        lead == lead       -> kept
    "Data Analysis" vs "Data Analytics"        analy == analy     -> kept
    "AWS Lambda" vs "AWS EC2"                  lambda != ec2      -> vetoed
"""

import re
from typing import Iterable, List, Optional

DEFAULT_FILLER_WORDS = frozenset({
    "a", "an", "and", "at", "for", "in", "of", "on", "the", "to", "with",
    "skill", "skills", "experience", "expertise",
})

# Longest first; stripped repeatedly while the stem stays long enough
DEFAULT_SUFFIXES = (
    "tics", "ment", "ship", "ions", "sis", "tic", "ers", "ors", "ing", "ion",
    "er", "or", "ed", "s",
)

TOKEN_SPLIT = re.compile(r"[\s\-_/]+")


class DistinguishingTokenGuard:
    """
    Decides whether two similar labels name genuinely different things.

    Usage:
        guard = DistinguishingTokenGuard()
        guard.is_distinct("React", "React Native")        # True
        guard.is_distinct("React Development", "React Developer")  # False

    Attributes:
        filler_words: Lowercase words ignored at the end of a label
        suffixes: Suffixes stripped when stemming a token
        min_stem_length: Stems are never cut below this length
        max_stem_gap: Stems where one is a prefix of the other and the
            lengths differ by at most this much are treated as equal
    """

    def __init__(
        self,
        filler_words: Optional[Iterable[str]] = None,
        suffixes: Optional[Iterable[str]] = None,
        min_stem_length: int = 3,
        max_stem_gap: int = 1,
    ):
        self.filler_words = frozenset(
            w.lower() for w in (filler_words if filler_words is not None else DEFAULT_FILLER_WORDS)
        )
        self.suffixes = tuple(suffixes) if suffixes is not None else DEFAULT_SUFFIXES
        self.min_stem_length = min_stem_length
        self.max_stem_gap = max_stem_gap

    def tokenize(self, label: str) -> List[str]:
        """Lowercase tokens with trailing filler words removed."""
        tokens = [t for t in TOKEN_SPLIT.split(label.strip().lower()) if t]
        meaningful = list(tokens)
        while meaningful and meaningful[-1] in self.filler_words:
            meaningful.pop()
        # A label made only of filler words keeps its own tokens
        return meaningful or tokens

    def stem(self, token: str) -> str:
        stem = token
        changed = True
        while changed:
            changed = False
            for suffix in self.suffixes:
                if stem.endswith(suffix) and len(stem) - len(suffix) >= self.min_stem_length:
                    stem = stem[: -len(suffix)]
                    changed = True
                    break
        return stem

    def stems_agree(self, a: str, b: str) -> bool:
        if a == b:
            return True
        shorter, longer = sorted((a, b), key=len)
        return (
            longer.startswith(shorter)
            and len(longer) - len(shorter) <= self.max_stem_gap
        )

    def is_distinct(self, label_a: str, label_b: str) -> bool:
        """
        True when the labels end in different meaningful tokens.

        Identical labels (ignoring case and surrounding whitespace) are
        never distinct. Empty labels are never distinct either, leaving
        them to the similarity score.
        """
        if label_a.strip().lower() == label_b.strip().lower():
            return False

        tokens_a = self.tokenize(label_a)
        tokens_b = self.tokenize(label_b)
        if not tokens_a or not tokens_b:
            return False

        return not self.stems_agree(self.stem(tokens_a[-1]), self.stem(tokens_b[-1]))
