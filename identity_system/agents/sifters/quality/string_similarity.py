"""Jaro-Winkler string similarity for label comparison."""

PREFIX_SCALE = 0.1
MAX_PREFIX_LENGTH = 4


def jaro_winkler_similarity(s1: str, s2: str) -> float:
    """
    Jaro-Winkler similarity between two strings.

    Characters match when equal and no further apart than
    floor(max(len) / 2) - 1 positions. The Jaro score is boosted by a
    common prefix of up to 4 characters with scale 0.1.

    Args:
        s1: First string (compared as given; callers normalize case)
        s2: Second string

    Returns:
        Similarity in [0, 1]: 1.0 for identical strings, 0.0 if either is empty
    """
    if s1 == s2:
        return 1.0
    if not s1 or not s2:
        return 0.0

    match_window = max(len(s1), len(s2)) // 2 - 1
    s1_matches = [False] * len(s1)
    s2_matches = [False] * len(s2)

    matches = 0
    for i, ch in enumerate(s1):
        start = max(0, i - match_window)
        end = min(i + match_window + 1, len(s2))
        for j in range(start, end):
            if s2_matches[j] or s2[j] != ch:
                continue
            s1_matches[i] = True
            s2_matches[j] = True
            matches += 1
            break

    if matches == 0:
        return 0.0

    transpositions = 0
    k = 0
    for i, ch in enumerate(s1):
        if not s1_matches[i]:
            continue
        while not s2_matches[k]:
            k += 1
        if ch != s2[k]:
            transpositions += 1
        k += 1

    jaro = (
        matches / len(s1)
        + matches / len(s2)
        + (matches - transpositions / 2) / matches
    ) / 3

    prefix = 0
    for a, b in zip(s1[:MAX_PREFIX_LENGTH], s2[:MAX_PREFIX_LENGTH]):
        if a != b:
            break
        prefix += 1

    return jaro + prefix * PREFIX_SCALE * (1 - jaro)
