# =============================================================================
# utils/matching.py
# =============================================================================
# PURPOSE:
#   Match a free-text name (from a CSV row or a payment screenshot) to a
#   known sponsor.
#
# TWO STRATEGIES:
#   1. best_match()        - Levenshtein edit distance, used by the CSV
#                            importer. Accepts the closest sponsor if it is
#                            within FUZZY_MATCH_THRESHOLD edits.
#   2. match_sender_name() - used for screenshots. Exact name, or one name
#                            containing the other; falls back to best_match().
#
# CANDIDATES:
#   Functions accept either a DataFrame with 'sponsor_id' and 'name'
#   columns, or a list of dicts with the same keys.
# =============================================================================

from config import FUZZY_MATCH_THRESHOLD


def levenshtein(a, b):
    """
    Edit distance between two strings: the number of single-character
    insertions, deletions or substitutions needed to turn a into b.

    EXAMPLE:
        levenshtein("kitten", "sitting") → 3
        levenshtein("محمد", "محمود")     → 1
    """
    a = a or ""
    b = b or ""

    # previous[j] = distance between a[:i-1] and b[:j]
    previous = list(range(len(b) + 1))

    for i in range(1, len(a) + 1):
        current = [i] + [0] * len(b)
        for j in range(1, len(b) + 1):
            if a[i - 1] == b[j - 1]:
                current[j] = previous[j - 1]
            else:
                current[j] = 1 + min(previous[j], current[j - 1], previous[j - 1])
        previous = current

    return previous[len(b)]


def _candidates(sponsors):
    """Normalize a DataFrame / list of sponsors into a list of dicts."""
    if sponsors is None:
        return []
    if hasattr(sponsors, 'to_dict'):
        return sponsors.to_dict('records')
    return list(sponsors)


def best_match(name, candidates, threshold=FUZZY_MATCH_THRESHOLD):
    """
    Find the sponsor whose name is closest to `name`.

    PARAMETERS:
        name (str): Free-text name
        candidates: Sponsors (DataFrame or list of dicts with 'name')
        threshold (int): Maximum accepted edit distance

    RETURNS:
        dict: The best candidate plus a 'score' key (its distance), or
              None if there are no candidates or the best one is too far.
              On ties the first candidate wins.
    """
    candidates = _candidates(candidates)
    if not candidates:
        return None

    target = str(name or "").strip()
    best = None
    best_score = None

    for candidate in candidates:
        score = levenshtein(target, str(candidate.get('name') or "").strip())
        if best_score is None or score < best_score:
            best, best_score = candidate, score

    if best_score > threshold:
        return None

    return {**best, 'score': best_score}


def match_sender_name(sender, sponsors):
    """
    Match the sender name read from a payment screenshot.

    RULES (first hit wins, sponsors checked in order):
        1. Sponsor name equals the sender name
        2. Sponsor name is contained in the sender name
           (bank apps often add a middle name or a family name)
        3. Sender name is contained in the sponsor name
        4. Otherwise the closest name by edit distance (best_match)

    RETURNS:
        dict: The matched sponsor, or None
    """
    sender = str(sender or "").strip()
    if not sender:
        return None

    candidates = _candidates(sponsors)

    for sponsor in candidates:
        name = str(sponsor.get('name') or "").strip()
        if not name:
            continue
        if name == sender or name in sender or sender in name:
            return sponsor

    return best_match(sender, candidates)
