# =============================================================================
# test_matching.py - Fuzzy sponsor-name matching
# =============================================================================
# Run: python test_matching.py   (or: pytest)
# =============================================================================

import sys
import os

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

import pandas as pd

from utils.matching import levenshtein, best_match, match_sender_name

SPONSORS = [
    {"sponsor_id": 1, "name": "محمد أحمد"},
    {"sponsor_id": 2, "name": "سارة علي"},
    {"sponsor_id": 3, "name": "Mohamed Hassan"},
]


def test_levenshtein():
    assert levenshtein("kitten", "sitting") == 3
    assert levenshtein("", "abc") == 3
    assert levenshtein("abc", "abc") == 0
    assert levenshtein("محمد", "محمود") == 1
    assert levenshtein(None, "ab") == 2


def test_best_match_within_threshold():
    match = best_match("محمد احمد", SPONSORS)
    assert match["sponsor_id"] == 1
    assert match["score"] == 1

    # Surrounding spaces are ignored
    assert best_match("  سارة علي ", SPONSORS)["score"] == 0


def test_best_match_rejects_far_names():
    assert best_match("Completely Different Person", SPONSORS) is None
    assert best_match("Mohamed", SPONSORS, threshold=5) is None
    assert best_match("anything", []) is None


def test_best_match_accepts_dataframe():
    df = pd.DataFrame(SPONSORS)
    match = best_match("Mohamed Hasan", df)
    assert match["sponsor_id"] == 3
    assert match["score"] == 1


def test_match_sender_name_containment():
    # Bank apps add the family name after the sponsor's registered name
    assert match_sender_name("محمد أحمد عبد الله", SPONSORS)["sponsor_id"] == 1
    # Sender shorter than the registered name
    assert match_sender_name("Hassan", SPONSORS)["sponsor_id"] == 3
    assert match_sender_name("سارة علي", SPONSORS)["sponsor_id"] == 2


def test_match_sender_name_falls_back_to_edit_distance():
    match = match_sender_name("Mohamed Hasan", SPONSORS)
    assert match["sponsor_id"] == 3
    assert match_sender_name("", SPONSORS) is None
    assert match_sender_name("Nobody At All Here", SPONSORS) is None


if __name__ == "__main__":
    tests = [v for k, v in list(globals().items()) if k.startswith("test_") and callable(v)]
    for test in tests:
        test()
        print(f"OK: {test.__name__}")
    print(f"\n{len(tests)} matching tests passed")
