from __future__ import annotations
from typing import Any, Dict, Iterable, Optional

SCORE_MIN = 0.0
SCORE_MAX = 10.0

# lower bounds of the bands shown next to a student's average
GOOD_FROM = 8.0
FAIR_FROM = 6.5

def band_for(average: Optional[float]) -> Optional[str]:
    if average is None:
        return None
    if average >= GOOD_FROM:
        return "good"
    if average >= FAIR_FROM:
        return "fair"
    return "weak"

def compute_summary(grades: Iterable[Any]) -> Dict[str, Any]:
    """
    grades: objects (or dicts) with ``subject`` and ``score``.
    Returns overall count/average/highest/lowest, the band of the average
    and per-subject count and average. Averages are rounded to 2 places.
    """
    scores = []
    by_subject: Dict[str, list] = {}
    for g in grades:
        subject = g["subject"] if isinstance(g, dict) else g.subject
        score = float(g["score"] if isinstance(g, dict) else g.score)
        if not (SCORE_MIN <= score <= SCORE_MAX):
            raise ValueError(f"Score out of range 0..10 for {subject}: {score}")
        scores.append(score)
        by_subject.setdefault(subject, []).append(score)

    if not scores:
        return {"count": 0, "average": None, "highest": None, "lowest": None, "band": None, "subjects": {}}

    average = round(sum(scores) / len(scores), 2)
    subjects = {
        name: {"count": len(vs), "average": round(sum(vs) / len(vs), 2)}
        for name, vs in sorted(by_subject.items())
    }
    return {
        "count": len(scores),
        "average": average,
        "highest": max(scores),
        "lowest": min(scores),
        "band": band_for(average),
        "subjects": subjects,
    }
