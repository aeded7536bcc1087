"""
Content Moderation Rules

Thresholds applied to the per-frame probabilities returned by the
moderation provider once a video analysis finishes.
"""

from typing import Any, Dict, Iterable, Optional


MODERATION_MODELS = "nudity-2.1,weapon,recreational_drug,medical,gore-2.0,self-harm,violence"

NUDITY_THRESHOLDS = {
    "sexual_activity": 0.05,
    "sexual_display": 0.1,
    "erotica": 0.2,
}
WEAPON_THRESHOLD = 0.1
# Categories reported as {"prob": float}
PROBABILITY_THRESHOLDS = {
    "recreational_drug": 0.1,
    "medical": 0.1,
    "gore": 0.1,
    "self-harm": 0.1,
    "violence": 0.1,
}


def _score(value: Any) -> float:
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0


def is_sensitive_frame(frame: Dict[str, Any]) -> bool:
    """Whether any category of a single frame crosses its threshold."""
    nudity = frame.get("nudity") or {}
    for key, threshold in NUDITY_THRESHOLDS.items():
        if _score(nudity.get(key)) > threshold:
            return True

    weapon = (frame.get("weapon") or {}).get("classes") or {}
    if _score(weapon.get("weapon")) > WEAPON_THRESHOLD:
        return True

    for key, threshold in PROBABILITY_THRESHOLDS.items():
        if _score((frame.get(key) or {}).get("prob")) > threshold:
            return True

    return False


def is_sensitive(frames: Iterable[Dict[str, Any]]) -> bool:
    """A video is sensitive as soon as one frame is."""
    return any(is_sensitive_frame(frame) for frame in frames)


def media_id_from_uri(uri: Optional[str]) -> Optional[str]:
    """Recover the video id from the uploaded file name ("<id>.mp4")."""
    if not uri:
        return None
    name = uri.rsplit("/", 1)[-1]
    return name.split(".", 1)[0] or None
