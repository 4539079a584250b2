"""Session-level confidence and eye-contact scores from proctoring signals."""

from .lexical import clamp, round_score
from .models import ProctoringSignals


def score_confidence(signals: ProctoringSignals | None = None) -> int:
    """Confidence (5-97): base 70, penalties per event, bonuses for mic/face presence."""
    s = signals or ProctoringSignals()
    score = (
        70
        - s.tab_switches * 10
        - s.long_silence_events * 7
        - s.background_noise_events * 4
        - s.multiple_face_events * 15
        + s.mic_on_ratio * 15
        + s.face_detected_ratio * 15
    )
    return round_score(clamp(score, 5, 97))


def score_eye_contact(signals: ProctoringSignals | None = None) -> int:
    s = signals or ProctoringSignals()
    return round_score(clamp(s.face_detected_ratio * 100, 0, 100))
