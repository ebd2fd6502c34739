"""Input layer: raw key decoding and viewport navigation."""

from .reader import ESC_SEQUENCE_TIMEOUT_MS, has_pending_bytes, read_key
from .keys import KeySequence, Navigation, SequenceState, apply_navigation, handle_key, navigation_for_key

__all__ = [
    "read_key",
    "has_pending_bytes",
    "ESC_SEQUENCE_TIMEOUT_MS",
    "KeySequence",
    "SequenceState",
    "Navigation",
    "apply_navigation",
    "handle_key",
    "navigation_for_key",
]
