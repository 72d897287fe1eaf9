"""Use cases for evaluating and delivering alerts."""

from .dispatcher import NotificationDispatcher, OutcomeHook
from .recipients import load_policy, load_recipient
from .thresholds import ThresholdPolicy, evaluate, render_message

__all__ = [
    "NotificationDispatcher",
    "OutcomeHook",
    "ThresholdPolicy",
    "evaluate",
    "load_policy",
    "load_recipient",
    "render_message",
]
