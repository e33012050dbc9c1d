from __future__ import annotations

from typing import Iterable, List

import pandas as pd

from .models import ControlAction

SAMPLE_COLUMNS = ("time", "resource", "value")


def load_samples(path: str) -> pd.DataFrame:
    """Read recorded samples; ``value`` stays as text so parsing happens in one place."""
    frame = pd.read_csv(path, dtype={"resource": "string", "value": "string"})
    missing = [c for c in SAMPLE_COLUMNS if c not in frame.columns]
    if missing:
        raise ValueError(f"{path}: missing columns {missing}")
    return frame


def actions_to_frame(actions: Iterable[ControlAction]) -> pd.DataFrame:
    actions = list(actions)
    return pd.DataFrame(
        {
            "time": [a.time for a in actions],
            "resource": [a.resource_key for a in actions],
            "previous_value": [a.previous_value for a in actions],
            "new_value": [a.new_value for a in actions],
            "delta": [a.delta for a in actions],
            "region": [a.region.value for a in actions],
            "metric_value": [a.metric_value for a in actions],
            "reason": [a.reason for a in actions],
        }
    )


def format_action(action: ControlAction) -> str:
    direction = "increase" if action.delta > 0 else "decrease"
    return (
        f"{action.time.isoformat()} | {action.resource_key} | {direction} by {abs(action.delta)} "
        f"-> {action.new_value} | {action.reason}"
    )


def format_actions(actions: List[ControlAction]) -> str:
    return "\n".join(format_action(action) for action in actions)
