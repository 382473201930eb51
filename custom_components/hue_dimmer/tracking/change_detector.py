"""Press detection for polled Hue dimmer switches.

The bridge only exposes the *last* button event of a dimmer together with the
time it happened, so a poll cannot tell how many presses occurred in between.
What it can tell is whether the reading differs from the previous one:

- first reading ever: stored, nothing fired (it is whatever the dimmer last
  did before tracking started)
- same code, new timestamp: the same button was pressed again
- different code: another button was pressed, whatever the timestamp says
- same code, same timestamp: nothing happened since the last poll
"""

from __future__ import annotations

from collections.abc import Mapping
import logging

from ..const import BUTTON_EVENT_MAP, BUTTON_UNKNOWN
from .models import Decision, DecisionKind, DeviceState

_LOGGER = logging.getLogger(__name__)


def resolve_label(button_event: str | int, button_map: Mapping[int, str] = BUTTON_EVENT_MAP) -> str:
    """Map a raw button event code to its semantic label.

    Codes missing from the table, or that are not integers at all, resolve to
    ``unknown`` so a malformed reading never breaks the sync cycle.
    """
    try:
        code = int(button_event)
    except (TypeError, ValueError):
        _LOGGER.warning("Non-numeric button event code %r", button_event)
        return BUTTON_UNKNOWN

    label = button_map.get(code)
    if label is None:
        _LOGGER.warning("Unknown button event code %s", code)
        return BUTTON_UNKNOWN
    return label


def decide(
    last_button_event: str | None,
    last_updated_at: str | None,
    state: DeviceState,
    button_map: Mapping[int, str] = BUTTON_EVENT_MAP,
) -> Decision:
    """Compare a fresh reading with the stored one.

    Args:
        last_button_event: Stored raw code, or None if never observed.
        last_updated_at: Stored raw timestamp, or None if never observed.
        state: The reading just fetched from the bridge.
        button_map: Raw code to label table.

    Returns:
        The decision, carrying the pair the device must store afterwards.
    """
    if last_button_event is None or last_updated_at is None:
        return Decision(DecisionKind.FIRST_OBSERVATION, state.button_event, state.last_updated)

    if state.button_event != last_button_event:
        # A changed code with an unchanged timestamp still counts as a press
        return Decision(
            DecisionKind.NEW_PRESS,
            state.button_event,
            state.last_updated,
            resolve_label(state.button_event, button_map),
        )

    if state.last_updated != last_updated_at:
        return Decision(
            DecisionKind.NEW_PRESS,
            state.button_event,
            state.last_updated,
            resolve_label(state.button_event, button_map),
        )

    return Decision(DecisionKind.NO_CHANGE, last_button_event, last_updated_at)
