"""Signal K alarm notifications.

An :class:`Alarm` is an immutable value object whose :attr:`Alarm.value`
is the payload written to a ``notifications.*`` path by
``raise_alarm`` on either transport.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any


class AlarmState(enum.StrEnum):
    """Severity of a notification, lowest to highest."""

    NORMAL = "normal"
    ALERT = "alert"
    WARN = "warn"
    ALARM = "alarm"
    EMERGENCY = "emergency"


class AlarmMethod(enum.StrEnum):
    """How a client should present the notification."""

    VISUAL = "visual"
    SOUND = "sound"


class AlarmType(enum.StrEnum):
    """Standard emergency notification paths."""

    MOB = "notifications.mob"
    FIRE = "notifications.fire"
    SINKING = "notifications.sinking"
    FLOODING = "notifications.flooding"
    COLLISION = "notifications.collision"
    GROUNDING = "notifications.grounding"
    LISTING = "notifications.listing"
    ADRIFT = "notifications.adrift"
    PIRACY = "notifications.piracy"
    ABANDON = "notifications.abandon"


_METHOD_ORDER: tuple[AlarmMethod, ...] = (AlarmMethod.VISUAL, AlarmMethod.SOUND)


@dataclass(frozen=True)
class Alarm:
    """Notification value.

    Parameters
    ----------
    message:
        Text shown to the user.
    state:
        Severity, defaults to :attr:`AlarmState.ALARM`.
    methods:
        Presentation methods; use :meth:`create` to build from flags.
    """

    message: str = ""
    state: AlarmState = AlarmState.ALARM
    methods: frozenset[AlarmMethod] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        object.__setattr__(self, "state", AlarmState(self.state))
        object.__setattr__(
            self, "methods", frozenset(AlarmMethod(m) for m in self.methods)
        )

    @classmethod
    def create(
        cls,
        message: str = "",
        state: AlarmState | str = AlarmState.ALARM,
        *,
        visual: bool = False,
        sound: bool = False,
    ) -> Alarm:
        methods = set()
        if visual:
            methods.add(AlarmMethod.VISUAL)
        if sound:
            methods.add(AlarmMethod.SOUND)
        return cls(message=message, state=AlarmState(state), methods=frozenset(methods))

    @property
    def value(self) -> dict[str, Any]:
        """Wire payload ``{message, state, method: [...]}``."""
        return {
            "message": self.message,
            "state": self.state.value,
            "method": [m.value for m in _METHOD_ORDER if m in self.methods],
        }
