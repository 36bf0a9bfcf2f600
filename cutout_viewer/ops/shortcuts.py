"""Keyboard shortcut dispatch.

A ``ShortcutDispatcher`` is owned by one backend/session and passed to whatever
needs it; there is no process-wide registry. Bindings map a structured
``KeyChord`` to an ``Action``; handlers are bound per action and everything is
cleared by ``teardown()`` when the owner goes away.

``DoublePressDetector`` turns "press the same key twice quickly" into an
explicit IDLE -> ARMED(deadline) -> IDLE state machine driven by an injectable
monotonic clock.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from cutout_viewer.logger import get_logger

_logger = get_logger("shortcuts")

_MODIFIERS = {"ctrl", "shift", "alt"}
_KEY_ALIASES = {
    "control": "ctrl",
    "arrowright": "right",
    "arrowleft": "left",
    "arrowup": "up",
    "arrowdown": "down",
    "del": "delete",
    "esc": "escape",
    "return": "enter",
}


def _canonical_key(name: str) -> str:
    k = str(name or "").strip().lower().replace(" ", "")
    return _KEY_ALIASES.get(k, k)


@dataclass(frozen=True, slots=True)
class KeyChord:
    key: str
    ctrl: bool = False
    shift: bool = False
    alt: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "key", _canonical_key(self.key))
        if not self.key or self.key in _MODIFIERS:
            raise ValueError(f"chord needs a non-modifier key, got {self.key!r}")

    @classmethod
    def parse(cls, text: str) -> KeyChord:
        """Parse ``"ctrl+shift+x"`` style strings (case-insensitive)."""
        parts = [_canonical_key(p) for p in str(text).split("+")]
        mods = {p for p in parts if p in _MODIFIERS}
        keys = [p for p in parts if p and p not in _MODIFIERS]
        if len(keys) != 1:
            raise ValueError(f"invalid key chord: {text!r}")
        return cls(keys[0], ctrl="ctrl" in mods, shift="shift" in mods, alt="alt" in mods)

    def __str__(self) -> str:
        parts = [m for m, on in (("ctrl", self.ctrl), ("shift", self.shift), ("alt", self.alt)) if on]
        parts.append(self.key)
        return "+".join(parts)


class Action(Enum):
    NEXT_IMAGE = "nextImage"
    PREVIOUS_IMAGE = "previousImage"
    CUTOUT_TOOL = "cutoutTool"
    SAVE = "save"
    DELETE = "delete"
    CLOSE = "close"
    DONE = "done"
    SHORTCUT_HELP = "shortcutHelp"
    UNDO = "undo"
    REDO = "redo"


DEFAULT_BINDINGS: tuple[tuple[str, Action, str], ...] = (
    ("right", Action.NEXT_IMAGE, "Next image"),
    ("left", Action.PREVIOUS_IMAGE, "Previous image"),
    ("ctrl+x", Action.CUTOUT_TOOL, "Open Cutout Tool"),
    ("ctrl+s", Action.SAVE, "Save Image"),
    ("delete", Action.DELETE, "Delete image (press twice)"),
    ("ctrl+w", Action.CLOSE, "Close Editor"),
    ("ctrl+d", Action.DONE, "Done Editing"),
    ("ctrl+k", Action.SHORTCUT_HELP, "Shortcut Helper"),
    ("ctrl+z", Action.UNDO, "Undo"),
    ("ctrl+y", Action.REDO, "Redo"),
)


class ShortcutDispatcher:
    def __init__(self) -> None:
        self._bindings: dict[KeyChord, Action] = {}
        self._descriptions: dict[KeyChord, str] = {}
        self._handlers: dict[Action, Callable[[], None]] = {}
        self._closed = False

    @classmethod
    def with_defaults(cls) -> ShortcutDispatcher:
        d = cls()
        for chord, action, desc in DEFAULT_BINDINGS:
            d.register(chord, action, desc)
        return d

    def _check_open(self) -> None:
        if self._closed:
            raise RuntimeError("shortcut dispatcher has been torn down")

    def register(self, chord: KeyChord | str, action: Action, description: str | None = None) -> KeyChord:
        self._check_open()
        c = chord if isinstance(chord, KeyChord) else KeyChord.parse(chord)
        self._bindings[c] = action
        if description is not None:
            self._descriptions[c] = description
        else:
            self._descriptions.pop(c, None)
        return c

    def unregister(self, chord: KeyChord | str) -> None:
        c = chord if isinstance(chord, KeyChord) else KeyChord.parse(chord)
        self._bindings.pop(c, None)
        self._descriptions.pop(c, None)

    def bind(self, action: Action, handler: Callable[[], None]) -> None:
        self._check_open()
        self._handlers[action] = handler

    def unbind(self, action: Action) -> None:
        self._handlers.pop(action, None)

    def action_for(self, chord: KeyChord) -> Action | None:
        return self._bindings.get(chord)

    def chords_for(self, action: Action) -> list[KeyChord]:
        return [c for c, a in self._bindings.items() if a is action]

    def handle(self, chord: KeyChord) -> bool:
        """Run the handler bound to ``chord``'s action. Returns False if none."""
        if self._closed:
            return False
        action = self._bindings.get(chord)
        if action is None:
            return False
        handler = self._handlers.get(action)
        if handler is None:
            _logger.debug("no handler for %s (%s)", action.value, chord)
            return False
        _logger.debug("shortcut %s -> %s", chord, action.value)
        handler()
        return True

    def describe(self) -> list[tuple[str, str]]:
        """(chord, description) pairs for the help dialog, sorted by chord."""
        return sorted((str(c), d) for c, d in self._descriptions.items() if c in self._bindings)

    def teardown(self) -> None:
        self._bindings.clear()
        self._descriptions.clear()
        self._handlers.clear()
        self._closed = True

    def __enter__(self) -> ShortcutDispatcher:
        return self

    def __exit__(self, *exc) -> None:
        self.teardown()


class PressState(Enum):
    IDLE = "idle"
    ARMED = "armed"


class DoublePressDetector:
    """Fires when ``chord`` is pressed twice within ``window`` seconds.

    Any other chord, or the deadline passing, returns the detector to IDLE.
    """

    def __init__(self, chord: KeyChord, window: float, clock: Callable[[], float] = time.monotonic) -> None:
        if window <= 0:
            raise ValueError("window must be positive")
        self.chord = chord
        self.window = float(window)
        self._clock = clock
        self._deadline: float | None = None

    @property
    def state(self) -> PressState:
        self.expire()
        return PressState.IDLE if self._deadline is None else PressState.ARMED

    @property
    def deadline(self) -> float | None:
        return self._deadline

    def expire(self) -> None:
        if self._deadline is not None and self._clock() > self._deadline:
            self._deadline = None

    def reset(self) -> None:
        self._deadline = None

    def press(self, chord: KeyChord) -> bool:
        """Feed a key press. Returns True on the confirming second press."""
        if chord != self.chord:
            self._deadline = None
            return False

        now = self._clock()
        if self._deadline is not None and now <= self._deadline:
            self._deadline = None
            return True

        self._deadline = now + self.window
        return False
