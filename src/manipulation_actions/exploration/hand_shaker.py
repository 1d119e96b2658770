"""Define a class that oscillates one hand joint so that a held tool stands out visually."""

from __future__ import annotations

import threading
import time
from typing import TYPE_CHECKING, Mapping

import numpy as np

from manipulation_actions.logging import log_info, log_warning

if TYPE_CHECKING:
    from manipulation_actions.arms import Arm
    from manipulation_actions.config import ExplorationSettings
    from manipulation_actions.interrupts import InterruptFlag
    from manipulation_actions.robot.interfaces import HandInterface


class HandShaker:
    """Drives a hand joint back and forth between +/- a fixed amplitude at a constant speed.

    At most one hand shakes at a time. The active hand is set by start() and cleared by stop();
        between the two, each call to step() performs one control tick.
    """

    def __init__(
        self,
        hands: Mapping[Arm, HandInterface],
        interrupt: InterruptFlag,
        settings: ExplorationSettings,
    ) -> None:
        """Initialize the shaker with the joint-level interface of each hand.

        :param hands: Map from each arm to its hand's joint interface
        :param interrupt: Process-wide flag; no ticks are performed while it is set
        :param settings: Exploration settings (amplitude, speed, and period of the oscillation)
        """
        self.hands = dict(hands)
        self.interrupt = interrupt
        self.settings = settings

        self._lock = threading.Lock()
        self._active: tuple[Arm, int] | None = None  # (arm, joint) currently shaking
        self._flip_deg = settings.shake_amplitude_deg  # Current oscillation target

        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def active(self) -> tuple[Arm, int] | None:
        """Retrieve the (arm, joint) currently shaking, or None if no hand is in use."""
        with self._lock:
            return self._active

    def start(self, arm: Arm, joint: int) -> None:
        """Switch the given joint into velocity mode and begin shaking it.

        :param arm: Arm whose hand is shaken
        :param joint: Index of the hand joint to oscillate
        """
        self.hands[arm].set_velocity_mode(joint)
        with self._lock:
            self._active = (arm, joint)
            self._flip_deg = self.settings.shake_amplitude_deg
        log_info(f"[HandShaker] Shaking joint {joint} of the {arm.value} hand.")

    def step(self) -> None:
        """Perform one control tick, reversing direction once the target has been passed."""
        if self.interrupt.is_set():
            return

        with self._lock:
            if self._active is None:
                return
            arm, joint = self._active

            hand = self.hands[arm]
            position_deg = hand.get_encoder(joint)

            error_deg = self._flip_deg - position_deg
            if (self._flip_deg > 0.0 and error_deg < 0.0) or (
                self._flip_deg < 0.0 and error_deg > 0.0
            ):
                self._flip_deg = -self._flip_deg
                error_deg = self._flip_deg - position_deg

            hand.velocity_move(joint, self.settings.shake_speed_deg_s * float(np.sign(error_deg)))

    def stop(self) -> None:
        """Stop the shaking joint and mark no hand as in use."""
        with self._lock:
            active = self._active
            self._active = None

        if active is None:
            return
        arm, joint = active
        self.hands[arm].stop(joint)
        log_info(f"[HandShaker] Stopped joint {joint} of the {arm.value} hand.")

    def halt_all(self) -> None:
        """Stop the shaking joint on every hand, if any hand is in use (used by the stop channel).

        The active-hand record is left in place; the routine that started the shaking clears it.
        """
        active = self.active
        if active is None:
            return
        _, joint = active
        for hand in self.hands.values():
            hand.stop(joint)

    def start_thread(self) -> None:
        """Start a daemon thread that calls step() periodically."""
        if self._thread is not None:
            log_warning("[HandShaker] Shaking thread is already running.")
            return

        self._stop_event.clear()
        self._thread = threading.Thread(target=self._shake_loop)
        self._thread.daemon = True  # Thread exits when main process does
        self._thread.start()

    def shutdown(self, timeout_s: float = 1.0) -> None:
        """Stop the periodic thread (if running) and any shaking joint."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout_s)
            self._thread = None
        self.stop()

    def _shake_loop(self) -> None:
        """Call step() at the configured period until shut down."""
        while not self._stop_event.is_set():
            t_start = time.monotonic()
            self.step()
            elapsed_s = time.monotonic() - t_start
            self._stop_event.wait(max(0.0, self.settings.shake_period_s - elapsed_s))
