"""Presentation timer: stopwatch, countdown and clock in one state machine.

The host drives it with ``on_timeout()`` once per second (``start_ticking()``
sets up a QTimer for that) and listens on the ``change`` signal, which carries
``(elapsed_seconds, state, label)``.
"""

import time
from datetime import datetime
from enum import Enum

from PySide6.QtCore import QObject, QTimer, Signal

from pt.common.logger import log
from pt.core.timeparse import parse_time

_DAY = 24 * 3600


class Mode(Enum):
    Clock = "clock"
    CountUp = "countup"
    CountDown = "countdown"


class State(Enum):
    Stopped = "stopped"
    PreTalk = "pretalk"
    Running = "running"
    Paused = "paused"


def format_label(seconds):
    """Format signed seconds as [-]HH:MM:SS. Hours grow past two digits as needed."""
    prefix = "-" if seconds < 0 else ""
    h, rem = divmod(abs(int(seconds)), 3600)
    m, s = divmod(rem, 60)
    return f"{prefix}{h:02d}:{m:02d}:{s:02d}"


class Timer(QObject):
    """Tracks the running time of one talk.

    At most two of ``duration`` (seconds), ``start_time_str`` and
    ``end_time_str`` ("HH:MM") are meaningful; with all three the duration is
    ignored. A scheduled start puts the timer in PreTalk, and any positive
    duration switches it to CountDown.
    """

    # Signal arguments: (elapsed talk seconds, State, label)
    change = Signal(int, object, str)

    def __init__(self, duration=0, start_time_str=None, end_time_str=None, clock=time.time, parent=None):
        super().__init__(parent)
        self._clock = clock
        self._ticker = None

        self.mode = Mode.CountUp
        self.state = State.Stopped
        self.intended_start_time = 0
        self.start_time = 0
        self.running_time = 0
        self.now = int(self._clock())

        if start_time_str is not None and end_time_str is not None and duration > 0:
            log.warning(f"Start and end times given, duration of {duration}s is ignored")

        self.duration = int(duration)

        intended_end_time = 0
        if start_time_str is not None:
            self.intended_start_time = self._next_occurrence(start_time_str)
        if end_time_str is not None:
            intended_end_time = self._next_occurrence(end_time_str)

        if self.intended_start_time > 0 and intended_end_time > 0:
            # Over-midnight talk
            if self.intended_start_time >= intended_end_time:
                intended_end_time += _DAY
            self.duration = intended_end_time - self.intended_start_time
        elif intended_end_time > 0 and self.duration > 0:
            self.intended_start_time = intended_end_time - self.duration

        if self.intended_start_time > 0:
            self.state = State.PreTalk

        if self.duration > 0:
            self.mode = Mode.CountDown

        log.debug(f"Initialized timer: mode={self.mode.name}, state={self.state.name}, "
                  f"duration={self.duration}, intended_start_time={self.intended_start_time}")

    # Parses an "HH:MM" string and assumes tomorrow if that time has already passed today.
    def _next_occurrence(self, text):
        stamp = parse_time(text, self.now)
        if stamp < self.now:
            stamp += _DAY
        return stamp

    # Hooks on_timeout() up to a QTimer owned by this object. Needs a running Qt event loop to fire.
    def start_ticking(self, interval=1000):
        if self._ticker is None:
            self._ticker = QTimer(self)
            self._ticker.timeout.connect(self.on_timeout)
        self._ticker.start(interval)
        return self._ticker

    #region === Commands ===

    def start(self):
        if self.state not in (State.Stopped, State.PreTalk):
            return
        self.start_time = self.now
        self.state = State.Running
        log.info(f"Timer started at {self.start_time}")

    def run(self):
        """Start, or continue after a pause without losing elapsed time."""
        if self.state in (State.Stopped, State.PreTalk):
            self.start()
        elif self.state == State.Running:
            pass
        else:
            self.start_time = self.now - self.running_time
            self.state = State.Running
            log.info(f"Timer resumed with {self.running_time}s elapsed")

    def toggle_pause(self):
        """Toggle the pause mode. Returns True if the timer ends up paused."""
        if self.state == State.Paused:
            self.run()
        elif self.state == State.Running:
            self.state = State.Paused
            log.info(f"Timer paused with {self.running_time}s elapsed")
        return self.is_paused()

    def reset(self):
        """Back to Stopped, or re-arm the pretalk countdown if the scheduled start is still ahead.

        Nothing happens in PreTalk, and a talk already past its scheduled start keeps its state.
        """
        if self.state == State.PreTalk:
            return

        if self.intended_start_time > 0:
            if self.now < self.intended_start_time:
                self.start_time = self.intended_start_time
                self.state = State.PreTalk
            else:
                log.debug("Reset ignored, scheduled start time has already passed")
        else:
            self.state = State.Stopped

        log.info(f"Timer reset, state is now {self.state.name}")
        self.update()

    def is_paused(self):
        return self.state == State.Paused

    def is_running(self):
        return self.state == State.Running

    #endregion === Commands ===

    #region === Tick and display ===

    # Called once per second by the host. Always returns True so the schedule keeps going.
    def on_timeout(self):
        self.now = int(self._clock())
        if self.intended_start_time > 0 and self.now > self.intended_start_time:
            # start() takes care of the state check
            self.start()

        if self.mode == Mode.Clock or self.state in (State.PreTalk, State.Running):
            self.update()

        return True

    def update(self):
        """Recompute running_time from the state and emit the change signal."""
        # running_time is negative while the talk starts in the future
        if self.state == State.PreTalk:
            self.running_time = self.now - self.intended_start_time
        elif self.state == State.Running:
            self.running_time = self.now - self.start_time
        elif self.state == State.Stopped:
            self.running_time = 0
        elif self.state != State.Paused:
            raise ValueError(f"Unknown timer state: {self.state}")

        if self.mode == Mode.Clock:
            dt = datetime.fromtimestamp(self.now)
            label = f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d}"
        else:
            if self.mode == Mode.CountUp:
                time_in_secs = self.running_time
            elif self.mode == Mode.CountDown:
                if self.state == State.PreTalk:
                    time_in_secs = self.running_time
                else:
                    time_in_secs = self.duration - self.running_time
            else:
                raise ValueError(f"Unknown timer mode: {self.mode}")
            label = format_label(time_in_secs)

        self.change.emit(max(self.running_time, 0), self.state, label)

    #endregion === Tick and display ===
