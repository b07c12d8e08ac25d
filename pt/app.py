"""Headless host: builds a Timer from settings and CLI flags, ticks it on a Qt event loop, prints labels.

While it runs, one-letter commands followed by Enter control the talk:
``p`` (or just Enter) toggles pause, ``s`` starts or resumes, ``r`` resets
and ``q`` quits.
"""

import argparse
import logging
import signal
import sys

from PySide6.QtCore import QCoreApplication, QSocketNotifier

from pt.common.logger import log
from pt.core import config
from pt.core.timer import Mode, State, Timer


# argparse type for "HH:MM" strings, so malformed times never reach the timer.
def time_string(value):
    if not config.is_time_string(value):
        raise argparse.ArgumentTypeError(f"expected a 24-hour HH:MM time, got '{value}'")
    return value.strip()


def build_parser():
    parser = argparse.ArgumentParser(prog="presenter-timer", description="Talk timer with pretalk countdown.")
    parser.add_argument("-d", "--duration", type=int, metavar="MINUTES",
                        help="talk length in minutes, switches to countdown")
    parser.add_argument("-s", "--start-time", type=time_string, metavar="HH:MM",
                        help="scheduled start time of the talk")
    parser.add_argument("-e", "--end-time", type=time_string, metavar="HH:MM",
                        help="scheduled end time of the talk")
    parser.add_argument("--clear-schedule", action="store_true",
                        help="drop saved start and end times (applied before --start-time/--end-time)")
    parser.add_argument("-m", "--mode", choices=[m.value for m in Mode],
                        help="display mode (default from settings)")
    parser.add_argument("--save", action="store_true", help="store the effective settings for next time")
    parser.add_argument("--debug", action="store_true", help="also print debug logging to stderr")
    return parser


# Merges CLI flags over the saved settings dict. Only flags actually given override.
def merge_settings(settings, args):
    merged = dict(settings)
    if args.clear_schedule:
        merged["start_time"] = None
        merged["end_time"] = None
    if args.duration is not None:
        merged["duration_minutes"] = max(0, args.duration)
    if args.start_time is not None:
        merged["start_time"] = args.start_time
    if args.end_time is not None:
        merged["end_time"] = args.end_time
    if args.mode is not None:
        merged["mode"] = args.mode
    return merged


def build_timer(settings, parent=None):
    timer = Timer(
        duration=settings["duration_minutes"] * 60,
        start_time_str=settings["start_time"],
        end_time_str=settings["end_time"],
        parent=parent,
    )
    # A configured duration already forced countdown; an explicit clock mode still wins.
    mode = config.resolve_mode(settings["mode"])
    if mode == Mode.Clock or timer.duration == 0:
        timer.mode = mode
    return timer


# Applies one line of user input to the timer. Returns False when the user asked to quit.
def handle_command(timer, line):
    command = line.strip().lower()
    if command in ("", "p"):
        timer.toggle_pause()
        timer.update()
    elif command == "s":
        timer.run()
        timer.update()
    elif command == "r":
        timer.reset()
    elif command == "q":
        return False
    else:
        log.warning(f"Unknown command '{command}', use p, s, r or q")
    return True


# Feeds stdin lines to handle_command from inside the Qt event loop. Only works on POSIX terminals.
def watch_stdin(timer, app):
    if sys.platform.startswith("win") or not sys.stdin.isatty():
        log.debug("Not reading commands from stdin")
        return None

    notifier = QSocketNotifier(sys.stdin.fileno(), QSocketNotifier.Type.Read, app)

    def on_ready():
        line = sys.stdin.readline()
        # EOF, stop listening
        if not line:
            notifier.setEnabled(False)
            return
        if not handle_command(timer, line):
            app.quit()

    notifier.activated.connect(on_ready)
    return notifier


def print_label(elapsed, state, label):
    suffix = "" if state == State.Running else f" ({state.name})"
    sys.stdout.write(f"\r{label}{suffix}\033[K")
    sys.stdout.flush()


def main(argv=None):
    args = build_parser().parse_args(argv)
    if args.debug:
        for handler in log.handlers:
            if handler.get_name().endswith(":console"):
                handler.setLevel(logging.DEBUG)

    settings = merge_settings(config.load_settings(), args)
    if args.save:
        config.save_settings(settings)

    # Qt blocks Python signal handling inside exec(), so let Ctrl+C terminate directly
    signal.signal(signal.SIGINT, signal.SIG_DFL)
    app = QCoreApplication.instance() or QCoreApplication(sys.argv[:1])
    timer = build_timer(settings)
    timer.change.connect(print_label)

    # Without a schedule there is nothing to wait for
    if timer.state == State.Stopped:
        timer.start()
    timer.update()
    timer.start_ticking()
    watch_stdin(timer, app)

    log.info(f"Running timer in {timer.mode.name} mode")
    return app.exec()
