import sys
from pt.common.logger import log
from pt.app import main

# Entry point for `python -m pt`
def run() -> None:
    try:
        sys.exit(main())
    except SystemExit:
        raise
    except Exception:
        # Full stack trace, always
        log.exception("Uncaught exception in entrypoint, exiting")
        sys.exit(1)

if __name__ == "__main__":
    run()
