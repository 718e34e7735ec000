import signal
import sys

from utils.logger_utils import get_logger

logger = get_logger("Signal Utils")

# Conventional exit status for a process terminated by SIGTERM
SIGTERM_EXIT_CODE = 128 + signal.SIGTERM


def configure_signals():
    """
    Turns SIGTERM into a SystemExit raised inside the running program.
    Unwinding this way lets the try/finally blocks around the node connection run,
    so the connection is released before the process goes away.
    """

    def sigterm_handler(_signo, _stack_frame):
        logger.warning("Received SIGTERM. Releasing resources and exiting...")
        sys.exit(SIGTERM_EXIT_CODE)

    signal.signal(signal.SIGTERM, sigterm_handler)
