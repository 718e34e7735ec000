import asyncio

try:
    import uvloop
except ImportError:
    uvloop = None

from cli import cli
from utils.logger_utils import configure_logging, get_logger

configure_logging()
logger = get_logger("Run Entry Point")


def main():
    if uvloop:
        # asyncio.run() inside the commands picks the loop up from the policy
        asyncio.set_event_loop_policy(uvloop.EventLoopPolicy())
        logger.debug("Using uvloop event loop policy.")
    cli()


if __name__ == "__main__":
    main()
