import asyncio

import aiohttp

from config.configs import configs
from governance.exceptions import FetchError
from utils.logger_utils import get_logger

logger = get_logger("Fetch Utils")


async def download(uri: str, timeout: int = configs.fetch.timeout_seconds) -> bytes:
    """
    Downloads the raw body behind `uri`.

    There is no retry: any non-2xx status, transport error or timeout fails the run.

    Raises:
        FetchError: If the request fails for any reason.
    """
    logger.info(f"downloading {uri}")

    try:
        async with aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=timeout)) as session:
            async with session.get(uri) as response:
                if not 200 <= response.status < 300:
                    raise FetchError(f"failed to download {uri}: HTTP {response.status} {response.reason}")
                return await response.read()
    except aiohttp.ClientError as e:
        raise FetchError(f"failed to download {uri}: {e}") from e
    except asyncio.TimeoutError as e:
        raise FetchError(f"failed to download {uri}: timed out after {timeout}s") from e
