import asyncio
import json
import logging
from functools import wraps
from typing import Any, AsyncIterator, Callable, Optional

import aiohttp

from .const import DEFAULT_DOCKER_SOCKET, DOCKER_API_BASE_URL

_LOGGER = logging.getLogger(__name__)


class DockerError(Exception):
    """Raised when the Docker Engine API returns an error or is unreachable."""
    pass


def retry_with_backoff(
    retries: int = 3,
    delay: float = 1.0,
    factor: float = 2.0,
    retry_on: tuple = (aiohttp.ClientError, asyncio.TimeoutError),
):
    """Retry a Docker API coroutine when the socket misbehaves.

    The call runs at most ``retries + 1`` times, sleeping ``delay`` seconds
    before the first retry and ``factor`` times longer before each one
    after. Exhaustion surfaces as a DockerError.
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def wrapper(*args, **kwargs) -> Any:
            pause = delay
            attempt = 0
            while True:
                attempt += 1
                try:
                    return await func(*args, **kwargs)
                except retry_on as err:
                    if attempt > retries:
                        _LOGGER.error("Docker %s gave up after %d tries: %s", func.__name__, attempt, err)
                        raise DockerError(str(err)) from err
                    _LOGGER.warning(
                        "Docker %s failed (%s), try %d of %d in %.1fs",
                        func.__name__, err, attempt + 1, retries + 1, pause,
                    )
                await asyncio.sleep(pause)
                pause *= factor

        return wrapper
    return decorator


class DockerAPI:
    """Minimal Docker Engine API client over the local unix socket."""

    def __init__(self, socket_path: str = DEFAULT_DOCKER_SOCKET) -> None:
        self.socket_path = socket_path
        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create an aiohttp session bound to the docker socket."""
        if self._session is None or self._session.closed:
            connector = aiohttp.UnixConnector(path=self.socket_path)
            self._session = aiohttp.ClientSession(
                connector=connector, base_url=DOCKER_API_BASE_URL
            )
        return self._session

    async def close_session(self):
        """Close the aiohttp session."""
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None

    async def _request(self, method: str, path: str, **kwargs) -> tuple[int, Any]:
        """Make an API request.

        Returns:
            Tuple of (status_code, response_data)
        """
        session = await self._get_session()
        async with session.request(method, path, **kwargs) as response:
            status = response.status
            if response.content_type == "application/json":
                data = await response.json()
            else:
                data = await response.text()
            return status, data

    @staticmethod
    def _check(status: int, data: Any, action: str) -> None:
        if status >= 400:
            message = data.get("message") if isinstance(data, dict) else data
            raise DockerError(f"{action} failed with status {status}: {message}")

    @retry_with_backoff(retries=2)
    async def inspect(self, name: str) -> dict:
        status, data = await self._request("GET", f"/containers/{name}/json")
        self._check(status, data, f"Inspecting {name}")
        return data

    @retry_with_backoff(retries=1)
    async def start(self, name: str) -> None:
        status, data = await self._request("POST", f"/containers/{name}/start")
        # 304: already started
        if status != 304:
            self._check(status, data, f"Starting {name}")
        _LOGGER.info("Container %s started", name)

    @retry_with_backoff(retries=1)
    async def stop(self, name: str) -> None:
        status, data = await self._request("POST", f"/containers/{name}/stop")
        # 304: already stopped
        if status != 304:
            self._check(status, data, f"Stopping {name}")
        _LOGGER.info("Container %s stopped", name)

    async def events(self) -> AsyncIterator[dict]:
        """Yield container events from the streaming /events endpoint."""
        session = await self._get_session()
        filters = json.dumps({"type": ["container"]})
        try:
            async with session.get(
                "/events", params={"filters": filters}, timeout=aiohttp.ClientTimeout(total=None)
            ) as response:
                if response.status >= 400:
                    raise DockerError(f"Event stream failed with status {response.status}")
                async for line in response.content:
                    line = line.strip()
                    if not line:
                        continue
                    try:
                        yield json.loads(line)
                    except ValueError:
                        _LOGGER.debug("Ignoring malformed docker event: %r", line[:200])
        except aiohttp.ClientError as err:
            raise DockerError(f"Event stream interrupted: {err}") from err
