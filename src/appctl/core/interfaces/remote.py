"""Remote control client interface."""

from abc import ABC, abstractmethod
from typing import Any


class RemoteClient(ABC):
    """Interface to the remote system's RPC API.

    Implementations: MiddlewareClient (JSON-RPC over websocket)
    """

    @abstractmethod
    async def call(self, method: str, params: Any = None) -> Any:
        """Call a method and return its decoded result without waiting on jobs.

        Args:
            method: RPC method name (e.g., "app.query")
            params: Positional params

        Returns:
            Decoded result value
        """
        ...

    @abstractmethod
    async def call_and_wait(
        self, method: str, params: Any = None, *, timeout: float | None = None
    ) -> Any:
        """Call a job-returning method and block until the job finishes.

        Args:
            method: RPC method name (e.g., "app.start")
            params: Positional params
            timeout: Seconds to wait for job completion (None = client default)

        Returns:
            Job result value

        Raises:
            Exception: If the call fails, the job fails, or the timeout elapses
        """
        ...

    @abstractmethod
    async def close(self) -> None:
        """Release the underlying connection."""
        ...
