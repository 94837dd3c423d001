"""App state query.

app.query filtered by name. An empty result is the "not found" signal
(None), distinct from a failed query (AppQueryError).
"""

import logging
from typing import Any

from pydantic import ValidationError

from appctl.core.errors import AppQueryError, QueryStep
from appctl.core.interfaces.remote import RemoteClient
from appctl.core.models import AppRecord

logger = logging.getLogger(__name__)


def query_params(name: str) -> list[Any]:
    """[filter, options]; retrieve_config returns the decoded compose config."""
    return [[["name", "=", name]], {"extra": {"retrieve_config": True}}]


async def query_app(client: RemoteClient, name: str) -> AppRecord | None:
    """Fetch the app's record.

    Returns:
        First matching AppRecord (state verbatim), or None if absent

    Raises:
        AppQueryError: Transport failure (TRANSPORT) or undecodable result (DECODE)
    """
    try:
        result = await client.call("app.query", query_params(name))
    except Exception as exc:
        raise AppQueryError(name, QueryStep.TRANSPORT, exc) from exc

    if not isinstance(result, list):
        raise AppQueryError(
            name,
            QueryStep.DECODE,
            TypeError(f"expected a list, got {type(result).__name__}"),
        )

    if not result:
        logger.debug("App %s not found", name, extra={"app": name})
        return None

    try:
        return AppRecord.model_validate(result[0])
    except ValidationError as exc:
        raise AppQueryError(name, QueryStep.DECODE, exc) from exc
