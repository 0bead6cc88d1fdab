"""
Model catalog: which models the API currently serves.
"""

from __future__ import annotations

import logging

from aimlchat.errors import CatalogParseError, TransportError
from aimlchat.models import Model
from aimlchat.transport import HttpTransport

logger = logging.getLogger(__name__)


async def list_models(transport: HttpTransport) -> set[Model]:
    """
    Fetch GET /models. The body is an object keyed by model name;
    only the keys matter.
    """
    resp = await transport.get("/models")
    if not 200 <= resp.status_code < 300:
        raise TransportError(f"model listing failed with HTTP {resp.status_code}")

    try:
        data = resp.json()
    except ValueError as e:
        raise CatalogParseError(f"model listing is not JSON: {e}") from e

    if not isinstance(data, dict):
        raise CatalogParseError(
            f"model listing must be an object, got {type(data).__name__}"
        )

    models = {Model(name=str(name)) for name in data}
    logger.info("Fetched %d models from catalog", len(models))
    return models
