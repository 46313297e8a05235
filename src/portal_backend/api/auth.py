import logging
from typing import Annotated, Optional
from fastapi import Header
from portal_backend.permissions.principal import Principal

logger = logging.getLogger(__name__)


def get_current_principal(
    x_user_id: Annotated[Optional[str], Header()] = None,
    x_group_ids: Annotated[Optional[str], Header()] = None,
) -> Principal:
    """Principal as asserted by the authentication proxy in front of this service."""
    principal = Principal.from_headers(x_user_id, x_group_ids)
    if principal.is_anonymous:
        logger.debug("Anonymous request")
    return principal
