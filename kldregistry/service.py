"""
Service definition lookup.

Resolves the consortium, environment and membership a registration is
routed to when the caller did not supply them. Environment variables
take precedence over the JSON service definition file.
"""

import json
import logging
import os
from typing import Optional

from pydantic import ValidationError

from . import config
from .errors import ParseError, ServiceDefinitionError
from .models import ServiceTargets
from .util import read_file

logger = logging.getLogger(__name__)


def _from_environment() -> ServiceTargets:
    return ServiceTargets(
        consortia_id=os.getenv(config.CONSORTIUM_ENV) or None,
        environment_id=os.getenv(config.ENVIRONMENT_ENV) or None,
        membership_id=os.getenv(config.MEMBERSHIP_ENV) or None,
    )


def _from_file(path: str) -> ServiceTargets:
    try:
        data = json.loads(read_file(path))
        return ServiceTargets.model_validate(data)
    except (ValueError, ValidationError) as e:
        raise ParseError(f"invalid service definition {path}: {e}") from e


def get_service_definition(path: Optional[str] = None) -> ServiceTargets:
    """
    Resolve the routing identifiers.

    Args:
        path: Service definition JSON file (default: KLD_SERVICE_DEFINITION)

    Raises:
        ServiceDefinitionError: an identifier is still missing
        FileReadError, ParseError: the definition file is unusable
    """
    targets = _from_environment()
    path = path or config.SERVICE_DEFINITION_PATH

    if targets.missing() and path:
        logger.debug("Reading service definition from %s", path)
        from_file = _from_file(path)
        targets = ServiceTargets(
            consortia_id=targets.consortia_id or from_file.consortia_id,
            environment_id=targets.environment_id or from_file.environment_id,
            membership_id=targets.membership_id or from_file.membership_id,
        )

    missing = targets.missing()
    if missing:
        raise ServiceDefinitionError(missing)
    return targets
