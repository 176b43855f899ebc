"""AWS Lambda entry point.

Subscribed to the ``AmazonIpSpaceChanged`` SNS topic. Each invocation runs one
sync and returns the outcome record, which the Lambda destination forwards to
the notifier.
"""

import asyncio
import logging
from typing import Any

from pydantic import ValidationError

from waf_ipset_sync.exceptions import ConfigurationError
from waf_ipset_sync.models import SyncOutcome, TriggerMetadata
from waf_ipset_sync.reporter import Err, ErrorDetail, build_outcome
from waf_ipset_sync.settings import DEFAULT_NAME_PREFIX, get_settings
from waf_ipset_sync.synchronizer import IPSetSynchronizer, utc_timestamp
from waf_ipset_sync.utils.logging import get_logger, setup_logging

logger = get_logger(__name__)


def _configuration_failure(error: ValidationError, trigger: TriggerMetadata) -> SyncOutcome:
    """Outcome for a run that could not load its settings."""
    invalid = sorted(str(e["loc"][0]) for e in error.errors() if e.get("loc"))
    config_error = ConfigurationError(
        f"Invalid configuration: {', '.join(invalid) or 'settings'}",
        details={"invalid": invalid},
    )
    logger.error("%s", config_error)
    return build_outcome(
        Err(ErrorDetail.from_exception(config_error)),
        trigger,
        utc_timestamp(),
        f"{DEFAULT_NAME_PREFIX}Lambda",
    )


def lambda_handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    """Lambda function handler.

    Args:
        event: SNS notification or a flat record with ``create-time`` and ``url``.
        context: Lambda context (unused).

    Returns:
        The outcome record, for success and failure alike.
    """
    try:
        settings = get_settings()
    except ValidationError as e:
        setup_logging(logging.INFO)
        outcome = _configuration_failure(e, TriggerMetadata.from_event(event))
        return outcome.to_record()

    setup_logging(settings.log_level)
    logger.debug("Parameter event: %s", event)

    trigger = TriggerMetadata.from_event(event)
    outcome = asyncio.run(IPSetSynchronizer(settings).sync(trigger))

    record = outcome.to_record()
    logger.info("Sync outcome: %s", record)
    return record
