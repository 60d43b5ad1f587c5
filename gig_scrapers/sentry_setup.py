import logging
from typing import Optional

import sentry_sdk
from sentry_sdk.integrations.logging import LoggingIntegration
from sentry_sdk.integrations.pymongo import PyMongoIntegration

from gig_scrapers.config import Settings, get_settings

logger = logging.getLogger(__name__)

def init_sentry(settings: Optional[Settings] = None) -> bool:
    """
    Initializes the Sentry SDK if a DSN is configured.
    Returns True when Sentry was initialized.
    """
    settings = settings or get_settings()
    sentry_settings = settings.sentry

    if not sentry_settings.dsn:
        logger.info("Sentry DSN not found in settings. Sentry SDK will not be initialized.")
        return False

    effective_environment = sentry_settings.environment or settings.environment
    logger.info(f"Sentry DSN found. Initializing Sentry SDK for environment: '{effective_environment}'.")

    integrations = [
        LoggingIntegration(
            level=logging.INFO,        # Capture info and above as breadcrumbs
            event_level=logging.ERROR  # Send errors as Sentry events
        ),
        PyMongoIntegration(),
    ]

    try:
        sentry_sdk.init(
            dsn=str(sentry_settings.dsn),
            environment=effective_environment,
            traces_sample_rate=sentry_settings.traces_sample_rate,
            integrations=integrations,
        )
    except Exception as e:
        logger.error(f"Failed to initialize Sentry SDK: {e}", exc_info=True)
        return False

    logger.info("Sentry SDK initialized successfully.")
    return True
