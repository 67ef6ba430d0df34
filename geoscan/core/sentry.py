"""Error reporting for the scan worker through sentry_sdk.

Off unless SENTRY_DSN is set. Provider credentials travel in request
headers, so events are scrubbed of those headers before they leave.
"""

import logging

from geoscan.core.config import settings

logger = logging.getLogger(__name__)

CREDENTIAL_HEADERS = frozenset({"authorization", "x-api-key", "x-goog-api-key"})
FILTERED = "[Filtered]"


def scrub_credentials(event: dict, hint: dict | None = None) -> dict:
    """before_send hook: blank provider API-key headers wherever they appear."""
    headers = (event.get("request") or {}).get("headers")
    if isinstance(headers, dict):
        for name in headers:
            if name.lower() in CREDENTIAL_HEADERS:
                headers[name] = FILTERED

    for crumb in (event.get("breadcrumbs") or {}).get("values") or []:
        data = crumb.get("data")
        if isinstance(data, dict):
            for name in data:
                if name.lower() in CREDENTIAL_HEADERS:
                    data[name] = FILTERED
    return event


def init_sentry() -> bool:
    """Start sentry_sdk with Celery and SQLAlchemy hooks; False when no DSN."""
    if not settings.sentry_dsn:
        logger.debug("SENTRY_DSN empty, error reporting off")
        return False

    import sentry_sdk
    from sentry_sdk.integrations.celery import CeleryIntegration
    from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

    production = settings.app_env == "production"
    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        environment=settings.app_env,
        traces_sample_rate=0.1 if production else 1.0,
        send_default_pii=False,
        before_send=scrub_credentials,
        integrations=[CeleryIntegration(), SqlalchemyIntegration()],
    )
    sentry_sdk.set_tag("component", "geoscan-worker")
    logger.info("Sentry reporting to env=%s", settings.app_env)
    return True
