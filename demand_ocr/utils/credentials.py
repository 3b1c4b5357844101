"""Service account credential loading for the Google clients."""

import json

from google.oauth2 import service_account

from demand_ocr.errors import ConfigurationError
from demand_ocr.utils.config import CredentialsConfig
from demand_ocr.utils.logger import get_logger

logger = get_logger(__name__)

SHEETS_SCOPE = "https://www.googleapis.com/auth/spreadsheets"
CLOUD_PLATFORM_SCOPE = "https://www.googleapis.com/auth/cloud-platform"


def load_credentials(
    config: CredentialsConfig, scopes: list[str] | None = None
) -> service_account.Credentials | None:
    """Build service account credentials from inline JSON or a key file.

    Args:
        config: Credentials section of the application config.
        scopes: OAuth scopes to request.

    Returns:
        Credentials, or ``None`` to let the client libraries fall back to
        application-default credentials.

    Raises:
        ConfigurationError: If the inline JSON key cannot be parsed.
    """
    if config.service_account_json:
        try:
            info = json.loads(config.service_account_json)
        except json.JSONDecodeError as exc:
            raise ConfigurationError(
                "SERVICE_ACCOUNT_KEY_JSON is not valid JSON"
            ) from exc
        logger.debug("Using inline service account %s", info.get("client_email"))
        return service_account.Credentials.from_service_account_info(
            info, scopes=scopes
        )

    if config.service_account_file:
        logger.debug("Using service account file %s", config.service_account_file)
        return service_account.Credentials.from_service_account_file(
            config.service_account_file, scopes=scopes
        )

    return None
