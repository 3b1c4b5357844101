"""Configuration management for the demand sheet OCR service.

Loads and validates YAML configuration with sensible defaults for the
Document AI processor, blob staging, the destination spreadsheet and the
item catalog. Deployment environment variables override the YAML values.
"""

import logging
import os
from enum import StrEnum
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

# Consolidated item list from the store demand sheets.
DEFAULT_CATALOG_ITEMS: tuple[str, ...] = (
    "Sambhar", "Red Chutney", "Dosa Batter", "Idli Batter", "Vada Batter",
    "Rawa mix", "Onion masala", "Upma Sooji", "Garlic Paste", "Podi Masala",
    "Sugar", "Poha", "Besan", "Sarson (Mustard seed)", "Kali Mirch", "Jeera",
    "Kaju", "Pineapple Halwa", "Kacha Peanut Chilke wala", "Dhania Whole",
    "Rice", "Atta", "Fortune Refined", "Desi Ghee", "Roasted Chana",
    "Staff Dal", "Whole red chilli", "Achar", "Chhole", "Rajma", "Chana Dal",
    "Sarson Tel", "Meetha Soda", "Roasted Peanuts", "Soya Badi",
    "Filter Coffee Pow.", "Chai Patti", "Onions", "Tomatoes",
    "Green Chillies(Hari Mirch)", "Coriander leaves(Dhaniya Patta)",
    "Curry Leaves (Kari Patta)", "Banana Leaves(Kela Patta)", "Ginger",
    "Coconut Crush", "Carrot", "Beans", "Potato(aloo)", "Garlic",
    "Mint(Pudina)", "Lemon", "Staff Veg.", "Deggi Mirch", "Garam Masala",
    "Hing Powder", "Dhania Powder", "Kitchen King", "Chat Masala",
    "Haldi Powder", "Hari Ilaychi", "Tata Salt", "Black Salt",
    "50ML Container", "100ML Container", "250ML Container", "300ML Container",
    "500ML Container", "Podi Idli Container", "Silver container",
    "Vada Lifafa", "Dosa Box Small", "Dosa Box Big", "16*20 Biopolythene",
    "13*16 Biopolythene", "Bio Garbagebag Big Size", "Printer Roll",
    "Bio Spoon", "Wooden Plates", "Paper Bowl", "Filter Coffee Glass",
    "Masala Chhachh Glass", "Filter Coffee Packaging",
    "Masala Chhachh Packaging", "Tape", "Clean Wrap", "Tissues", "Chef Cap",
    "Butter Paper", "Delivery Bag",
)


class StagingMode(StrEnum):
    """How the input bytes reach Document AI."""

    INLINE = "inline"
    STAGED = "staged"


class DocumentAIConfig(BaseModel):
    """Configuration for the Document AI processor."""

    project_id: str | None = None
    location: str = "us"
    processor_id: str | None = None
    default_mime_type: str = "image/jpeg"


class StagingConfig(BaseModel):
    """Configuration for staging uploads in Cloud Storage."""

    mode: StagingMode = StagingMode.INLINE
    bucket: str | None = None
    prefix: str = "demand-sheets"


class SheetsConfig(BaseModel):
    """Configuration for the destination Google Sheet."""

    spreadsheet_id: str | None = None
    range: str = "DemandLog!A:D"
    value_input_option: str = "USER_ENTERED"


class CatalogConfig(BaseModel):
    """Configuration for the fixed item catalog."""

    items: list[str] = Field(default_factory=lambda: list(DEFAULT_CATALOG_ITEMS))
    path: str | None = None


class APIConfig(BaseModel):
    """Configuration for the HTTP surface."""

    allowed_origins: list[str] = Field(default_factory=lambda: ["*"])


class CredentialsConfig(BaseModel):
    """Service account credentials shared by all Google clients.

    When neither field is set, application-default credentials are used.
    """

    service_account_json: str | None = None
    service_account_file: str | None = None


class AppConfig(BaseModel):
    """Top-level application configuration."""

    documentai: DocumentAIConfig = Field(default_factory=DocumentAIConfig)
    staging: StagingConfig = Field(default_factory=StagingConfig)
    sheets: SheetsConfig = Field(default_factory=SheetsConfig)
    catalog: CatalogConfig = Field(default_factory=CatalogConfig)
    api: APIConfig = Field(default_factory=APIConfig)
    credentials: CredentialsConfig = Field(default_factory=CredentialsConfig)
    log_level: str = "INFO"


# env var -> (section, key); section None means top level.
_ENV_OVERRIDES: dict[str, tuple[str | None, str]] = {
    "GCP_PROJECT_ID": ("documentai", "project_id"),
    "DOCAI_LOCATION": ("documentai", "location"),
    "DOCAI_PROCESSOR_ID": ("documentai", "processor_id"),
    "SPREADSHEET_ID": ("sheets", "spreadsheet_id"),
    "SERVICE_ACCOUNT_KEY_JSON": ("credentials", "service_account_json"),
    "STAGING_MODE": ("staging", "mode"),
    "STAGING_BUCKET": ("staging", "bucket"),
    "LOG_LEVEL": (None, "log_level"),
}


def _apply_env_overrides(raw: dict, environ: dict[str, str]) -> dict:
    """Overlay deployment environment variables onto raw YAML data."""
    for env_name, (section, key) in _ENV_OVERRIDES.items():
        value = environ.get(env_name)
        if not value:
            continue
        logger.debug("Overriding %s from environment", env_name)
        if section is None:
            raw[key] = value
        else:
            raw.setdefault(section, {})[key] = value

    frontend_url = environ.get("FRONTEND_URL")
    if frontend_url:
        raw.setdefault("api", {})["allowed_origins"] = [frontend_url]
    return raw


def load_config(
    path: Path | None = None, environ: dict[str, str] | None = None
) -> AppConfig:
    """Load configuration from a YAML file and the environment.

    Args:
        path: Path to the YAML configuration file.
            Defaults to configs/config.yaml.
        environ: Environment mapping used for overrides.
            Defaults to ``os.environ``.

    Returns:
        Validated application configuration.
    """
    if path is None:
        path = Path("configs/config.yaml")
    if environ is None:
        environ = dict(os.environ)

    raw: dict = {}
    if path.exists():
        logger.info("Loading configuration from %s", path)
        with open(path) as f:
            raw = yaml.safe_load(f) or {}
    else:
        logger.info("No config file found at %s, using defaults", path)

    return AppConfig(**_apply_env_overrides(raw, environ))
