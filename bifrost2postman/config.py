"""
bifrost2postman/config.py

Environment variable configuration.

Contains:
- Config: Centralized settings from environment variables
- LOG_LEVEL, ROUTE_ATTRIBUTE_NAME, ORGANIZATION_PREFIX, etc.
"""

import logging
import os
from typing import Any

from dotenv import load_dotenv

load_dotenv()


class Config():
    """
    Centralized configuration for environment variables.
    """

    # logging configuration
    LOG_LEVEL: int = logging.getLevelNamesMapping().get(
        os.getenv("LOG_LEVEL", "INFO").upper(),
        logging.INFO
    )
    LOG_DATE_FORMAT: str = os.getenv("LOG_DATE_FORMAT", "%Y-%m-%d %H:%M:%S")
    LOG_FORMAT: str = os.getenv("LOG_FORMAT", "[%(asctime)s] %(levelname)s:%(name)s:%(message)s")

    # source analysis
    # Attribute marking a method as a remote-callable endpoint (matched by substring,
    # so "BifrostPath" also matches "BifrostPathAttribute" and "Hudl.Bifrost.BifrostPath")
    ROUTE_ATTRIBUTE_NAME: str = os.getenv("BIFROST_ROUTE_ATTRIBUTE", "BifrostPath")
    SERVICES_FOLDER_NAME: str = os.getenv("BIFROST_SERVICES_FOLDER", "Services")
    SKIPPED_FOLDER_NAMES: frozenset[str] = frozenset(
        name.strip()
        for name in os.getenv("BIFROST_SKIPPED_FOLDERS", "bin,obj").split(",")
        if name.strip()
    )

    # sample synthesis
    SAMPLE_DATETIME: str = os.getenv("BIFROST_SAMPLE_DATETIME", "2025-01-01T01:00:00.000000Z")
    JSON_INDENT: int = int(os.getenv("BIFROST_JSON_INDENT", "2"))

    # output naming, e.g. "Hudl.Ticketing.Client" -> "Hudl.Ticketing Bifrost Endpoints"
    ORGANIZATION_PREFIX: str = os.getenv("BIFROST_ORG_PREFIX", "Hudl")
    DEFAULT_SERVICE_NAME: str = os.getenv("BIFROST_DEFAULT_SERVICE_NAME", "Service")

    @classmethod
    def as_dict(cls) -> dict[str, Any]:
        """
        Return a dictionary of all UPPERCASE class attributes and their values.
        Return:
            dict[str, Any]: A dictionary of all UPPERCASE class attributes and their values.
        """
        return {
            key: getattr(cls, key)
            for key in dir(cls)
            if key.isupper()
        }
