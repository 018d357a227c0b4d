"""
Settings - Default configuration values for the BambooHR connector.

This module provides the DEFAULT_SETTINGS dict that the orchestrator uses as
fallback values when environment variables are not set. The actual configuration
is loaded from .env at runtime.

Configuration precedence (highest to lowest):
  1. CLI flags (--debug, --dry-run, --push, --no-files)
  2. Environment variables (from .env file)
  3. DEFAULT_SETTINGS (this file)

Settings reference:
  PROVIDER_NAME           Label used in output folder naming and the Veza provider name
  PROVIDER_PREFIX         Optional prefix for the Veza provider name
  OUTPUT_DIR              Where to write extraction output (default: ./output)
  OUTPUT_RETENTION_DAYS   How many days to keep old output folders (0 = keep forever)
  DRY_RUN                 Generate output only, do not push to Veza
  SAVE_JSON               Whether to write the OAA payload to disk
  DEBUG                   Whether to print verbose output
  INCLUDE_FILES           Whether to fetch company and employee file listings
  FETCH_EMPLOYEE_DETAILS  Whether to look up hireDate/terminationDate per employee
"""

from dataclasses import dataclass

PROVIDER_NAME = "BambooHR"

# Single fixed API host for every tenant; the namespace selects the account.
BAMBOOHR_API_HOST = "api.bamboohr.com"

DEFAULT_SETTINGS = {
    "PROVIDER_NAME": PROVIDER_NAME,
    "PROVIDER_PREFIX": "",
    "OUTPUT_DIR": "./output",
    "OUTPUT_RETENTION_DAYS": 30,
    "DRY_RUN": True,
    "SAVE_JSON": True,
    "DEBUG": False,
    "INCLUDE_FILES": True,
    "FETCH_EMPLOYEE_DETAILS": True,
}


@dataclass(frozen=True)
class IntegrationConfig:
    """Credentials for one BambooHR account.

    client_namespace may be a bare subdomain ("acme"), a hostname
    ("acme.bamboohr.com") or a full URL; the client normalizes it.
    """
    client_namespace: str
    client_access_token: str


def sanitize_name(name: str) -> str:
    """Replace anything outside [A-Za-z0-9_-] with "_" (folder and provider names)."""
    return "".join(c if c.isalnum() or c in "-_" else "_" for c in name)
