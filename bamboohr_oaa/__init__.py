"""
BambooHR OAA connector - Extract BambooHR users, employees and files for Veza.

  client.py               HTTP communication with BambooHR (Steps 1-4)
  entity_extractor.py     Normalize collected records into entities (Step 5)
  application_builder.py  Build the OAA CustomApplication (Step 6)
  relationship_builder.py Wire entity relationships (Step 7)
  output_manager.py       Timestamped output directories (Step 8)
  veza_client.py          Push to Veza (Step 8)
  orchestrator.py         Pipeline coordination
"""

__version__ = "0.1.0"

from .client import BambooHRClient, normalize_client_namespace, flatten_file_categories
from .exceptions import (
    BambooHRError,
    IntegrationConfigError,
    StatusError,
    ProviderAuthenticationError,
)
from .settings import IntegrationConfig, DEFAULT_SETTINGS
