"""
Veza Client - Publishes the BambooHR application to Veza.

Every BambooHR account becomes one Veza data source under a shared provider:

    provider:     [PROVIDER_PREFIX_]PROVIDER_NAME   e.g. "HR_BambooHR"
    data source:  "BambooHR - {namespace}"           e.g. "BambooHR - acme"

so several BambooHR accounts can be pushed under the same provider without
overwriting each other.

Pipeline context:
    Used in Step 8 of the orchestrator pipeline when DRY_RUN is off.
"""

from typing import Any, Dict, List, Optional

from oaaclient.client import OAAClient
from oaaclient.templates import CustomApplication

from .settings import PROVIDER_NAME, sanitize_name


def provider_name_for(name: str, prefix: str = "") -> str:
    safe_name = sanitize_name(name)
    if prefix:
        return f"{sanitize_name(prefix)}_{safe_name}"
    return safe_name


def data_source_name(namespace: str) -> str:
    return f"{PROVIDER_NAME} - {namespace}"


class VezaClient:
    """Pushes BambooHR applications to one Veza provider.

    Attributes:
        provider_name: Sanitized provider name, prefix applied.
        debug: If True, prints provider lookups.
    """

    def __init__(
        self,
        veza_url: str,
        veza_api_key: str,
        provider_name: str = PROVIDER_NAME,
        provider_prefix: str = "",
        debug: bool = False,
    ):
        self.veza_url = veza_url
        self.veza_api_key = veza_api_key
        self.provider_name = provider_name_for(provider_name, provider_prefix)
        self.debug = debug
        self._client: Optional[OAAClient] = None

    @property
    def oaa(self) -> OAAClient:
        if self._client is None:
            self._client = OAAClient(url=self.veza_url, api_key=self.veza_api_key)
        return self._client

    def ensure_provider(self) -> Dict[str, Any]:
        """Return this client's Veza provider, creating it on first push."""
        provider = self.oaa.get_provider(self.provider_name)
        if provider:
            if self.debug:
                print(f"  Using existing provider: {self.provider_name} ({provider.get('id')})")
            return provider

        print(f"  Creating Veza provider: {self.provider_name}")
        return self.oaa.create_provider(self.provider_name, "application")

    def push_application(self, app: CustomApplication, namespace: str) -> Dict[str, Any]:
        """Push the application as the data source for one BambooHR account.

        Args:
            app: Fully built application (entities and relationships).
            namespace: Normalized BambooHR namespace the app was built from.

        Returns:
            Push summary: provider, data source, entity counts and any
            warnings Veza reported for the payload.
        """
        provider = self.ensure_provider()
        source = data_source_name(namespace)

        response = self.oaa.push_application(
            provider_name=self.provider_name,
            data_source_name=source,
            application_object=app,
        )
        warnings = _response_warnings(response)
        for warning in warnings:
            print(f"  Veza warning: {warning}")

        return {
            "provider_name": self.provider_name,
            "provider_id": provider.get("id"),
            "data_source_name": source,
            "application": app.name,
            "users": len(app.local_users),
            "groups": len(app.local_groups),
            "resources": len(app.resources),
            "warnings": warnings,
        }


def _response_warnings(response: Any) -> List[str]:
    if not isinstance(response, dict):
        return []
    return [
        w.get("message", str(w)) if isinstance(w, dict) else str(w)
        for w in response.get("warnings") or []
    ]
