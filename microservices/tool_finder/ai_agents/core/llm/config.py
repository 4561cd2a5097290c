"""Azure OpenAI configuration."""

import os
from typing import Any, Dict, Optional
from urllib.parse import parse_qs, urlparse

from envs.env_loader import EnvLoader

DEFAULT_API_VERSION = "2025-01-01-preview"


class AzureOpenAIConfig:
    """Configuration for the Azure OpenAI chat completion endpoint.

    ``AZURE_ENDPOINT`` holds the full chat completions URL, e.g.
    ``https://<resource>.cognitiveservices.azure.com/openai/deployments/gpt-4o/chat/completions?api-version=2025-01-01-preview``.
    It is split into the base endpoint, deployment and API version the
    client library expects.
    """

    def __init__(
        self, api_key: Optional[str] = None, endpoint_url: Optional[str] = None
    ):
        """Initialize Azure OpenAI configuration."""
        env = EnvLoader()
        self.api_key = api_key if api_key is not None else env.azure_api_key
        self.endpoint_url = (
            endpoint_url if endpoint_url is not None else env.azure_endpoint
        )
        self.timeout_seconds = int(os.getenv("AZURE_TIMEOUT_SECONDS", "120"))
        self.max_content_chars = int(os.getenv("AZURE_MAX_CONTENT_CHARS", "70000"))

        self.azure_endpoint, self.deployment, self.api_version = self._split_endpoint(
            self.endpoint_url
        )

    @staticmethod
    def _split_endpoint(endpoint_url: str):
        """Split a full chat completions URL into endpoint, deployment, version."""
        if not endpoint_url:
            return "", "", DEFAULT_API_VERSION

        parsed = urlparse(endpoint_url)
        base = f"{parsed.scheme}://{parsed.netloc}" if parsed.netloc else ""

        deployment = ""
        parts = [part for part in parsed.path.split("/") if part]
        if "deployments" in parts:
            index = parts.index("deployments")
            if index + 1 < len(parts):
                deployment = parts[index + 1]

        api_version = parse_qs(parsed.query).get("api-version", [DEFAULT_API_VERSION])[
            0
        ]
        return base, deployment, api_version

    def is_configured(self) -> bool:
        """Check if Azure OpenAI is properly configured."""
        return bool(self.api_key and self.azure_endpoint and self.deployment)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary without secrets."""
        return {
            "configured": self.is_configured(),
            "azure_endpoint": self.azure_endpoint,
            "deployment": self.deployment,
            "api_version": self.api_version,
            "timeout_seconds": self.timeout_seconds,
            "max_content_chars": self.max_content_chars,
        }
