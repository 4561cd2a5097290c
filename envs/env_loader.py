"""Module for loading environment variables using dotenv."""

import os

from dotenv import load_dotenv


class EnvLoader:
    """Environment variable loader for the application."""

    def __init__(self):
        """Initialize the EnvLoader and load environment variables."""
        # Determine the environment type
        self._env_type = os.getenv("ENV", "development")
        parent_path = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
        self.env_file_path = os.path.join(
            parent_path, ".env_vars", ".env.{}".format(self._env_type)
        )
        # Load the environment variables from the specified file
        load_dotenv(self.env_file_path)

    @property
    def env_type(self) -> str:
        """Return the environment type."""
        return self._env_type

    @property
    def debug(self):
        """Return True if the environment is development, otherwise False."""
        return self._env_type == "development"

    @property
    def firecrawl_api_key(self):
        """Return the Firecrawl API key."""
        return os.getenv("FIRECRAWL_API_KEY", "")

    @property
    def firecrawl_base_url(self):
        """Return the Firecrawl API base URL."""
        return os.getenv("FIRECRAWL_BASE_URL", "https://api.firecrawl.dev")

    @property
    def azure_api_key(self):
        """Return the Azure OpenAI API key."""
        return os.getenv("AZURE_API_KEY", "")

    @property
    def azure_endpoint(self):
        """Return the full Azure OpenAI chat completions endpoint URL."""
        return os.getenv("AZURE_ENDPOINT", "")

    @property
    def log_level(self):
        """Return the log level name."""
        return os.getenv("LOG_LEVEL", "INFO").upper()

    @property
    def host(self):
        """Return the host the API binds to."""
        return os.getenv("HOST", "127.0.0.1")

    @property
    def port(self):
        """Return the port the API binds to."""
        port_str = os.getenv("PORT", "12000")
        return int(port_str)
