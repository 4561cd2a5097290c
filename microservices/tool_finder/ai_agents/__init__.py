"""AI agents for tool discovery, analysis and chat."""
