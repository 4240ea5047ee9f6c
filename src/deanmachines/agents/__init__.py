"""Agent definitions, the agent runtime and the agent registry."""
