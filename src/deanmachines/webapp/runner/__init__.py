"""
Runner module - Chainlit glue for agents and networks.

Provides:
- AgentConfig: per-profile configuration
- AgentRunner: chat handlers shared by every profile
"""
