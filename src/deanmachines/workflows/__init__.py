"""Multi-step pipelines that chain agents, one agent per step."""
