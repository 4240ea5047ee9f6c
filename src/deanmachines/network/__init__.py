"""Agent networks: one LLM coordinator routing work to member agents."""
