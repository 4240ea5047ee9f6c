"""
Utility functions for the deanmachines package.

Modules:
- utils: Text helpers (JSON extraction, tool name normalization, id generation)
"""
