"""
AgentTool - tool-calling agent loop with pluggable planning strategies.

This module provides:
- AgentTool: loop executor over an OpenAI-style message history
- PlanningStrategy: base class for planning strategies
- DirectStrategy: one tool calling request per step
- ReactStrategy: reasoning followed by a tool call per step
"""
