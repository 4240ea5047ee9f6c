"""Tracing (LangSmith, Langfuse) and runtime monitoring for agents and networks."""
