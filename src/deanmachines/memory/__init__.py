"""Conversation memory shared by the agents."""
