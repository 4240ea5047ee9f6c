"""Evaluation metrics for agent answers."""
