"""Dean Machines multi-agent platform."""
