"""
Chat profiles for the webapp.

Each profile defines:
- name, description, welcome_message
- target_factory building the agent or network
- default runtime context and settings widgets
"""
