"""
Webapp - Chainlit chat UI for the Dean Machines agents and network.

Usage:
    # Run the network (default profile)
    chainlit run src/deanmachines/webapp/app.py

    # Run a single agent
    AGENT_NAME=weather chainlit run src/deanmachines/webapp/app.py
"""
