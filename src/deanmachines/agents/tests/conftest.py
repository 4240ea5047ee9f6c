from deanmachines.agents.tests.common_fixtures import memory, scripted_llm_client  # noqa: F401
