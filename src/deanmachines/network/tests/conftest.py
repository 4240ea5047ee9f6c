from deanmachines.agents.tests.common_fixtures import scripted_llm_client  # noqa: F401
