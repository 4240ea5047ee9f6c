"""
Tests for deanmachines/utilities/utils.py

Tests:
- test_normalize_tool_name: Normalize tool names to uppercase with underscores
- test_truncate
- test_generate_id
"""

from deanmachines.utilities.utils import generate_id, normalize_tool_name, truncate


def test_normalize_tool_name():
    assert normalize_tool_name("my_tool") == "MY_TOOL"
    assert normalize_tool_name("my tool") == "MY_TOOL"
    assert normalize_tool_name("stock-price") == "STOCK_PRICE"
    assert normalize_tool_name("My Tool Name") == "MY_TOOL_NAME"


def test_truncate():
    assert truncate("short") == "short"
    assert truncate("x" * 60) == "x" * 50 + "..."
    assert truncate("abcdef", limit=3) == "abc..."


def test_generate_id():
    assert len(generate_id()) == 8
    task_id = generate_id("task")
    assert task_id.startswith("task-")
    assert generate_id() != generate_id()
