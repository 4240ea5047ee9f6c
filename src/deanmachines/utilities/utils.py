import re
import secrets


def normalize_tool_name(tool_name: str) -> str:
    return re.sub(r"[\s\-]+", "_", tool_name.strip()).upper()


def truncate(text: str, limit: int = 50) -> str:
    return text[:limit] + "..." if len(text) > limit else text


def generate_id(prefix: str = "", nbytes: int = 4) -> str:
    token = secrets.token_hex(nbytes)
    return f"{prefix}-{token}" if prefix else token
