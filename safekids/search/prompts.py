"""Prompt builder for the search parser model call."""

from pathlib import Path

USER_QUERY_OPEN = "<USER_QUERY>"
USER_QUERY_CLOSE = "</USER_QUERY>"


def load_prompt(name: str) -> str:
    """Load a prompt template from safekids/prompts/{name}.txt."""
    prompt_path = Path(__file__).parent.parent / "prompts" / f"{name}.txt"
    return prompt_path.read_text(encoding="utf-8")


SYSTEM_PROMPT = load_prompt("search_parser").strip()


def build_prompt(query: str) -> str:
    """Instructions first, then the raw query inside the untrusted-data tags."""
    return f"{SYSTEM_PROMPT}\n\n{USER_QUERY_OPEN}{query}{USER_QUERY_CLOSE}"
