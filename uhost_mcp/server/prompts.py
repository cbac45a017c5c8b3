"""Prompts offered to MCP clients."""

from __future__ import annotations

from typing import Any, Dict, List

PROMPT_NAME = "instance_management"
PROMPT_TITLE = "UCloud Instance Management"
PROMPT_DESCRIPTION = "Help with UCloud instance management"
PROMPT_ACTIONS = ("describe", "list", "get_instance_metrics")

_CONVERSATIONS: Dict[str, tuple[str, str]] = {
    "describe": (
        "I'll help you get information about a UCloud instance.",
        "Please provide the instance ID you want to describe.",
    ),
    "list": (
        "I'll help you list all your UCloud instances.",
        "I'll show you a list of all instances with their details.",
    ),
    "get_instance_metrics": (
        "I'll help you get the monitoring metrics for a UCloud instance.",
        "Please provide the instance ID you want to get metrics for.",
    ),
}


def _text_message(role: str, text: str) -> Dict[str, Any]:
    return {"role": role, "content": {"type": "text", "text": text}}


def instance_management_messages(action: str) -> List[Dict[str, Any]]:
    """Return the user/assistant message pair for ``action``.

    Raises
    ------
    ValueError
        If ``action`` is not one of :data:`PROMPT_ACTIONS`.
    """
    try:
        user_text, assistant_text = _CONVERSATIONS[action]
    except KeyError:
        raise ValueError(
            f"unknown action: {action} (expected one of: {', '.join(PROMPT_ACTIONS)})"
        ) from None
    return [
        _text_message("user", user_text),
        _text_message("assistant", assistant_text),
    ]


def get_prompt(action: str) -> Dict[str, Any]:
    """Prompt payload in MCP prompts/get format."""
    return {
        "description": PROMPT_TITLE,
        "messages": instance_management_messages(action),
    }
