"""MCP prompts offered to support agents."""

from __future__ import annotations

from mcp.types import GetPromptResult, Prompt, PromptArgument, PromptMessage, TextContent

from chatdesk.validation import is_present

SUPPORT_GREETING = "support_greeting"

_CLOSING = (
    " I'm here to help you resolve this as quickly as possible."
    " Could you please provide more details about what you're experiencing?"
)


def list_prompt_definitions() -> list[Prompt]:
    return [
        Prompt(
            name=SUPPORT_GREETING,
            description="Generate a professional support greeting",
            arguments=[
                PromptArgument(name="user_name", description="Name of the user (optional)", required=False),
                PromptArgument(name="issue_type", description="Kind of issue being reported (optional)", required=False),
            ],
        ),
    ]


def support_greeting(user_name: str = "", issue_type: str = "") -> str:
    """Build the greeting text. Empty or ``"0"`` arguments are left out."""
    greeting = "Hello"
    if is_present(user_name):
        greeting += f" {user_name}"
    greeting += "! Thank you for contacting our support team."
    if is_present(issue_type):
        greeting += f" I understand you're experiencing an issue with {issue_type}."
    return greeting + _CLOSING


def get_prompt_result(name: str, arguments: dict[str, str] | None = None) -> GetPromptResult:
    """Render prompt *name*. Raises ValueError for unknown prompts."""
    if name != SUPPORT_GREETING:
        msg = f"Unknown prompt: {name}"
        raise ValueError(msg)
    args = arguments or {}
    text = support_greeting(args.get("user_name", ""), args.get("issue_type", ""))
    return GetPromptResult(
        description="Professional support greeting",
        messages=[PromptMessage(role="assistant", content=TextContent(type="text", text=text))],
    )
