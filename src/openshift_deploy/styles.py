"""Custom styling for questionary prompts used by the init command."""

from questionary import Style

PROMPT_STYLE = Style(
    [
        ("qmark", "fg:#af87ff bold"),  # Purple question mark
        ("question", "bold"),
        ("answer", "fg:#ff87d7 bold"),  # Pink submitted answer
        ("pointer", "fg:#ff87d7 bold"),
        ("instruction", "fg:#6c6c6c italic"),
        ("text", ""),
    ]
)

QMARK = "? "
