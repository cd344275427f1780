"""Static classification of app identities into activity categories."""

from __future__ import annotations

import re

CATEGORIES = (
    "productivity",
    "development",
    "browsing",
    "communication",
    "entertainment",
    "other",
)

DEFAULT_CATEGORY = "other"

_TOKEN_SPLIT = re.compile(r"[^a-z0-9]+")

# Keywords match whole tokens of the identity ("com.apple.Safari" -> com, apple,
# safari); multi-token keywords must appear as a contiguous run. First matching
# row wins.
_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    (
        "development",
        ("xcode", "vscode", "code", "visual studio", "devenv", "pycharm", "intellij",
         "jetbrains", "terminal", "iterm", "iterm2", "sublime", "vim", "nvim", "emacs",
         "github"),
    ),
    (
        "communication",
        ("slack", "slackmacgap", "mail", "outlook", "messages", "teams", "zoom",
         "discord", "telegram", "whatsapp", "signal", "skype"),
    ),
    (
        "browsing",
        ("browser", "safari", "chrome", "firefox", "msedge", "microsoft edge",
         "brave", "opera", "vivaldi"),
    ),
    (
        "entertainment",
        ("spotify", "music", "netflix", "vlc", "steam", "youtube", "com apple tv",
         "podcasts"),
    ),
    (
        "productivity",
        ("editor", "word", "winword", "excel", "powerpoint", "powerpnt", "pages",
         "numbers", "keynote", "notes", "notion", "obsidian", "calendar", "ical",
         "reminders"),
    ),
)


def _tokens(text: str) -> tuple[str, ...]:
    return tuple(token for token in _TOKEN_SPLIT.split(text.lower()) if token)


_KEYWORD_TOKENS = tuple(
    (category, tuple(_tokens(keyword) for keyword in keywords))
    for category, keywords in _KEYWORDS
)


def _contains(tokens: tuple[str, ...], run: tuple[str, ...]) -> bool:
    width = len(run)
    return any(tokens[index:index + width] == run for index in range(len(tokens) - width + 1))


def classify(identity: str | None) -> str:
    """Return the category for an app identity; unknown apps are ``other``."""
    if not identity:
        return DEFAULT_CATEGORY
    tokens = _tokens(identity)
    for category, runs in _KEYWORD_TOKENS:
        if any(_contains(tokens, run) for run in runs):
            return category
    return DEFAULT_CATEGORY
