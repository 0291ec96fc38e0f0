"""Quota provider models."""

from enum import Enum
from typing import Optional


class QuotaProvider(str, Enum):
    """Provider families tracked by the shared quota store."""

    ANTIGRAVITY = "antigravity"
    CODEX = "codex"
    GEMINI_CLI = "gemini-cli"
    COPILOT = "github-copilot"

    @property
    def display_name(self) -> str:
        """Human-readable display name."""
        names = {
            self.ANTIGRAVITY: "Antigravity",
            self.CODEX: "Codex (OpenAI)",
            self.GEMINI_CLI: "Gemini CLI",
            self.COPILOT: "GitHub Copilot",
        }
        return names.get(self, self.value)

    @property
    def color_hex(self) -> str:
        """Provider color in hex format."""
        colors = {
            self.ANTIGRAVITY: "EC4899",
            self.CODEX: "10A37F",
            self.GEMINI_CLI: "4285F4",
            self.COPILOT: "238636",
        }
        return colors.get(self, "6B7280")

    @classmethod
    def from_auth_provider(cls, provider: Optional[str]) -> Optional["QuotaProvider"]:
        """Map the provider string of an auth file onto a family."""
        if not provider:
            return None
        normalized = provider.strip().lower()
        aliases = {
            "copilot": cls.COPILOT,
            "gemini": cls.GEMINI_CLI,
        }
        if normalized in aliases:
            return aliases[normalized]
        try:
            return cls(normalized)
        except ValueError:
            return None


# The fifth provider lives in its own store and is not a QuotaProvider member.
CLAUDE_CODE_PROVIDER = "claude-code"
