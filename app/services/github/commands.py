"""
Bot command extraction from PR comment bodies.
"""

import re
from typing import Optional


class CommandParser:
    """
    Finds ``@<bot_name> <command>`` in a comment and returns the command token.

    Tokens are lower-cased and may contain hyphens (``@bot try-merge``).
    """

    def __init__(self, bot_name: str = "bot"):
        self.bot_name = bot_name
        self._pattern = re.compile(
            rf"@{re.escape(bot_name)}\s+([\w-]+)", re.IGNORECASE
        )

    def parse(self, comment_body: Optional[str]) -> Optional[str]:
        if not comment_body:
            return None
        match = self._pattern.search(comment_body)
        if not match:
            return None
        return match.group(1).lower()
