"""Bracketed callout layout, for exports that wrap fields in brackets."""

from typing import Optional

from ..converters import format_reactions
from ..models import SlackMessage
from .base import BaseFormatStrategy


class BracketFormatStrategy(BaseFormatStrategy):
    strategy_type = "bracket"

    def format_header(self, message: SlackMessage) -> list[str]:
        kind = "Thread Reply from" if message.is_thread_reply else "Message from"
        lines = [f"[!slack]+ [{kind} {self.display_name(message)}]"]
        time = self.format_time(message)
        if time:
            lines.append(f"[Time: {time}]")
        return lines

    def format_reactions(self, message: SlackMessage) -> Optional[str]:
        if not message.reactions:
            return None
        return f"[Reactions: {format_reactions(message.reactions, self.maps.emoji_map)}]"
