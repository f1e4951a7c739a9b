"""Base class for rendering grouped messages as Markdown callouts.

Consecutive messages from the same author share one callout block. Rendering
walks the messages with a two-state machine:

    NoBlockOpen --(message)--> BlockOpenFor(author)
    BlockOpenFor(a) --(message from a)--> BlockOpenFor(a)   continuation separator
    BlockOpenFor(a) --(message from b)--> BlockOpenFor(b)   new header

Subclasses supply the header and reaction lines.
"""

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterable, Optional, Union

from ..converters import (
    convert_slack_urls,
    format_thread_links,
    is_fence,
    is_inline_fenced,
    replace_emoji,
)
from ..models import SlackMessage
from ..settings import FormatSettings, ParsedMaps
from ..utils import clean_display_name, clean_timestamp, format_timestamp

logger = logging.getLogger(__name__)

THREAD_REPLY_COUNT = re.compile(r"(\d+)\s+repl(?:y|ies)", re.IGNORECASE)
THREAD_LAST_REPLY = re.compile(r"Last reply\s+(.+?)(?:View thread|$)", re.IGNORECASE)
THREAD_LAST_REPLY_JOINED = re.compile(
    r"(\d+\s+(?:days?|months?|hours?|minutes?)\s+ago)View thread", re.IGNORECASE
)
THREAD_VIEW = re.compile(r"View thread", re.IGNORECASE)
THREAD_VIEW_URL = re.compile(r"View thread.*?(https?://[^\s]+)")
THREAD_REPLY_CONTEXT = re.compile(
    r'replied to a thread:\s*(?:"([^"]+)"|(.+?)(?=\s*(?:View thread|Last reply|$)))?',
    re.IGNORECASE,
)
ALSO_SENT_TO_CHANNEL = re.compile(r"Also sent to the channel", re.IGNORECASE)


# -- Block state --------------------------------------------------------------


@dataclass(frozen=True)
class NoBlockOpen:
    pass


@dataclass(frozen=True)
class BlockOpenFor:
    author: str


BlockState = Union[NoBlockOpen, BlockOpenFor]


# -- Strategy -----------------------------------------------------------------


class BaseFormatStrategy(ABC):
    """Render a sequence of messages into callout-block Markdown."""

    strategy_type: str = ""

    def __init__(self, settings: FormatSettings, maps: ParsedMaps):
        self.settings = settings
        self.maps = maps

    @abstractmethod
    def format_header(self, message: SlackMessage) -> list[str]:
        """Return header lines, without the ``> `` prefix."""

    @abstractmethod
    def format_reactions(self, message: SlackMessage) -> Optional[str]:
        """Return a single reactions line, or None when there are none."""

    # -------------------------------------------------------------------------
    # Message parts
    # -------------------------------------------------------------------------

    def display_name(self, message: SlackMessage) -> str:
        return clean_display_name(message.username)

    def format_time(self, message: SlackMessage) -> str:
        if not self.settings.parse_slack_times:
            return clean_timestamp(message.timestamp)
        return format_timestamp(
            message.timestamp, message.date, self.settings.time_zone
        )

    def _format_body_line(self, line: str) -> str:
        if self.settings.convert_slack_links:
            line = convert_slack_urls(line)
        if self.settings.replace_emoji:
            line = replace_emoji(line, self.maps.emoji_map)
        if self.settings.highlight_threads:
            line = format_thread_links(line)
        return line

    def format_body(self, text: str) -> list[str]:
        """Prefix body lines for a callout, leaving code blocks unconverted.

        Mentions stay as written here; converting them is the pipeline's job.
        """
        lines: list[str] = []
        in_code = False
        for line in text.split("\n"):
            if is_fence(line):
                opening = not in_code
                in_code = not in_code
                if opening or line.strip() == "```":
                    lines.append(f"> {line}")
                else:
                    lines.append(line)
                continue

            if not in_code and not is_inline_fenced(line):
                line = self._format_body_line(line)
            lines.append(">" if not line.strip() else f"> {line}")
        return lines

    def format_thread_info(self, thread_info: str) -> list[str]:
        """Turn raw thread text into reply, count and link lines."""
        lines: list[str] = []

        context_match = THREAD_REPLY_CONTEXT.search(thread_info)
        if context_match:
            lines.append("🧵 **Thread Reply**")
            context = (context_match.group(1) or context_match.group(2) or "").strip()
            if context:
                lines.append(f'   _Replying to: "{context}"_')

        reply_match = THREAD_REPLY_COUNT.search(thread_info)
        last_match = THREAD_LAST_REPLY.search(
            thread_info
        ) or THREAD_LAST_REPLY_JOINED.search(thread_info)
        view_match = THREAD_VIEW.search(thread_info)

        parts = []
        if reply_match:
            count = int(reply_match.group(1))
            parts.append(f"**{count} {'reply' if count == 1 else 'replies'}**")
        if last_match and last_match.group(1).strip():
            parts.append(f"Last reply {last_match.group(1).strip()}")
        if parts:
            lines.append(f"📊 {' • '.join(parts)}")

        if view_match:
            url_match = THREAD_VIEW_URL.search(thread_info)
            if url_match:
                lines.append(f"🔗 [View thread]({url_match.group(1)})")
            else:
                lines.append("🔗 View thread")

        if ALSO_SENT_TO_CHANNEL.search(thread_info):
            lines.append("📢 Also sent to the channel")
        return lines

    def format_message(self, message: SlackMessage) -> list[str]:
        """Body, thread info and reactions for one message, already prefixed."""
        lines = self.format_body(message.text)

        if message.thread_info:
            thread_lines = self.format_thread_info(message.thread_info)
            if thread_lines:
                lines.append(">")
                lines.extend(f"> {line}" for line in thread_lines)

        reactions = self.format_reactions(message)
        if reactions:
            lines.append(">")
            lines.append(f"> {reactions}")
        return lines

    def format_error_block(self, message: SlackMessage, error: Exception) -> list[str]:
        return [
            "> [!error]+ Error processing message",
            f"> **User:** {message.username or 'Unknown'}",
            f"> **Timestamp:** {message.timestamp or 'Unknown'}",
            ">",
            f"> Error: {error}",
        ]

    # -------------------------------------------------------------------------
    # Rendering
    # -------------------------------------------------------------------------

    def format_to_markdown(self, messages: Iterable[SlackMessage]) -> str:
        output: list[str] = []
        state: BlockState = NoBlockOpen()

        for message in messages:
            if not message.text.strip():
                logger.debug("Skipping empty message from %s", message.username)
                continue

            author = self.display_name(message)
            separator = [""] if output else []
            try:
                body = self.format_message(message)
                if isinstance(state, BlockOpenFor) and state.author == author:
                    lines = [">"] + body
                else:
                    header = [f"> {line}" for line in self.format_header(message)]
                    lines = separator + header + [">"] + body
            except Exception as e:
                logger.error("Error formatting message from %s: %s", author, e)
                lines = separator + self.format_error_block(message, e)
            output.extend(lines)
            state = BlockOpenFor(author)

        return "\n".join(output).strip()
