"""Single-purpose text rewrites used by the content pipeline and the renderers.

Each primary rewrite has a simpler regex-only fallback that the pipeline runs
when the primary raises. Primary URL, mention and emoji rewrites never touch
text inside fenced code blocks; the fallbacks work on the whole text.
"""

import re
import unicodedata
from typing import Callable, Iterable, Mapping, Optional

from .models import Reaction

FENCE = "```"

DEFAULT_EMOJI_MAP: dict[str, str] = {
    # Faces
    "smile": "😄",
    "grin": "😁",
    "joy": "😂",
    "smiley": "😃",
    "wink": "😉",
    "blush": "😊",
    "heart_eyes": "😍",
    "thinking": "🤔",
    "thinking_face": "🤔",
    "neutral_face": "😐",
    "worried": "😟",
    "cry": "😢",
    "sob": "😭",
    "slightly_smiling_face": "🙂",
    "hugs": "🤗",
    # Gestures
    "wave": "👋",
    "ok_hand": "👌",
    "thumbsup": "👍",
    "+1": "👍",
    "thumbsdown": "👎",
    "-1": "👎",
    "clap": "👏",
    "pray": "🙏",
    "muscle": "💪",
    "raised_hands": "🙌",
    "shrug": "🤷",
    "facepalm": "🤦",
    "eyes": "👀",
    "brain": "🧠",
    # Symbols
    "heart": "❤️",
    "star": "⭐",
    "sparkles": "✨",
    "fire": "🔥",
    "check": "✅",
    "white_check_mark": "✅",
    "x": "❌",
    "warning": "⚠️",
    "bulb": "💡",
    "gift": "🎁",
    "birthday": "🎂",
    # Objects
    "computer": "💻",
    "iphone": "📱",
    "keyboard": "⌨️",
    "camera": "📷",
    "tv": "📺",
}

SMART_PUNCTUATION = {
    "‘": "'",
    "’": "'",
    "“": '"',
    "”": '"',
    "–": "--",
    "—": "--",
    "…": "...",
}

MULTIPLE_SPACES = re.compile(r" {2,}")
FENCE_LINE = re.compile(r"^\s*```\s*(\S*)\s*$", re.MULTILINE)

SLACK_LABELLED_URL = re.compile(r"(?:<|&lt;)(https?://[^|>\s]+)\|([^>]+?)(?:>|&gt;)")
SLACK_BARE_URL = re.compile(r"(?:<|&lt;)(https?://[^|>\s]+?)(?:>|&gt;)")

USER_ID_MENTION = re.compile(r"<@(U[A-Z0-9]+)(?:\|[^>]*)?>")
LINKED_MENTION = re.compile(r"\[@([^\]]+)\]\([^)]+\)")
NAMED_MENTION = re.compile(r"<@([^>|]+)(?:\|[^>]*)?>")
SPECIAL_MENTION = re.compile(r"<!(channel|here|everyone)(?:\|[^>]*)?>")
BARE_MENTION = re.compile(
    r"(?<![\w.*/\[@])@([A-Za-z0-9_](?:[A-Za-z0-9._-]*[A-Za-z0-9_])?)"
)
WIKILINK_UNSAFE = re.compile(r"[\[\]|#^<>]")
WIKILINK_MAX_LENGTH = 100

CUSTOM_EMOJI_IMAGE = re.compile(r"!\[:([a-zA-Z0-9_+-]+):\]\([^)]+\)")
EMOJI_CODE = re.compile(r":([a-zA-Z0-9_+-]+):")

THREAD_LINK = re.compile(r"View thread:\s*(https://[^\s]+)")


# =============================================================================
# Code fence helpers
# =============================================================================


def is_inline_fenced(line: str) -> bool:
    """Check if a line opens and closes a fence itself ("```npm test```")."""
    stripped = line.strip()
    return stripped.startswith(FENCE) and FENCE in stripped[len(FENCE) :]


def is_fence(line: str) -> bool:
    """Check if a line opens or closes a multi-line code block."""
    return line.strip().startswith(FENCE) and not is_inline_fenced(line)


def map_outside_code(text: str, transform: Callable[[str], str]) -> str:
    """Apply transform to every run of lines outside fenced code blocks."""
    output: list[str] = []
    pending: list[str] = []
    in_code = False

    def flush() -> None:
        if pending:
            output.extend(transform("\n".join(pending)).split("\n"))
            pending.clear()

    for line in text.split("\n"):
        if is_fence(line):
            flush()
            output.append(line)
            in_code = not in_code
        elif in_code or is_inline_fenced(line):
            flush()
            output.append(line)
        else:
            pending.append(line)
    flush()
    return "\n".join(output)


# =============================================================================
# Sanitisation
# =============================================================================


def sanitize_text(text: str) -> str:
    """Normalise unicode, line endings, smart punctuation and repeated spaces.

    Indented lines and fence lines keep their spacing.
    """
    text = unicodedata.normalize("NFC", text).replace("\r\n", "\n")
    for source, target in SMART_PUNCTUATION.items():
        text = text.replace(source, target)

    lines = []
    for line in text.split("\n"):
        if line.startswith("  ") or line.startswith("\t") or line.startswith(FENCE):
            lines.append(line)
        else:
            lines.append(MULTIPLE_SPACES.sub(" ", line))
    return "\n".join(lines)


# =============================================================================
# Code blocks
# =============================================================================


def normalize_code_blocks(text: str) -> str:
    """Rewrite fence lines to bare ```lang form and close an unterminated block."""
    lines = []
    in_code = False
    for line in text.split("\n"):
        if is_fence(line):
            if in_code:
                lines.append(FENCE)
            else:
                lines.append(FENCE + line.strip()[len(FENCE) :].strip())
            in_code = not in_code
        else:
            lines.append(line)
    if in_code:
        lines.append(FENCE)
    return "\n".join(lines)


def preserve_code_fences(text: str) -> str:
    return FENCE_LINE.sub(lambda m: FENCE + m.group(1), text)


# =============================================================================
# Links
# =============================================================================


def _simplify_slack_urls(text: str) -> str:
    text = SLACK_LABELLED_URL.sub(r"[\2](\1)", text)
    return SLACK_BARE_URL.sub(r"\1", text)


def convert_slack_urls(text: str) -> str:
    """Convert ``<url|label>`` to Markdown links and unwrap ``<url>``."""
    return map_outside_code(text, _simplify_slack_urls)


def simplify_urls(text: str) -> str:
    return _simplify_slack_urls(text)


def format_thread_links(text: str) -> str:
    return THREAD_LINK.sub(r"[View thread](\1)", text)


# =============================================================================
# Mentions
# =============================================================================


def sanitize_wikilink(name: str) -> str:
    """Strip characters that break ``[[wikilinks]]`` and cap the length."""
    cleaned = WIKILINK_UNSAFE.sub("", name)
    cleaned = re.sub(r"\s+", " ", cleaned).strip()
    return cleaned[:WIKILINK_MAX_LENGTH]


def _user_id_wikilink(user_id: str, user_map: Mapping[str, str]) -> str:
    name = user_map.get(user_id)
    if name:
        return f"[[{sanitize_wikilink(name)}]]"
    return f"[[User-{user_id[:6]}]]"


def _convert_bare_mentions(text: str) -> str:
    tokens = re.split(r"(\s+)", text)
    return "".join(
        token
        if "://" in token
        else BARE_MENTION.sub(lambda m: f"[[{sanitize_wikilink(m.group(1))}]]", token)
        for token in tokens
    )


def format_user_mentions(text: str, user_map: Mapping[str, str]) -> str:
    """Convert user mentions to wikilinks and broadcast mentions to bold text.

    ``<@U123>`` resolves through user_map, falling back to ``[[User-U123]]``.
    Email addresses and ``@`` inside URLs are left alone.
    """

    def convert(chunk: str) -> str:
        chunk = USER_ID_MENTION.sub(
            lambda m: _user_id_wikilink(m.group(1), user_map), chunk
        )
        chunk = LINKED_MENTION.sub(
            lambda m: f"[[{sanitize_wikilink(m.group(1))}]]", chunk
        )
        chunk = NAMED_MENTION.sub(
            lambda m: f"[[{sanitize_wikilink(m.group(1))}]]", chunk
        )
        chunk = SPECIAL_MENTION.sub(r"**@\1**", chunk)
        return _convert_bare_mentions(chunk)

    return map_outside_code(text, convert)


def simplify_user_mentions(text: str) -> str:
    text = re.sub(r"<@U[A-Z0-9]+>", "@user", text)
    return re.sub(r"@(\w+)", r"[[\1]]", text)


# =============================================================================
# Emoji and reactions
# =============================================================================


def merge_emoji_map(emoji_map: Optional[Mapping[str, str]] = None) -> dict[str, str]:
    """Overlay a custom emoji map (keys with or without colons) on the defaults."""
    merged = dict(DEFAULT_EMOJI_MAP)
    for code, glyph in (emoji_map or {}).items():
        merged[code.strip(":")] = glyph
    return merged


def replace_emoji(text: str, emoji_map: Optional[Mapping[str, str]] = None) -> str:
    """Replace ``:code:`` and custom emoji images with glyphs where known."""
    glyphs = merge_emoji_map(emoji_map)

    def convert(chunk: str) -> str:
        chunk = CUSTOM_EMOJI_IMAGE.sub(
            lambda m: glyphs.get(m.group(1), f":{m.group(1)}:"), chunk
        )
        return EMOJI_CODE.sub(lambda m: glyphs.get(m.group(1), m.group(0)), chunk)

    return map_outside_code(text, convert)


def format_reactions(
    reactions: Iterable[Reaction], emoji_map: Optional[Mapping[str, str]] = None
) -> str:
    """Render reactions as space-separated ``glyph count`` pairs."""
    glyphs = merge_emoji_map(emoji_map)
    parts = []
    for reaction in reactions:
        name = reaction.name.strip(":")
        parts.append(f"{glyphs.get(name, f':{name}:')} {reaction.count}")
    return " ".join(parts)


def identity(text: str) -> str:
    return text
