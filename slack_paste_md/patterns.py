"""Shared line-shape primitives for chat-export text.

Both the embedded-content detector and the attachment normalizer recognise the
same families of pasted lines:
- Bare URL lines and URLs embedded in text
- Avatar images served from the chat CDN
- Time tokens and "name + linked timestamp" message headers
- Reaction tokens (``:emoji: 3``) and numeric-only continuation lines
- Doubled titles produced by copying a card header ("GuidewireGuidewire")
- Metadata keywords from file and repository cards
"""

import re
from typing import Optional


# =============================================================================
# URLs and hosts
# =============================================================================

BARE_URL_LINE = re.compile(r"^https?://[^\s]+$")
URL_IN_TEXT = re.compile(r"https?://[^\s)]+")

AVATAR_HOST = "ca.slack-edge.com"
FILE_HOST = "files.slack.com"

AVATAR_IMAGE_LINE = re.compile(r"^!\[\]\(https://ca\.slack-edge\.com/[^)]+\)$")


# =============================================================================
# Message header shapes
# =============================================================================

TIME_TOKEN = re.compile(r"^\d{1,2}:\d{2}\s*(?:AM|PM)?$", re.IGNORECASE)
TIME_PREFIX = re.compile(r"^\d{1,2}:\d{2}")
FIRST_LAST_NAME = re.compile(r"^[A-Z][a-z]+ [A-Z][a-z]+")
NAME_WITH_TIMESTAMP_LINK = re.compile(
    r"^[A-Za-z0-9\s\-_.'\u00c0-\u017f]+.*\[[^\]]+\]\(https?://[^)]+\)$"
)
THREAD_NAVIGATION = re.compile(
    r"^(?:\d+\s+repl(?:y|ies)|View thread$|Last reply)", re.IGNORECASE
)


# =============================================================================
# Reactions
# =============================================================================

REACTION_TOKEN = re.compile(r"^:[\w+-]+:\s*\d+$|^[\d\s]+$")
REACTION_IMAGE_LINE = re.compile(r"^![:\[].*?[:\]]\([^)]+\)\d+")
EMOJI_CODE_LINE = re.compile(r"^:[a-zA-Z0-9_+-]+:$")


# =============================================================================
# Card titles and metadata
# =============================================================================

DOUBLED_TITLE = re.compile(r"^([A-Za-z\u00c0-\u017f]+)\1$")
DOUBLED_TITLE_MIN_LENGTH = 7

METADATA_KEYWORD = re.compile(r"^[A-Z][a-z\s]*[a-z]$|^(Google Doc|PDF|Zip)$")
GITHUB_METADATA = re.compile(r"^(?:Language|Last updated|Added by \[GitHub\])$")
FILE_METADATA = re.compile(r"^(?:PDF|Doc|Zip|Google Doc)$|^\d+ files?$", re.IGNORECASE)


def is_bare_url(line: str) -> bool:
    """Check if a trimmed line consists of a single http(s) URL."""
    return bool(BARE_URL_LINE.match(line.strip()))


def is_avatar_line(line: str) -> bool:
    """Check if a line is a standalone avatar image from the chat CDN."""
    return bool(AVATAR_IMAGE_LINE.match(line.strip()))


def is_time_token(line: str) -> bool:
    return bool(TIME_TOKEN.match(line.strip()))


def is_reaction_token(line: str) -> bool:
    """Check if a line is an ``:emoji: N`` pair or a numbers-only line."""
    return bool(REACTION_TOKEN.match(line.strip()))


def is_message_header(line: str) -> bool:
    """Check if a line looks like the start of another pasted message."""
    stripped = line.strip()
    return bool(TIME_PREFIX.match(stripped) or FIRST_LAST_NAME.match(stripped))


def undouble_title(line: str) -> Optional[str]:
    """Return the single word of a doubled title, or None.

    "GuidewireGuidewire" yields "Guidewire"; short lines such as "aaaa" are
    ignored to keep accidental matches down.
    """
    stripped = line.strip()
    if len(stripped) < DOUBLED_TITLE_MIN_LENGTH:
        return None
    match = DOUBLED_TITLE.match(stripped)
    return match.group(1) if match else None


def find_url(text: str) -> Optional[str]:
    """Return the first URL in text, or None."""
    match = URL_IN_TEXT.search(text)
    return match.group(0) if match else None
