"""Classification of embedded content inside a pasted message body.

Pasted chat text carries platform-generated fragments inline with user prose:
- Link previews: a bare URL followed by title/description lines
- File attachments: markdown file links, file-host URLs and "PDF"/"3 files" lines
- Quoted messages: short capitalised lines copied from a referenced message
- Reaction continuations: ``:emoji: N`` pairs or numeric-only lines

The detector makes a single forward pass. At each non-blank line the matchers
are tried in order and the first one that returns a block consumes its span.
Lines that no matcher claims are kept, in order, as the cleaned text.
"""

import logging
import re
from collections import Counter
from typing import Callable, Optional, Sequence, Union

from .models import (
    DetectionResult,
    EmbeddedContent,
    EmbeddedContentType,
    EmbeddedMetadata,
    SlackMessage,
)
from .patterns import (
    FILE_HOST,
    FILE_METADATA,
    METADATA_KEYWORD,
    find_url,
    is_bare_url,
    is_message_header,
    is_reaction_token,
    undouble_title,
)

logger = logging.getLogger(__name__)

Matcher = Callable[[list[str], int], Optional[EmbeddedContent]]

# Lookahead windows, counted in lines after the starting line
LINK_PREVIEW_LOOKAHEAD = 4
DOUBLED_TITLE_URL_DISTANCE = 2
FILE_ATTACHMENT_WINDOW = 10  # Includes the starting line
QUOTE_LOOKAHEAD = 4
REACTION_LOOKAHEAD = 4

FILE_LINK_LINE = re.compile(
    r"^\[(.*)\]\((.*)\)$|^(.*\.(pdf|doc|docx|zip|png|jpg|jpeg|gif))\s*$",
    re.IGNORECASE,
)
MARKDOWN_LINK = re.compile(r"^\[([^\]]*)\]\(([^)]*)\)$")
FILENAME = re.compile(r"([^/\s]+\.\w+)")
QUOTE_START = re.compile(r"^[A-Za-z\s]+$")


# =============================================================================
# Line predicates
# =============================================================================


def is_metadata_line(line: str) -> bool:
    """Short capitalised line or a known card keyword ("PDF", "Google Doc")."""
    stripped = line.strip()
    if METADATA_KEYWORD.match(stripped):
        return True
    return len(stripped) < 60 and stripped[:1].isupper()


def is_description_line(line: str) -> bool:
    stripped = line.strip()
    return (
        20 < len(stripped) < 200 and "[" not in stripped and "http" not in stripped
    )


def is_file_link(line: str) -> bool:
    stripped = line.strip()
    return bool(
        FILE_LINK_LINE.match(stripped)
        or FILE_HOST in stripped
        or "download/" in stripped
    )


def is_file_metadata(line: str) -> bool:
    return bool(FILE_METADATA.match(line.strip()))


def is_quote_start(line: str) -> bool:
    stripped = line.strip()
    return (
        bool(QUOTE_START.match(stripped))
        and len(stripped) < 100
        and ":" not in stripped
        and stripped[:1].isupper()
    )


def is_quote_content(line: str) -> bool:
    stripped = line.strip()
    return (
        len(stripped) < 200
        and "http" not in stripped
        and not is_message_header(stripped)
    )


# =============================================================================
# Metadata extraction
# =============================================================================


def extract_filename(line: str) -> Optional[str]:
    """Pull a filename out of a markdown link, URL path or plain text line."""
    stripped = line.strip()
    link = MARKDOWN_LINK.match(stripped)
    if link:
        match = FILENAME.search(link.group(1))
        if match:
            return match.group(1)
        stripped = link.group(2)

    url = find_url(stripped)
    if url:
        stripped = url.rstrip("/").rsplit("/", 1)[-1]
        if "." not in stripped:
            return None

    match = FILENAME.search(stripped)
    return match.group(1) if match else None


def extract_file_type(line: str) -> Optional[str]:
    lowered = line.lower()
    if "google doc" in lowered:
        return "Google Doc"
    if "pdf" in lowered:
        return "PDF"
    if "doc" in lowered:
        return "Document"
    if "zip" in lowered:
        return "Archive"
    return None


def _block(
    content_type: EmbeddedContentType,
    lines: list[str],
    start: int,
    metadata: Optional[EmbeddedMetadata] = None,
) -> EmbeddedContent:
    return EmbeddedContent(
        type=content_type,
        lines=lines,
        start_index=start,
        end_index=start + len(lines) - 1,
        metadata=metadata,
    )


# =============================================================================
# Matchers
# =============================================================================


def _collect_preview_details(lines: list[str], start: int, limit: int) -> list[str]:
    """Collect blank, metadata or description lines following a preview URL."""
    collected: list[str] = []
    for line in lines[start : min(len(lines), start + limit)]:
        if not line.strip() or is_metadata_line(line) or is_description_line(line):
            collected.append(line)
        else:
            break
    return collected


def match_link_preview(lines: list[str], index: int) -> Optional[EmbeddedContent]:
    """Match a bare URL with preview details, or a doubled card title + URL."""
    current = lines[index]

    title = undouble_title(current)
    if title is not None:
        window = lines[index + 1 : index + 1 + DOUBLED_TITLE_URL_DISTANCE]
        for offset, candidate in enumerate(window, start=1):
            if is_bare_url(candidate):
                url_index = index + offset
                details = _collect_preview_details(
                    lines, url_index + 1, LINK_PREVIEW_LOOKAHEAD
                )
                span = lines[index : url_index + 1] + details
                described = [line.strip() for line in details if line.strip()]
                return _block(
                    EmbeddedContentType.LINK_PREVIEW,
                    span,
                    index,
                    EmbeddedMetadata(
                        url=candidate.strip(),
                        title=title,
                        description=described[0] if described else None,
                    ),
                )
            if candidate.strip() and not is_metadata_line(candidate):
                break
        return None

    if not is_bare_url(current):
        return None

    details = _collect_preview_details(lines, index + 1, LINK_PREVIEW_LOOKAHEAD)
    if not details:
        return None

    described = [line.strip() for line in details if line.strip()]
    return _block(
        EmbeddedContentType.LINK_PREVIEW,
        [current] + details,
        index,
        EmbeddedMetadata(
            url=current.strip(),
            title=described[0] if described else None,
            description=described[1] if len(described) > 1 else None,
        ),
    )


def match_file_attachment(lines: list[str], index: int) -> Optional[EmbeddedContent]:
    """Match a run of file links and file metadata lines."""
    if not (is_file_link(lines[index]) or is_file_metadata(lines[index])):
        return None

    collected: list[str] = []
    metadata = EmbeddedMetadata()
    for line in lines[index : min(len(lines), index + FILE_ATTACHMENT_WINDOW)]:
        if not line.strip():
            collected.append(line)
            continue
        if not (is_file_link(line) or is_file_metadata(line)):
            break
        collected.append(line)
        if metadata.url is None:
            metadata.url = find_url(line)
        if metadata.filename is None:
            metadata.filename = extract_filename(line)
        if metadata.file_type is None:
            metadata.file_type = extract_file_type(line)

    return _block(
        EmbeddedContentType.FILE_ATTACHMENT,
        collected,
        index,
        metadata,
    )


def match_quoted_message(lines: list[str], index: int) -> Optional[EmbeddedContent]:
    """Match a short capitalised line and the quote lines that follow it."""
    if not is_quote_start(lines[index]):
        return None

    collected = [lines[index]]
    for line in lines[index + 1 : index + 1 + QUOTE_LOOKAHEAD]:
        if not line.strip() or is_quote_content(line):
            collected.append(line)
        else:
            break
    return _block(EmbeddedContentType.QUOTED_MESSAGE, collected, index)


def match_reactions(lines: list[str], index: int) -> Optional[EmbeddedContent]:
    """Match ``:emoji: N`` pairs and numeric-only continuation lines."""
    if not is_reaction_token(lines[index]):
        return None

    collected = [lines[index]]
    for line in lines[index + 1 : index + 1 + REACTION_LOOKAHEAD]:
        if not line.strip() or is_reaction_token(line):
            collected.append(line)
        else:
            break
    return _block(EmbeddedContentType.REACTIONS, collected, index)


DEFAULT_MATCHERS: tuple[Matcher, ...] = (
    match_link_preview,
    match_file_attachment,
    match_quoted_message,
    match_reactions,
)


# =============================================================================
# Detector
# =============================================================================


class EmbeddedContentDetector:
    """Segment message bodies into user prose and typed embedded blocks.

    Matchers are tried in the given order; the first one that claims the
    current line wins.
    """

    def __init__(
        self, matchers: Sequence[Matcher] = DEFAULT_MATCHERS, debug: bool = False
    ):
        self.matchers = tuple(matchers)
        self.debug = debug

    def _match(self, lines: list[str], index: int) -> Optional[EmbeddedContent]:
        for matcher in self.matchers:
            try:
                block = matcher(lines, index)
            except Exception as e:
                logger.warning(
                    "Matcher %s failed at line %d: %s",
                    getattr(matcher, "__name__", matcher),
                    index,
                    e,
                )
                continue
            if block is not None:
                return block
        return None

    def analyze_message(
        self, message: Union[str, SlackMessage]
    ) -> DetectionResult:
        text = message.text if isinstance(message, SlackMessage) else message
        lines = text.split("\n")

        kept: list[str] = []
        blocks: list[EmbeddedContent] = []
        index = 0
        while index < len(lines):
            if not lines[index].strip():
                kept.append(lines[index])
                index += 1
                continue

            block = self._match(lines, index)
            if block is None:
                kept.append(lines[index])
                index += 1
            else:
                blocks.append(block)
                index = block.end_index + 1

        if self.debug and blocks:
            counts = Counter(block.type.value for block in blocks)
            logger.debug(
                "Detected %d embedded block(s): %s",
                len(blocks),
                ", ".join(f"{name}={count}" for name, count in sorted(counts.items())),
            )

        return DetectionResult(
            message=message,
            embedded_content=blocks,
            has_embedded=bool(blocks),
            cleaned_text="\n".join(kept).strip(),
        )


def analyze_message(message: Union[str, SlackMessage]) -> DetectionResult:
    """Analyse one message body with the default matcher order."""
    return EmbeddedContentDetector().analyze_message(message)
