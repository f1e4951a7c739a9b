"""Rewrite pasted attachment and link-preview fragments into compact Markdown.

Rewrites run in a fixed order over the whole message body:
1. File uploads ("Alice uploaded a file: report.pdf")
2. Image lines ("Image from iOS", ``![alt](url)``)
3. Link-preview cards (title, URL, description, card metadata)
4. "Added by" service notices
5. File-count lines (left as they are)
6. Standalone avatar images

Each rewrite is guarded on its own, so a failure leaves that rewrite's input
untouched and the next one still runs.
"""

import logging
import re
from dataclasses import dataclass
from typing import Callable, Optional
from urllib.parse import urlparse

from .patterns import (
    AVATAR_HOST,
    EMOJI_CODE_LINE,
    GITHUB_METADATA,
    NAME_WITH_TIMESTAMP_LINK,
    REACTION_IMAGE_LINE,
    THREAD_NAVIGATION,
    is_avatar_line,
    is_bare_url,
    is_time_token,
    undouble_title,
)

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = {"png", "jpg", "jpeg", "gif", "webp", "svg"}
DOCUMENT_EXTENSIONS = {"pdf", "doc", "docx", "xls", "xlsx", "ppt", "pptx"}
CODE_EXTENSIONS = {"js", "ts", "py", "java", "c", "cpp", "go", "rs", "rb", "php"}

FILE_UPLOAD = re.compile(r"^(.+?)\s+uploaded a file:\s*(.+)$", re.IGNORECASE)
IMAGE_FROM_SOURCE = re.compile(r"^Image from (iOS|Android|Desktop)$", re.IGNORECASE)
IMAGE_MARKDOWN = re.compile(r"^!\[([^\]]*)\]\(([^)]+)\)$")
CUSTOM_EMOJI_ALT = re.compile(r"^:[\w+-]+:$")
KNOWN_PREVIEW_TITLE = re.compile(
    r"^(?:Google Docs|Notion|GitHub|Twitter|YouTube|Wikipedia|Stack Overflow)",
    re.IGNORECASE,
)
REPO_NAME = re.compile(r"^[\w-]+/[\w-]+$")
ADDED_BY_GITHUB = re.compile(r"^Added by \[GitHub\]$", re.IGNORECASE)
PREVIEW_DESCRIPTION = re.compile(r"^.{10,500}$")
ADDED_BY_SERVICE = re.compile(r"📎\s*Added by\s*\[([^\]]+)\]\([^)]+\)")
FILE_COUNT = re.compile(r"📎\s*(\d+)\s*files?")

ATTACHMENT_METADATA = (
    re.compile(r"^\s*\[\s*$"),
    re.compile(r"^\s*\]\(https?://[^)]+\)\s*$"),
    re.compile(r"^\d+\s+files?$", re.IGNORECASE),
    re.compile(r"^Download$", re.IGNORECASE),
    re.compile(r"^Open in browser$", re.IGNORECASE),
    re.compile(r"^Preview not available$", re.IGNORECASE),
    re.compile(r"^File type: .+$", re.IGNORECASE),
    re.compile(r"^File size: .+$", re.IGNORECASE),
    re.compile(r"^Language$"),
    re.compile(r"^TypeScript$"),
    re.compile(r"^Last updated$"),
    re.compile(
        r"^\d+\s+(?:minutes?|hours?|days?|weeks?|months?|years?)\s+ago$",
        re.IGNORECASE,
    ),
)

PREVIEW_URL_DISTANCE = 2
REPO_METADATA_DISTANCE = 4
AVATAR_CONTEXT_LINES = 4
DESCRIPTION_DISPLAY_LIMIT = 100


@dataclass
class AttachmentResult:
    content: str
    modified: bool


def is_attachment_metadata(line: str) -> bool:
    """Check if a line is card or file chrome rather than message content."""
    stripped = line.strip()
    if is_avatar_line(stripped):
        return True
    return any(pattern.match(stripped) for pattern in ATTACHMENT_METADATA)


def upload_emoji(filename: str) -> str:
    """Pick an emoji for an uploaded file based on its extension."""
    extension = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
    if extension in IMAGE_EXTENSIONS:
        return "🖼️"
    if extension in DOCUMENT_EXTENSIONS:
        return "📄"
    if extension in CODE_EXTENSIONS:
        return "💻"
    return "📎"


def format_link_preview(
    title: Optional[str], url: Optional[str], description: Optional[str]
) -> Optional[str]:
    """Render extracted preview data as a single Markdown line."""
    if title and url:
        line = f"🔗 [{title}]({url})"
    elif url:
        line = f"🔗 <{url}>"
    elif title:
        line = f"🔗 **{title}**"
    else:
        return None

    if description:
        if len(description) > DESCRIPTION_DISPLAY_LIMIT:
            description = description[:DESCRIPTION_DISPLAY_LIMIT] + "..."
        line += f" — _{description}_"
    return line


def _ends_before(lines: list[str], index: int) -> bool:
    """Check if the line at index signals that a preview card has finished."""
    if index >= len(lines):
        return False
    next_line = lines[index].strip()
    return bool(
        REACTION_IMAGE_LINE.match(next_line)
        or EMOJI_CODE_LINE.match(next_line)
        or is_avatar_line(next_line)
        or NAME_WITH_TIMESTAMP_LINK.match(next_line)
        or is_time_token(next_line)
        or THREAD_NAVIGATION.match(next_line)
    )


class AttachmentNormalizer:
    """Turn attachment, image and link-preview fragments into Markdown."""

    def __init__(self) -> None:
        self.rewrites: tuple[tuple[str, Callable[[list[str]], list[str]]], ...] = (
            ("file uploads", self._process_file_uploads),
            ("images", self._process_images),
            ("link previews", self._process_link_previews),
            ("added-by notices", self._process_added_by),
            ("file counts", self._process_file_counts),
            ("avatars", self._process_avatars),
        )

    def process(self, text: str) -> AttachmentResult:
        try:
            lines = text.split("\n")
            for name, rewrite in self.rewrites:
                try:
                    lines = rewrite(lines)
                except Exception as e:
                    logger.warning("Attachment rewrite '%s' failed: %s", name, e)
            content = "\n".join(lines)
        except Exception as e:
            logger.warning("Attachment processing failed: %s", e)
            return AttachmentResult(content=text, modified=False)
        return AttachmentResult(content=content, modified=content != text)

    # -------------------------------------------------------------------------
    # Uploads and images
    # -------------------------------------------------------------------------

    def _process_file_uploads(self, lines: list[str]) -> list[str]:
        output = []
        for line in lines:
            match = FILE_UPLOAD.match(line.strip())
            if match:
                user, filename = match.group(1).strip(), match.group(2).strip()
                line = f"{upload_emoji(filename)} {user} uploaded: **{filename}**"
            output.append(line)
        return output

    def _process_images(self, lines: list[str]) -> list[str]:
        return [self._rewrite_image_line(line) for line in lines]

    def _rewrite_image_line(self, line: str) -> str:
        stripped = line.strip()
        source = IMAGE_FROM_SOURCE.match(stripped)
        if source:
            return f"🖼️ _{source.group(0)}_"

        image = IMAGE_MARKDOWN.match(stripped)
        if not image:
            return line
        alt, url = image.group(1), image.group(2).strip()
        if AVATAR_HOST in url or CUSTOM_EMOJI_ALT.match(alt):
            return line
        try:
            parsed = urlparse(url)
        except ValueError as e:
            logger.warning("Leaving image with unparseable URL %r: %s", url, e)
            return line
        if not parsed.scheme or not parsed.netloc:
            logger.warning("Leaving image with invalid URL %r", url)
            return line
        return f"![{alt.strip() or 'Image'}]({url})"

    # -------------------------------------------------------------------------
    # Link previews
    # -------------------------------------------------------------------------

    def _preview_title(self, lines: list[str], index: int) -> Optional[str]:
        """Return the card title if a preview starts at index, else None."""
        stripped = lines[index].strip()
        if not stripped:
            return None

        if KNOWN_PREVIEW_TITLE.match(stripped):
            following = lines[index + 1 : index + 1 + PREVIEW_URL_DISTANCE]
            if any(is_bare_url(line) for line in following):
                return stripped

        if REPO_NAME.match(stripped):
            following = lines[index + 1 : index + 1 + REPO_METADATA_DISTANCE]
            if any(GITHUB_METADATA.match(line.strip()) for line in following):
                return stripped

        title = undouble_title(stripped)
        if title is not None:
            following = lines[index + 1 : index + 1 + PREVIEW_URL_DISTANCE]
            if any(
                is_bare_url(line) or GITHUB_METADATA.match(line.strip())
                for line in following
            ):
                return title
        return None

    def _is_description(self, line: str) -> bool:
        return bool(
            PREVIEW_DESCRIPTION.match(line)
            and not is_attachment_metadata(line)
            and not GITHUB_METADATA.match(line)
            and not NAME_WITH_TIMESTAMP_LINK.match(line)
            and not THREAD_NAVIGATION.match(line)
        )

    def _process_link_previews(self, lines: list[str]) -> list[str]:
        output: list[str] = []
        index = 0
        while index < len(lines):
            title = self._preview_title(lines, index)
            if title is None:
                output.append(lines[index])
                index += 1
                continue

            url: Optional[str] = None
            description: Optional[str] = None
            index += 1
            while index < len(lines) and not _ends_before(lines, index):
                stripped = lines[index].strip()
                if not stripped:
                    break
                if ADDED_BY_GITHUB.match(stripped):
                    index += 1
                    break
                if is_bare_url(stripped):
                    if url is not None:
                        break
                    url = stripped
                elif description is None and self._is_description(stripped):
                    description = stripped
                elif not (
                    is_attachment_metadata(stripped)
                    or GITHUB_METADATA.match(stripped)
                    or stripped == title
                ):
                    break
                index += 1

            formatted = format_link_preview(title, url, description)
            if formatted is not None:
                output.append(formatted)
        return output

    # -------------------------------------------------------------------------
    # Notices and avatars
    # -------------------------------------------------------------------------

    def _process_added_by(self, lines: list[str]) -> list[str]:
        return [ADDED_BY_SERVICE.sub(r"📎 _Added by \1_", line) for line in lines]

    def _process_file_counts(self, lines: list[str]) -> list[str]:
        count = sum(1 for line in lines if FILE_COUNT.search(line))
        if count:
            logger.debug("Keeping %d file-count line(s) as-is", count)
        return lines

    def _process_avatars(self, lines: list[str]) -> list[str]:
        output = []
        for index, line in enumerate(lines):
            if not is_avatar_line(line):
                output.append(line)
                continue

            following = lines[index + 1 : index + 1 + AVATAR_CONTEXT_LINES]
            next_line = following[0].strip() if following else ""
            has_header = bool(NAME_WITH_TIMESTAMP_LINK.match(next_line))
            has_content = any(
                len(candidate.strip()) > 20
                and not is_attachment_metadata(candidate)
                for candidate in following
            )
            if has_header or has_content:
                output.append(f"<!-- Avatar: {line.strip()} -->")
        return output
