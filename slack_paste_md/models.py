"""Models for parsed chat messages and embedded-content detection results.

Input records (produced by the line-boundary parser or loaded from JSON) are
pydantic models so they can be validated at the boundary. Detection results are
plain dataclasses created per analysis call.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# Parsed message records
# =============================================================================


class Reaction(BaseModel):
    name: str
    count: int = 1


class SlackMessage(BaseModel):
    """One message recovered from pasted chat-export text.

    Field aliases accept the camelCase keys used by exported JSON records.
    """

    model_config = ConfigDict(populate_by_name=True)

    username: str = "Unknown user"
    timestamp: Optional[str] = None
    text: str = ""
    date: Optional[str] = None  # Date context for relative timestamps
    avatar: Optional[str] = None
    reactions: list[Reaction] = Field(default_factory=list)
    thread_info: Optional[str] = Field(
        default=None, alias="threadInfo"
    )  # Raw thread text, e.g. "3 replies Last reply 2 days ago View thread"
    is_thread_reply: bool = Field(default=False, alias="isThreadReply")
    is_thread_start: bool = Field(default=False, alias="isThreadStart")
    is_edited: bool = Field(default=False, alias="isEdited")


# =============================================================================
# Embedded content
# =============================================================================


class EmbeddedContentType(str, Enum):
    """Kinds of platform-generated content found inside a message body."""

    LINK_PREVIEW = "link_preview"
    FILE_ATTACHMENT = "file_attachment"
    QUOTED_MESSAGE = "quoted_message"
    REACTIONS = "reactions"


@dataclass
class EmbeddedMetadata:
    url: Optional[str] = None
    filename: Optional[str] = None
    file_type: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None

    def to_dict(self) -> dict[str, str]:
        return {
            key: value
            for key, value in (
                ("url", self.url),
                ("filename", self.filename),
                ("file_type", self.file_type),
                ("title", self.title),
                ("description", self.description),
            )
            if value is not None
        }


@dataclass
class EmbeddedContent:
    """A contiguous span of lines classified as one kind of embedded content."""

    type: EmbeddedContentType
    lines: list[str]  # Raw lines, untrimmed
    start_index: int
    end_index: int  # Inclusive
    metadata: Optional[EmbeddedMetadata] = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "type": self.type.value,
            "lines": list(self.lines),
            "start_index": self.start_index,
            "end_index": self.end_index,
        }
        if self.metadata is not None:
            data["metadata"] = self.metadata.to_dict()
        return data


@dataclass
class DetectionResult:
    """Outcome of analysing one message body.

    cleaned_text joins every line not covered by an embedded span, in original
    order, then trims the result.
    """

    message: Union[str, SlackMessage]
    embedded_content: list[EmbeddedContent] = field(default_factory=list)
    has_embedded: bool = False
    cleaned_text: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "has_embedded": self.has_embedded,
            "cleaned_text": self.cleaned_text,
            "embedded_content": [block.to_dict() for block in self.embedded_content],
        }
