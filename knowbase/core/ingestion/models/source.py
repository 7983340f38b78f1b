"""
Source domain model.

A Source is one unit of ingested content. Its details are a discriminated
union keyed on ``kind``; the shape of the details is fully determined by
the kind and a Source never changes kind after creation.

Dependencies: pydantic
System role: Typed representation of knowledge-base content
"""

import enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class SourceKind(str, enum.Enum):
    """Closed set of content kinds a knowledge base accepts."""

    FILE = "file"
    TEXT = "text"
    WEBSITE = "website"
    QA = "qa"
    NOTION = "notion"


class QAPair(BaseModel):
    """Single question/answer pair."""

    model_config = ConfigDict(frozen=True)

    question: str
    answer: str


class FileDetails(BaseModel):
    """Uploaded file stored in object storage."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["file"] = "file"
    file_url: str = Field(description="Stored object URL; the object key follows the path marker")
    mime_type: str = Field(description="Declared MIME type used for extractor dispatch")
    file_size: int | None = Field(default=None, description="Size in bytes")


class TextDetails(BaseModel):
    """Free text pasted by the user."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["text"] = "text"
    content: str


class WebsiteDetails(BaseModel):
    """Scraped web page, already converted to markdown by the crawler."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["website"] = "website"
    url: str
    content: str = ""


class QADetails(BaseModel):
    """Curated question/answer pairs."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["qa"] = "qa"
    pairs: list[QAPair] = Field(default_factory=list)


class NotionDetails(BaseModel):
    """Notion page; content is the exported page markdown when available."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["notion"] = "notion"
    url: str
    content: str = ""


SourceDetails = Annotated[
    Union[FileDetails, TextDetails, WebsiteDetails, QADetails, NotionDetails],
    Field(discriminator="kind"),
]


class Source(BaseModel):
    """One unit of ingested content belonging to a knowledge base."""

    model_config = ConfigDict(frozen=True)

    id: int
    knowledge_base_id: int
    name: str
    details: SourceDetails

    @property
    def kind(self) -> SourceKind:
        return SourceKind(self.details.kind)
