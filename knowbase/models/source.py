"""
Source schemas.

Request/response schemas for replacing and listing the sources of a
knowledge base. Field names are camelCase on the wire.

Dependencies: pydantic
System role: Source API contracts
"""

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from knowbase.core.ingestion.models import QAPair, Source, SourceKind


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TextSourceInput(_CamelModel):
    name: str = "Text"
    content: str = Field(min_length=1)


class FileSourceInput(_CamelModel):
    name: str
    file_url: str = Field(description="Stored object URL")
    mime_type: str = Field(description="Declared MIME type")
    file_size: int | None = Field(default=None, ge=0)


class WebsiteSourceInput(_CamelModel):
    name: str | None = None
    url: str
    content: str = Field(default="", description="Scraped markdown")


class QASourceInput(_CamelModel):
    name: str = "Q&A"
    pairs: list[QAPair] = Field(
        min_length=1,
        validation_alias=AliasChoices("pairs", "qaPairs", "qa_pairs"),
    )


class NotionSourceInput(_CamelModel):
    name: str = "Notion"
    url: str
    content: str = ""


class ReplaceSourcesRequest(_CamelModel):
    """Complete new content of a knowledge base."""

    text: TextSourceInput | None = None
    files: list[FileSourceInput] = Field(default_factory=list)
    websites: list[WebsiteSourceInput] = Field(default_factory=list)
    qa: QASourceInput | None = None
    notion: NotionSourceInput | None = None


class SourceResponse(BaseModel):
    """Response schema for a stored source."""

    id: int
    knowledge_base_id: int
    kind: SourceKind
    name: str

    @classmethod
    def from_source(cls, source: Source) -> "SourceResponse":
        return cls(
            id=source.id,
            knowledge_base_id=source.knowledge_base_id,
            kind=source.kind,
            name=source.name,
        )


class ReplaceSourcesResponse(BaseModel):
    """Created sources and the run ingesting them (None when nothing to ingest)."""

    run_id: str | None
    sources: list[SourceResponse]


class SourceListResponse(BaseModel):
    sources: list[SourceResponse]
    total: int
