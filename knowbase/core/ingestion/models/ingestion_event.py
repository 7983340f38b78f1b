"""
Ingestion event schema.

Validates the event that triggers one pipeline run: the knowledge base ID
and, per kind, the new or changed sources. Accepts the camelCase wire form
produced by the source-creation action.

Dependencies: pydantic
System role: Data validation and contract definition for pipeline triggers
"""

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from knowbase.core.ingestion.models.source import (
    FileDetails,
    NotionDetails,
    QADetails,
    QAPair,
    Source,
    SourceKind,
    TextDetails,
    WebsiteDetails,
)


class _EventModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TextSourcePayload(_EventModel):
    id: int
    name: str
    content: str


class FileSourcePayload(_EventModel):
    id: int
    name: str
    file_url: str
    mime_type: str
    file_size: int | None = None


class WebsiteSourcePayload(_EventModel):
    id: int
    name: str
    url: str
    content: str = ""


class QASourcePayload(_EventModel):
    id: int
    name: str
    pairs: list[QAPair] = Field(
        default_factory=list,
        validation_alias=AliasChoices("pairs", "qaPairs", "qa_pairs"),
    )


class NotionSourcePayload(_EventModel):
    id: int
    name: str
    url: str
    content: str = ""


class EventSources(_EventModel):
    """New or changed sources grouped by kind."""

    text: TextSourcePayload | None = None
    files: list[FileSourcePayload] = Field(default_factory=list)
    websites: list[WebsiteSourcePayload] = Field(default_factory=list)
    qa: QASourcePayload | None = None
    notion: NotionSourcePayload | None = None


class IngestionEvent(_EventModel):
    """Event body consumed by the pipeline orchestrator."""

    knowledge_base_id: int
    sources: EventSources = Field(default_factory=EventSources)

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "knowledgeBaseId": 42,
                "sources": {
                    "text": {"id": 1, "name": "Text", "content": "Refunds are processed within 5 days."},
                    "files": [
                        {
                            "id": 2,
                            "name": "handbook.pdf",
                            "fileUrl": "https://storage.example.com/object/files/42/handbook.pdf",
                            "mimeType": "application/pdf",
                            "fileSize": 1024000,
                        }
                    ],
                    "websites": [],
                    "qa": {"id": 3, "name": "FAQ", "pairs": [{"question": "What is X?", "answer": "Y"}]},
                    "notion": None,
                },
            }
        },
    )

    def to_sources(self) -> list[Source]:
        """
        Flatten the event into typed Sources.

        Order: files, text, Q&A, websites, notion.

        Returns:
            list[Source]: Sources in batch order
        """
        kb_id = self.knowledge_base_id
        batch = self.sources
        sources = [
            Source(
                id=f.id,
                knowledge_base_id=kb_id,
                name=f.name,
                details=FileDetails(file_url=f.file_url, mime_type=f.mime_type, file_size=f.file_size),
            )
            for f in batch.files
        ]
        if batch.text is not None:
            sources.append(
                Source(
                    id=batch.text.id,
                    knowledge_base_id=kb_id,
                    name=batch.text.name,
                    details=TextDetails(content=batch.text.content),
                )
            )
        if batch.qa is not None:
            sources.append(
                Source(
                    id=batch.qa.id,
                    knowledge_base_id=kb_id,
                    name=batch.qa.name,
                    details=QADetails(pairs=batch.qa.pairs),
                )
            )
        sources.extend(
            Source(
                id=w.id,
                knowledge_base_id=kb_id,
                name=w.name,
                details=WebsiteDetails(url=w.url, content=w.content),
            )
            for w in batch.websites
        )
        if batch.notion is not None:
            sources.append(
                Source(
                    id=batch.notion.id,
                    knowledge_base_id=kb_id,
                    name=batch.notion.name,
                    details=NotionDetails(url=batch.notion.url, content=batch.notion.content),
                )
            )
        return sources

    @classmethod
    def from_sources(cls, knowledge_base_id: int, sources: list[Source]) -> "IngestionEvent":
        """
        Build an event from persisted Sources.

        Args:
            knowledge_base_id: Owning knowledge base
            sources: Sources to ingest (at most one text, Q&A and notion source)

        Returns:
            IngestionEvent: Event ready to enqueue

        Raises:
            ValueError: Source from another knowledge base, or duplicate singleton kind
        """
        batch = EventSources()
        for source in sources:
            if source.knowledge_base_id != knowledge_base_id:
                raise ValueError(
                    f"Source {source.id} belongs to knowledge base {source.knowledge_base_id}"
                )
            details = source.details
            match details:
                case FileDetails():
                    batch.files.append(
                        FileSourcePayload(
                            id=source.id,
                            name=source.name,
                            file_url=details.file_url,
                            mime_type=details.mime_type,
                            file_size=details.file_size,
                        )
                    )
                case TextDetails():
                    _ensure_single(batch.text, SourceKind.TEXT)
                    batch.text = TextSourcePayload(id=source.id, name=source.name, content=details.content)
                case QADetails():
                    _ensure_single(batch.qa, SourceKind.QA)
                    batch.qa = QASourcePayload(id=source.id, name=source.name, pairs=details.pairs)
                case WebsiteDetails():
                    batch.websites.append(
                        WebsiteSourcePayload(
                            id=source.id, name=source.name, url=details.url, content=details.content
                        )
                    )
                case NotionDetails():
                    _ensure_single(batch.notion, SourceKind.NOTION)
                    batch.notion = NotionSourcePayload(
                        id=source.id, name=source.name, url=details.url, content=details.content
                    )
        return cls(knowledge_base_id=knowledge_base_id, sources=batch)


def _ensure_single(existing: object, kind: SourceKind) -> None:
    if existing is not None:
        raise ValueError(f"An ingestion event carries at most one {kind.value} source")
