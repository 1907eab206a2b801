"""Pasta Data Transfer Objects."""

from enum import Enum

from pydantic import BaseModel, ConfigDict


class ContentKind(str, Enum):
    TEXT = "text"
    URL = "url"


class PastaFile(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    size: int


class Pasta(BaseModel):
    id: int
    content: str = ""
    kind: ContentKind = ContentKind.TEXT
    file: PastaFile | None = None
    extension: str = ""
    private: bool = False
    editable: bool = False
    created: int
    expiration: int = 0
    burn_after_reads: int = 0
    read_count: int = 0
    last_read: int

    def is_expired(self, now: int) -> bool:
        return self.expiration != 0 and self.expiration <= now

    def is_burned(self) -> bool:
        return self.burn_after_reads > 0 and self.read_count >= self.burn_after_reads


class PastaSummary(BaseModel):
    slug: str
    kind: ContentKind
    created: int
    expiration: int
    burn_after_reads: int
    read_count: int
    file: PastaFile | None = None
