"""
Discory Backend — Release Lookup Schemas
=========================================

ReleaseCandidate is the provider-neutral result every lookup adapter
(Discogs, iTunes) maps its payload into. ReleaseLookup is what the scan
endpoints return; its camelCase keys prefill the "add item" form.
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from discory.schemas.common import ApiModel


class BarcodeScanRequest(BaseModel):
    barcode: Optional[str] = None


class TitleSearchRequest(BaseModel):
    title: Optional[str] = None
    artist: Optional[str] = None


class ReleaseCandidate(BaseModel):
    title: str
    artist: str
    genres: List[str] = Field(default_factory=list)
    year: Optional[int] = None
    cover_image: Optional[str] = None
    discogs_id: Optional[str] = None
    disc_count: int = 1
    vinyl_color: Optional[str] = None
    format: str = "vinyl"
    source: str


class ReleaseLookup(ApiModel):
    title: str
    artist: str
    genre: Optional[str] = None
    release_year: Optional[int] = Field(default=None, alias="releaseYear")
    cover_image: Optional[str] = Field(default=None, alias="coverImage")
    barcode: Optional[str] = None
    discogs_id: Optional[str] = Field(default=None, alias="discogsId")
    genres: List[str] = Field(default_factory=list)
    disc_count: int = Field(default=1, alias="discCount")
    vinyl_color: Optional[str] = Field(default=None, alias="vinylColor")
    format: str = "vinyl"
    source: str
