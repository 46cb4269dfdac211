from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from scoutfox.services.product_resolver import ProductResolution
from scoutfox.services.results import ProductListing, VideoContext, VideoResult
from scoutfox.services.search_orchestrator import ResolutionConfig

# Wire names are camelCase to stay compatible with the hosted proxy contract.
_WIRE_CONFIG = ConfigDict(
    extra="forbid",
    alias_generator=to_camel,
    populate_by_name=True,
)


def _normalize_optional_text(value: object) -> str | None:
    if not isinstance(value, str):
        return None
    normalized = value.strip()
    if not normalized:
        return None
    return normalized


class ResolutionOptions(BaseModel):
    model_config = _WIRE_CONFIG

    youtube_api_key: str | None = Field(default=None, max_length=200)
    use_own_key: bool = False
    groq_api_key: str | None = Field(default=None, max_length=200)
    bypass_cache: bool = False

    @field_validator("youtube_api_key", "groq_api_key", mode="before")
    @classmethod
    def _normalize_keys(cls, value: object) -> str | None:
        return _normalize_optional_text(value)

    def to_config(self) -> ResolutionConfig:
        return ResolutionConfig(
            youtube_api_key=self.youtube_api_key,
            use_own_key=self.use_own_key,
            groq_api_key=self.groq_api_key,
            bypass_cache=self.bypass_cache,
        )


class SearchRequest(BaseModel):
    model_config = _WIRE_CONFIG

    query: str = Field(min_length=1, max_length=500)
    api_key: str | None = Field(default=None, max_length=200)
    max_results: int | None = Field(default=None, ge=1, le=50)
    bypass_cache: bool = False

    @field_validator("query")
    @classmethod
    def _validate_query(cls, value: str) -> str:
        normalized = " ".join(value.split())
        if not normalized:
            raise ValueError("query must not be blank")
        return normalized

    @field_validator("api_key", mode="before")
    @classmethod
    def _normalize_api_key(cls, value: object) -> str | None:
        return _normalize_optional_text(value)


class SearchByProductRequest(BaseModel):
    model_config = _WIRE_CONFIG

    product_title: str = Field(max_length=1000)
    subtitle: str | None = Field(default=None, max_length=1000)
    optimize_title: bool = False
    options: ResolutionOptions = Field(default_factory=ResolutionOptions)

    @field_validator("subtitle", mode="before")
    @classmethod
    def _normalize_subtitle(cls, value: object) -> str | None:
        return _normalize_optional_text(value)


class ListingResolveRequest(BaseModel):
    model_config = _WIRE_CONFIG

    title: str = Field(max_length=1000)
    subtitle: str | None = Field(default=None, max_length=1000)
    asin: str | None = Field(default=None, max_length=20)
    optimize_title: bool = False
    options: ResolutionOptions = Field(default_factory=ResolutionOptions)

    @field_validator("subtitle", "asin", mode="before")
    @classmethod
    def _normalize_optional_fields(cls, value: object) -> str | None:
        return _normalize_optional_text(value)

    @field_validator("asin")
    @classmethod
    def _validate_asin(cls, value: str | None) -> str | None:
        if value is None:
            return None
        if not value.isalnum():
            raise ValueError("asin must be alphanumeric")
        return value.upper()

    def to_listing(self) -> ProductListing:
        return ProductListing(title=self.title, subtitle=self.subtitle, asin=self.asin)


class VideoResultModel(BaseModel):
    model_config = _WIRE_CONFIG

    video_id: str
    title: str
    channel_title: str
    thumbnail_url: str
    view_count: int
    like_count: int | None = None
    published_at: str

    @classmethod
    def from_result(cls, result: VideoResult) -> VideoResultModel:
        return cls(
            video_id=result.video_id,
            title=result.title,
            channel_title=result.channel_title,
            thumbnail_url=result.thumbnail_url,
            view_count=result.view_count,
            like_count=result.like_count,
            published_at=result.published_at,
        )


class SearchResponse(BaseModel):
    model_config = _WIRE_CONFIG

    success: bool = True
    results: list[VideoResultModel]

    @classmethod
    def from_results(cls, results: list[VideoResult]) -> SearchResponse:
        return cls(results=[VideoResultModel.from_result(result) for result in results])


class ExtractProductRequest(BaseModel):
    model_config = _WIRE_CONFIG

    video_title: str | None = Field(default=None, max_length=1000)
    description: str | None = Field(default=None, max_length=20_000)
    channel_name: str | None = Field(default=None, max_length=500)
    document_title: str | None = Field(default=None, max_length=1000)
    raw_text_blob: str | None = Field(default=None, max_length=50_000)

    @field_validator(
        "video_title",
        "description",
        "channel_name",
        "document_title",
        "raw_text_blob",
        mode="before",
    )
    @classmethod
    def _normalize_optional_fields(cls, value: object) -> str | None:
        return _normalize_optional_text(value)

    def to_context(self) -> VideoContext:
        return VideoContext(
            video_title=self.video_title,
            description=self.description,
            channel_name=self.channel_name,
            document_title=self.document_title,
            raw_text_blob=self.raw_text_blob,
        )


class ProductCandidateModel(BaseModel):
    model_config = _WIRE_CONFIG

    product_name: str
    confidence: float
    rationale: str | None = None
    search_url: str


class ExtractProductResponse(BaseModel):
    model_config = _WIRE_CONFIG

    source: Literal["ai", "fallback"]
    products: list[ProductCandidateModel]

    @classmethod
    def from_resolution(cls, resolution: ProductResolution) -> ExtractProductResponse:
        return cls(
            source=resolution.source,
            products=[
                ProductCandidateModel(
                    product_name=product.candidate.product_name,
                    confidence=product.candidate.confidence,
                    rationale=product.candidate.rationale,
                    search_url=product.search_url,
                )
                for product in resolution.products
            ],
        )


class QueriesRequest(BaseModel):
    model_config = _WIRE_CONFIG

    title: str = Field(max_length=1000)
    subtitle: str | None = Field(default=None, max_length=1000)


class QueriesResponse(BaseModel):
    model_config = _WIRE_CONFIG

    normalized_title: str
    query: str
    variants: list[str]
