"""
Shared types for the ImagePipe API.
Records passed between the compression engine, the fetch/normalize
pipeline and the HTTP layer.
"""
from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel
from typing import List, Optional, Literal, Any, Dict


OutputFormat = Literal["webp", "jpeg", "png"]


class CompressionOptions(BaseModel):
    """Per-call compression settings. Accepts snake_case or camelCase keys."""
    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    max_width: int = Field(1920, gt=0, description="Maximum output width in pixels")
    max_height: int = Field(1080, gt=0, description="Maximum output height in pixels")
    target_size_kb: float = Field(150, gt=0, alias="targetSizeKB", description="Byte budget the quality search aims for")
    min_quality: float = Field(0.3, gt=0.0, le=1.0)
    max_quality: float = Field(0.9, gt=0.0, le=1.0)
    output_format: OutputFormat = "webp"

    @model_validator(mode="after")
    def _check_quality_range(self):
        if self.min_quality > self.max_quality:
            raise ValueError(
                f"min_quality ({self.min_quality}) must not exceed max_quality ({self.max_quality})"
            )
        return self

    @property
    def target_bytes(self) -> int:
        return int(round(self.target_size_kb * 1024))

    @property
    def mime_type(self) -> str:
        return f"image/{self.output_format}"


def resolve_options(options: Any = None, **overrides) -> CompressionOptions:
    """
    Build a fresh CompressionOptions from field defaults, then `options`,
    then keyword overrides. None values mean "use the default".

    Raises:
        pydantic.ValidationError: If the merged values break an invariant
    """
    merged: Dict[str, Any] = {}
    if isinstance(options, CompressionOptions):
        merged.update(options.model_dump())
    elif options:
        merged.update({k: v for k, v in dict(options).items() if v is not None})
    merged.update({k: v for k, v in overrides.items() if v is not None})
    return CompressionOptions(**merged)


class ImageFile(BaseModel):
    """A user-selected image file held in memory."""
    name: str = "image"
    data: bytes
    content_type: Optional[str] = None

    @property
    def size(self) -> int:
        return len(self.data)


class CompressionResult(BaseModel):
    """Outcome of compressing one file. width/height are 0 when no decode happened."""
    output_bytes: bytes
    file_name: str
    content_type: Optional[str] = None
    original_size_bytes: int
    compressed_size_bytes: int
    compression_ratio: float
    width: int = 0
    height: int = 0

    def summary(self) -> Dict[str, Any]:
        """JSON-safe view without the payload bytes."""
        return self.model_dump(exclude={"output_bytes"})


class MimeResolution(BaseModel):
    """Resolved MIME type plus which rule produced it."""
    mime_type: str
    source: Literal["transport", "extension", "default"]


class NormalizedImage(BaseModel):
    """Bytes ready for embedding. outcome="failed" means transcoding fell back to the original."""
    data: bytes
    mime_type: str
    outcome: Literal["converted", "passthrough", "failed"]


class ConversionBatchResult(BaseModel):
    """Per-URL payloads, index-aligned with the request; None where conversion failed."""
    items: List[Optional[str]]
    total: int
    converted: int
    failed: int

    @model_validator(mode="after")
    def _check_counts(self):
        if self.total != len(self.items) or self.converted + self.failed != self.total:
            raise ValueError("batch counts do not add up")
        return self

    @classmethod
    def from_items(cls, items: List[Optional[str]]) -> "ConversionBatchResult":
        converted = sum(1 for item in items if item is not None)
        return cls(items=items, total=len(items), converted=converted, failed=len(items) - converted)

    @property
    def images(self) -> List[str]:
        return [item for item in self.items if item is not None]

    @property
    def success_rate(self) -> float:
        return (self.converted / self.total * 100) if self.total else 0.0


class StoredAsset(BaseModel):
    """Descriptor returned by the storage collaborator after upload."""
    url: str
    path: str = Field(..., min_length=1, description="Identifier used for deletion")
    name: Optional[str] = None
    size: Optional[int] = None
    content_type: Optional[str] = None
