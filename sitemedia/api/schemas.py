from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from sitemedia.media.models import (
    FolderNode,
    ResolutionFailure,
    ResolvedMedia,
    TransformationSpec,
)
from sitemedia.media.render import RenderedElement, RenderSession


class TransformationParams(BaseModel):
    width: Optional[int] = Field(default=None, gt=0)
    height: Optional[int] = Field(default=None, gt=0)
    crop: Optional[str] = None
    gravity: Optional[str] = None
    quality: str = "auto"
    format: str = "auto"

    def to_spec(self) -> TransformationSpec:
        return TransformationSpec(
            width=self.width,
            height=self.height,
            crop=self.crop,
            gravity=self.gravity,
            quality=self.quality,
            format=self.format,
        )


class VariantOut(BaseModel):
    width: int
    url: str


class ResolvedMediaOut(BaseModel):
    logical_id: str
    cdn_object_id: str
    resource_type: Literal["image", "video"]
    is_video: bool
    url: str
    srcset: str = ""
    variants: List[VariantOut] = Field(default_factory=list)
    poster_url: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None
    title: Optional[str] = None
    alt_text: Optional[str] = None
    tier: str

    @classmethod
    def from_media(cls, media: ResolvedMedia) -> "ResolvedMediaOut":
        record = media.record
        return cls(
            logical_id=media.logical_id,
            cdn_object_id=record.cdn_object_id,
            resource_type=record.resource_type.value,
            is_video=record.is_video,
            url=media.url,
            srcset=media.srcset,
            variants=[VariantOut(width=width, url=url) for width, url in media.variants],
            poster_url=media.poster_url,
            width=media.spec.width or record.width,
            height=media.spec.height or record.height,
            title=record.title,
            alt_text=record.alt_text,
            tier=record.tier,
        )


class ResolutionFailureOut(BaseModel):
    logical_id: str
    reason: str
    tiers_tried: List[str] = Field(default_factory=list)
    fallback_url: str

    @classmethod
    def from_failure(cls, failure: ResolutionFailure, fallback_url: str) -> "ResolutionFailureOut":
        return cls(
            logical_id=failure.logical_id,
            reason=failure.reason,
            tiers_tried=list(failure.tiers_tried),
            fallback_url=fallback_url,
        )


class ElementOut(BaseModel):
    tag: Literal["img", "video"]
    src: str
    srcset: str = ""
    sizes: str = ""
    alt: str = ""
    width: Optional[int] = None
    height: Optional[int] = None
    poster: Optional[str] = None

    @classmethod
    def from_element(cls, element: RenderedElement) -> "ElementOut":
        return cls(
            tag=element.tag,
            src=element.src,
            srcset=element.srcset,
            sizes=element.sizes,
            alt=element.alt,
            width=element.width,
            height=element.height,
            poster=element.poster,
        )


class RenderedMediaOut(BaseModel):
    logical_id: str
    state: Literal["loaded", "failed"]
    attempts: int
    history: List[str]
    element: ElementOut
    error: Optional[str] = None

    @classmethod
    def from_session(cls, session: RenderSession) -> "RenderedMediaOut":
        return cls(
            logical_id=session.logical_id or "",
            state=session.state.value,
            attempts=session.attempts,
            history=[state.value for state in session.history],
            element=ElementOut.from_element(session.element),
            error=session.failure.reason if session.failure else None,
        )


class FolderNodeOut(BaseModel):
    name: str
    path: str
    children: List["FolderNodeOut"] = Field(default_factory=list)

    @classmethod
    def from_node(cls, node: FolderNode) -> "FolderNodeOut":
        return cls(
            name=node.name,
            path=node.path,
            children=[cls.from_node(child) for child in node.children],
        )


class FolderTreeOut(BaseModel):
    folders: List[FolderNodeOut]
    total_folders: int


FolderNodeOut.model_rebuild()
