from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union


@dataclass(frozen=True, slots=True)
class Identity:
    """Browser identity used for one outbound search attempt."""

    user_agent: str
    proxy: Optional[str] = None

    @property
    def proxy_label(self) -> str:
        """Proxy address safe for logs (credentials stripped)."""
        if not self.proxy:
            return "direct"
        return self.proxy.split("@")[-1]


@dataclass(frozen=True, slots=True)
class SearchSession:
    """Short-lived provider token, valid for one attempt only."""

    token: str


@dataclass(frozen=True, slots=True)
class RawImageResult:
    """One unfiltered entry of the provider's image results."""

    image: Optional[str]
    url: Optional[str] = None
    title: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None

    @classmethod
    def from_provider(cls, item: Dict[str, Any]) -> "RawImageResult":
        return cls(
            image=item.get("image") or None,
            url=item.get("url") or None,
            title=item.get("title") or None,
            width=item.get("width"),
            height=item.get("height"),
        )


@dataclass(frozen=True, slots=True)
class SearchCandidate:
    """Discovered image reference awaiting acquisition."""

    image_url: str
    source_url: Optional[str]
    title: str = "Untitled"


@dataclass(frozen=True, slots=True)
class TransformedImage:
    data: bytes
    content_type: str
    extension: str
    width: Optional[int] = None
    height: Optional[int] = None
    transformed: bool = True
    watermarked: bool = False


@dataclass(frozen=True, slots=True)
class StoredImage:
    public_url: str
    title: str
    source_url: Optional[str]
    original_url: str
    key: str


@dataclass(frozen=True, slots=True)
class FailedImage:
    index: int
    original_url: str
    reason: str
    error_type: str = field(default="Exception")


FetchResult = Union[StoredImage, FailedImage]
