from __future__ import annotations
from typing import Optional

from abc import ABC, abstractmethod


class GenerationResult:
    """
    Outcome of a single image generation call. Exactly one of `image` or
    `error` is set; callers only ever display the error string.
    """
    def __init__(self,
                 image: Optional[bytes] = None,
                 error: Optional[str] = None,
                 mime_type: str = "image/png"):
        self.image = image
        self.error = error
        self.mime_type = mime_type

    @classmethod
    def success(cls, image: bytes, mime_type: str = "image/png") -> 'GenerationResult':
        return cls(image=image, mime_type=mime_type)

    @classmethod
    def failure(cls, error: str) -> 'GenerationResult':
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.image is not None and self.error is None

    def __repr__(self):
        if self.ok:
            return f"GenerationResult(image=<{len(self.image)} bytes {self.mime_type}>)"
        return f"GenerationResult(error={self.error!r})"


class IGenerationClient(ABC):
    """Boundary to the external image generation service."""

    @abstractmethod
    async def generate_from_text(self, prompt: str) -> GenerationResult:
        pass

    @abstractmethod
    async def generate_from_image_and_text(self,
                                           prompt: str,
                                           source_image: bytes,
                                           mime_type: str = "image/png") -> GenerationResult:
        pass

    # Best effort rewrite. Must return the original prompt on any failure.
    @abstractmethod
    async def optimize_prompt(self, prompt: str) -> str:
        pass
