import asyncio
from typing import List, Optional

from bananaflow.core.Interface import GenerationResult, IGenerationClient

IMG1 = b"\x89PNG\r\n\x1a\nIMG1"


class StubGenerationClient(IGenerationClient):
    """Records every call. `gate`, when set, holds generate_from_text until released."""

    def __init__(self,
                 result: Optional[GenerationResult] = None,
                 raises: Optional[Exception] = None,
                 optimized: Optional[str] = None):
        self.result = result if result is not None else GenerationResult.success(IMG1)
        self.raises = raises
        self.optimized = optimized
        self.gate: Optional[asyncio.Event] = None
        self.text_prompts: List[str] = []
        self.image_calls: List[tuple] = []
        self.optimize_calls: List[str] = []

    @property
    def call_count(self) -> int:
        return len(self.text_prompts) + len(self.image_calls)

    async def generate_from_text(self, prompt: str) -> GenerationResult:
        self.text_prompts.append(prompt)
        if self.gate is not None:
            await self.gate.wait()
        if self.raises is not None:
            raise self.raises
        return self.result

    async def generate_from_image_and_text(self, prompt, source_image, mime_type="image/png"):
        self.image_calls.append((prompt, source_image, mime_type))
        if self.raises is not None:
            raise self.raises
        return self.result

    async def optimize_prompt(self, prompt: str) -> str:
        self.optimize_calls.append(prompt)
        return self.optimized if self.optimized is not None else prompt
