"""
Studio REST routes: text-to-image, image-to-image, prompt helpers, gallery
downloads and app mode.

All routes are mounted under /api by main.py. Blank prompts and missing
source images are refused here, before the generation client is called.
"""
from __future__ import annotations

import base64
import binascii
import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException, Response
from pydantic import BaseModel

from bananaflow.core.Types import AppMode
from bananaflow.server.gemini_client import strip_data_url
from bananaflow.server.serializers.graph_serializer import serialize_image
from bananaflow.server.state import studio_state

logger = logging.getLogger(__name__)

router = APIRouter()

STYLE_PRESETS = ["Cyberpunk", "Watercolor", "3D Render", "Pixel Art", "Chinese Landscape", "Ghibli Style"]

# full-width comma, as the prompt box joins style chips
STYLE_SEPARATOR = "，"


def apply_style(prompt: str, style: str) -> str:
    return prompt + (STYLE_SEPARATOR if prompt else "") + style


def _require_prompt(prompt: str) -> str:
    if not prompt or not prompt.strip():
        raise HTTPException(status_code=400, detail="Prompt cannot be empty")
    return prompt


def decode_image(data: str) -> bytes:
    """Decode a data URL or bare base64 string into image bytes."""
    try:
        decoded = base64.b64decode(strip_data_url(data.strip()), validate=True)
    except (binascii.Error, ValueError):
        raise HTTPException(status_code=400, detail="Invalid image data")
    if not decoded:
        raise HTTPException(status_code=400, detail="Source image is required")
    return decoded


def mime_from_data_url(data: str, default: str = "image/png") -> str:
    head, sep, _ = data.partition(",")
    if sep and head.startswith("data:") and ";" in head:
        return head[len("data:"):].split(";")[0] or default
    return default


# ── GET /modes, GET/PUT /mode ─────────────────────────────────────────────────

class ModeBody(BaseModel):
    mode: str


@router.get("/modes")
async def list_modes() -> List[str]:
    return [m.value for m in AppMode]


@router.get("/mode")
async def get_mode() -> Dict[str, Any]:
    return {"mode": studio_state.mode.value}


@router.put("/mode")
async def set_mode(body: ModeBody) -> Dict[str, Any]:
    try:
        studio_state.mode = AppMode(body.mode)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Unknown mode '{body.mode}'")
    return {"mode": studio_state.mode.value}


# ── GET /styles, POST /prompts/style ──────────────────────────────────────────

class StyleBody(BaseModel):
    prompt: str = ""
    style: str


@router.get("/styles")
async def list_styles() -> List[str]:
    return STYLE_PRESETS


@router.post("/prompts/style")
async def add_style(body: StyleBody) -> Dict[str, Any]:
    return {"prompt": apply_style(body.prompt, body.style)}


# ── POST /prompts/optimize ────────────────────────────────────────────────────

class PromptBody(BaseModel):
    prompt: str


@router.post("/prompts/optimize")
async def optimize_prompt(body: PromptBody) -> Dict[str, Any]:
    prompt = _require_prompt(body.prompt)
    optimized = await studio_state.generation_client.optimize_prompt(prompt)
    return {"prompt": optimized, "original": prompt}


# ── POST /generate/text ───────────────────────────────────────────────────────

@router.post("/generate/text", status_code=201)
async def generate_text_to_image(body: PromptBody) -> Dict[str, Any]:
    prompt = _require_prompt(body.prompt)

    result = await studio_state.generation_client.generate_from_text(prompt)
    if not result.ok:
        logger.info("text-to-image failed: %s", result.error)
        raise HTTPException(status_code=502, detail=result.error)

    image = studio_state.add_image(result.image, result.mime_type, prompt, "text")
    return serialize_image(image)


# ── POST /generate/image ──────────────────────────────────────────────────────

class ImageToImageBody(BaseModel):
    prompt: str
    image: Optional[str] = None
    mimeType: Optional[str] = None


@router.post("/generate/image", status_code=201)
async def generate_image_to_image(body: ImageToImageBody) -> Dict[str, Any]:
    prompt = _require_prompt(body.prompt)
    if not body.image or not body.image.strip():
        raise HTTPException(status_code=400, detail="Source image is required")

    source = decode_image(body.image)
    mime_type = body.mimeType or mime_from_data_url(body.image)

    result = await studio_state.generation_client.generate_from_image_and_text(prompt, source, mime_type)
    if not result.ok:
        logger.info("image-to-image failed: %s", result.error)
        raise HTTPException(status_code=502, detail=result.error)

    image = studio_state.add_image(result.image, result.mime_type, prompt, "image")
    return serialize_image(image)


# ── GET /images, GET /images/:id/download ─────────────────────────────────────

@router.get("/images")
async def list_images() -> List[Dict[str, Any]]:
    return [serialize_image(i) for i in studio_state.list_images()]


@router.get("/images/{image_id}/download")
async def download_image(image_id: str) -> Response:
    image = studio_state.get_image(image_id)
    if image is None:
        raise HTTPException(status_code=404, detail="Image not found")
    return Response(
        content=image.data,
        media_type=image.mime_type,
        headers={"Content-Disposition": f'attachment; filename="{image.filename}"'},
    )
