"""Dish photo generation.

Providers (``settings.image_provider``):
- fal: Fal AI flux model over REST, result downloaded from the returned URL
- gemini: Google GenAI image model, PNG re-encoded to WebP
- mock: plain placeholder image, no network
"""

import io
import logging
from dataclasses import dataclass
from typing import Optional

import httpx
from google import genai
from google.genai import types
from PIL import Image

from ..errors import DownloadFailed, NoImageInResponse, ProviderError, ServiceUnavailable
from ..settings import settings

logger = logging.getLogger("recipebox.ai.images")

PROMPT_TEMPLATE = (
    "Professional food photography of {prompt}, appetizing presentation, "
    "natural lighting, shallow depth of field, high quality, on a beautiful plate"
)


@dataclass
class GeneratedImage:
    data: bytes
    content_type: str
    model: str
    prompt: str


def build_dish_prompt(prompt: str) -> str:
    return PROMPT_TEMPLATE.format(prompt=prompt)


def _to_webp(raw: bytes) -> bytes:
    img = Image.open(io.BytesIO(raw))
    buf = io.BytesIO()
    img.save(buf, format="WEBP", quality=85)
    return buf.getvalue()


class ImageClient:
    def __init__(
        self,
        provider: Optional[str] = None,
        http_client: Optional[httpx.Client] = None,
        timeout: float = 120.0,
    ):
        self.provider = (provider or settings.image_provider).lower()
        self._owns_client = http_client is None
        self.http_client = http_client or httpx.Client(timeout=timeout, follow_redirects=True)

    def close(self) -> None:
        if self._owns_client:
            self.http_client.close()

    def __enter__(self) -> "ImageClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def generate(self, prompt: str) -> GeneratedImage:
        full_prompt = build_dish_prompt(prompt)
        logger.info(f"Generating image provider={self.provider} prompt='{prompt[:50]}'")

        if self.provider == "fal":
            return self._generate_fal(full_prompt)
        if self.provider == "gemini":
            return self._generate_gemini(full_prompt)
        return self._generate_mock(full_prompt)

    def _generate_fal(self, full_prompt: str) -> GeneratedImage:
        if not settings.fal_api_key:
            raise ServiceUnavailable("FAL_API_KEY not configured")

        try:
            response = self.http_client.post(
                settings.fal_model_url,
                headers={
                    "Authorization": f"Key {settings.fal_api_key}",
                    "Content-Type": "application/json",
                },
                json={
                    "prompt": full_prompt,
                    "image_size": "landscape_4_3",
                    "num_images": 1,
                    "enable_safety_checker": False,
                    "output_format": "webp",
                },
            )
        except httpx.HTTPError as e:
            raise ProviderError(f"Fal AI error: {e}")

        if response.status_code >= 400:
            raise ProviderError(f"Fal AI error: {response.status_code} {response.text}")

        images = response.json().get("images") or []
        image_url = images[0].get("url") if images else None
        if not image_url:
            raise NoImageInResponse("No image URL in response")

        try:
            download = self.http_client.get(image_url)
        except httpx.HTTPError as e:
            raise DownloadFailed(f"Failed to download generated image: {e}")
        if download.status_code >= 400:
            raise DownloadFailed(f"Failed to download generated image: {download.status_code}")

        content_type = download.headers.get("content-type", "image/webp").split(";")[0]
        return GeneratedImage(
            data=download.content,
            content_type=content_type,
            model="fal-ai/flux-2",
            prompt=full_prompt,
        )

    def _generate_gemini(self, full_prompt: str) -> GeneratedImage:
        if not settings.gemini_api_key:
            raise ServiceUnavailable("GEMINI_API_KEY not configured")

        try:
            client = genai.Client(api_key=settings.gemini_api_key)
            response = client.models.generate_content(
                model=settings.gemini_model,
                contents=[full_prompt],
                config=types.GenerateContentConfig(response_modalities=["IMAGE"]),
            )
        except Exception as e:
            raise ProviderError(f"Gemini error: {e}")

        # Gemini returns parts that may include inline image data
        for part in getattr(response, "parts", None) or []:
            inline = getattr(part, "inline_data", None)
            if inline is not None and inline.data:
                return GeneratedImage(
                    data=_to_webp(inline.data),
                    content_type="image/webp",
                    model=settings.gemini_model,
                    prompt=full_prompt,
                )

        raise NoImageInResponse("Gemini returned no image data")

    def _generate_mock(self, full_prompt: str) -> GeneratedImage:
        # Warm plate-coloured placeholder so the pipeline works without paid calls
        img = Image.new("RGB", (64, 48), color=(222, 184, 135))
        buf = io.BytesIO()
        img.save(buf, format="WEBP")
        return GeneratedImage(
            data=buf.getvalue(),
            content_type="image/webp",
            model="mock",
            prompt=full_prompt,
        )
