# petsynth/services/image_generation_service.py
import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional
from urllib.parse import quote

import requests
from flask import Flask
from openai import OpenAI
from werkzeug.utils import secure_filename

from petsynth.services.prompts import build_image_prompt
from petsynth.services.storage_service import LocalImageStorage, generate_image_filename
from petsynth.utils.datetime_utils import now_ms

PLACEHOLDER_BASE_URL = "https://placehold.co/640x480"
# characters encodeURIComponent leaves as is
PLACEHOLDER_SAFE_CHARS = "!~*'()"

FAL_URL = "https://fal.run/fal-ai/flux/dev"
STABILITY_URL = "https://api.stability.ai/v1/generation/stable-diffusion-xl-1024-v1-0/text-to-image"
REPLICATE_PREDICTIONS_URL = "https://api.replicate.com/v1/predictions"
REPLICATE_MODEL_VERSION = "black-forest-labs/flux-schnell"


@dataclass
class ImageResult:
    image_url: str
    warning: Optional[str] = None


class MissingCredentialError(Exception):
    """The selected image provider has no API key configured."""


def placeholder_text(image_prompt: Optional[str], name: Optional[str] = None) -> str:
    if name is not None:
        return name
    return (image_prompt or "")[:40]


def placeholder_image(text: str) -> str:
    """Deterministic placeholder URL carrying the (URL-encoded) text."""
    return f"{PLACEHOLDER_BASE_URL}?text={quote(text or '', safe=PLACEHOLDER_SAFE_CHARS)}"


class ImageProvider:
    """
    Strategy interface: one implementation per image backend.
    generate() returns an image URL or raises; the service turns failures into placeholders.
    """
    name = "base"
    label = "image provider"
    credential = "API key"

    def __init__(self, api_key: Optional[str] = None, timeout: float = 25):
        self.api_key = api_key
        self.timeout = timeout

    def require_key(self) -> str:
        if not self.api_key:
            raise MissingCredentialError(f"{self.label} {self.credential} not configured")
        return self.api_key

    def generate(self, image_prompt: str, name: Optional[str] = None, pet_id: Optional[str] = None) -> str:
        raise NotImplementedError


class NoImageProvider(ImageProvider):
    """Image generation disabled: always the placeholder, without a warning."""
    name = "none"
    label = "placeholder"

    def generate(self, image_prompt, name=None, pet_id=None):
        return placeholder_image(placeholder_text(image_prompt, name))


class OpenAIImageProvider(ImageProvider):
    """
    DALL-E 3, one square image. The temporary provider URL is downloaded to local
    storage; if that fails the temporary URL is returned as is.
    """
    name = "openai"
    label = "OpenAI DALL-E"

    def __init__(self, api_key=None, timeout=25, storage: Optional[LocalImageStorage] = None, client=None):
        super().__init__(api_key, timeout)
        self.storage = storage
        self._client = client

    @property
    def client(self):
        if self._client is None:
            self._client = OpenAI(api_key=self.require_key(), timeout=self.timeout, max_retries=0)
        return self._client

    def generate(self, image_prompt, name=None, pet_id=None):
        self.require_key()
        response = self.client.images.generate(
            model="dall-e-3",
            prompt=build_image_prompt(image_prompt),
            n=1,
            size="1024x1024",
            quality="standard",
            style="vivid",
        )
        temp_url = response.data[0].url if response.data else None
        if not temp_url:
            raise ValueError("No image URL in OpenAI response")

        if self.storage is None:
            return temp_url
        try:
            return self.storage.download_and_save_image(temp_url, image_filename(name, pet_id))
        except Exception as e:
            logging.error(f"Failed to save generated image locally, using temporary URL: {e}", exc_info=True)
            return temp_url


def image_filename(name: Optional[str] = None, pet_id: Optional[str] = None) -> str:
    """<pet id>.png when the pet is known, else a slug of the name, else a timestamped name."""
    if pet_id:
        stem = secure_filename(pet_id)
    elif name:
        stem = secure_filename("-".join(name.lower().split()))
    else:
        stem = ""
    return generate_image_filename(stem or f"pet-{now_ms()}")


class HTTPImageProvider(ImageProvider):
    """Backends reached with plain HTTP calls through a requests session."""

    def __init__(self, api_key=None, timeout=25, session: Optional[requests.Session] = None):
        super().__init__(api_key, timeout)
        self.session = session or requests.Session()

    def _post_json(self, url: str, payload: dict, auth_scheme: str) -> dict:
        response = self.session.post(
            url,
            json=payload,
            headers={"Authorization": f"{auth_scheme} {self.require_key()}", "Content-Type": "application/json"},
            timeout=self.timeout,
        )
        if not response.ok:
            raise ValueError(f"{self.label} API error: {response.status_code}")
        return response.json()


class FalImageProvider(HTTPImageProvider):
    """Returns a hosted URL; nothing is stored locally."""
    name = "fal"
    label = "fal.ai"

    def generate(self, image_prompt, name=None, pet_id=None):
        data = self._post_json(FAL_URL, {
            "prompt": image_prompt,
            "image_size": "landscape_4_3",
            "num_inference_steps": 28,
            "num_images": 1,
        }, auth_scheme="Key")
        images = data.get("images") or []
        image_url = images[0].get("url") if images else None
        if not image_url:
            raise ValueError("No image URL in fal.ai response")
        return image_url


class StabilityImageProvider(HTTPImageProvider):
    """Returns the image inline as a base64 data URL."""
    name = "stability"
    label = "Stability AI"

    def generate(self, image_prompt, name=None, pet_id=None):
        data = self._post_json(STABILITY_URL, {
            "text_prompts": [{"text": image_prompt}],
            "cfg_scale": 7,
            "height": 640,
            "width": 896,
            "steps": 30,
            "samples": 1,
        }, auth_scheme="Bearer")
        artifacts = data.get("artifacts") or []
        encoded = artifacts[0].get("base64") if artifacts else None
        if not encoded:
            raise ValueError("No image data in Stability AI response")
        return f"data:image/png;base64,{encoded}"


class ReplicateImageProvider(HTTPImageProvider):
    """
    Asynchronous backend: create a prediction, then poll it a fixed number of
    times at a fixed interval until it succeeds or fails.
    """
    name = "replicate"
    label = "Replicate"
    credential = "API token"
    poll_attempts = 10
    poll_interval_seconds = 2

    def __init__(self, api_key=None, timeout=25, session=None, sleep: Callable[[float], None] = time.sleep):
        super().__init__(api_key, timeout, session)
        self.sleep = sleep

    def generate(self, image_prompt, name=None, pet_id=None):
        prediction = self._post_json(REPLICATE_PREDICTIONS_URL, {
            "version": REPLICATE_MODEL_VERSION,
            "input": {"prompt": image_prompt, "num_outputs": 1},
        }, auth_scheme="Token")
        prediction_id = prediction.get("id")
        if not prediction_id:
            raise ValueError("No prediction id in Replicate response")

        result = prediction
        for _ in range(self.poll_attempts):
            self.sleep(self.poll_interval_seconds)
            response = self.session.get(
                f"{REPLICATE_PREDICTIONS_URL}/{prediction_id}",
                headers={"Authorization": f"Token {self.require_key()}"},
                timeout=self.timeout,
            )
            response.raise_for_status()
            result = response.json()
            if result.get("status") == "succeeded":
                break
            if result.get("status") == "failed":
                raise ValueError("Replicate prediction failed")

        output = result.get("output") or []
        image_url = output[0] if isinstance(output, list) and output else None
        if not image_url:
            raise ValueError("No image URL in Replicate response")
        return image_url


# provider name -> api key setting
IMAGE_PROVIDER_KEYS = {
    "openai": "OPENAI_API_KEY",
    "fal": "FAL_API_KEY",
    "stability": "STABILITY_API_KEY",
    "replicate": "REPLICATE_API_TOKEN",
}


def build_image_provider(config, storage: Optional[LocalImageStorage] = None,
                         session: Optional[requests.Session] = None,
                         sleep: Callable[[float], None] = time.sleep) -> Optional[ImageProvider]:
    """
    Picks the image backend from IMAGE_PROVIDER. Returns None for an unknown name;
    a missing credential is reported per call rather than at startup.
    """
    name = (config.get('IMAGE_PROVIDER') or 'none').strip().lower()
    timeout = config.get('PROVIDER_TIMEOUT_SECONDS', 25)
    api_key = config.get(IMAGE_PROVIDER_KEYS.get(name, ''))

    if name == "none":
        return NoImageProvider()
    if name == "openai":
        return OpenAIImageProvider(api_key=api_key, timeout=timeout, storage=storage)
    if name == "fal":
        return FalImageProvider(api_key=api_key, timeout=timeout, session=session)
    if name == "stability":
        return StabilityImageProvider(api_key=api_key, timeout=timeout, session=session)
    if name == "replicate":
        return ReplicateImageProvider(api_key=api_key, timeout=timeout, session=session, sleep=sleep)
    logging.warning(f"Unknown IMAGE_PROVIDER '{name}'; images will use placeholders.")
    return None


class ImageGenerationService:
    """
    Produces an image URL for a draft. Never raises: every failure becomes a
    placeholder URL plus a warning for the caller to show.
    """

    def __init__(self, provider: Optional[ImageProvider] = None):
        self.provider = provider
        self.provider_name = provider.name if provider else None

    def init_app(self, app: Flask, storage: Optional[LocalImageStorage] = None):
        if self.provider is None:
            self.provider_name = (app.config.get('IMAGE_PROVIDER') or 'none').strip().lower()
            self.provider = build_image_provider(app.config, storage=storage)
        logging.info(f"ImageGenerationService: using '{self.provider_name}' image provider.")

    def create_image(self, image_prompt: str, name: Optional[str] = None, pet_id: Optional[str] = None) -> ImageResult:
        fallback_url = placeholder_image(placeholder_text(image_prompt, name))

        if self.provider is None:
            return ImageResult(
                image_url=fallback_url,
                warning=f"image provider '{self.provider_name}' not supported; using placeholder",
            )

        try:
            return ImageResult(image_url=self.provider.generate(image_prompt, name=name, pet_id=pet_id))
        except MissingCredentialError as e:
            logging.warning(f"{e}; using placeholder")
            return ImageResult(image_url=fallback_url, warning=f"{e}; using placeholder")
        except Exception as e:
            logging.error(f"{self.provider.label} image generation failed: {e}", exc_info=True)
            return ImageResult(
                image_url=fallback_url,
                warning=f"{self.provider.label} generation failed: {str(e) or type(e).__name__}",
            )
