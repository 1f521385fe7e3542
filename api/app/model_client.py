# api/app/model_client.py
"""
Thin wrapper around the Mistral chat API.

The endpoints only depend on the `TextModel` interface: one call that takes
a prompt and an optional PNG payload and returns the model's text, or raises.
Tests substitute it through FastAPI dependency overrides.
"""
import base64
from typing import Optional, Protocol

from mistralai import Mistral

from handwriting_utils import utils

logger = utils.setup_logging()

API_KEY_ENV = "MISTRAL_API_KEY"
API_KEY_FALLBACK_ENV = "OCR_API_KEY"
DEFAULT_MODEL = "pixtral-large-latest"


class ModelError(Exception):
    """Configuration or response problem with the external model."""


class TextModel(Protocol):
    async def generate(self, prompt: str, image_png: Optional[bytes] = None) -> str:
        ...


def get_api_key() -> str:
    return utils.get_env_first(API_KEY_ENV, API_KEY_FALLBACK_ENV, default="")


def get_model_name() -> str:
    return utils.get_env("MISTRAL_MODEL", DEFAULT_MODEL)


def build_messages(prompt: str, image_png: Optional[bytes] = None) -> list:
    content = [{"type": "text", "text": prompt}]
    if image_png is not None:
        data_uri = f"data:image/png;base64,{base64.b64encode(image_png).decode()}"
        content.append({"type": "image_url", "image_url": data_uri})
    return [{"role": "user", "content": content}]


def response_text(response) -> str:
    """
    Pull the trimmed text out of a chat completion.
    Raises ModelError when there is no response or the text is empty.
    """
    if response is None or not getattr(response, "choices", None):
        raise ModelError("No response received from Mistral")

    content = response.choices[0].message.content
    if isinstance(content, list):
        # content chunks: keep only the text parts
        content = "".join(getattr(chunk, "text", "") or "" for chunk in content)

    text = (content or "").strip()
    if not text:
        raise ModelError("Mistral returned an empty response")
    return text


class MistralTextModel:
    """Single round trip per call: no streaming, no retries."""

    def __init__(self, model: Optional[str] = None):
        self.model = model or get_model_name()

    async def generate(self, prompt: str, image_png: Optional[bytes] = None) -> str:
        api_key = get_api_key()
        if not api_key:
            raise ModelError(f"Missing {API_KEY_ENV} environment variable")

        logger.info(
            f"Calling {self.model} ({'image' if image_png is not None else 'text'} prompt)"
        )
        async with Mistral(api_key=api_key) as client:
            response = await client.chat.complete_async(
                model=self.model,
                messages=build_messages(prompt, image_png),
            )
        return response_text(response)


def get_text_model() -> TextModel:
    """FastAPI dependency returning the configured model."""
    return MistralTextModel()
