# petsynth/services/text_generation_service.py
import copy
import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Optional, Tuple

from anthropic import Anthropic
from flask import Flask
from openai import OpenAI

from petsynth.core.exceptions import GenerationError
from petsynth.services.prompts import SYSTEM_PROMPT, build_user_prompt

# USD per 1K tokens: (input, output)
COST_PER_1K_TOKENS = {
    "anthropic": (0.003, 0.015),
    "openai": (0.00015, 0.0006),
}

_FENCED_JSON_RE = re.compile(r"```(?:json)?\s*\n?([\s\S]*?)\n?```")

MOCK_DRAFT = {
    "name": "Nimbus the Orbital Puff",
    "species": "Zero-G Cloud Ferret",
    "traits": ["buoyant", "electrostatic", "purring"],
    "description": (
        "Nimbus is a semi-coherent puff of ionized fluff that orbits your head at a polite distance, "
        "chirping in Morse when it wants snacks. Its fur is more of a weather pattern than a texture, "
        "occasionally forming mini cumulonimbus for dramatic effect. Nimbus loves solar windowsills, "
        "jazz in odd meters, and the scent of printer toner. It will accompany you to meetings by "
        "drifting exactly 43 cm behind your left ear, providing moral support and occasional static confetti."
    ),
    "careInstructions": "\n".join([
        "- Ground yourself before petting to avoid micro-lightning cuddles",
        "- Feed dehydrated rainbows on Tuesdays only",
        "- Do not store near ceiling fans or oscillating blades",
        "- If Nimbus splits into two, name the clone immediately",
        "- Sing a lullaby in Lydian mode nightly",
        "- Schedule solar basking during golden hour",
        "- Never mix with helium balloons or mylar",
        "- Groom with antistatic gloves and gentle clockwise motions",
    ]),
    "priceCents": 48900,
    "imagePrompt": (
        "A floating puffball ferret made of iridescent clouds, orbiting a person in an office, "
        "soft studio lighting, shallow depth of field, 50mm lens, whimsical high-contrast, crisp details"
    ),
}


@dataclass
class Usage:
    input_tokens: int
    output_tokens: int
    cost_usd: float


@dataclass
class DraftResult:
    """Parsed (not yet validated) provider output."""
    draft: Any
    model: str
    usage: Optional[Usage] = None


def estimate_cost(provider: str, input_tokens: int, output_tokens: int) -> float:
    input_rate, output_rate = COST_PER_1K_TOKENS[provider]
    return (input_tokens * input_rate + output_tokens * output_rate) / 1000


def parse_json_response(text: str) -> Any:
    """
    Extracts JSON from model output: a fenced ```json block if present,
    otherwise the whole text. Raises ValueError when nothing parses.
    """
    if not text:
        raise ValueError("Empty response from text provider")
    match = _FENCED_JSON_RE.search(text)
    if match:
        return json.loads(match.group(1))
    return json.loads(text)


class TextProvider:
    """Strategy interface: one implementation per text backend."""
    name = "base"

    def generate(self, idea: str) -> DraftResult:
        raise NotImplementedError


class MockTextProvider(TextProvider):
    """Fixed, valid draft. Never touches the network."""
    name = "mock"

    def generate(self, idea: str) -> DraftResult:
        return DraftResult(draft=copy.deepcopy(MOCK_DRAFT), model="mock")


class LLMTextProvider(TextProvider):
    """
    Shared flow of the live backends: prompt the model, parse its JSON,
    and try a second time if the first attempt fails.
    """
    max_attempts = 2

    def __init__(self, api_key: str, model: str, timeout: float = 25, client=None):
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self._client = client

    @property
    def client(self):
        if self._client is None:
            self._client = self._create_client()
        return self._client

    def _create_client(self):
        raise NotImplementedError

    def _complete(self, idea: str) -> Tuple[str, int, int]:
        """Returns (response text, input tokens, output tokens)."""
        raise NotImplementedError

    def generate(self, idea: str) -> DraftResult:
        last_error: Optional[Exception] = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                text, input_tokens, output_tokens = self._complete(idea)
                draft = parse_json_response(text)
            except Exception as e:
                last_error = e
                logging.warning(f"{self.name} draft attempt {attempt}/{self.max_attempts} failed: {e}")
                continue

            usage = Usage(
                input_tokens=input_tokens,
                output_tokens=output_tokens,
                cost_usd=estimate_cost(self.name, input_tokens, output_tokens),
            )
            return DraftResult(draft=draft, model=self.model, usage=usage)

        logging.error(f"{self.name} draft generation failed after {self.max_attempts} attempts: {last_error}")
        raise GenerationError(f"Failed to generate pet draft with {self.name}") from last_error


class AnthropicTextProvider(LLMTextProvider):
    name = "anthropic"

    def _create_client(self):
        return Anthropic(api_key=self.api_key, timeout=self.timeout, max_retries=0)

    def _complete(self, idea: str) -> Tuple[str, int, int]:
        response = self.client.messages.create(
            model=self.model,
            max_tokens=2048,
            system=SYSTEM_PROMPT,
            messages=[{"role": "user", "content": build_user_prompt(idea)}],
        )
        content = response.content[0] if response.content else None
        if content is None or content.type != "text":
            raise ValueError("Unexpected response type from Anthropic")
        return content.text, response.usage.input_tokens, response.usage.output_tokens


class OpenAITextProvider(LLMTextProvider):
    name = "openai"

    def _create_client(self):
        return OpenAI(api_key=self.api_key, timeout=self.timeout, max_retries=0)

    def _complete(self, idea: str) -> Tuple[str, int, int]:
        response = self.client.chat.completions.create(
            model=self.model,
            max_tokens=2048,
            response_format={"type": "json_object"},
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": build_user_prompt(idea)},
            ],
        )
        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise ValueError("No content in OpenAI response")
        usage = response.usage
        input_tokens = (usage.prompt_tokens if usage else 0) or 0
        output_tokens = (usage.completion_tokens if usage else 0) or 0
        return content, input_tokens, output_tokens


# provider name -> (class, api key setting, model setting)
TEXT_PROVIDERS = {
    "anthropic": (AnthropicTextProvider, "ANTHROPIC_API_KEY", "ANTHROPIC_MODEL"),
    "openai": (OpenAITextProvider, "OPENAI_API_KEY", "OPENAI_MODEL"),
}


def build_text_provider(config) -> TextProvider:
    """
    Picks the text backend from AI_TEXT_PROVIDER. A live backend without
    credentials degrades to the mock provider instead of failing startup.
    """
    name = (config.get('AI_TEXT_PROVIDER') or 'mock').strip().lower()
    if name == "mock":
        return MockTextProvider()
    if name not in TEXT_PROVIDERS:
        logging.warning(f"Unknown AI_TEXT_PROVIDER '{name}'; using mock provider.")
        return MockTextProvider()

    provider_cls, key_setting, model_setting = TEXT_PROVIDERS[name]
    api_key = config.get(key_setting)
    if not api_key:
        logging.warning(f"{key_setting} is not configured; text provider '{name}' falls back to mock.")
        return MockTextProvider()
    return provider_cls(
        api_key=api_key,
        model=config.get(model_setting),
        timeout=config.get('PROVIDER_TIMEOUT_SECONDS', 25),
    )


class TextGenerationService:
    """
    Generates pet drafts through the configured text provider.
    The provider is chosen in init_app, the same way the other services receive their clients.
    """

    def __init__(self, provider: Optional[TextProvider] = None):
        self.provider = provider

    def init_app(self, app: Flask):
        if self.provider is None:
            self.provider = build_text_provider(app.config)
        logging.info(f"TextGenerationService: using '{self.provider.name}' text provider.")

    def generate_pet_draft(self, idea: str) -> DraftResult:
        """Returns the parsed draft or raises GenerationError after exhausted attempts."""
        if self.provider is None:
            raise RuntimeError("TextGenerationService has not been initialized. Call init_app first.")
        return self.provider.generate(idea)
