# petsynth/services/test_image_generation_service.py
from types import SimpleNamespace

import httpx
import pytest
import requests

from petsynth.services.image_generation_service import (
    FalImageProvider,
    ImageGenerationService,
    NoImageProvider,
    OpenAIImageProvider,
    ReplicateImageProvider,
    StabilityImageProvider,
    build_image_provider,
    image_filename,
    placeholder_image,
)


class FakeResponse:
    def __init__(self, payload=None, status_code=200, content=b""):
        self.payload = payload
        self.status_code = status_code
        self.content = content

    @property
    def ok(self):
        return 200 <= self.status_code < 300

    def json(self):
        return self.payload

    def raise_for_status(self):
        if not self.ok:
            raise requests.HTTPError(f"{self.status_code} Error")


class FakeSession:
    """Replays queued responses for post() and get() and records every call."""

    def __init__(self, post=None, get=None):
        self.post_responses = list(post or [])
        self.get_responses = list(get or [])
        self.calls = []

    def post(self, url, **kwargs):
        self.calls.append(("POST", url, kwargs))
        return self._next(self.post_responses)

    def get(self, url, **kwargs):
        self.calls.append(("GET", url, kwargs))
        return self._next(self.get_responses)

    @staticmethod
    def _next(queue):
        item = queue.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


class FakeStorage:
    def __init__(self, fail=False):
        self.fail = fail
        self.saved = []

    def download_and_save_image(self, url, filename):
        if self.fail:
            raise requests.ConnectionError("download refused")
        self.saved.append((url, filename))
        return f"/images/pets/{filename}"


def fake_openai_client(url="https://tmp.example/dalle.png"):
    calls = []

    def generate(**kwargs):
        calls.append(kwargs)
        return SimpleNamespace(data=[SimpleNamespace(url=url)])

    return SimpleNamespace(images=SimpleNamespace(generate=generate), calls=calls)


def test_placeholder_encodes_like_encode_uri_component():
    assert placeholder_image("Nimbus the Orbital Puff") == "https://placehold.co/640x480?text=Nimbus%20the%20Orbital%20Puff"
    assert placeholder_image("a&b/c (it's!)") == "https://placehold.co/640x480?text=a%26b%2Fc%20(it's!)"
    assert placeholder_image("") == "https://placehold.co/640x480?text="


@pytest.mark.parametrize("prompt, name", [
    ("", None),
    ("", ""),
    ("a glowing jelly hound", None),
    ("x" * 500, "Nimbus"),
])
def test_none_provider_never_raises_and_returns_placeholder(prompt, name):
    result = ImageGenerationService(NoImageProvider()).create_image(prompt, name=name)
    assert result.image_url.startswith("https://placehold.co/640x480?text=")
    assert result.warning is None


def test_placeholder_prefers_name_then_prompt_prefix():
    service = ImageGenerationService(NoImageProvider())
    assert service.create_image("some prompt", name="Bob").image_url.endswith("?text=Bob")
    long_prompt = "abcdefghij" * 10
    assert service.create_image(long_prompt).image_url.endswith("?text=" + long_prompt[:40])


@pytest.mark.parametrize("provider", [
    OpenAIImageProvider(api_key=None),
    FalImageProvider(api_key="", session=FakeSession()),
    StabilityImageProvider(api_key=None, session=FakeSession()),
    ReplicateImageProvider(api_key=None, session=FakeSession(), sleep=lambda s: None),
])
def test_missing_credentials_degrade_to_placeholder_with_warning(provider):
    result = ImageGenerationService(provider).create_image("a glowing jelly hound", name="Jelly")
    assert result.image_url == placeholder_image("Jelly")
    assert "not configured; using placeholder" in result.warning


def test_unknown_provider_degrades_with_warning():
    service = ImageGenerationService()
    service.provider_name = "midjourney"
    result = service.create_image("a prompt long enough", name="Bob")
    assert result.image_url == placeholder_image("Bob")
    assert "midjourney" in result.warning


def test_openai_saves_image_under_pet_id():
    storage = FakeStorage()
    client = fake_openai_client()
    provider = OpenAIImageProvider(api_key="k", storage=storage, client=client)

    result = ImageGenerationService(provider).create_image("a cloud ferret", name="Nimbus", pet_id="pet-3")

    assert result.image_url == "/images/pets/pet-3.png"
    assert result.warning is None
    assert storage.saved == [("https://tmp.example/dalle.png", "pet-3.png")]
    assert client.calls[0]["model"] == "dall-e-3"
    assert client.calls[0]["size"] == "1024x1024"
    assert client.calls[0]["prompt"].startswith("a cloud ferret. Professional product photography")


def test_openai_falls_back_to_temporary_url_when_download_fails():
    provider = OpenAIImageProvider(api_key="k", storage=FakeStorage(fail=True), client=fake_openai_client())
    result = ImageGenerationService(provider).create_image("a cloud ferret", name="Nimbus")
    assert result.image_url == "https://tmp.example/dalle.png"
    assert result.warning is None


def test_openai_without_url_degrades_to_placeholder():
    provider = OpenAIImageProvider(api_key="k", storage=FakeStorage(), client=fake_openai_client(url=None))
    result = ImageGenerationService(provider).create_image("a cloud ferret", name="Nimbus")
    assert result.image_url == placeholder_image("Nimbus")
    assert result.warning.startswith("OpenAI DALL-E generation failed")


def test_openai_image_call_is_sent_once(monkeypatch):
    requests_sent = []

    def send(self, request, **kwargs):
        requests_sent.append(request)
        return httpx.Response(500, json={"error": {"message": "boom"}}, request=request)

    monkeypatch.setattr(httpx.Client, "send", send)
    provider = OpenAIImageProvider(api_key="sk-test", timeout=1)

    result = ImageGenerationService(provider).create_image("a cloud ferret", name="Nimbus")

    assert provider.client.max_retries == 0
    assert len(requests_sent) == 1
    assert result.image_url == placeholder_image("Nimbus")


def test_image_filename_choices():
    assert image_filename(name="Nimbus the Orbital Puff", pet_id="pet-9") == "pet-9.png"
    assert image_filename(name="Nimbus the Orbital Puff") == "nimbus-the-orbital-puff.png"
    assert image_filename(name="../../etc/passwd") == "etc_passwd.png"
    assert image_filename().startswith("pet-")


def test_fal_returns_hosted_url():
    session = FakeSession(post=[FakeResponse({"images": [{"url": "https://fal.example/1.png"}]})])
    provider = FalImageProvider(api_key="fal-key", timeout=7, session=session)

    result = ImageGenerationService(provider).create_image("a prompt", name="Bob")

    assert result.image_url == "https://fal.example/1.png"
    method, url, kwargs = session.calls[0]
    assert url == "https://fal.run/fal-ai/flux/dev"
    assert kwargs["headers"]["Authorization"] == "Key fal-key"
    assert kwargs["json"]["image_size"] == "landscape_4_3"
    assert kwargs["timeout"] == 7


def test_fal_http_error_degrades_to_placeholder():
    session = FakeSession(post=[FakeResponse({}, status_code=503)])
    result = ImageGenerationService(FalImageProvider(api_key="k", session=session)).create_image("p", name="Bob")
    assert result.image_url == placeholder_image("Bob")
    assert "503" in result.warning


def test_timeout_degrades_to_placeholder():
    session = FakeSession(post=[requests.Timeout("read timed out")])
    result = ImageGenerationService(FalImageProvider(api_key="k", session=session)).create_image("p", name="Bob")
    assert result.image_url == placeholder_image("Bob")
    assert result.warning.startswith("fal.ai generation failed")


def test_stability_returns_data_url():
    session = FakeSession(post=[FakeResponse({"artifacts": [{"base64": "iVBORw0KGgo="}]})])
    provider = StabilityImageProvider(api_key="sk", session=session)

    result = ImageGenerationService(provider).create_image("a prompt")

    assert result.image_url == "data:image/png;base64,iVBORw0KGgo="
    assert session.calls[0][2]["headers"]["Authorization"] == "Bearer sk"
    assert session.calls[0][2]["json"]["width"] == 896


def test_stability_missing_artifact_degrades():
    session = FakeSession(post=[FakeResponse({"artifacts": []})])
    result = ImageGenerationService(StabilityImageProvider(api_key="sk", session=session)).create_image("p")
    assert result.image_url == placeholder_image("p")
    assert result.warning is not None


def test_replicate_polls_until_success():
    sleeps = []
    session = FakeSession(
        post=[FakeResponse({"id": "abc", "status": "starting"})],
        get=[
            FakeResponse({"status": "processing"}),
            FakeResponse({"status": "succeeded", "output": ["https://replicate.example/out.png"]}),
        ],
    )
    provider = ReplicateImageProvider(api_key="r8", session=session, sleep=sleeps.append)

    result = ImageGenerationService(provider).create_image("a prompt")

    assert result.image_url == "https://replicate.example/out.png"
    assert sleeps == [2, 2]
    assert session.calls[1][1] == "https://api.replicate.com/v1/predictions/abc"
    assert session.calls[0][2]["headers"]["Authorization"] == "Token r8"


def test_replicate_failure_degrades_to_placeholder():
    session = FakeSession(post=[FakeResponse({"id": "abc"})], get=[FakeResponse({"status": "failed"})])
    provider = ReplicateImageProvider(api_key="r8", session=session, sleep=lambda s: None)
    result = ImageGenerationService(provider).create_image("p", name="Bob")
    assert result.image_url == placeholder_image("Bob")
    assert "Replicate prediction failed" in result.warning


def test_replicate_gives_up_after_ten_polls():
    sleeps = []
    session = FakeSession(
        post=[FakeResponse({"id": "abc"})],
        get=[FakeResponse({"status": "processing"}) for _ in range(10)],
    )
    provider = ReplicateImageProvider(api_key="r8", session=session, sleep=sleeps.append)

    result = ImageGenerationService(provider).create_image("p", name="Bob")

    assert len(sleeps) == 10
    assert result.image_url == placeholder_image("Bob")
    assert result.warning is not None


@pytest.mark.parametrize("name, expected", [
    ("none", NoImageProvider),
    ("OpenAI", OpenAIImageProvider),
    ("fal", FalImageProvider),
    ("stability", StabilityImageProvider),
    ("replicate", ReplicateImageProvider),
])
def test_build_image_provider(name, expected):
    assert type(build_image_provider({"IMAGE_PROVIDER": name})) is expected


def test_build_image_provider_unknown_name():
    assert build_image_provider({"IMAGE_PROVIDER": "dreamy"}) is None
