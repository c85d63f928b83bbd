import asyncio
from types import SimpleNamespace

import httpx
import openai
import pytest

from content_filter import check_text
from generation import (
    FREE_FALLBACKS,
    PREMIUM_FALLBACKS,
    GenerationError,
    RoastGenerator,
)
from prompts import Tone, build_prompt


class FakeCompletions:
    def __init__(self, content="  Je laptop is trager dan maandagochtend.  ", error=None):
        self.content = content
        self.error = error
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def fake_client(completions):
    return SimpleNamespace(chat=SimpleNamespace(completions=completions))


def test_without_key_only_fallback_strings_come_back():
    gen = RoastGenerator(api_key="", model="gpt-4o-mini")
    assert gen.offline
    allowed = {f.format(target="Kees") for f in FREE_FALLBACKS}
    prompt = build_prompt("Kees", Tone.MILD)
    for _ in range(25):
        out = asyncio.run(gen.generate(prompt, "Kees"))
        assert out.text in allowed
        assert out.note == "offline fallback (geen OpenAI key)"


def test_premium_fallback():
    gen = RoastGenerator(api_key="", model="gpt-4o-mini")
    out = asyncio.run(gen.generate(build_prompt("Kees", Tone.MILD, premium=True), "Kees", premium=True))
    assert out.text == PREMIUM_FALLBACKS[0].format(target="Kees")
    assert out.note == "offline fallback"


def test_free_call_parameters():
    completions = FakeCompletions()
    gen = RoastGenerator(api_key="sk-test", model="gpt-test", client=fake_client(completions))
    prompt = build_prompt("Kees", Tone.SAVAGE)

    out = asyncio.run(gen.generate(prompt, "Kees"))

    assert out.text == "Je laptop is trager dan maandagochtend."
    assert out.note is None
    call = completions.calls[0]
    assert call["model"] == "gpt-test"
    assert call["max_tokens"] == 120
    assert call["temperature"] == 0.85
    assert call["messages"] == [
        {"role": "system", "content": prompt.system},
        {"role": "user", "content": prompt.user},
    ]


def test_premium_call_parameters():
    completions = FakeCompletions()
    gen = RoastGenerator(api_key="sk-test", model="gpt-test", client=fake_client(completions))
    asyncio.run(gen.generate(build_prompt("Kees", Tone.MILD, premium=True), "Kees", premium=True))
    call = completions.calls[0]
    assert call["max_tokens"] == 220
    assert call["temperature"] == 0.95


@pytest.mark.parametrize("content", [None, "", "   "])
def test_empty_completion_becomes_retry_hint(content):
    gen = RoastGenerator(api_key="sk-test", model="gpt-test", client=fake_client(FakeCompletions(content=content)))
    out = asyncio.run(gen.generate(build_prompt("Kees", Tone.MILD), "Kees"))
    assert out.text == "Probeer opnieuw."


def test_api_errors_become_generation_error():
    err = openai.APIConnectionError(request=httpx.Request("POST", "https://api.openai.com/v1/chat/completions"))
    gen = RoastGenerator(api_key="sk-test", model="gpt-test", client=fake_client(FakeCompletions(error=err)))
    with pytest.raises(GenerationError):
        asyncio.run(gen.generate(build_prompt("Kees", Tone.MILD), "Kees"))


def test_real_client_is_built_without_retries():
    gen = RoastGenerator(api_key="sk-test", model="gpt-test", base_url="https://llm.example/v1")
    assert not gen.offline
    assert gen.client.max_retries == 0
    assert str(gen.client.base_url).startswith("https://llm.example/v1")


@pytest.mark.parametrize("template", FREE_FALLBACKS + PREMIUM_FALLBACKS)
def test_fallback_texts_pass_the_content_filter(template):
    assert not check_text(template.format(target="mijn laptop")).blocked


def test_fallback_is_marked_offline():
    gen = RoastGenerator(api_key="", model="gpt-4o-mini")
    assert gen.fallback("Kees").offline
    assert gen.fallback("Kees", premium=True).offline
