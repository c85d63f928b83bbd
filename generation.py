# generation.py
import logging
import random
from typing import List, Optional

from openai import AsyncOpenAI, OpenAIError
from pydantic import BaseModel

from prompts import Prompt

log = logging.getLogger("roaster.generation")

FREE_MAX_TOKENS = 120
FREE_TEMPERATURE = 0.85
PREMIUM_MAX_TOKENS = 220
PREMIUM_TEMPERATURE = 0.95

EMPTY_COMPLETION_TEXT = "Probeer opnieuw."

# {target} is filled in with the user's target
FREE_FALLBACKS: List[str] = [
    "{target} is als een update: verschijnt altijd op het slechtste moment.",
    "{target} is zo traag dat buffering medelijden krijgt.",
    "{target} heeft meer excuses dan een slechte Wi‑Fi verbinding.",
]
PREMIUM_FALLBACKS: List[str] = [
    "Premium demo: {target} is zo uniek dat zelfs autocorrect het niet begrijpt.",
]
FREE_FALLBACK_NOTE = "offline fallback (geen OpenAI key)"
PREMIUM_FALLBACK_NOTE = "offline fallback"


class GenerationError(Exception):
    """The upstream generation call failed or produced unusable output."""


class Generation(BaseModel):
    text: str
    note: Optional[str] = None
    # canned text, not model output
    offline: bool = False


class RoastGenerator:
    def __init__(self, api_key: str, model: str, base_url: Optional[str] = None, client: Optional[AsyncOpenAI] = None):
        self.model = model
        self.client = client
        if self.client is None and api_key:
            # no retries: a failed call is reported straight back to the caller
            self.client = AsyncOpenAI(api_key=api_key, base_url=base_url, max_retries=0)

    @property
    def offline(self) -> bool:
        return self.client is None

    def fallback(self, target: str, premium: bool = False) -> Generation:
        pool = PREMIUM_FALLBACKS if premium else FREE_FALLBACKS
        note = PREMIUM_FALLBACK_NOTE if premium else FREE_FALLBACK_NOTE
        return Generation(text=random.choice(pool).format(target=target), note=note, offline=True)

    async def generate(self, prompt: Prompt, target: str, premium: bool = False) -> Generation:
        if self.offline:
            return self.fallback(target, premium)

        try:
            resp = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": prompt.system},
                    {"role": "user", "content": prompt.user},
                ],
                max_tokens=PREMIUM_MAX_TOKENS if premium else FREE_MAX_TOKENS,
                temperature=PREMIUM_TEMPERATURE if premium else FREE_TEMPERATURE,
            )
        except OpenAIError as exc:
            log.error("chat completion failed (model=%s, premium=%s): %s", self.model, premium, exc)
            raise GenerationError(str(exc)) from exc

        content = None
        if resp.choices:
            content = resp.choices[0].message.content
        text = (content or "").strip()
        return Generation(text=text or EMPTY_COMPLETION_TEXT)
