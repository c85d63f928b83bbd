# prompts.py
from enum import Enum

from pydantic import BaseModel


class Tone(str, Enum):
    MILD = "mild"
    SARCASTIC = "sarcastisch"
    SAVAGE = "savage"


class Prompt(BaseModel):
    system: str
    user: str


FREE_SYSTEM = (
    "You are a witty comedian that creates short, humorous roasts "
    "that are sharp but not hateful or violent."
)
PREMIUM_SYSTEM = (
    "You are a top-tier comedy writer producing viral, concise roasts "
    "suitable for social media."
)

FREE_TEMPLATE = """
Je taak: schrijf een humoristische roast van 1-3 korte zinnen gericht op de volgende target.
Regels:
- Geen aanvallen op beschermde groepen (ras, religie, gender, seksuele geaardheid, handicap, nationaliteit).
- Geen oproep tot geweld of bedreigingen.
- Max 280 tekens.
- Tone: {tone}.
Target: "{target}"
Schrijf enkel de roast.
"""

PREMIUM_TEMPLATE = """
Je taak: schrijf een zeer scherpe, creatieve en virale roast van 1-4 zinnen.
Regels:
- Geen aanvallen op beschermde groepen.
- Geen oproep tot geweld of bedreigingen.
- Max 400 tekens.
- Gebruik humor, pop-culture referenties en korte punchlines.
- Maak het geschikt om als TikTok caption of viral tweet te delen.
Tone: {tone}.
Target: "{target}"
Schrijf enkel de roast, klaar voor social sharing.
"""


def build_prompt(target: str, tone: Tone, premium: bool = False) -> Prompt:
    # target is interpolated as-is; the content filter is the only guard
    label = tone.value if isinstance(tone, Tone) else str(tone)
    if premium:
        return Prompt(system=PREMIUM_SYSTEM, user=PREMIUM_TEMPLATE.format(tone=label, target=target))
    return Prompt(system=FREE_SYSTEM, user=FREE_TEMPLATE.format(tone=label, target=target))
