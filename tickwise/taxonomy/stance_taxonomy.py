"""
Presentation stance: the viewpoint the final score is narrated from.

  buyer  — does not own the instrument; unipolar "how much to buy" gauge.
  seller — owns it and considers selling; unipolar "how much to sell" gauge.
  holder — owns it and wants the overall picture; bipolar buy/sell gauge.
"""

from enum import StrEnum


class Stance(StrEnum):
    """Narrative viewpoint for the final score lines."""

    BUYER = "buyer"
    SELLER = "seller"
    HOLDER = "holder"

    @property
    def caption(self) -> str:
        return self.value.capitalize()
