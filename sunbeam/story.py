"""
Timeline content for the story page.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Optional


@dataclass(frozen=True)
class TimelineItem:
    item_id: str
    title: str
    date: str
    description: str
    image: Optional[str] = None

    def as_dict(self) -> dict:
        return asdict(self)


TIMELINE: tuple[TimelineItem, ...] = (
    TimelineItem(
        item_id="1",
        title="The Beginning",
        date="Spring 2020",
        description=(
            "Every great friendship has a beginning, and ours started with "
            "laughter and shared dreams. From that very first conversation, it "
            "was clear that something special was taking root."
        ),
    ),
    TimelineItem(
        item_id="2",
        title="Adventures Begin",
        date="Summer 2020",
        description=(
            "Our first adventures together - exploring new places, trying new "
            "things, and discovering how perfectly our personalities "
            "complemented each other. Every moment was a new memory in the making."
        ),
    ),
    TimelineItem(
        item_id="3",
        title="Through Thick and Thin",
        date="Fall 2020",
        description=(
            "True friendship is tested not in the easy times, but in the "
            "challenging ones. This season showed us that our bond was stronger "
            "than any obstacle life could throw our way."
        ),
    ),
    TimelineItem(
        item_id="4",
        title="Growing Together",
        date="Winter 2020",
        description=(
            "As the seasons changed, so did we - but always together. Supporting "
            "each other's dreams, celebrating victories, and learning from every "
            "experience we shared."
        ),
    ),
    TimelineItem(
        item_id="5",
        title="The Golden Era",
        date="2021 - Present",
        description=(
            "These have been the golden years of our friendship. Filled with "
            "inside jokes, spontaneous adventures, deep conversations, and an "
            "unbreakable bond that grows stronger with each passing day."
        ),
    ),
)

CLOSING_TITLE = "To Be Continued..."
CLOSING_MESSAGE = (
    "Our story is far from over. With each day that passes, we write new "
    "chapters filled with laughter, love, and unforgettable moments. Here's to "
    "many more adventures together, Gauta!"
)
