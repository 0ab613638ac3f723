"""
flashsched
----------

flashsched is the scheduling core of a flashcard application. It implements the FSRS
spaced-repetition algorithm: given a card's review history it decides when the card should be
shown again and how well it is remembered.
"""

from flashsched.scheduler import SchedulingEngine, SchedulingInfo, NextStates
from flashsched.memory_model import MemoryModel
from flashsched.parameters import SchedulingParameters, DEFAULT_WEIGHTS
from flashsched.state import State
from flashsched.card import CardState
from flashsched.rating import Rating
from flashsched.review_log import ReviewEvent

__all__ = [
    "SchedulingEngine",
    "SchedulingInfo",
    "NextStates",
    "MemoryModel",
    "SchedulingParameters",
    "DEFAULT_WEIGHTS",
    "State",
    "CardState",
    "Rating",
    "ReviewEvent",
]
