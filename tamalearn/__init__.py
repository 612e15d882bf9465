"""
Tama Learn

A virtual pet that feeds on knowledge: time-driven stat decay, care-gated
evolution with personality branches, reminders, visitor cards and optional
chat through a hosted language model.
"""

__version__ = "1.0.0"

from .errors import TamaError
from .game import Game
from .models import PetState
from .__main__ import main

__all__ = ["Game", "PetState", "TamaError", "main", "__version__"]
