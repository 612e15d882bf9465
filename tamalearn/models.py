"""
Tama Learn - Data Model

Immutable snapshots of everything the pet is made of. A reducer never edits
one of these in place: it builds the next snapshot with ``dataclasses.replace``
or ``adjust``, and the bounded entities clamp themselves on construction.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from datetime import datetime
from enum import Enum
from typing import Optional

from .utils import clamp, new_id


class Mood(str, Enum):
    HAPPY = "happy"
    SAD = "sad"
    HUNGRY = "hungry"
    TIRED = "tired"
    SICK = "sick"
    DIRTY = "dirty"
    SLEEPING = "sleeping"


class EvolutionStage(str, Enum):
    BABY = "baby"
    CHILD = "child"
    TEEN = "teen"
    ADULT = "adult"

    @property
    def rank(self) -> int:
        return _STAGE_ORDER.index(self)


_STAGE_ORDER = (EvolutionStage.BABY, EvolutionStage.CHILD, EvolutionStage.TEEN, EvolutionStage.ADULT)


class EvolutionBranch(str, Enum):
    NONE = "none"
    SMART = "smart"
    ENERGETIC = "energetic"
    DISCIPLINED = "disciplined"


class Location(str, Enum):
    BEDROOM = "bedroom"
    STUDY = "study"
    LIVING_ROOM = "living-room"
    PLAY_AREA = "play-area"
    OUTSIDE = "outside"


class KnowledgeSource(str, Enum):
    MANUAL = "manual"
    FILE = "file"
    URL = "url"
    CONVERSATION = "conversation"


class ReminderType(str, Enum):
    TASK = "task"
    CARE = "care"
    CUSTOM = "custom"
    MISS_YOU = "miss-you"


class AIProvider(str, Enum):
    NONE = "none"
    CLAUDE = "claude"
    OPENAI = "openai"


class SuggestionType(str, Enum):
    ACTION = "action"
    ENVIRONMENT = "environment"
    LEARNING = "learning"
    CARE = "care"
    GENERAL = "general"


class SuggestedAction(str, Enum):
    FEED = "feed"
    PLAY = "play"
    CLEAN = "clean"
    SLEEP = "sleep"
    TRAIN = "train"
    CLEAN_ENVIRONMENT = "clean-environment"
    NONE = "none"


class Activity(str, Enum):
    """Kinds of owner action recorded in the activity log."""

    FEED = "feed"
    PLAY = "play"
    CLEAN = "clean"
    SLEEP = "sleep"
    WAKE = "wake"
    MEDICINE = "medicine"
    TRAIN = "train"
    LEARN = "learn"
    CLEAN_ENVIRONMENT = "clean-environment"
    TALK = "talk"
    VISIT = "visit"


@dataclass(frozen=True)
class _Bounded:
    """Every field is a real number kept inside [0, 100]."""

    def __post_init__(self) -> None:
        for f in fields(self):
            object.__setattr__(self, f.name, clamp(float(getattr(self, f.name)), 0.0, 100.0))

    def adjust(self, **deltas: float):
        """Return a copy with each named field moved by its delta (then clamped)."""
        return replace(self, **{name: getattr(self, name) + delta for name, delta in deltas.items()})


@dataclass(frozen=True)
class PetStats(_Bounded):
    hunger: float = 50.0       # higher = hungrier
    happiness: float = 100.0
    energy: float = 100.0
    health: float = 100.0
    cleanliness: float = 100.0


@dataclass(frozen=True)
class PersonalityTraits(_Bounded):
    intelligence: float = 50.0
    friendliness: float = 50.0
    playfulness: float = 50.0
    discipline: float = 50.0


@dataclass(frozen=True)
class Environment(_Bounded):
    house_training: float = 20.0
    cleanliness: float = 80.0
    enrichment: float = 50.0
    knowledge_level: float = 0.0


@dataclass(frozen=True)
class CareQuality:
    feeding_score: float = 70.0
    happiness_score: float = 90.0
    health_score: float = 100.0
    interaction_count: int = 0

    def __post_init__(self) -> None:
        for name in ("feeding_score", "happiness_score", "health_score"):
            object.__setattr__(self, name, clamp(float(getattr(self, name)), 0.0, 100.0))
        object.__setattr__(self, "interaction_count", max(0, int(self.interaction_count)))

    @property
    def average(self) -> float:
        return (self.feeding_score + self.happiness_score + self.health_score) / 3


@dataclass(frozen=True)
class EvolutionAbility:
    """A passive bundle of multipliers unlocked by branch and stage."""

    name: str
    description: str
    stat_decay_modifier: Optional[float] = None
    energy_cost_modifier: Optional[float] = None
    training_bonus: Optional[float] = None
    happiness_bonus: Optional[float] = None
    health_regen_bonus: Optional[float] = None


@dataclass(frozen=True)
class ActivityLog:
    action: Activity
    timestamp: datetime
    stats_before: PetStats
    stats_after: PetStats
    id: str = field(default_factory=new_id)


@dataclass(frozen=True)
class KnowledgeItem:
    title: str
    content: str
    source: KnowledgeSource
    timestamp: datetime
    category: Optional[str] = None
    tags: tuple[str, ...] = ()
    id: str = field(default_factory=new_id)


@dataclass(frozen=True)
class Reminder:
    type: ReminderType
    title: str
    message: str
    scheduled_for: datetime
    created_at: datetime
    recurring: bool = False
    recurring_interval: Optional[int] = None  # minutes
    completed: bool = False
    dismissed: bool = False
    id: str = field(default_factory=new_id)

    @property
    def resolved(self) -> bool:
        """Completed and dismissed reminders are terminal."""
        return self.completed or self.dismissed


@dataclass(frozen=True)
class Visitor:
    name: str
    evolution_stage: EvolutionStage
    evolution_branch: EvolutionBranch
    personality: PersonalityTraits
    message: str
    visit_timestamp: datetime
    gifts: tuple[KnowledgeItem, ...] = ()
    id: str = field(default_factory=new_id)


@dataclass(frozen=True)
class Conversation:
    timestamp: datetime
    user_message: str
    ai_response: str
    evolution_stage: EvolutionStage
    mood: Mood
    id: str = field(default_factory=new_id)


@dataclass(frozen=True)
class AISuggestion:
    type: SuggestionType
    title: str
    message: str
    action: SuggestedAction
    timestamp: datetime
    acknowledged: bool = False
    id: str = field(default_factory=new_id)


@dataclass(frozen=True)
class AIConfig:
    provider: AIProvider = AIProvider.NONE
    claude_api_key: Optional[str] = None
    openai_api_key: Optional[str] = None

    @property
    def api_key(self) -> Optional[str]:
        """Key for the active provider, if one was stored."""
        if self.provider is AIProvider.CLAUDE:
            return self.claude_api_key
        if self.provider is AIProvider.OPENAI:
            return self.openai_api_key
        return None


@dataclass(frozen=True)
class PetState:
    """The one aggregate every component reads from and writes to."""

    birth_date: datetime
    last_updated: datetime
    last_interaction: datetime
    name: str = ""
    mood: Mood = Mood.HAPPY
    location: Location = Location.LIVING_ROOM
    stage: EvolutionStage = EvolutionStage.BABY
    branch: EvolutionBranch = EvolutionBranch.NONE
    stats: PetStats = field(default_factory=PetStats)
    personality: PersonalityTraits = field(default_factory=PersonalityTraits)
    care: CareQuality = field(default_factory=CareQuality)
    environment: Environment = field(default_factory=Environment)
    is_alive: bool = True
    # Game seconds left in the current night, refreshed by the host on save
    sleep_left_s: Optional[float] = None
    activity_logs: tuple[ActivityLog, ...] = ()
    knowledge: tuple[KnowledgeItem, ...] = ()
    visitors: tuple[Visitor, ...] = ()
    reminders: tuple[Reminder, ...] = ()
    conversations: tuple[Conversation, ...] = ()
    suggestions: tuple[AISuggestion, ...] = ()
    ai_config: AIConfig = field(default_factory=AIConfig)

    @classmethod
    def create(cls, now: datetime, name: str = "") -> PetState:
        """A freshly hatched pet born at ``now``."""
        return cls(birth_date=now, last_updated=now, last_interaction=now, name=name)

    @property
    def sleeping(self) -> bool:
        return self.mood is Mood.SLEEPING

    def age_seconds(self, now: datetime) -> float:
        return max(0.0, (now - self.birth_date).total_seconds())
