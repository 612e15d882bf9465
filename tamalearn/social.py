"""
Tama Learn - Social Exchange

Visitor cards let pets visit each other: one owner exports a card, another
imports it. Also builds the JSON export payloads for conversations and
knowledge.

Cards are wire documents with camelCase keys, validated with Pydantic before
any state is touched.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from .errors import InvalidCardError
from .models import (
    Activity,
    EvolutionBranch,
    EvolutionStage,
    KnowledgeItem,
    KnowledgeSource,
    PersonalityTraits,
    PetState,
    Visitor,
)
from .pipeline import commit
from .utils import MAX_CARD_GIFTS, MAX_VISITORS

logger = logging.getLogger(__name__)


class _Wire(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PersonalityCard(_Wire):
    intelligence: float = Field(ge=0, le=100)
    friendliness: float = Field(ge=0, le=100)
    playfulness: float = Field(ge=0, le=100)
    discipline: float = Field(ge=0, le=100)


class KnowledgeGift(_Wire):
    title: str
    content: str
    source: KnowledgeSource = KnowledgeSource.MANUAL
    category: Optional[str] = None
    tags: Optional[list[str]] = None


class VisitorCard(_Wire):
    """The shareable snapshot of a pet."""

    name: str = Field(min_length=1)
    evolution_stage: EvolutionStage
    evolution_branch: EvolutionBranch = EvolutionBranch.NONE
    personality: PersonalityCard
    message: str = ""
    knowledge_gifts: Optional[list[KnowledgeGift]] = None
    export_date: Optional[datetime] = None


def export_visitor_card(state: PetState, message: str, include_knowledge: bool, now: datetime) -> dict[str, Any]:
    """
    Build this pet's visitor card.

    Args:
        state: Current snapshot
        message: Greeting carried by the card
        include_knowledge: Attach the newest knowledge items as gifts
        now: Export time

    Returns:
        JSON-compatible card document
    """
    gifts = None
    if include_knowledge:
        gifts = [
            KnowledgeGift(
                title=item.title,
                content=item.content,
                source=item.source,
                category=item.category,
                tags=list(item.tags) or None,
            )
            for item in state.knowledge[:MAX_CARD_GIFTS]
        ]
    card = VisitorCard(
        name=state.name or "Tamagotchi",
        evolution_stage=state.stage,
        evolution_branch=state.branch,
        personality=PersonalityCard(
            intelligence=state.personality.intelligence,
            friendliness=state.personality.friendliness,
            playfulness=state.personality.playfulness,
            discipline=state.personality.discipline,
        ),
        message=message,
        knowledge_gifts=gifts,
        export_date=now,
    )
    return card.model_dump(mode="json", by_alias=True, exclude_none=True)


def parse_visitor_card(raw: str) -> VisitorCard:
    """
    Parse and validate a visitor card document.

    Raises:
        InvalidCardError: Not JSON, or not shaped like a visitor card
    """
    try:
        return VisitorCard.model_validate(json.loads(raw))
    except (json.JSONDecodeError, TypeError, ValidationError) as e:
        raise InvalidCardError("Invalid visitor card format") from e


def import_visitor_card(state: PetState, raw: str, now: datetime) -> PetState:
    """
    Welcome a visitor.

    The visit cheers the pet up (happiness +10, friendliness +1) and any
    knowledge gifts join the knowledge base. Only the 10 latest visitors are
    remembered.

    Args:
        state: Current snapshot
        raw: Visitor card JSON text
        now: Visit time

    Returns:
        Next snapshot (unchanged when the pet is dead)

    Raises:
        InvalidCardError: The card is malformed; state is not touched
    """
    card = parse_visitor_card(raw)
    if not state.is_alive:
        return state

    gifts = tuple(
        KnowledgeItem(
            title=g.title,
            content=g.content,
            source=g.source,
            timestamp=now,
            category=g.category,
            tags=tuple(g.tags or ()),
        )
        for g in card.knowledge_gifts or ()
    )
    visitor = Visitor(
        name=card.name,
        evolution_stage=card.evolution_stage,
        evolution_branch=card.evolution_branch,
        personality=PersonalityTraits(**card.personality.model_dump()),
        message=card.message,
        visit_timestamp=now,
        gifts=gifts,
    )
    logger.info("%s came to visit with %d gift(s)", card.name, len(gifts))

    stats = state.stats.adjust(happiness=10)
    return commit(
        state,
        Activity.VISIT,
        stats,
        now,
        personality=state.personality.adjust(friendliness=1),
        visitors=((visitor,) + state.visitors)[:MAX_VISITORS],
        knowledge=gifts + state.knowledge,
    )


def export_conversations(state: PetState, now: datetime) -> dict[str, Any]:
    """Conversation history export payload."""
    return {
        "petName": state.name,
        "exportDate": now.isoformat(),
        "totalConversations": len(state.conversations),
        "conversations": [
            {
                "timestamp": c.timestamp.isoformat(),
                "evolutionStage": c.evolution_stage.value,
                "mood": c.mood.value,
                "userMessage": c.user_message,
                "aiResponse": c.ai_response,
            }
            for c in state.conversations
        ],
    }


def export_knowledge(state: PetState, now: datetime) -> dict[str, Any]:
    """Knowledge base export payload."""
    return {
        "petName": state.name,
        "exportDate": now.isoformat(),
        "totalKnowledge": len(state.knowledge),
        "knowledgeLevel": state.environment.knowledge_level,
        "knowledge": [
            {
                "title": k.title,
                "content": k.content,
                "source": k.source.value,
                "timestamp": k.timestamp.isoformat(),
                "category": k.category,
                "tags": list(k.tags),
            }
            for k in state.knowledge
        ],
    }

