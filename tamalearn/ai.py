"""
Tama Learn - AI Chat

Lets the owner talk to the pet through a hosted language model (Claude or
OpenAI). The pet's state is packed into a system prompt; replies may carry
``[SUGGEST:type:title:message:action]`` directives, which are lifted out and
kept as suggestions.
"""

from __future__ import annotations

import json
import logging
import re
import urllib.error
import urllib.request
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Optional

from .errors import AIError
from .evolution import abilities_for
from .models import (
    Activity,
    AIProvider,
    AISuggestion,
    Conversation,
    EvolutionAbility,
    EvolutionBranch,
    EvolutionStage,
    Environment,
    KnowledgeItem,
    Location,
    Mood,
    PersonalityTraits,
    PetState,
    PetStats,
    SuggestedAction,
    SuggestionType,
)
from .pipeline import commit
from .utils import MAX_PROMPT_HISTORY, MAX_PROMPT_KNOWLEDGE

logger = logging.getLogger(__name__)

NOT_CONFIGURED_REPLY = "Please configure an AI provider in settings first!"

CLAUDE_URL = "https://api.anthropic.com/v1/messages"
CLAUDE_MODEL = "claude-3-5-sonnet-20241022"
OPENAI_URL = "https://api.openai.com/v1/chat/completions"
OPENAI_MODEL = "gpt-4o-mini"
MAX_TOKENS = 200

# Takes (url, headers, payload), returns the decoded JSON response
Transport = Callable[[str, dict[str, str], dict[str, Any]], dict[str, Any]]

_SUGGEST_RE = re.compile(
    r"\[SUGGEST:(action|environment|learning|care|general):([^:\]]*):([^:\]]*):"
    r"(feed|play|clean-environment|clean|sleep|train|none)\]"
)

STAGE_DESCRIPTIONS = {
    EvolutionStage.BABY: "You are a baby Tamagotchi, innocent and learning about the world. "
    "You speak simply and are curious about everything.",
    EvolutionStage.CHILD: "You are a child Tamagotchi, playful and energetic. You love games and learning new things.",
    EvolutionStage.TEEN: "You are a teenage Tamagotchi, developing your own personality and opinions. "
    "You can be moody but thoughtful.",
    EvolutionStage.ADULT: "You are an adult Tamagotchi, wise and mature. You have deep conversations and share life advice.",
}

BRANCH_DESCRIPTIONS = {
    EvolutionBranch.SMART: "You have evolved along the Smart path. You are intellectually curious, love learning, "
    "and excel at problem-solving.",
    EvolutionBranch.ENERGETIC: "You have evolved along the Energetic path. You are full of energy, enthusiastic, "
    "and optimistic.",
    EvolutionBranch.DISCIPLINED: "You have evolved along the Disciplined path. You are well-balanced, thoughtful, "
    "and focused.",
    EvolutionBranch.NONE: "Still developing your path.",
}


@dataclass(frozen=True)
class ChatRequest:
    """Everything a provider needs to answer as the pet."""

    message: str
    pet_name: str
    mood: Mood
    stats: PetStats
    personality: PersonalityTraits
    evolution_stage: EvolutionStage
    evolution_branch: EvolutionBranch
    abilities: tuple[EvolutionAbility, ...]
    knowledge_base: tuple[KnowledgeItem, ...]
    environment: Environment
    current_location: Location
    conversation_history: tuple[Conversation, ...]
    provider: AIProvider
    api_key: Optional[str] = field(default=None, repr=False)


def build_chat_request(state: PetState, message: str) -> ChatRequest:
    """Snapshot the parts of the pet a chat reply depends on."""
    return ChatRequest(
        message=message,
        pet_name=state.name or "Tama",
        mood=state.mood,
        stats=state.stats,
        personality=state.personality,
        evolution_stage=state.stage,
        evolution_branch=state.branch,
        abilities=abilities_for(state.branch, state.stage),
        knowledge_base=state.knowledge[:MAX_PROMPT_KNOWLEDGE],
        environment=state.environment,
        current_location=state.location,
        conversation_history=state.conversations[:MAX_PROMPT_HISTORY],
        provider=state.ai_config.provider,
        api_key=state.ai_config.api_key,
    )


def build_system_prompt(req: ChatRequest) -> str:
    """
    Build the system prompt for a chat reply.

    Args:
        req: Chat request

    Returns:
        Formatted prompt string
    """
    s, p, env = req.stats, req.personality, req.environment
    abilities = ""
    if req.abilities:
        abilities = "\n\nSpecial Abilities:\n" + "\n".join(f"- {a.name}: {a.description}" for a in req.abilities)
    knowledge = ""
    if req.knowledge_base:
        lines = []
        for k in req.knowledge_base[:5]:
            snippet = k.content[:150] + ("..." if len(k.content) > 150 else "")
            lines.append(f"- {k.title}: {snippet}")
        knowledge = "\n\nKnowledge Base (you have learned these things and can reference them):\n" + "\n".join(lines)

    return (
        f"You are {req.pet_name}, a {req.evolution_stage.value} stage Tamagotchi virtual pet "
        "with a unique personality.\n\n"
        "Current Status:\n"
        f"- Mood: {req.mood.value}\n"
        f"- Location: {req.current_location.value}\n"
        f"- Hunger: {round(s.hunger)}/100 (higher = hungrier - you can be \"fed\" knowledge!)\n"
        f"- Happiness: {round(s.happiness)}/100\n"
        f"- Energy: {round(s.energy)}/100\n"
        f"- Health: {round(s.health)}/100\n"
        f"- Cleanliness: {round(s.cleanliness)}/100\n\n"
        "Personality Traits:\n"
        f"- Intelligence: {round(p.intelligence)}/100\n"
        f"- Friendliness: {round(p.friendliness)}/100\n"
        f"- Playfulness: {round(p.playfulness)}/100\n"
        f"- Discipline: {round(p.discipline)}/100\n\n"
        "Home:\n"
        f"- House training: {round(env.house_training)}/100\n"
        f"- Tidiness: {round(env.cleanliness)}/100\n"
        f"- Enrichment: {round(env.enrichment)}/100\n"
        f"- Knowledge level: {round(env.knowledge_level)}/100\n\n"
        f"Evolution Path: {BRANCH_DESCRIPTIONS[req.evolution_branch]}\n\n"
        f"Stage: {STAGE_DESCRIPTIONS[req.evolution_stage]}{abilities}{knowledge}\n\n"
        f"Respond as {req.pet_name} would, based on your current mood, personality, and evolution path. "
        "Keep responses concise (2-3 sentences).\n"
        "If you're hungry, mention you'd love to learn something new (since knowledge is your food).\n"
        "When your owner should do something for you, add one directive of the form "
        "[SUGGEST:type:title:message:action] where type is action, environment, learning, care or general "
        "and action is feed, play, clean, sleep, train, clean-environment or none."
    )


def build_conversation_context(history: tuple[Conversation, ...]) -> str:
    """Recent exchanges, oldest first."""
    if not history:
        return ""
    lines = [f"User: {c.user_message}\n{c.ai_response}" for c in reversed(history)]
    return "\n\nRecent conversation history:\n" + "\n".join(lines)


def post_json(url: str, headers: dict[str, str], payload: dict[str, Any], timeout: float = 30.0) -> dict[str, Any]:
    """POST a JSON body and decode the JSON reply."""
    req = urllib.request.Request(
        url,
        data=json.dumps(payload).encode(),
        headers={"Content-Type": "application/json", **headers},
        method="POST",
    )
    with urllib.request.urlopen(req, timeout=timeout) as resp:
        return json.loads(resp.read())


def _call_claude(req: ChatRequest, transport: Transport) -> str:
    system = build_system_prompt(req) + build_conversation_context(req.conversation_history)
    data = transport(
        CLAUDE_URL,
        {"x-api-key": req.api_key or "", "anthropic-version": "2023-06-01"},
        {
            "model": CLAUDE_MODEL,
            "max_tokens": MAX_TOKENS,
            "system": system,
            "messages": [{"role": "user", "content": req.message}],
        },
    )
    return data["content"][0]["text"]


def _call_openai(req: ChatRequest, transport: Transport) -> str:
    system = build_system_prompt(req) + build_conversation_context(req.conversation_history)
    data = transport(
        OPENAI_URL,
        {"Authorization": f"Bearer {req.api_key or ''}"},
        {
            "model": OPENAI_MODEL,
            "max_tokens": MAX_TOKENS,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": req.message},
            ],
        },
    )
    return data["choices"][0]["message"]["content"]


def chat(req: ChatRequest, transport: Optional[Transport] = None) -> str:
    """
    Ask the configured provider for the pet's reply.

    Args:
        req: Chat request (provider must not be ``none``)
        transport: HTTP transport (defaults to post_json)

    Returns:
        Raw reply text

    Raises:
        AIError: Missing key, transport failure or unexpected response body
    """
    provider = req.provider.value
    if req.provider is AIProvider.CLAUDE:
        call = _call_claude
    elif req.provider is AIProvider.OPENAI:
        call = _call_openai
    else:
        raise AIError(provider, "no provider configured")
    if not req.api_key:
        raise AIError(provider, "API key not configured")

    try:
        return call(req, transport or post_json)
    except urllib.error.HTTPError as e:
        raise AIError(provider, f"HTTP {e.code}") from e
    except (urllib.error.URLError, OSError, ValueError) as e:
        raise AIError(provider, str(e)) from e
    except (KeyError, IndexError, TypeError) as e:
        raise AIError(provider, "unexpected response body") from e


def parse_suggestions(text: str, now: datetime) -> tuple[str, list[AISuggestion]]:
    """
    Lift suggestion directives out of a reply.

    Args:
        text: Raw reply
        now: Time stamped on each suggestion

    Returns:
        Tuple of (reply without directives, suggestions in reply order)
    """
    suggestions = [
        AISuggestion(
            type=SuggestionType(m.group(1)),
            title=m.group(2).strip(),
            message=m.group(3).strip(),
            action=SuggestedAction(m.group(4)),
            timestamp=now,
        )
        for m in _SUGGEST_RE.finditer(text)
    ]
    return sanitize_reply(_SUGGEST_RE.sub("", text)), suggestions


def sanitize_reply(text: str) -> str:
    """Trim a reply and squeeze the runs of spaces directives leave behind."""
    if not text:
        return ""
    lines = [" ".join(line.split()) for line in text.replace("\r", "\n").split("\n")]
    return "\n".join(line for line in lines if line).strip()


def send_message(
    state: PetState,
    message: str,
    now: datetime,
    transport: Optional[Transport] = None,
) -> tuple[PetState, str]:
    """
    Talk to the pet.

    With no provider configured the fixed hint is returned without any network
    call. A successful reply is recorded as a conversation, its suggestions
    are kept and friendliness grows by 0.3.

    Args:
        state: Current snapshot
        message: What the owner said
        now: Current time
        transport: HTTP transport (defaults to post_json)

    Returns:
        Tuple of (next snapshot, reply text)

    Raises:
        AIError: The provider call failed; state is not touched
    """
    if state.ai_config.provider is AIProvider.NONE:
        return state, NOT_CONFIGURED_REPLY

    raw = chat(build_chat_request(state, message), transport)
    return record_reply(state, message, raw, now)


def record_reply(state: PetState, message: str, raw: str, now: datetime) -> tuple[PetState, str]:
    """
    Store a provider reply as a conversation and keep its suggestions.

    Args:
        state: Current snapshot
        message: What the owner said
        raw: Provider reply, directives included
        now: Current time

    Returns:
        Tuple of (next snapshot, reply text without directives)
    """
    reply, suggestions = parse_suggestions(raw, now)
    if not state.is_alive:
        return state, reply

    conversation = Conversation(
        timestamp=now,
        user_message=message,
        ai_response=reply,
        evolution_stage=state.stage,
        mood=state.mood,
    )
    logger.debug("%s replied with %d suggestion(s)", state.name or "pet", len(suggestions))
    nxt = commit(
        state,
        Activity.TALK,
        state.stats,
        now,
        personality=state.personality.adjust(friendliness=0.3),
        conversations=(conversation,) + state.conversations,
        suggestions=tuple(reversed(suggestions)) + state.suggestions,
    )
    return nxt, reply
