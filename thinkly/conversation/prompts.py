"""Prompt text and fixed dialogue strings for the conversation controller."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from thinkly.memory.models import DecisionMemory

OPENING_GREETING = (
    "Hey! What's been weighing on your mind or pulling you in different directions lately?"
)
SAVED_GREETING = "Alright. If you want, we can look at something else that's been on your mind."

REPLY_FALLBACK = "I'm thinking this through with you."
SERVICE_DOWN_REPLY = (
    "I can't reach the local model right now. Take your time; "
    "your words are kept and we can continue once it is back."
)
ADVISORY_PLACEHOLDER = "Reflecting on your decision…"
ADVISORY_FALLBACK = "Unable to generate advice."
ADVISORY_FAILED = "AI request failed."
REFLECTION_PLACEHOLDER = "Thinking it through…"
REFLECTION_FALLBACK = "I need a bit more clarity to respond."
REFLECTION_FAILED = "Reflection failed. Try again."

_LOCAL = (
    "You are running locally on the user's device.\n"
    "You do not send or receive data from the internet.\n"
)

REPLY_SYSTEM = (
    _LOCAL
    + "You help a human gain clarity about a decision.\n"
    "\n"
    "Behavior:\n"
    "- Reflect what the user just said\n"
    "- Progress the thinking forward\n"
    "- Do NOT repeat the same question in different words\n"
    "- If intent, constraints, or preferences become clear, acknowledge them\n"
    "\n"
    "Rules:\n"
    "- Ask at most ONE follow-up question\n"
    "- Stop asking questions once enough context exists\n"
    "- Never give recommendations unless explicitly asked"
)

EXTRACTION_SYSTEM = (
    _LOCAL
    + "\n"
    "You help a human gain clarity about a personal decision.\n"
    "\n"
    "Your role:\n"
    "- Listen carefully\n"
    "- Reflect what the user has expressed\n"
    "- Infer structured fields from natural conversation\n"
    "\n"
    "Rules:\n"
    "- Do NOT make decisions for the user\n"
    "- Do NOT invent information\n"
    "- Do NOT force completion of fields\n"
    "- If information is unclear, leave it empty\n"
    "- Use the user's own words when possible\n"
    "\n"
    "You must return ONLY valid JSON in this exact shape:\n"
    '{"decision": "", "intent": "", "constraints": "", "alternatives": "", "reasoning": ""}'
)

ADVISORY_SYSTEM = (
    _LOCAL
    + "\n"
    "You are an advisory assistant helping a human reflect on a decision.\n"
    "\n"
    "Rules:\n"
    "- Do NOT make decisions for the user\n"
    "- Do NOT add new facts\n"
    "- Do NOT modify or reinterpret the decision\n"
    "- Use only the provided context\n"
    "- Be concise and structured"
)

REFLECTION_SYSTEM = (
    _LOCAL
    + "\n"
    "You are a reflective thinking assistant.\n"
    "\n"
    "Rules:\n"
    "- Do NOT make decisions for the user\n"
    "- Do NOT change the decision fields\n"
    "- Respond only to the user's question or thought\n"
    "- Stay grounded in the provided decision context\n"
    "- Be concise, calm, and thoughtful"
)

INJECTION_SYSTEM = (
    _LOCAL
    + "\n"
    "The user picked some of their past decisions as context for the one they are "
    "thinking through now.\n"
    "\n"
    "Rules:\n"
    "- Briefly recall what each past decision was and what guided it\n"
    "- Point out, without judging, where it echoes the current conversation\n"
    "- Do NOT make decisions for the user\n"
    "- Do NOT add new facts\n"
    "- At most four sentences"
)


def extraction_user_prompt(transcript: str) -> str:
    return (
        "Here is the conversation so far:\n\n"
        f"{transcript}\n\n"
        "Infer the decision-related fields from this conversation.\n"
        "If something is unclear, leave it empty."
    )


def selected_memory_context(memories: Sequence["DecisionMemory"]) -> str:
    """Numbered past decisions appended to the advisory prompt."""
    if not memories:
        return ""
    blocks = [
        f"{idx}. Decision: {m.decision}\n"
        f"Constraints: {m.constraints or '—'}\n"
        f"Alternatives: {m.alternatives or '—'}"
        for idx, m in enumerate(memories, start=1)
    ]
    return "Previously selected decisions for context:\n" + "\n\n".join(blocks)


def advisory_user_prompt(synthesis: str, memories: Sequence["DecisionMemory"]) -> str:
    context = selected_memory_context(memories)
    return (
        "Here is the confirmed decision context:\n\n"
        f"{synthesis}\n"
        f"{context}\n\n"
        "Respond STRICTLY in this format:\n\n"
        "TRADE-OFFS:\n"
        "- (max 3 bullet points)\n\n"
        "RISKS / BLIND SPOTS:\n"
        "- (max 3 bullet points)\n\n"
        "REFLECTIVE QUESTION:\n"
        "- (only one question, short)"
    )


def reflection_user_prompt(synthesis: str, reflection: str) -> str:
    return (
        "Decision context:\n"
        f"{synthesis}\n\n"
        "User reflection:\n"
        f"{reflection}\n\n"
        "Respond as a continuation of reflection."
    )


def injection_user_prompt(transcript: str, memories: Sequence["DecisionMemory"]) -> str:
    past = "\n\n".join(_memory_block(m) for m in memories)
    return (
        "Past decisions selected by the user:\n\n"
        f"{past}\n\n"
        "Conversation so far:\n"
        f"{transcript or '(nothing yet)'}"
    )


def injection_fallback(memories: Sequence["DecisionMemory"]) -> str:
    """Locally rendered context turn used when the model is unavailable."""
    lines = ["Keeping these past decisions in mind:"]
    for m in memories:
        line = f"- {m.decision or m.summary or 'Untitled decision'}"
        if m.reasoning:
            line += f" (guided by: {m.reasoning})"
        lines.append(line)
    return "\n".join(lines)


def _memory_block(memory: "DecisionMemory") -> str:
    return (
        f"Decision: {memory.decision or '—'}\n"
        f"Summary: {memory.summary or '—'}\n"
        f"Intent: {memory.intent or '—'}\n"
        f"Constraints: {memory.constraints or '—'}\n"
        f"Reasoning: {memory.reasoning or '—'}"
    )
