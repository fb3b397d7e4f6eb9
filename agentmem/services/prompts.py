"""
Prompt templates for memory extraction, compaction and client summaries.
"""

from __future__ import annotations

from typing import Optional, Sequence

EXTRACTION_SYSTEM_PROMPT = (
    "You are a memory extraction assistant. "
    "Extract key insights from conversations in a concise format."
)

SUMMARIZATION_SYSTEM_PROMPT = (
    "You are a memory summarization assistant. "
    "Combine related memories into concise summaries."
)

SUMMARY_SYSTEM_PROMPT = (
    "You are a memory analysis assistant. Analyze memories and summarize the main "
    "emotional impact on the agent, and its feelings toward the user. Use simple "
    "sentences. Focus on feelings, not facts. Agent and assistant are the same person, "
    "and they communicate with the user. Phrase the summary as if telling it to the "
    "user directly."
)


def extraction_user_prompt(conversation_text: str, max_insights: int, max_length: int) -> str:
    return f"""Extract 1-{max_insights} key insights from this conversation.
Focus on:
- User preferences, interests, or important facts about the user
- Main topics discussed
- Important facts or information shared
- Significant agent responses or statements

Format each insight as a short, concise statement (max {max_length} characters each).
Each insight should be standalone and meaningful.
Return ONLY the insights, one per line, without numbering or bullets.

Conversation:
{conversation_text}"""


def summarization_user_prompt(memories_text: str, max_length: int) -> str:
    return f"""Summarize these related memories into a single, concise memory (max {max_length} characters).
Remove redundancy and combine related information.
Return ONLY the summarized memory, no additional text.

Memories:
{memories_text}"""


def summary_user_prompt(agent_name: str, gender: Optional[str], memories_text: str) -> str:
    gender_line = f"\nAgent gender: {gender}" if gender else ""
    pronoun_hint = f" Use appropriate pronouns for {gender}." if gender else ""
    return f"""Agent name: {agent_name}{gender_line}

Based on these memories, write 4-5 short, simple sentences about how {agent_name} feels. Focus on the main emotional impact. Use {agent_name}'s name, not "the agent".{pronoun_hint}

Memories:
{memories_text}"""


def numbered_list(items: Sequence[str]) -> str:
    return "\n".join(f"{index + 1}. {item}" for index, item in enumerate(items))


def context_prompt(memories: Sequence[str]) -> str:
    body = "\n\n".join(f"{index + 1}. {memory}" for index, memory in enumerate(memories))
    return f"Relevant context from previous conversations:\n{body}"
