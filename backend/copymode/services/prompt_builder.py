"""
System prompt assembly for copy generation.

The system prompt is built from four parts, in order: the agent persona,
the expert's business context, the retrieved knowledge and the final task
instructions. The agent persona always takes priority over the rest.
"""
from typing import Any, Dict, List, Optional, Sequence
from loguru import logger

from copymode.core.config import settings


NOT_DEFINED = "Not defined"
ERROR_MESSAGE_PREFIX = "⚠️"
TRUNCATION_MARKER = "... (system instructions truncated to fit the limit)"

AGENT_PREAMBLE = (
    "YOU ARE A SPECIALIZED AI AGENT. YOUR BEHAVIOR, TONE AND STYLE GUIDELINES ARE DEFINED "
    "IN THE 'MANDATORY AGENT INSTRUCTIONS' BLOCK BELOW. FOLLOW THEM STRICTLY IN EVERY ANSWER, "
    "WITH PRIORITY OVER ANY STYLE SUGGESTED BY ADDITIONAL CONTEXT OR CONVERSATION HISTORY.\n"
    "ANY LATER INSTRUCTION TO USE \"ADDITIONAL CONTEXT\" OR \"KNOWLEDGE BASE\" MEANS USING THE "
    "*INFORMATION* IN THOSE TEXTS, PRESENTED *ENTIRELY* WITHIN THE PERSONA AND RULES OF THE "
    "MANDATORY INSTRUCTIONS BLOCK."
)
AGENT_BLOCK_START = "--- BEGIN MANDATORY AGENT INSTRUCTIONS (DO NOT ALTER THIS BLOCK) ---"
AGENT_BLOCK_END = "--- END MANDATORY AGENT INSTRUCTIONS ---"


class PromptBuilder:
    """Builds the system prompt and message list sent to the LLM."""

    def __init__(self, max_chars: Optional[int] = None, language: Optional[str] = None):
        self.max_chars = max_chars or settings.MAX_SYSTEM_PROMPT_CHARS
        self.language = language or settings.OUTPUT_LANGUAGE

    def agent_block(self, agent_prompt: str) -> str:
        return f"{AGENT_PREAMBLE}\n{AGENT_BLOCK_START}\n{agent_prompt}\n{AGENT_BLOCK_END}\n"

    def expert_block(self, expert: Optional[Any], expert_requested: bool = False) -> str:
        """
        Business context of the selected expert.

        An expert that was requested but could not be loaded produces a note
        instead, so the model knows context is missing.
        """
        if expert is None:
            if expert_requested:
                return "\n\nNote: An Expert profile was selected, but its details are not available right now."
            return ""

        lines = [
            f"\n\n## Additional Context about the User's Business/Product (Expert: {expert.name}):",
            f"Main Niche: {expert.niche or NOT_DEFINED}",
            f"Target Audience: {expert.target_audience or NOT_DEFINED}",
            f"Main Deliverables/Products/Services: {expert.deliverables or NOT_DEFINED}",
            f"Key Benefits: {expert.benefits or NOT_DEFINED}",
            f"Common Objections/Questions: {expert.objections or NOT_DEFINED}",
            "Remember: use this expert information, but answer strictly according to the AGENT "
            "INSTRUCTIONS defined above.",
        ]
        return "\n".join(lines) + "\n"

    def knowledge_context(self, chunks: Sequence[Dict[str, Any]]) -> str:
        """Retrieved chunks rendered under a heading ("" when there are none)."""
        if not chunks:
            return ""

        entries = []
        for chunk in chunks:
            if chunk.get("original_file_name"):
                entries.append(f"- Excerpt from file \"{chunk['original_file_name']}\": {chunk['chunk_text']}")
            else:
                entries.append(f"- Excerpt: {chunk['chunk_text']}")

        return "\n\n## Relevant Knowledge Base (Retrieved Dynamically):\n" + "\n".join(entries)

    def knowledge_block(
        self,
        chunks: Optional[Sequence[Dict[str, Any]]],
        error: Optional[str] = None
    ) -> str:
        """
        Knowledge part of the prompt.

        Args:
            chunks: Chunks returned by the similarity search
            error: Retrieval error message; produces a note instead of chunks
        """
        if error is not None:
            detail = f"Detail: {error}" if error else ""
            return f"\n\nNote: There was a problem accessing the knowledge base. {detail}\n"

        context = self.knowledge_context(chunks or [])
        if not context:
            return (
                "\n\nNote: No specific knowledge base information was found for this question. "
                "Rely on the AGENT INSTRUCTIONS and the conversation history.\n"
            )

        return (
            context
            + "\nRemember: use the information from this knowledge base, but answer strictly "
            "according to the AGENT INSTRUCTIONS defined at the beginning.\n---\n"
        )

    def final_instructions(
        self,
        user_message: str,
        content_type_name: Optional[str] = None,
        content_type_description: Optional[str] = None
    ) -> str:
        name = content_type_name or "the requested content"
        description = f" ({content_type_description})" if content_type_description else ""
        return (
            "\n\n## Current Task and Final Execution Guidelines:\n"
            f"- The user asked for: {name}{description}.\n"
            f"- The user's latest message (the current prompt to answer) is: \"{user_message}\"\n"
            f"- Write your answer exclusively in {self.language}.\n"
            "- You MUST STRICTLY KEEP THE AGENT'S PERSONA, TONE AND RULES as detailed in the "
            "'MANDATORY AGENT INSTRUCTIONS' BLOCK at the beginning of these instructions. "
            "DO NOT SOFTEN. DO NOT CHANGE THE TONE. DO NOT BREAK THE AGENT'S RULES."
        )

    def truncate(self, system_prompt: str) -> str:
        """Cap the prompt at max_chars, ending with the truncation marker."""
        if len(system_prompt) <= self.max_chars:
            return system_prompt

        logger.warning(
            f"System instructions truncated from {len(system_prompt)} to {self.max_chars} characters"
        )
        return system_prompt[:self.max_chars - len(TRUNCATION_MARKER)] + TRUNCATION_MARKER

    def assemble(self, parts: Sequence[str]) -> str:
        """Join trimmed non-empty parts with blank lines and apply the size cap."""
        system_prompt = "\n\n".join(part.strip() for part in parts if part and part.strip())
        return self.truncate(system_prompt)

    def build_system_prompt(
        self,
        agent_prompt: str,
        user_message: str,
        expert: Optional[Any] = None,
        expert_requested: bool = False,
        knowledge_chunks: Optional[Sequence[Dict[str, Any]]] = None,
        knowledge_error: Optional[str] = None,
        content_type_name: Optional[str] = None,
        content_type_description: Optional[str] = None
    ) -> str:
        parts = [
            self.agent_block(agent_prompt),
            self.expert_block(expert, expert_requested),
            self.knowledge_block(knowledge_chunks, knowledge_error),
            self.final_instructions(user_message, content_type_name, content_type_description),
        ]
        for label, part in zip(("agent", "expert", "knowledge", "final"), parts):
            logger.debug(f"Prompt part {label}: {len(part)} chars")
        return self.assemble(parts)

    @staticmethod
    def history(messages: Sequence[Any]) -> List[Dict[str, str]]:
        """Conversation history for the LLM, skipping error messages shown to the user."""
        return [
            {"role": message.role, "content": message.content}
            for message in messages
            if not message.content.startswith(ERROR_MESSAGE_PREFIX)
        ]

    @staticmethod
    def build_messages(
        system_prompt: str,
        history: Sequence[Dict[str, str]],
        user_message: str
    ) -> List[Dict[str, str]]:
        return [
            {"role": "system", "content": system_prompt},
            *history,
            {"role": "user", "content": user_message},
        ]


# Singleton instance
prompt_builder = PromptBuilder()
