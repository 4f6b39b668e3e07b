"""Prompt templates used by the orchestrator.

Kept separate so callers can inspect or replace the wording without
touching the compaction logic.
"""

# Template for summarizing transcript history that no longer fits the budget
CONTEXT_SUMMARY_PROMPT = """Summarize this multi-agent conversation history so the participants can continue without it.
Keep:
- Decisions and conclusions reached, and who reached them
- Open questions, pending tasks and disagreements
- Tool or function results that later turns rely on
- Names of the agents involved

Discard:
- Greetings and pleasantries
- Repetition and restated arguments

CONVERSATION TO SUMMARIZE:
{conversation}

Provide a concise summary (aim for {max_words} words or fewer):"""

# Header placed in front of generated summaries inside the transcript
SUMMARY_MESSAGE_TEMPLATE = "[Summary of {count} earlier messages]\n{summary}"

# Placeholder left by bookend compaction
BOOKEND_PLACEHOLDER_TEMPLATE = "[{count} messages compressed]"


def format_context_summary_prompt(conversation: str, max_words: int = 300) -> str:
    """Format the prompt for summarizing conversation context.

    Args:
        conversation: The conversation text to summarize
        max_words: Target upper bound for the summary length

    Returns:
        Formatted summary prompt
    """
    return CONTEXT_SUMMARY_PROMPT.format(conversation=conversation, max_words=max_words)


def format_summary_message(count: int, summary: str) -> str:
    """Format the content of the system message carrying a summary."""
    return SUMMARY_MESSAGE_TEMPLATE.format(count=count, summary=summary.strip())


def format_bookend_placeholder(count: int) -> str:
    """Format the content of the bookend placeholder message."""
    return BOOKEND_PLACEHOLDER_TEMPLATE.format(count=count)
