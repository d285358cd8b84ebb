"""Answer generation on top of the retriever.

``ask()`` is what a chat front end calls: retrieve context, wrap it in the
MAGI system prompt, ask the model. ``generate_insights()`` backs the daily
scheduled post and rotates its topic by weekday.
"""

from __future__ import annotations

import logging
from datetime import date

from magi.rag import llm_client
from magi.rag.retriever import SimpleRAG

logger = logging.getLogger(__name__)

BASE_PERSONA = "You are MAGI AI, a concise finance assistant."
INSIGHT_PERSONA = (
    "You are a DeFi expert analyzing WorldChain data. Be informative and accurate."
)
CONTEXT_LIMIT = 3

# date.weekday(): Monday == 0
_INSIGHT_TOPICS: dict[int, tuple[str, str]] = {
    0: ("top protocols", "List the top 3 WorldChain protocols by TVL with stats"),
    1: ("protocol comparison", "Compare two popular WorldChain protocols"),
    2: ("mini apps", "Highlight interesting mini apps on WorldChain"),
    3: ("DeFi tip", "Provide DeFi tips for WorldChain users"),
    4: ("protocol feature", "Highlight unique features of WorldChain protocols"),
    5: ("market trend", "Share insights on current WorldChain DeFi market trends"),
    6: ("weekly recap", "Provide a weekly recap of WorldChain DeFi performance"),
}


def build_system_prompt(context: str = "", playbook: str | None = None) -> str:
    """Persona, then the optional playbook, then the optional retrieved context."""
    prompt = BASE_PERSONA + "\n\n"
    if playbook:
        prompt += playbook
    if context:
        prompt += f"\n\n-----\n\nContext:\n{context}"
    return prompt


def ask(
    rag: SimpleRAG,
    question: str,
    model: str,
    playbook: str | None = None,
    system_message: str | None = None,
) -> str:
    """Answer *question*.

    A caller-supplied *system_message* carries its own context, so retrieval
    is skipped in that case.
    """
    if system_message is None:
        chunks = rag.find_relevant_documents(question, CONTEXT_LIMIT)
        if not chunks:
            logger.info("No relevant documents found for query: %s", question)
        system_message = build_system_prompt(rag.format_context(chunks), playbook)

    return llm_client.complete(
        model=model,
        messages=[
            {"role": "system", "content": system_message},
            {"role": "user", "content": question},
        ],
    )


def insight_query(day: date) -> tuple[str, str]:
    """``(topic, retrieval query)`` for the insight scheduled on *day*."""
    return _INSIGHT_TOPICS[day.weekday()]


def generate_insights(rag: SimpleRAG, model: str, day: date | None = None) -> str | None:
    """Produce the daily insight text, or ``None`` if generation fails."""
    topic, query = insight_query(day or date.today())
    logger.info("Generating %s insights", topic)
    try:
        context = rag.format_context(rag.find_relevant_documents(query, CONTEXT_LIMIT))
        prompt = f"Generate informative insights about WorldChain {topic}. Use this context: {context}"
        return ask(rag, prompt, model, system_message=INSIGHT_PERSONA)
    except Exception:
        logger.exception("Error generating DeFi insights")
        return None
