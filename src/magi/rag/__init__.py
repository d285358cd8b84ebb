"""Retrieval: routing, lexical ranking, comparison synthesis, answer generation."""

from magi.rag.retriever import SimpleRAG

__all__ = ["SimpleRAG"]
