"""Retrieval: corpus building, lexical ranking and pgvector search."""

from .corpus import CorpusLoader, build_corpus
from .lexical_ranker import rank_corpus, rank_local
from .diversify import caps_for_intent, select_diverse, select_per_doc
from .query_embedder import QueryEmbedder
from .similarity_search import VectorHit, VectorStore
from .vector_retriever import VectorRetriever

__all__ = [
    "CorpusLoader",
    "build_corpus",
    "rank_corpus",
    "rank_local",
    "caps_for_intent",
    "select_diverse",
    "select_per_doc",
    "QueryEmbedder",
    "VectorHit",
    "VectorStore",
    "VectorRetriever",
]
