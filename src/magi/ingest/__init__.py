"""MAGI ingest pipeline: artifact loaders and the corpus scan."""

from magi.ingest.base import BaseLoader, IngestError
from magi.ingest.generic_json import GenericJsonLoader
from magi.ingest.loader import IngestReport, load_corpus
from magi.ingest.mini_apps import MiniAppListLoader
from magi.ingest.narrative import NarrativeLoader
from magi.ingest.protocols import ProtocolListLoader
from magi.ingest.stats import ProtocolStatsLoader

__all__ = [
    "BaseLoader",
    "GenericJsonLoader",
    "IngestError",
    "IngestReport",
    "MiniAppListLoader",
    "NarrativeLoader",
    "ProtocolListLoader",
    "ProtocolStatsLoader",
    "load_corpus",
]
