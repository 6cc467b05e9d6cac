"""Structural context cache and derived indices."""

from .analysis import (
    ExecutionTrace,
    IntegrationFinding,
    IntegrationReport,
    PatternMatch,
    PatternSearchReport,
    ProjectSummary,
    analyze_project_structure,
    compare_integration,
    find_pattern_usage,
    trace_execution_path,
)
from .calls import CONTROL_FLOW_KEYWORDS, CallGraph, call_range, extract_call_sites
from .discovery import discover_source_files, should_exclude
from .manager import FileContextManager, count_arguments
from .models import (
    EDGE_KINDS,
    CacheStats,
    CallSite,
    FileRecord,
    RelationshipEdge,
    SignatureComparison,
    SymbolHit,
    entity_kind,
    entity_to_dict,
    normalize_path,
)
from .relationships import RelationshipIndex, derive_edges
from .store import FileRecordStore, StoreLookup
from .symbols import SymbolTable

__all__ = [
    "CONTROL_FLOW_KEYWORDS",
    "CacheStats",
    "CallGraph",
    "CallSite",
    "EDGE_KINDS",
    "ExecutionTrace",
    "FileContextManager",
    "FileRecord",
    "FileRecordStore",
    "IntegrationFinding",
    "IntegrationReport",
    "PatternMatch",
    "PatternSearchReport",
    "ProjectSummary",
    "RelationshipEdge",
    "RelationshipIndex",
    "SignatureComparison",
    "StoreLookup",
    "SymbolHit",
    "SymbolTable",
    "analyze_project_structure",
    "call_range",
    "compare_integration",
    "count_arguments",
    "derive_edges",
    "discover_source_files",
    "entity_kind",
    "entity_to_dict",
    "extract_call_sites",
    "find_pattern_usage",
    "normalize_path",
    "should_exclude",
    "trace_execution_path",
]
