"""Built-in tool handlers over the structural cache and prompt assembly."""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import asdict
from pathlib import Path

from offload_mcp.chunking import (
    ContextWindow,
    PromptStages,
    TokenEstimator,
    build_conversation,
    chunk_payload,
    plan_conversation,
)
from offload_mcp.config import ServerConfig
from offload_mcp.context import (
    FileContextManager,
    analyze_project_structure,
    compare_integration,
    find_pattern_usage,
    trace_execution_path,
)
from offload_mcp.tools.registry import ToolDispatchError, ToolHandler, ToolRegistry

MAX_AUDIT_ENTRIES = 200
MAX_TRACE_DEPTH = 25
MAX_PATTERN_CONTEXT = 20


def register_builtin_tools(
    registry: ToolRegistry,
    manager: FileContextManager,
    config: ServerConfig,
    estimator: TokenEstimator,
    read_audit_entries: Callable[[str | None, int], list[dict[str, object]]],
    adapter_names: tuple[str, ...],
) -> None:
    """Register every context, prompt and server tool."""
    root = config.workspace_root
    max_bytes = config.analysis.max_file_bytes
    window = ContextWindow(
        context_limit=config.context.context_limit,
        safety_margin=config.context.safety_margin,
    )
    registry.register("context.analyze_file", _analyze_file_handler(manager, root, max_bytes))
    registry.register("context.relationships", _relationships_handler(manager, root))
    registry.register("context.dependents", _dependents_handler(manager, root))
    registry.register("context.calls_to", _calls_to_handler(manager))
    registry.register("context.calls_from", _calls_from_handler(manager))
    registry.register("context.find_symbol", _find_symbol_handler(manager))
    registry.register("context.compare_signatures", _compare_signatures_handler(manager, root))
    registry.register("context.evict", _evict_handler(manager, root))
    registry.register("context.stats", _stats_handler(manager))
    registry.register(
        "context.compare_integration", _compare_integration_handler(manager, root, max_bytes)
    )
    registry.register("context.trace_execution_path", _trace_handler(manager))
    registry.register("context.analyze_project", _analyze_project_handler(manager, config))
    registry.register("context.find_patterns", _find_patterns_handler(config))
    registry.register("prompt.chunk", _chunk_handler(window))
    registry.register("prompt.build_conversation", _conversation_handler(window, estimator))
    registry.register(
        "server.status", _status_handler(registry, manager, config, window, adapter_names)
    )
    registry.register("server.audit_log", _audit_log_handler(read_audit_entries))


def resolve_workspace_path(root: Path, value: str) -> Path:
    """Resolve a tool path argument; relative paths are taken from the workspace root."""
    candidate = Path(value)
    if not candidate.is_absolute():
        candidate = root / candidate
    return candidate


def _require_string(arguments: dict[str, object], key: str, tool: str) -> str:
    value = arguments.get(key)
    if not isinstance(value, str) or not value:
        raise ToolDispatchError(
            code="INVALID_PARAMS", message=f"{tool} {key} must be a non-empty string."
        )
    return value


def _optional_bool(arguments: dict[str, object], key: str, tool: str) -> bool:
    value = arguments.get(key, False)
    if not isinstance(value, bool):
        raise ToolDispatchError(code="INVALID_PARAMS", message=f"{tool} {key} must be a boolean.")
    return value


def _string_list(arguments: dict[str, object], key: str, tool: str) -> list[str]:
    value = arguments.get(key, [])
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ToolDispatchError(
            code="INVALID_PARAMS", message=f"{tool} {key} must be a list of strings."
        )
    return list(value)


def _checked_source_path(root: Path, value: str, max_bytes: int) -> Path:
    path = resolve_workspace_path(root, value)
    size = path.stat().st_size
    if size > max_bytes:
        raise ToolDispatchError(
            code="FILE_TOO_LARGE",
            message=f"{value} is {size} bytes; max_file_bytes is {max_bytes}.",
        )
    return path


def _analyze_file_handler(manager: FileContextManager, root: Path, max_bytes: int) -> ToolHandler:
    def handler(arguments: dict[str, object]) -> dict[str, object]:
        tool = "context.analyze_file"
        path_value = _require_string(arguments, "path", tool)
        force = _optional_bool(arguments, "force_reparse", tool)
        include_content = _optional_bool(arguments, "include_content", tool)
        path = _checked_source_path(root, path_value, max_bytes)
        record = manager.analyze(path, force_reparse=force)
        return record.to_dict(include_content=include_content)

    return handler


def _relationships_handler(manager: FileContextManager, root: Path) -> ToolHandler:
    def handler(arguments: dict[str, object]) -> dict[str, object]:
        path_value = _require_string(arguments, "path", "context.relationships")
        edges = manager.relationships_of(resolve_workspace_path(root, path_value))
        return {"path": path_value, "edges": [edge.to_dict() for edge in edges]}

    return handler


def _dependents_handler(manager: FileContextManager, root: Path) -> ToolHandler:
    def handler(arguments: dict[str, object]) -> dict[str, object]:
        path_value = _require_string(arguments, "path", "context.dependents")
        dependents = manager.dependents_of(resolve_workspace_path(root, path_value))
        return {"path": path_value, "dependents": dependents}

    return handler


def _calls_to_handler(manager: FileContextManager) -> ToolHandler:
    def handler(arguments: dict[str, object]) -> dict[str, object]:
        name = _require_string(arguments, "name", "context.calls_to")
        return {"name": name, "calls": [site.to_dict() for site in manager.calls_to(name)]}

    return handler


def _calls_from_handler(manager: FileContextManager) -> ToolHandler:
    def handler(arguments: dict[str, object]) -> dict[str, object]:
        method_name = _require_string(arguments, "method_name", "context.calls_from")
        class_value = arguments.get("class_name")
        if class_value is not None and not isinstance(class_value, str):
            raise ToolDispatchError(
                code="INVALID_PARAMS",
                message="context.calls_from class_name must be a string or null.",
            )
        class_name = class_value or None
        sites = manager.calls_from(class_name, method_name)
        caller = f"{class_name}::{method_name}" if class_name else method_name
        return {"caller": caller, "calls": [site.to_dict() for site in sites]}

    return handler


def _find_symbol_handler(manager: FileContextManager) -> ToolHandler:
    def handler(arguments: dict[str, object]) -> dict[str, object]:
        name = _require_string(arguments, "name", "context.find_symbol")
        return {"name": name, "symbols": [hit.to_dict() for hit in manager.find_symbol(name)]}

    return handler


def _compare_signatures_handler(manager: FileContextManager, root: Path) -> ToolHandler:
    def handler(arguments: dict[str, object]) -> dict[str, object]:
        tool = "context.compare_signatures"
        calling_file = _require_string(arguments, "calling_file", tool)
        class_name = _require_string(arguments, "class_name", tool)
        method_name = _require_string(arguments, "method_name", tool)
        comparison = manager.compare_signatures(
            resolve_workspace_path(root, calling_file), class_name, method_name
        )
        return comparison.to_dict()

    return handler


def _evict_handler(manager: FileContextManager, root: Path) -> ToolHandler:
    def handler(arguments: dict[str, object]) -> dict[str, object]:
        path_value = arguments.get("path")
        if path_value is None:
            manager.evict()
            return {"evicted": "all"}
        if not isinstance(path_value, str) or not path_value:
            raise ToolDispatchError(
                code="INVALID_PARAMS", message="context.evict path must be a non-empty string."
            )
        manager.evict(resolve_workspace_path(root, path_value))
        return {"evicted": path_value}

    return handler


def _stats_handler(manager: FileContextManager) -> ToolHandler:
    def handler(_: dict[str, object]) -> dict[str, object]:
        return asdict(manager.stats())

    return handler


def _compare_integration_handler(
    manager: FileContextManager, root: Path, max_bytes: int
) -> ToolHandler:
    def handler(arguments: dict[str, object]) -> dict[str, object]:
        tool = "context.compare_integration"
        files = _string_list(arguments, "files", tool)
        if not files:
            raise ToolDispatchError(
                code="INVALID_PARAMS", message=f"{tool} files must list at least one path."
            )
        focus = _string_list(arguments, "focus", tool)
        paths = [_checked_source_path(root, value, max_bytes) for value in files]
        report = compare_integration(manager, paths, focus)
        return {
            "files_analyzed": report.files_analyzed,
            "missing_calls": [finding.to_dict() for finding in report.missing_calls],
            "missing_imports": [finding.to_dict() for finding in report.missing_imports],
        }

    return handler


def _trace_handler(manager: FileContextManager) -> ToolHandler:
    def handler(arguments: dict[str, object]) -> dict[str, object]:
        tool = "context.trace_execution_path"
        entry_point = _require_string(arguments, "entry_point", tool)
        depth = arguments.get("depth", 5)
        if isinstance(depth, bool) or not isinstance(depth, int) or depth < 1:
            raise ToolDispatchError(code="INVALID_PARAMS", message=f"{tool} depth must be >= 1.")
        trace = trace_execution_path(manager, entry_point, min(depth, MAX_TRACE_DEPTH))
        return {
            "entry_point": trace.entry_point,
            "depth": trace.depth,
            "execution_path": list(trace.path),
            "visited_nodes": trace.visited_nodes,
        }

    return handler


def _analyze_project_handler(manager: FileContextManager, config: ServerConfig) -> ToolHandler:
    def handler(arguments: dict[str, object]) -> dict[str, object]:
        root_value = arguments.get("root")
        if root_value is None:
            project_root = config.workspace_root
        elif isinstance(root_value, str) and root_value:
            project_root = resolve_workspace_path(config.workspace_root, root_value)
        else:
            raise ToolDispatchError(
                code="INVALID_PARAMS",
                message="context.analyze_project root must be a non-empty string.",
            )
        if not project_root.is_dir():
            raise ToolDispatchError(
                code="INVALID_PARAMS",
                message=f"context.analyze_project root is not a directory: {root_value}",
            )
        summary = analyze_project_structure(manager, project_root, config.analysis)
        payload = asdict(summary)
        payload["skipped"] = list(summary.skipped)
        if summary.skipped:
            payload["__warnings__"] = [
                f"Skipped {len(summary.skipped)} file(s) above max_file_bytes."
            ]
        return payload

    return handler


def _find_patterns_handler(config: ServerConfig) -> ToolHandler:
    def handler(arguments: dict[str, object]) -> dict[str, object]:
        tool = "context.find_patterns"
        patterns = _string_list(arguments, "patterns", tool)
        if not patterns:
            raise ToolDispatchError(
                code="INVALID_PARAMS", message=f"{tool} patterns must list at least one pattern."
            )
        include_context = arguments.get("include_context", 3)
        if (
            isinstance(include_context, bool)
            or not isinstance(include_context, int)
            or not 0 <= include_context <= MAX_PATTERN_CONTEXT
        ):
            raise ToolDispatchError(
                code="INVALID_PARAMS",
                message=f"{tool} include_context must be between 0 and {MAX_PATTERN_CONTEXT}.",
            )
        root_value = arguments.get("root")
        search_root = config.workspace_root
        if root_value is not None:
            if not isinstance(root_value, str) or not root_value:
                raise ToolDispatchError(
                    code="INVALID_PARAMS", message=f"{tool} root must be a non-empty string."
                )
            search_root = resolve_workspace_path(config.workspace_root, root_value)
        if not search_root.is_dir():
            raise ToolDispatchError(
                code="INVALID_PARAMS", message=f"{tool} root is not a directory: {root_value}"
            )
        try:
            report = find_pattern_usage(search_root, patterns, include_context, config.analysis)
        except re.error as error:
            raise ToolDispatchError(
                code="INVALID_PARAMS", message=f"{tool} invalid pattern: {error}"
            ) from error
        payload: dict[str, object] = {
            "patterns": patterns,
            "files_searched": report.files_searched,
            "match_count": len(report.matches),
            "matches": [match.to_dict() for match in report.matches],
            "skipped": list(report.skipped),
        }
        if report.skipped:
            payload["__warnings__"] = [
                f"Skipped {len(report.skipped)} file(s) above max_file_bytes."
            ]
        return payload

    return handler


def _chunk_handler(window: ContextWindow) -> ToolHandler:
    def handler(arguments: dict[str, object]) -> dict[str, object]:
        payload = arguments.get("payload")
        if not isinstance(payload, str):
            raise ToolDispatchError(
                code="INVALID_PARAMS", message="prompt.chunk payload must be a string."
            )
        budget = arguments.get("max_chunk_tokens", window.chunk_budget_tokens())
        if isinstance(budget, bool) or not isinstance(budget, int) or budget < 1:
            raise ToolDispatchError(
                code="INVALID_PARAMS", message="prompt.chunk max_chunk_tokens must be >= 1."
            )
        chunks = chunk_payload(payload, budget)
        return {"max_chunk_tokens": budget, "chunk_count": len(chunks), "chunks": chunks}

    return handler


def _conversation_handler(window: ContextWindow, estimator: TokenEstimator) -> ToolHandler:
    def handler(arguments: dict[str, object]) -> dict[str, object]:
        tool = "prompt.build_conversation"
        texts: dict[str, str] = {}
        for key in ("system_and_context", "data_payload", "output_instructions"):
            value = arguments.get(key, "")
            if not isinstance(value, str):
                raise ToolDispatchError(
                    code="INVALID_PARAMS", message=f"{tool} {key} must be a string."
                )
            texts[key] = value
        stages = PromptStages(**texts)
        if "chunks" in arguments:
            chunks = _string_list(arguments, "chunks", tool)
            conversation = build_conversation(stages, chunks)
        else:
            conversation = plan_conversation(stages, window, estimator)
        payload = conversation.to_dict()
        payload["estimated_data_tokens"] = estimator.estimate(stages.data_payload)
        return payload

    return handler


def _status_handler(
    registry: ToolRegistry,
    manager: FileContextManager,
    config: ServerConfig,
    window: ContextWindow,
    adapter_names: tuple[str, ...],
) -> ToolHandler:
    def handler(_: dict[str, object]) -> dict[str, object]:
        return {
            "workspace_root": str(config.workspace_root),
            "adapters": list(adapter_names),
            "tools": list(registry.names()),
            "cache": asdict(manager.stats()),
            "context_window": {
                "context_limit": window.context_limit,
                "effective_limit": window.effective_limit,
                "chunk_budget_tokens": window.chunk_budget_tokens(),
            },
            "effective_config": config.to_public_dict(),
        }

    return handler


def _audit_log_handler(
    read_audit_entries: Callable[[str | None, int], list[dict[str, object]]],
) -> ToolHandler:
    def handler(arguments: dict[str, object]) -> dict[str, object]:
        since_value = arguments.get("since")
        limit_value = arguments.get("limit", MAX_AUDIT_ENTRIES)

        since: str | None = since_value if isinstance(since_value, str) else None
        limit = limit_value if isinstance(limit_value, int) else MAX_AUDIT_ENTRIES
        limit = max(1, min(limit, MAX_AUDIT_ENTRIES))
        return {"entries": read_audit_entries(since, limit)}

    return handler
