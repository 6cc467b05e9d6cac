"""JSON-lines server exposing the structural cache and prompt tools over stdio."""

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import TextIO

from offload_mcp.adapters import AdapterRegistry, build_adapter_registry
from offload_mcp.chunking import TokenEstimator
from offload_mcp.config import CliOverrides, ServerConfig, load_effective_config
from offload_mcp.context import FileContextManager
from offload_mcp.logging import AuditEvent, JsonlAuditLogger, sanitize_arguments, utc_timestamp
from offload_mcp.tools.builtin import register_builtin_tools
from offload_mcp.tools.registry import ToolDispatchError, ToolRegistry

TOOLS_CALL_METHOD = "tools/call"


@dataclass(slots=True, frozen=True)
class Request:
    """One validated request line."""

    request_id: str
    method: str
    params: dict[str, object]


@dataclass(slots=True, frozen=True)
class RequestError(Exception):
    """Request rejected before any tool runs."""

    request_id: str
    code: str
    message: str


def build_arg_parser() -> argparse.ArgumentParser:
    """Build the startup argument parser; every flag overrides offload_mcp.toml."""
    parser = argparse.ArgumentParser(prog="offload-mcp")
    parser.add_argument("--workspace-root", required=False, default=".")
    parser.add_argument("--data-dir", required=False, default=None)
    parser.add_argument("--context-limit", type=int, required=False, default=None)
    parser.add_argument("--safety-margin", type=float, required=False, default=None)
    parser.add_argument("--max-file-bytes", type=int, required=False, default=None)
    return parser


class StdioServer:
    """Routes JSON-line requests to tools sharing one process-wide structural cache.

    Every request produces exactly one response envelope and one audit event.
    Tool failures never escape `handle_payload`; they are mapped to error codes.
    """

    def __init__(self, config: ServerConfig) -> None:
        self._config = config
        self._adapters: AdapterRegistry = build_adapter_registry()
        self._manager = FileContextManager(self._adapters)
        self._estimator = TokenEstimator(config.context.estimation_factor)
        self._audit_logger = JsonlAuditLogger(path=config.data_dir / "audit.jsonl")
        self._registry = ToolRegistry()
        register_builtin_tools(
            self._registry,
            manager=self._manager,
            config=config,
            estimator=self._estimator,
            read_audit_entries=self._audit_logger.read,
            adapter_names=self._adapters.names(),
        )
        self._generated_ids = 0

    @property
    def manager(self) -> FileContextManager:
        """Return the structural cache shared by every tool."""
        return self._manager

    @property
    def registry(self) -> ToolRegistry:
        """Return the tool registry."""
        return self._registry

    def serve(self, in_stream: TextIO, out_stream: TextIO) -> None:
        """Answer each non-blank input line with one JSON line."""
        for raw_line in in_stream:
            stripped = raw_line.strip()
            if not stripped:
                continue
            envelope = self.handle_json_line(stripped)
            out_stream.write(json.dumps(envelope, sort_keys=True) + "\n")
            out_stream.flush()

    def handle_json_line(self, raw_line: str) -> dict[str, object]:
        """Decode one line and dispatch it."""
        try:
            payload = json.loads(raw_line)
        except json.JSONDecodeError:
            rejection = RequestError(
                request_id=self.next_request_id(),
                code="INVALID_JSON",
                message="Request must be valid JSON.",
            )
            return self._reject(
                rejection, tool_name="invalid_json", arguments={"raw_line_length": len(raw_line)}
            )
        return self.handle_payload(payload)

    def handle_payload(self, payload: object) -> dict[str, object]:
        """Validate a decoded payload, run the tool and build its envelope."""
        try:
            request = self.parse_request(payload)
        except RequestError as rejection:
            return self._reject(rejection, tool_name="invalid_request", arguments={})

        try:
            tool_name, arguments = self.resolve_tool_call(request)
        except RequestError as rejection:
            return self._reject(rejection, tool_name=TOOLS_CALL_METHOD, arguments={})

        error_code: str | None = None
        try:
            result = self._registry.dispatch(name=tool_name, arguments=arguments)
        except ToolDispatchError as error:
            error_code = error.code
            envelope = self.error_response(request.request_id, error.code, error.message)
        except OSError as error:
            # Stat and read failures carry their own message unmodified.
            error_code = "FILE_ERROR"
            envelope = self.error_response(request.request_id, error_code, str(error))
        except Exception:
            error_code = "INTERNAL_ERROR"
            envelope = self.error_response(
                request.request_id, error_code, "Unhandled server error while executing tool."
            )
        else:
            warnings = _pop_result_warnings(result)
            envelope = self.success_response(request.request_id, result, warnings)

        self.record_audit_event(request.request_id, tool_name, arguments, error_code)
        return envelope

    def parse_request(self, payload: object) -> Request:
        """Return a `Request` or raise `RequestError` for malformed envelopes."""
        if not isinstance(payload, dict):
            raise RequestError(
                request_id=self.next_request_id(),
                code="INVALID_REQUEST",
                message="Request must be an object.",
            )
        request_id = self.extract_request_id(payload.get("id"))
        method = payload.get("method")
        if not isinstance(method, str) or not method:
            raise RequestError(
                request_id=request_id,
                code="INVALID_REQUEST",
                message="Request method must be a non-empty string.",
            )
        params = payload.get("params", {})
        if not isinstance(params, dict):
            raise RequestError(
                request_id=request_id,
                code="INVALID_PARAMS",
                message="Request params must be an object.",
            )
        return Request(request_id=request_id, method=method, params=params)

    @staticmethod
    def resolve_tool_call(request: Request) -> tuple[str, dict[str, object]]:
        """Unwrap `tools/call` requests; any other method names the tool directly."""
        if request.method != TOOLS_CALL_METHOD:
            return request.method, request.params
        name = request.params.get("name")
        if not isinstance(name, str) or not name:
            raise RequestError(
                request_id=request.request_id,
                code="INVALID_PARAMS",
                message="tools/call params.name must be a non-empty string.",
            )
        arguments = request.params.get("arguments", {})
        if not isinstance(arguments, dict):
            raise RequestError(
                request_id=request.request_id,
                code="INVALID_PARAMS",
                message="tools/call params.arguments must be an object.",
            )
        return name, arguments

    def extract_request_id(self, raw_id: object) -> str:
        """Accept string or integer ids; generate one otherwise."""
        if isinstance(raw_id, str) and raw_id:
            return raw_id
        if isinstance(raw_id, int) and not isinstance(raw_id, bool):
            return str(raw_id)
        return self.next_request_id()

    def next_request_id(self) -> str:
        """Return the next generated id (`req-000001`, ...)."""
        self._generated_ids += 1
        return f"req-{self._generated_ids:06d}"

    @staticmethod
    def success_response(
        request_id: str,
        result: dict[str, object],
        warnings: list[str] | None = None,
    ) -> dict[str, object]:
        """Build the success envelope."""
        return {
            "request_id": request_id,
            "ok": True,
            "result": result,
            "warnings": list(warnings or ()),
        }

    @staticmethod
    def error_response(request_id: str, code: str, message: str) -> dict[str, object]:
        """Build the error envelope; `result` is always empty."""
        return {
            "request_id": request_id,
            "ok": False,
            "result": {},
            "warnings": [],
            "error": {"code": code, "message": message},
        }

    def record_audit_event(
        self,
        request_id: str,
        tool_name: str,
        arguments: dict[str, object],
        error_code: str | None,
    ) -> None:
        """Append one sanitized audit event."""
        self._audit_logger.append(
            AuditEvent(
                timestamp=utc_timestamp(),
                request_id=request_id,
                tool=tool_name,
                ok=error_code is None,
                error_code=error_code,
                metadata=sanitize_arguments(arguments),
            )
        )

    def _reject(
        self, rejection: RequestError, tool_name: str, arguments: dict[str, object]
    ) -> dict[str, object]:
        self.record_audit_event(rejection.request_id, tool_name, arguments, rejection.code)
        return self.error_response(rejection.request_id, rejection.code, rejection.message)


def create_server(
    workspace_root: str,
    data_dir: str | None = None,
    cli_overrides: CliOverrides | None = None,
) -> StdioServer:
    """Load the effective config for `workspace_root` and build a server."""
    overrides = cli_overrides or CliOverrides()
    if data_dir is not None and overrides.data_dir is None:
        overrides = CliOverrides(
            data_dir=Path(data_dir).resolve(),
            context_limit=overrides.context_limit,
            safety_margin=overrides.safety_margin,
            max_file_bytes=overrides.max_file_bytes,
        )
    config = load_effective_config(workspace_root=Path(workspace_root).resolve(), overrides=overrides)
    return StdioServer(config=config)


def main(argv: list[str] | None = None) -> int:
    """Console entrypoint: serve stdin/stdout until EOF."""
    args = build_arg_parser().parse_args(argv)
    overrides = CliOverrides(
        data_dir=Path(args.data_dir).resolve() if args.data_dir else None,
        context_limit=args.context_limit,
        safety_margin=args.safety_margin,
        max_file_bytes=args.max_file_bytes,
    )
    server = create_server(workspace_root=args.workspace_root, cli_overrides=overrides)
    server.serve(in_stream=sys.stdin, out_stream=sys.stdout)
    return 0


def _pop_result_warnings(result: dict[str, object]) -> list[str]:
    # Tools hand warnings up through a reserved result key.
    raw = result.pop("__warnings__", None)
    if not isinstance(raw, list):
        return []
    return [item for item in raw if isinstance(item, str)]


if __name__ == "__main__":
    raise SystemExit(main())
