"""Debug logging of p4 invocations as JSON records."""

import json
import threading
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional


class DebugLogger:
    """Writes one JSON file per p4 request/response when enabled (class-level switch).

    Callers are responsible for redacting passwords before logging; the CLI
    wrapper only ever passes redacted argv.
    """

    _enabled: bool = False
    _log_dir: Optional[Path] = None
    _lock = threading.Lock()

    @classmethod
    def configure(cls, enabled: bool = False, log_dir: Optional[Path] = None) -> None:
        """Configure the debug logger.

        Args:
            enabled: Whether debug logging is enabled
            log_dir: Directory for log files (default: ~/.p4-mediator/logs)
        """
        with cls._lock:
            cls._enabled = enabled
            cls._log_dir = log_dir or Path.home() / ".p4-mediator" / "logs"

            if cls._enabled and cls._log_dir:
                cls._log_dir.mkdir(parents=True, exist_ok=True)

    @classmethod
    def is_enabled(cls) -> bool:
        return cls._enabled

    @classmethod
    def log_request(cls, operation: str, payload: Dict[str, Any], request_id: Optional[str] = None) -> str:
        """Log a command about to run.

        Args:
            operation: Operation name (e.g. "p4_edit")
            payload: Request details (redacted argv, cwd, timeout)
            request_id: Optional request ID; generated if not provided

        Returns:
            The request_id used, to pair with log_response()
        """
        if request_id is None:
            request_id = str(uuid.uuid4())
        if cls._enabled:
            cls._log("request", operation, payload, request_id)
        return request_id

    @classmethod
    def log_response(cls, operation: str, payload: Dict[str, Any], request_id: str) -> None:
        """Log the outcome of a command previously passed to log_request()."""
        if not cls._enabled:
            return
        cls._log("response", operation, payload, request_id)

    @classmethod
    def _log(cls, log_type: str, operation: str, data: Dict[str, Any], request_id: str) -> None:
        if not cls._enabled or not cls._log_dir:
            return

        now = datetime.now(timezone.utc)
        stamp = now.strftime("%Y%m%dT%H%M%SZ")
        safe_operation = operation.replace(" ", "_").replace("/", "_")
        filepath = cls._log_dir / f"{safe_operation}_{stamp}_{request_id[:4]}_{log_type}.json"

        log_entry = {
            "timestamp": now.isoformat(),
            "type": log_type,
            "operation": operation,
            "request_id": request_id,
            "payload": data,
        }

        with cls._lock:
            try:
                with open(filepath, "w", encoding="utf-8") as f:
                    json.dump(log_entry, f, indent=2, default=str)
            except OSError:
                # Debug records must never break the command being logged
                pass
