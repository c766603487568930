import warnings
from types import MappingProxyType
from typing import Any, Callable, Optional

import structlog

from mediahistory.utils import get_logging_user_id

Extractor = Callable[[Any], dict[str, Any]]


def _fields(**attributes):
    """
    Build an extractor copying the given attributes of an object into log
    fields, e.g. ``_fields(report_id="pk")``
    """
    return lambda obj: {
        field: getattr(obj, attribute, None) for field, attribute in attributes.items()
    }


# Context objects which may be passed by name to any log call and are
# expanded into plain fields
DEFAULT_EXTRACTORS: MappingProxyType = MappingProxyType(
    {
        "user": lambda user: {"user_id": get_logging_user_id(user)},
        "metadata": _fields(metadata_id="pk", media_lot="lot", media_source="source"),
        "report": _fields(report_id="pk", import_source="source", user_id="user_id"),
        "job": _fields(job_record_id="pk", job_name="name", task_id="task_id"),
    }
)


class StructuredLogger:
    """
    structlog wrapper used for every log entry which operators may want to
    search or alert on.

    Each entry needs a message and an ``event_code``; warnings and errors also
    need a ``reason`` and a ``reason_code``. The context objects named in
    ``DEFAULT_EXTRACTORS`` are expanded into fields, explicit keyword values
    win over expanded ones and ``None`` values are dropped.
    """

    def __init__(self, logger, context: Optional[dict[str, Any]] = None):
        self._logger = logger
        self._context = context or {}
        self._extractors = dict(DEFAULT_EXTRACTORS)

    @classmethod
    def get_logger(cls, name: str) -> "StructuredLogger":
        return cls(structlog.get_logger(f"structlog.{name}"))

    def register_extractor(self, key: str, extractor: Extractor) -> None:
        """
        Expand ``key`` with ``extractor`` on this logger only
        """
        if key in DEFAULT_EXTRACTORS:
            warnings.warn(
                f"Extractor for '{key}' overrides a default extractor for this "
                f"logger only.",
                UserWarning,
                stacklevel=2,
            )
        self._extractors[key] = extractor

    def unregister_extractor(self, key: str) -> None:
        self._extractors.pop(key, None)

    def _build_fields(self, event_code, reason, reason_code, context):
        fields = {
            "event_code": event_code,
            "reason": reason,
            "reason_code": reason_code,
        }

        for key, extractor in self._extractors.items():
            obj = context.pop(key, self._context.get(key))
            if obj:
                for field, value in extractor(obj).items():
                    if value is not None:
                        fields.setdefault(field, value)

        for key, value in self._context.items():
            if key not in self._extractors:
                fields.setdefault(key, value)

        fields.update(context)
        return {key: value for key, value in fields.items() if value is not None}

    def log(
        self,
        level: str,
        message: str,
        *,
        event_code: str,
        reason: Optional[str] = None,
        reason_code: Optional[str] = None,
        **context: Any,
    ) -> None:
        """
        Validate and emit one entry at ``level``. Use the level methods
        instead of calling this directly.

        Raises ``ValueError`` when a field required for ``level`` is missing.
        """
        if not message:
            raise ValueError("Log message is required.")
        if not event_code:
            raise ValueError("Structured logs must include an 'event_code' field.")
        if level in ("warning", "error") and not (reason and reason_code):
            raise ValueError(
                "Warnings and errors must include both 'reason' and 'reason_code'."
            )

        fields = self._build_fields(event_code, reason, reason_code, context)
        getattr(self._logger, level)(message, **fields)

    def debug(self, message: str, *, event_code: str, **kwargs):
        self.log("debug", message, event_code=event_code, **kwargs)

    def info(self, message: str, *, event_code: str, **kwargs):
        self.log("info", message, event_code=event_code, **kwargs)

    def warning(
        self, message: str, *, event_code: str, reason: str, reason_code: str, **kwargs
    ):
        self.log(
            "warning",
            message,
            event_code=event_code,
            reason=reason,
            reason_code=reason_code,
            **kwargs,
        )

    def error(
        self, message: str, *, event_code: str, reason: str, reason_code: str, **kwargs
    ):
        self.log(
            "error",
            message,
            event_code=event_code,
            reason=reason,
            reason_code=reason_code,
            **kwargs,
        )

    def exception(
        self, message: str, *, event_code: str, reason: str, reason_code: str, **kwargs
    ):
        """Log an error with the exception being handled attached."""
        kwargs.setdefault("exc_info", True)
        self.error(
            message,
            event_code=event_code,
            reason=reason,
            reason_code=reason_code,
            **kwargs,
        )

    def bind(self, **kwargs: Any) -> "StructuredLogger":
        """
        Return a copy of this logger with ``kwargs`` added to every entry
        """
        logger = StructuredLogger(self._logger, context={**self._context, **kwargs})
        logger._extractors = dict(self._extractors)
        return logger
