"""Ordered registries of create, update, delete and query callbacks."""

from __future__ import annotations

import os
import traceback
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

Handler = Callable[[Any], None]

_KINDS = ("create", "update", "delete", "query", "row_query")
_ROW_QUERY_NAME = "gorm:row_query"
_THIS_FILE = os.path.normcase(os.path.abspath(__file__))


def _caller_location() -> str:
    for frame in reversed(traceback.extract_stack()):
        if os.path.normcase(os.path.abspath(frame.filename)) != _THIS_FILE:
            return f"{frame.filename}:{frame.lineno}"
    return "<unknown>"


class Callback:
    """Holds every registered callback processor and the sorted handlers per kind."""

    def __init__(self, logger: Any = None) -> None:
        self.logger = logger
        self.creates: List[Handler] = []
        self.updates: List[Handler] = []
        self.deletes: List[Handler] = []
        self.queries: List[Handler] = []
        self.row_queries: List[Handler] = []
        self.processors: List[CallbackProcessor] = []

    def clone(self, logger: Any) -> "Callback":
        """Return a copy that uses ``logger`` and can be changed independently."""
        copy = Callback(logger)
        copy.creates = list(self.creates)
        copy.updates = list(self.updates)
        copy.deletes = list(self.deletes)
        copy.queries = list(self.queries)
        copy.row_queries = list(self.row_queries)
        copy.processors = list(self.processors)
        return copy

    def _processor(self, kind: str) -> "CallbackProcessor":
        return CallbackProcessor(parent=self, kind=kind, logger=self.logger)

    def create(self) -> "CallbackProcessor":
        """Start registering a callback run when creating records."""
        return self._processor("create")

    def update(self) -> "CallbackProcessor":
        """Start registering a callback run when updating records."""
        return self._processor("update")

    def delete(self) -> "CallbackProcessor":
        """Start registering a callback run when deleting records."""
        return self._processor("delete")

    def query(self) -> "CallbackProcessor":
        """Start registering a callback run when querying records."""
        return self._processor("query")

    def row_query(self) -> "CallbackProcessor":
        """Start registering a callback run for raw row queries."""
        return self._processor("row_query")

    def reorder(self) -> None:
        """Re-sort every registered processor into the per-kind handler lists."""
        grouped: Dict[str, List[CallbackProcessor]] = {kind: [] for kind in _KINDS}
        for processor in self.processors:
            if processor.name and processor.kind in grouped:
                grouped[processor.kind].append(processor)

        self.creates = sort_processors(grouped["create"])
        self.updates = sort_processors(grouped["update"])
        self.deletes = sort_processors(grouped["delete"])
        self.queries = sort_processors(grouped["query"])
        self.row_queries = sort_processors(grouped["row_query"])


@dataclass(eq=False)
class CallbackProcessor:
    """One registration request: a name, its ordering and its handler."""

    parent: Callback = field(repr=False)
    kind: str
    logger: Any = field(default=None, repr=False)
    name: str = ""
    before_name: str = ""
    after_name: str = ""
    replacing: bool = False
    removing: bool = False
    processor: Optional[Handler] = None

    def _log(self, level: str, message: str) -> None:
        if self.logger is not None:
            self.logger.print(level, message)

    def after(self, callback_name: str) -> "CallbackProcessor":
        """Place the callback after the one named ``callback_name``."""
        self.after_name = callback_name
        return self

    def before(self, callback_name: str) -> "CallbackProcessor":
        """Place the callback before the one named ``callback_name``."""
        self.before_name = callback_name
        return self

    def _commit(self) -> None:
        self.parent.processors.append(self)
        self.parent.reorder()

    def register(self, callback_name: str, callback: Handler) -> None:
        """Register ``callback`` under ``callback_name``."""
        if self.kind == "row_query":
            if not self.before_name and not self.after_name and callback_name != _ROW_QUERY_NAME:
                self._log(
                    "info",
                    f"Registering RowQuery callback {callback_name} without specify order "
                    f"with Before(), After(), applying Before('{_ROW_QUERY_NAME}') by default "
                    "for compatibility...",
                )
                self.before_name = _ROW_QUERY_NAME

        self._log("info", f"[info] registering callback `{callback_name}` from {_caller_location()}")
        self.name = callback_name
        self.processor = callback
        self._commit()

    def remove(self, callback_name: str) -> None:
        """Remove the callback registered under ``callback_name``."""
        self._log("info", f"[info] removing callback `{callback_name}` from {_caller_location()}")
        self.name = callback_name
        self.removing = True
        self._commit()

    def replace(self, callback_name: str, callback: Handler) -> None:
        """Replace the callback registered under ``callback_name``."""
        self._log("info", f"[info] replacing callback `{callback_name}` from {_caller_location()}")
        self.name = callback_name
        self.processor = callback
        self.replacing = True
        self._commit()

    def get(self, callback_name: str) -> Optional[Handler]:
        """Return the current handler for ``callback_name``, or None."""
        found: Optional[Handler] = None
        for processor in self.parent.processors:
            if processor.name == callback_name and processor.kind == self.kind:
                found = None if processor.removing else processor.processor
        return found


def _rindex(names: List[str], name: str) -> int:
    try:
        return len(names) - 1 - names[::-1].index(name)
    except ValueError:
        return -1


def sort_processors(processors: List[CallbackProcessor]) -> List[Handler]:
    """Order processors by their before/after constraints and return their handlers."""
    all_names: List[str] = []
    for processor in processors:
        if processor.name in all_names and not processor.replacing and not processor.removing:
            processor._log(
                "warning",
                f"[warning] duplicated callback `{processor.name}` from {_caller_location()}",
            )
        all_names.append(processor.name)

    sorted_names: List[str] = []

    def visit(current: CallbackProcessor) -> None:
        if current.name in sorted_names:
            return

        if current.before_name:
            if current.before_name in sorted_names:
                sorted_names.insert(_rindex(sorted_names, current.before_name), current.name)
            elif current.before_name in all_names:
                sorted_names.append(current.name)
                visit(processors[_rindex(all_names, current.before_name)])

        if current.after_name:
            if current.after_name in sorted_names:
                sorted_names.insert(_rindex(sorted_names, current.after_name) + 1, current.name)
            elif current.after_name in all_names:
                target = processors[_rindex(all_names, current.after_name)]
                if not target.before_name:
                    target.before_name = current.name
                visit(target)

        if current.name not in sorted_names:
            sorted_names.append(current.name)

    for processor in processors:
        visit(processor)

    handlers: List[Handler] = []
    for name in sorted_names:
        chosen = processors[_rindex(all_names, name)]
        if not chosen.removing:
            handlers.append(chosen.processor)
    return handlers