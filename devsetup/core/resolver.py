"""Options loading and lookup.

OptionsResolver turns the on-disk options document into a DesiredState
and answers ad hoc jq-style lookups against the raw document. It never
fails a run: a missing, unreadable or malformed document is replaced by
the built-in defaults (and the defaults are written back so the user has
something to edit), and every lookup degrades to its caller-supplied
default when no query engine is available.
"""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Protocol

from devsetup.core.errors import ErrorKind, ProvisionError
from devsetup.core.options import DesiredState, default_document, parse_options
from devsetup.core.structured import StrDict, as_obj_list, as_str_dict
from devsetup.output.console import ConsoleProtocol, Style
from devsetup.platform.files import atomic_write_text

__all__ = ["OptionsResolver", "PathQuery", "QueryEngine"]

_TOKEN = re.compile(r"\.([A-Za-z_][A-Za-z0-9_\-]*)|\[(\d+)\]")


class QueryEngine(Protocol):
    """Evaluates a pointer such as `.git.user.name` against a document."""

    def query(self, document: object, pointer: str) -> object | None: ...


class PathQuery:
    """Built-in engine for the jq path subset the options use.

    Supports `.key` steps and `[n]` list indices. Anything else, and any
    step that does not resolve, yields None.
    """

    def query(self, document: object, pointer: str) -> object | None:
        pointer = pointer.strip()
        if pointer == ".":
            return document

        pos = 0
        current: object | None = document
        while pos < len(pointer):
            match = _TOKEN.match(pointer, pos)
            if match is None:
                return None
            key, index = match.groups()
            if key is not None:
                table = as_str_dict(current)
                current = table.get(key) if table is not None else None
            else:
                items = as_obj_list(current)
                i = int(index)
                current = items[i] if items is not None and i < len(items) else None
            if current is None:
                return None
            pos = match.end()
        return current


class OptionsResolver:
    def __init__(self, console: ConsoleProtocol, engine: QueryEngine | None) -> None:
        """Initialize the resolver.

        Args:
            console: Output for warnings about replaced documents
            engine: Query engine, or None when the host has none
        """
        self._console = console
        self._engine = engine
        self._document: StrDict | None = None
        self._state: DesiredState | None = None
        self.last_error: ProvisionError | None = None

    @property
    def engine_available(self) -> bool:
        return self._engine is not None

    @property
    def state(self) -> DesiredState:
        if self._state is None:
            return DesiredState.default()
        return self._state

    def load(self, path: Path) -> DesiredState:
        """Load the options document at path into a DesiredState."""
        self._console.info("Loading configuration options...")
        self.last_error = None

        if not path.exists():
            self._console.warning("Options file not found, using default options")
            document = default_document()
            if self._persist(path, document):
                self._console.info(f"Created default options file at {path}")
        else:
            self._console.info(f"Using options from {path}")
            document = self._read(path)

        self._document = document

        if self._engine is None:
            self._console.info("No JSON query engine available, using default options")
            self._state = DesiredState.default()
            return self._state

        parsed = parse_options(document)
        for issue in parsed.issues:
            self._console.warning(f"Options: {issue}; using the default for it")
        self._state = parsed.state
        return self._state

    def get(self, pointer: str, default: object) -> object:
        """Look up pointer in the loaded document.

        Returns default when no engine is available, nothing has been
        loaded, or the pointer resolves to absent or null.
        """
        if self._engine is None or self._document is None:
            return default
        value = self._engine.query(self._document, pointer)
        if value is None:
            return default
        return value

    def _read(self, path: Path) -> StrDict:
        try:
            data: object = json.loads(path.read_text(encoding="utf-8"))
        except OSError as e:
            return self._replace_invalid(path, "Options file is unreadable", str(e))
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            return self._replace_invalid(path, "Invalid JSON in options file", str(e))

        document = as_str_dict(data)
        if document is None:
            return self._replace_invalid(
                path, "Options document must be a JSON object", type(data).__name__
            )
        return document

    def _replace_invalid(self, path: Path, message: str, detail: str) -> StrDict:
        self.last_error = ProvisionError(ErrorKind.CONFIG_INVALID, message, detail)
        self._console.warning(f"{message}, using default options")
        self._console.print(detail, Style.DIM)
        document = default_document()
        if self._persist(path, document):
            self._console.info(f"Rewrote {path} with default options")
        return document

    def _persist(self, path: Path, document: StrDict) -> bool:
        try:
            atomic_write_text(path, json.dumps(document, indent=2) + "\n")
        except OSError as e:
            self._console.warning(f"Could not write options file {path}: {e}")
            return False
        return True
