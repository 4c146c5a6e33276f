from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Iterable, Mapping, Optional, Set, Tuple, TypeVar, Union

from .checker.base import TypeChecker, normalize_path
from .config import Settings
from .errors import InvalidStateError, PatchEventError, ResolutionFailure
from .extractor import ComponentExtractor
from .logging import get_logger
from .models.records import ComponentLibraryMeta, ComponentMeta, FuncSchema, SingleComponentMeta
from .schema.builder import SchemaBuilder
from .schema.filters import compile_exclude, compile_ignore
from .schema.registry import ReferenceRegistry

logger = get_logger("session")

T = TypeVar("T")
MetaTransformer = Callable[[ComponentLibraryMeta], T]

PATCH_EVENTS = ("add", "change", "unlink")


class SessionState(str, Enum):
    IDLE = "idle"
    EXTRACTING = "extracting"
    CLOSED = "closed"


@dataclass(frozen=True, slots=True)
class PatchEvent:
    """An incremental edit to the project view."""

    event: str
    file_name: str
    text: Optional[str] = None

    def __post_init__(self) -> None:
        if self.event not in PATCH_EVENTS:
            raise PatchEventError(
                f"event must be one of {', '.join(PATCH_EVENTS)}, got {self.event!r}"
            )
        if not self.file_name:
            raise PatchEventError("fileName is required")
        if self.event == "unlink" and self.text is not None:
            raise PatchEventError("unlink events must not carry text")
        if self.event != "unlink" and self.text is None:
            raise PatchEventError(f"{self.event} events require text")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "PatchEvent":
        return cls(
            event=data.get("event", ""),
            file_name=data.get("fileName") or data.get("file_name") or "",
            text=data.get("text"),
        )

    @classmethod
    def add(cls, file_name: str | Path, text: str) -> "PatchEvent":
        return cls("add", str(file_name), text)

    @classmethod
    def change(cls, file_name: str | Path, text: str) -> "PatchEvent":
        return cls("change", str(file_name), text)

    @classmethod
    def unlink(cls, file_name: str | Path) -> "PatchEvent":
        return cls("unlink", str(file_name))


class MetaSession:
    """Owns the live project view and the reference registry of one entry point.

    Callers are expected to serialize ``extract`` calls and to coalesce bursts
    of file events themselves; overlapping extractions raise
    ``InvalidStateError`` instead of waiting.
    """

    def __init__(
        self,
        checker: TypeChecker,
        entry_file: str | Path,
        settings: Optional[Settings] = None,
    ) -> None:
        self.checker = checker
        self.settings = settings or Settings()
        self.entry_file = normalize_path(entry_file)
        self.registry = ReferenceRegistry()
        options = self.settings.schema_options
        self._exclude = compile_exclude(options.exclude)
        self._ignore = compile_ignore(options.ignore, checker)
        self._state = SessionState.IDLE
        self._close_requested = False
        self._pending_files: Set[str] = set()

    @property
    def state(self) -> SessionState:
        return self._state

    # --- public API ---
    def patch(self, event: Union[PatchEvent, Mapping[str, Any]]) -> None:
        if not isinstance(event, PatchEvent):
            event = PatchEvent.from_mapping(event)
        if self._state == SessionState.CLOSED or self._close_requested:
            raise InvalidStateError("patch", SessionState.CLOSED.value)

        path = normalize_path(event.file_name)
        if event.event == "unlink":
            self.checker.remove_file(path)
        else:
            self.checker.update_file(path, event.text or "")

        if self._state == SessionState.EXTRACTING:
            # Applied to the registry once the in-flight pass settles.
            self._pending_files.add(path)
            logger.debug("Deferred invalidation of %s until extraction settles", path)
            return
        removed = self.registry.invalidate_file(path)
        logger.debug("Patched %s (%s), invalidated %d types", path, event.event, len(removed))

    def patch_files(self, events: Iterable[Union[PatchEvent, Mapping[str, Any]]]) -> None:
        for event in events:
            self.patch(event)

    async def extract(self, transformer: Optional[MetaTransformer] = None) -> Any:
        meta = await self._run_pass(self._extract_library)
        return transformer(meta) if transformer is not None else meta

    async def extract_component(
        self, name: str, transformer: Optional[Callable[[SingleComponentMeta], T]] = None
    ) -> Any:
        """Extract one exported component and only the types it reaches.

        Entries of other components stay in the registry for later passes.
        Raises ``ResolutionFailure`` when the entry exports no such component.
        """
        meta = await self._run_pass(lambda: self._extract_single(name))
        return transformer(meta) if transformer is not None else meta

    def close(self) -> None:
        """Release project resources; deferred while an extraction is in flight."""
        if self._state == SessionState.CLOSED:
            return
        if self._state == SessionState.EXTRACTING:
            self._close_requested = True
            return
        self._release()

    def __enter__(self) -> "MetaSession":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # --- helpers ---
    async def _run_pass(self, run: Callable[[], T]) -> T:
        if self._state != SessionState.IDLE:
            raise InvalidStateError("extract", self._state.value)
        self._state = SessionState.EXTRACTING
        try:
            await self.checker.synchronize()
            return run()
        finally:
            self._settle()

    def _begin_pass(self) -> Tuple[SchemaBuilder, ComponentExtractor]:
        self.registry.begin_generation()
        builder = SchemaBuilder(
            self.checker,
            self.registry,
            self.settings.schema_options,
            exclude=self._exclude,
            ignore=self._ignore,
        )
        return builder, ComponentExtractor(self.checker, builder, self.settings)

    def _extract_library(self) -> ComponentLibraryMeta:
        builder, extractor = self._begin_pass()
        components: dict[str, ComponentMeta] = {}
        functions: dict[str, FuncSchema] = {}
        for export in self.checker.get_exports(self.entry_file):
            if export.is_component:
                components[export.name] = extractor.extract(export.name, export.node)
                continue
            func = extractor.extract_function(export.node)
            if func is not None:
                functions[export.name] = func

        swept = self.registry.sweep()
        stats = self.registry.get_stats()
        logger.info(
            "Extracted %d components, %d functions, %d types "
            "(generation %d, %d build steps, %d cache hits, %d dropped)",
            len(components),
            len(functions),
            stats["entry_count"],
            stats["generation"],
            builder.steps,
            stats["hit_count"],
            len(swept),
        )
        return ComponentLibraryMeta(
            components=components,
            functions=functions,
            types=self.registry.snapshot(),
        )

    def _extract_single(self, name: str) -> SingleComponentMeta:
        builder, extractor = self._begin_pass()
        for export in self.checker.get_exports(self.entry_file):
            if export.is_component and export.name == name:
                component = extractor.extract(export.name, export.node)
                break
        else:
            raise ResolutionFailure(
                f"No component named '{name}' is exported", node=self.entry_file
            )

        keys = self.registry.reachable()
        logger.info(
            "Extracted %s with %d types (generation %d, %d build steps)",
            name,
            len(keys),
            self.registry.generation,
            builder.steps,
        )
        return SingleComponentMeta(component=component, types=self.registry.snapshot(keys))

    def _settle(self) -> None:
        for path in sorted(self._pending_files):
            self.registry.invalidate_file(path)
        self._pending_files.clear()
        if self._close_requested:
            self._release()
        else:
            self._state = SessionState.IDLE

    def _release(self) -> None:
        self.checker.close()
        self.registry.invalidate()
        self._pending_files.clear()
        self._close_requested = False
        self._state = SessionState.CLOSED
        logger.debug("Closed session for %s", self.entry_file)
