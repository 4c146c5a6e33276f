"""Reference registry for flattened type schemas.

Named, reusable type declarations are stored once under a stable key and
referenced everywhere else through ``RefSchema`` pointers. The registry is
designed to:
1. Deduplicate shared types and break cycles in recursive type graphs
2. Survive between extraction generations, so unchanged declarations are
   not re-walked
3. Invalidate every entry derived from an edited or deleted file, including
   entries that only reach that file through other references
4. Forget entries that the latest extraction pass no longer reaches

Usage:
    registry = ReferenceRegistry()
    registry.begin_generation()

    key = ReferenceRegistry.make_key("/src/types.ts", "ButtonSize")
    registry.put(key, schema, files={"/src/types.ts"})

    # After /src/types.ts changes
    registry.invalidate_file("/src/types.ts")

    # After a full pass, keep what the pass referenced
    registry.sweep()
"""

from __future__ import annotations

import copy
import hashlib
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Optional, Set

from ..checker.base import normalize_path
from ..models.records import PropertyMetaSchema


@dataclass(slots=True)
class RegistryEntry:
    schema: PropertyMetaSchema
    generation: int
    files: Set[str] = field(default_factory=set)
    refs: Set[str] = field(default_factory=set)


class ReferenceRegistry:
    """Hash-keyed store of named type schemas, owned by a single session.

    Attributes:
        generation: Counter of extraction passes; entries stamped with the
                    current generation are served as references without
                    re-walking the type.
    """

    def __init__(self) -> None:
        self._entries: Dict[str, RegistryEntry] = {}
        self._revisions: Dict[str, int] = {}
        self._touched: Set[str] = set()
        self._generation = 0
        self._hits = 0
        self._misses = 0

    @staticmethod
    def make_key(file_path: str, declaration_name: str) -> str:
        """Derive the stable key of a declaration.

        Args:
            file_path: File declaring the type (normalized before hashing)
            declaration_name: Declaration name, including rendered type
                              arguments for generic instantiations

        Returns:
            Hex digest identifying the declaration across generations
        """
        raw = f"{normalize_path(file_path)}:{declaration_name}"
        return hashlib.sha1(raw.encode("utf-8")).hexdigest()

    @property
    def generation(self) -> int:
        return self._generation

    def begin_generation(self) -> int:
        """Start a new extraction pass.

        Entries that survived invalidation still describe unchanged
        declarations, so they are carried into the new generation.
        """
        self._generation += 1
        self._touched.clear()
        for entry in self._entries.values():
            entry.generation = self._generation
        return self._generation

    def touch(self, key: str) -> None:
        """Mark ``key`` as referenced by the current pass."""
        self._touched.add(key)

    def reachable(self, roots: Optional[Iterable[str]] = None) -> Set[str]:
        """Keys reachable from ``roots`` (default: keys touched this pass) through refs."""
        pending = list(self._touched if roots is None else roots)
        found: Set[str] = set()
        while pending:
            key = pending.pop()
            entry = self._entries.get(key)
            if key in found or entry is None:
                continue
            found.add(key)
            pending.extend(entry.refs)
        return found

    def sweep(self) -> Set[str]:
        """Drop entries the current pass no longer reaches.

        Returns:
            The set of removed keys
        """
        live = self.reachable()
        dead = set(self._entries) - live
        for key in dead:
            del self._entries[key]
        return dead

    def lookup(self, key: str) -> Optional[PropertyMetaSchema]:
        entry = self._entries.get(key)
        if entry is None:
            self._misses += 1
            return None
        self._hits += 1
        return entry.schema

    def is_current(self, key: str) -> bool:
        entry = self._entries.get(key)
        if entry is not None and entry.generation == self._generation:
            self._hits += 1
            return True
        self._misses += 1
        return False

    def put(
        self,
        key: str,
        schema: PropertyMetaSchema,
        files: Iterable[str] = (),
        refs: Iterable[str] = (),
    ) -> None:
        """Insert or overwrite an entry.

        Args:
            key: Registry key from ``make_key``
            schema: Fully built schema of the declaration
            files: Normalized paths of every file the schema was built from
            refs: Keys the schema points at through ``RefSchema`` values
        """
        if key in self._entries:
            self._revisions[key] = self._revisions.get(key, 0) + 1
        else:
            self._revisions.setdefault(key, 0)
        self._entries[key] = RegistryEntry(
            schema=schema,
            generation=self._generation,
            files=set(files),
            refs=set(refs) - {key},
        )

    def revision(self, key: str) -> int:
        """Number of times ``key`` was overwritten."""
        return self._revisions.get(key, 0)

    def invalidate_file(self, path: str) -> Set[str]:
        """Drop every entry built from ``path`` and every entry referring to one.

        Returns:
            The set of removed keys
        """
        target = normalize_path(path)
        stale = {key for key, entry in self._entries.items() if target in entry.files}
        pending = list(stale)
        while pending:
            removed = pending.pop()
            for key, entry in self._entries.items():
                if key not in stale and removed in entry.refs:
                    stale.add(key)
                    pending.append(key)
        for key in stale:
            del self._entries[key]
        return stale

    def invalidate(self) -> None:
        """Drop every entry."""
        self._entries.clear()
        self._touched.clear()

    def snapshot(self, keys: Optional[Iterable[str]] = None) -> Dict[str, PropertyMetaSchema]:
        """Materialize entries as an independent mapping.

        Args:
            keys: Restrict the snapshot to these keys; all entries by default
        """
        wanted = None if keys is None else set(keys)
        return {
            key: copy.deepcopy(entry.schema)
            for key, entry in self._entries.items()
            if wanted is None or key in wanted
        }

    def get_stats(self) -> Dict[str, Any]:
        """Get registry statistics.

        Returns:
            Dictionary with hit_count, miss_count, entry_count and generation
        """
        return {
            "hit_count": self._hits,
            "miss_count": self._misses,
            "entry_count": len(self._entries),
            "generation": self._generation,
        }

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
