from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Set

from ..models.records import BlockTagMeta, CommentMeta, TypeMeta


class TypeKind(str, Enum):
    """Structural kind of a resolved type, as reported by the collaborator."""

    LITERAL = "literal"
    PRIMITIVE = "primitive"
    UNION = "union"
    ENUM = "enum"
    ARRAY = "array"
    TUPLE = "tuple"
    FUNCTION = "function"
    OBJECT = "object"
    TYPE_PARAM = "type_param"
    OPAQUE = "opaque"


@dataclass(frozen=True, slots=True)
class Declaration:
    file: str
    name: str
    line: int = 0


@dataclass(slots=True)
class Symbol:
    name: str
    optional: bool = False
    default: Optional[str] = None
    declaration: Optional[Declaration] = None


@dataclass(slots=True)
class DocComment:
    description: str = ""
    block_tags: List[BlockTagMeta] = field(default_factory=list)
    modifier_tags: List[str] = field(default_factory=list)

    def to_meta(self) -> CommentMeta:
        return CommentMeta(
            block_tags=list(self.block_tags), modifier_tags=list(self.modifier_tags)
        )

    @property
    def default(self) -> Optional[str]:
        for tag in self.block_tags:
            if tag.tag == "default":
                return tag.text or None
        return None


class ResolvedType:
    """A type as resolved by the collaborator.

    Structure is exposed lazily through methods so that self-referential
    types can be walked one level at a time.
    """

    kind: TypeKind
    text: str
    name: Optional[str] = None
    declaration: Optional[Declaration] = None
    literal: Optional[str] = None

    def type_arguments(self) -> List["ResolvedType"]:
        return []

    def members(self) -> List[Any]:
        """Member nodes of an object type; resolve them through the checker."""
        return []

    def variants(self) -> List["ResolvedType"]:
        """Alternatives of a union or enum."""
        return []

    def elements(self) -> List["ResolvedType"]:
        """Element type of an array, or the element types of a tuple."""
        return []

    def signatures(self) -> List["Signature"]:
        return []

    def constraint(self) -> Optional["ResolvedType"]:
        return None

    def default(self) -> Optional["ResolvedType"]:
        return None

    def canonical_text(self) -> str:
        """Rendering with type arguments substituted; tells generic instantiations apart."""
        args = self.type_arguments()
        if args and self.name:
            return f"{self.name}<{', '.join(arg.canonical_text() for arg in args)}>"
        return self.text

    def source_files(self) -> Set[str]:
        """Files whose contents this resolution depends on."""
        if self.declaration is None:
            return set()
        return {self.declaration.file}

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.kind.value} {self.text!r}>"


@dataclass(slots=True)
class Parameter:
    name: str
    type: ResolvedType
    optional: bool = False


@dataclass(slots=True)
class Signature:
    parameters: List[Parameter]
    return_type: ResolvedType
    type_parameters: List[ResolvedType] = field(default_factory=list)
    is_async: bool = False


@dataclass(slots=True)
class DeclaredMembers:
    kind: TypeMeta = TypeMeta.UNKNOWN
    props: List[Any] = field(default_factory=list)
    events: List[Any] = field(default_factory=list)
    slots: List[Any] = field(default_factory=list)
    exposed: List[Any] = field(default_factory=list)
    type_parameters: List[ResolvedType] = field(default_factory=list)


@dataclass(slots=True)
class ExportedSymbol:
    name: str
    node: Any
    is_component: bool = False


class TypeChecker(ABC):
    """Project-aware type resolution engine consumed by the extractor."""

    language: str

    @abstractmethod
    def resolve_type(self, node: Any) -> ResolvedType:
        """Return the declared type of a member, parameter or exported value node."""

    @abstractmethod
    def resolve_symbol(self, node: Any) -> Symbol:
        """Return name, optionality and default value of a declaration node."""

    @abstractmethod
    def get_declared_members(self, component: Any) -> DeclaredMembers:
        """Enumerate the public surface of a component export."""

    @abstractmethod
    def get_doc_comment(self, node: Any) -> DocComment:
        """Return the documentation comment attached to a node (empty if none)."""

    @abstractmethod
    def get_exports(self, entry_file: str) -> List[ExportedSymbol]:
        """List the exported values of an entry file."""

    @abstractmethod
    def update_file(self, path: str, text: str) -> None:
        """Track or replace the text of a project file."""

    @abstractmethod
    def remove_file(self, path: str) -> None:
        """Drop a file from the project view."""

    async def synchronize(self) -> None:
        """Bring the project view up to date before a resolution pass."""

    def node_identity(self, node: Any) -> str:
        return repr(node)

    def close(self) -> None:
        """Release project resources."""


class CheckerRegistry:
    def __init__(self) -> None:
        self._registry: Dict[str, Callable[..., TypeChecker]] = {}

    def register(self, language: str, factory: Callable[..., TypeChecker]) -> None:
        self._registry[language] = factory

    def create(self, language: str, **kwargs: Any) -> TypeChecker:
        try:
            factory = self._registry[language]
        except KeyError as exc:
            raise ValueError(f"No checker registered for {language}") from exc
        return factory(**kwargs)


def normalize_path(path: str | Path) -> str:
    """Normalize a file path to the form used for registry keys and file tracking."""
    return Path(path).expanduser().resolve().as_posix()
