"""Shared test fixtures for componentmeta tests.

The fake checker serves hand-built type graphs so schema resolution and
session behavior can be tested without parsing any source.
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set

import pytest

from componentmeta.checker.base import (
    Declaration,
    DeclaredMembers,
    DocComment,
    ExportedSymbol,
    Parameter,
    ResolvedType,
    Signature,
    Symbol,
    TypeChecker,
    TypeKind,
    normalize_path,
)
from componentmeta.models.records import BlockTagContentTextMeta, BlockTagMeta, TypeMeta


class FakeType(ResolvedType):
    """Type whose structure is assigned directly; members may be filled in later for cycles."""

    def __init__(
        self,
        kind: TypeKind,
        text: str,
        *,
        name: Optional[str] = None,
        file: Optional[str] = None,
        literal: Optional[str] = None,
        args: Optional[List[ResolvedType]] = None,
        members: Optional[List["FakeMember"]] = None,
        variants: Optional[List[ResolvedType]] = None,
        elements: Optional[List[ResolvedType]] = None,
        signature: Optional[Signature] = None,
        constraint: Optional[ResolvedType] = None,
        default: Optional[ResolvedType] = None,
        via: Optional[List[str]] = None,
    ) -> None:
        self.kind = kind
        self.text = text
        self.name = name
        self.declaration = Declaration(file=file, name=name or text) if file else None
        self.literal = literal
        self.args = list(args or [])
        self.member_list = list(members or [])
        self.variant_list = list(variants or [])
        self.element_list = list(elements or [])
        self.signature = signature
        self._constraint = constraint
        self._default = default
        self.via = list(via or [])

    def type_arguments(self) -> List[ResolvedType]:
        return list(self.args)

    def members(self) -> List["FakeMember"]:
        return list(self.member_list)

    def variants(self) -> List[ResolvedType]:
        return list(self.variant_list)

    def elements(self) -> List[ResolvedType]:
        return list(self.element_list)

    def signatures(self) -> List[Signature]:
        return [self.signature] if self.signature is not None else []

    def constraint(self) -> Optional[ResolvedType]:
        return self._constraint

    def default(self) -> Optional[ResolvedType]:
        return self._default

    def source_files(self) -> Set[str]:
        return super().source_files() | set(self.via)


@dataclass
class FakeMember:
    name: str
    type: ResolvedType
    optional: bool = False
    default: Optional[str] = None
    doc: DocComment = field(default_factory=DocComment)


@dataclass
class FakeComponent:
    kind: TypeMeta = TypeMeta.CLASS
    props: List[FakeMember] = field(default_factory=list)
    events: List[FakeMember] = field(default_factory=list)
    slots: List[FakeMember] = field(default_factory=list)
    exposed: List[FakeMember] = field(default_factory=list)
    type_parameters: List[ResolvedType] = field(default_factory=list)


class FakeChecker(TypeChecker):
    language = "fake"

    def __init__(self) -> None:
        self.files: Dict[str, str] = {}
        self.exports: Dict[str, Any] = {}
        self.gate: Optional[asyncio.Event] = None
        self.sync_count = 0
        self.resolve_count = 0
        self.closed = False

    # --- test setup ---
    def export_component(self, name: str, component: FakeComponent) -> None:
        self.exports[name] = component

    def export_value(self, name: str, member: FakeMember) -> None:
        self.exports[name] = member

    # --- TypeChecker API ---
    def resolve_type(self, node: FakeMember) -> ResolvedType:
        self.resolve_count += 1
        return node.type

    def resolve_symbol(self, node: FakeMember) -> Symbol:
        return Symbol(name=node.name, optional=node.optional, default=node.default)

    def get_declared_members(self, component: FakeComponent) -> DeclaredMembers:
        return DeclaredMembers(
            kind=component.kind,
            props=list(component.props),
            events=list(component.events),
            slots=list(component.slots),
            exposed=list(component.exposed),
            type_parameters=list(component.type_parameters),
        )

    def get_doc_comment(self, node: FakeMember) -> DocComment:
        return node.doc

    def get_exports(self, entry_file: str) -> List[ExportedSymbol]:
        return [
            ExportedSymbol(name=name, node=node, is_component=isinstance(node, FakeComponent))
            for name, node in self.exports.items()
        ]

    def update_file(self, path: str, text: str) -> None:
        self.files[normalize_path(path)] = text

    def remove_file(self, path: str) -> None:
        self.files.pop(normalize_path(path), None)

    async def synchronize(self) -> None:
        self.sync_count += 1
        if self.gate is not None:
            await self.gate.wait()

    def close(self) -> None:
        self.closed = True


def doc(description: str = "", *modifiers: str, **block_tags: str) -> DocComment:
    return DocComment(
        description=description,
        block_tags=[
            BlockTagMeta(tag=tag, content=[BlockTagContentTextMeta(kind="text", text=text)])
            for tag, text in block_tags.items()
        ],
        modifier_tags=list(modifiers),
    )


def primitive(text: str) -> FakeType:
    return FakeType(TypeKind.PRIMITIVE, text)


def literal(text: str) -> FakeType:
    return FakeType(TypeKind.LITERAL, text, literal=text)


def func_type(text: str, params: List[Parameter], returns: ResolvedType, **kwargs: Any) -> FakeType:
    return FakeType(
        TypeKind.FUNCTION,
        text,
        signature=Signature(parameters=params, return_type=returns),
        **kwargs,
    )


@pytest.fixture
def checker() -> FakeChecker:
    return FakeChecker()

