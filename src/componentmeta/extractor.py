from __future__ import annotations

import copy
from typing import Any, List, Optional

from .checker.base import TypeChecker, TypeKind
from .config import Settings
from .logging import get_logger
from .models.records import (
    ComponentMeta,
    EventMeta,
    ExposeMeta,
    FuncSchema,
    PropertyMeta,
    RefSchema,
    SlotMeta,
)
from .schema.builder import SchemaBuilder

logger = get_logger("extractor")

PUBLIC_TAG = "public"


class ComponentExtractor:
    """Builds ``ComponentMeta`` values from a component's declared surface."""

    def __init__(self, checker: TypeChecker, builder: SchemaBuilder, settings: Settings) -> None:
        self.checker = checker
        self.builder = builder
        self.settings = settings
        self._global_props = frozenset(settings.global_props)

    def extract(self, name: str, entry: Any) -> ComponentMeta:
        declared = self.checker.get_declared_members(entry)
        type_params = [self.builder.build(param) for param in declared.type_parameters]
        meta = ComponentMeta(
            name=name,
            type=declared.kind,
            type_params=type_params or None,
            props=self._props(declared.props),
            events=[self._event(node) for node in declared.events],
            slots=[self._slot(node) for node in declared.slots],
            exposed=self._exposed(declared.exposed),
        )
        logger.debug(
            "Extracted %s (%s): %d props, %d events, %d slots, %d exposed",
            name,
            self.checker.node_identity(entry),
            len(meta.props),
            len(meta.events),
            len(meta.slots),
            len(meta.exposed),
        )
        return meta

    def extract_function(self, entry: Any) -> Optional[FuncSchema]:
        """Return the signature schema of an exported function, or None for other values."""
        resolved = self.checker.resolve_type(entry)
        if resolved.kind != TypeKind.FUNCTION:
            return None
        schema = self.builder.build(resolved)
        if isinstance(schema, RefSchema):
            schema = copy.deepcopy(self.builder.registry.lookup(schema.ref))
        return schema if isinstance(schema, FuncSchema) else None

    # --- categories ---
    def _props(self, nodes: List[Any]) -> List[PropertyMeta]:
        props: List[PropertyMeta] = []
        for node in nodes:
            symbol = self.checker.resolve_symbol(node)
            if self.settings.filter_global_props and symbol.name in self._global_props:
                continue
            props.append(self.builder.build_property(node, self._global_props))
        return props

    def _event(self, node: Any) -> EventMeta:
        symbol = self.checker.resolve_symbol(node)
        resolved = self.checker.resolve_type(node)
        doc = self.checker.get_doc_comment(node)
        return EventMeta(
            name=symbol.name,
            type=resolved.text,
            schema=self.builder.build(resolved),
            description=doc.description,
            default=doc.default,
            comment=doc.to_meta(),
        )

    def _slot(self, node: Any) -> SlotMeta:
        symbol = self.checker.resolve_symbol(node)
        resolved = self.checker.resolve_type(node)
        doc = self.checker.get_doc_comment(node)
        return SlotMeta(
            name=symbol.name,
            type=resolved.text,
            schema=self.builder.build(resolved),
            description=doc.description,
            default=symbol.default if symbol.default is not None else doc.default,
            comment=doc.to_meta(),
        )

    def _exposed(self, nodes: List[Any]) -> List[ExposeMeta]:
        exposed: List[ExposeMeta] = []
        for node in nodes:
            doc = self.checker.get_doc_comment(node)
            if self.settings.filter_exposed and PUBLIC_TAG not in doc.modifier_tags:
                continue
            symbol = self.checker.resolve_symbol(node)
            resolved = self.checker.resolve_type(node)
            exposed.append(
                ExposeMeta(
                    name=symbol.name,
                    type=resolved.text,
                    schema=self.builder.build(resolved),
                    description=doc.description,
                    comment=doc.to_meta(),
                )
            )
        return exposed
