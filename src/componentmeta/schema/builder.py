from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional, Set

from ..checker.base import (
    ResolvedType,
    Signature,
    Symbol,
    TypeChecker,
    TypeKind,
    normalize_path,
)
from ..config import SchemaOptions
from ..errors import ConfigurationError
from ..logging import get_logger
from ..models.records import (
    REFERABLE_SCHEMAS,
    ArgumentMeta,
    ArraySchema,
    BasicSchema,
    EnumSchema,
    FuncSchema,
    LiteralSchema,
    ObjectSchema,
    PropertyMeta,
    PropertyMetaSchema,
    RefSchema,
    SignatureMetaSchema,
    TypeParamMetaSchema,
    TypeParamSchema,
    UnknownSchema,
)
from .filters import TypePredicate, compile_exclude, compile_ignore
from .registry import ReferenceRegistry

logger = get_logger("schema")

# Kinds worth flattening into the registry when the type has a declaration.
REGISTRABLE_KINDS = {
    TypeKind.OBJECT,
    TypeKind.UNION,
    TypeKind.ENUM,
    TypeKind.FUNCTION,
    TypeKind.ARRAY,
    TypeKind.TUPLE,
}

_PROPERTY_FIELDS = {f.name for f in dataclasses.fields(PropertyMeta)}


@dataclass(slots=True)
class _Frame:
    key: str
    files: Set[str] = field(default_factory=set)
    refs: Set[str] = field(default_factory=set)


@dataclass(slots=True)
class ResolverContext:
    """Raw type information offered to custom schema resolvers."""

    checker: TypeChecker
    node: Any
    symbol: Symbol
    type: ResolvedType
    options: SchemaOptions


class SchemaBuilder:
    """Converts resolved types into flattened ``PropertyMetaSchema`` values.

    One builder serves one extraction generation of a registry. Named types
    are registered under their key and returned as ``RefSchema``; a key that
    is already current, or still being built further up the stack, short
    circuits to a reference, which bounds the walk on cyclic type graphs.
    """

    def __init__(
        self,
        checker: TypeChecker,
        registry: ReferenceRegistry,
        options: Optional[SchemaOptions] = None,
        *,
        exclude: Optional[TypePredicate] = None,
        ignore: Optional[TypePredicate] = None,
    ) -> None:
        self.checker = checker
        self.registry = registry
        self.options = options or SchemaOptions()
        self._exclude = exclude or compile_exclude(self.options.exclude)
        self._ignore = ignore or compile_ignore(self.options.ignore, checker)
        self._in_progress: Set[str] = set()
        self._frames: List[_Frame] = []
        self.steps = 0

    # --- public API ---
    def build(self, resolved: ResolvedType) -> PropertyMetaSchema:
        self.steps += 1
        self._touch(resolved)
        if self._is_suppressed(resolved):
            return self._suppressed(resolved)

        key = self.key_for(resolved)
        if key is None:
            return self._expand(resolved)
        if key in self._in_progress:
            logger.debug("Cycle through %s resolved to reference %s", resolved.text, key)
            self._note_ref(key)
            return RefSchema(ref=key)
        if self.registry.is_current(key):
            self._note_ref(key)
            return RefSchema(ref=key)

        frame = _Frame(key=key, files={normalize_path(path) for path in resolved.source_files()})
        self._in_progress.add(key)
        self._frames.append(frame)
        try:
            schema = self._expand(resolved)
        finally:
            self._frames.pop()
            self._in_progress.discard(key)

        if not isinstance(schema, REFERABLE_SCHEMAS):
            return schema
        schema.ref = key
        self.registry.put(key, schema, files=frame.files, refs=frame.refs)
        self._note_ref(key)
        return RefSchema(ref=key)

    def key_for(self, resolved: ResolvedType) -> Optional[str]:
        declaration = resolved.declaration
        if declaration is None or resolved.kind not in REGISTRABLE_KINDS:
            return None
        name = declaration.name
        args = resolved.type_arguments()
        if args:
            name = f"{name}<{', '.join(arg.canonical_text() for arg in args)}>"
        return self.registry.make_key(declaration.file, name)

    def build_signature(self, signature: Signature) -> SignatureMetaSchema:
        type_params = [self.build(param) for param in signature.type_parameters]
        return SignatureMetaSchema(
            is_async=signature.is_async,
            return_type=self.build(signature.return_type),
            arguments=[
                ArgumentMeta(
                    key=param.name,
                    type=param.type.text,
                    required=not param.optional,
                    schema=self.build(param.type),
                )
                for param in signature.parameters
            ],
            type_params=type_params or None,
        )

    def build_property(
        self, node: Any, global_names: Iterable[str] = ()
    ) -> PropertyMeta:
        symbol = self.checker.resolve_symbol(node)
        resolved = self.checker.resolve_type(node)
        doc = self.checker.get_doc_comment(node)
        meta = PropertyMeta(
            name=symbol.name,
            type=resolved.text,
            schema=self.build(resolved),
            description=doc.description,
            default=symbol.default if symbol.default is not None else doc.default,
            required=not symbol.optional,
            global_=symbol.name in set(global_names),
            comment=doc.to_meta(),
        )
        context = ResolverContext(
            checker=self.checker,
            node=node,
            symbol=symbol,
            type=resolved,
            options=self.options,
        )
        return self.apply_resolvers(meta, context)

    def apply_resolvers(self, meta: PropertyMeta, context: ResolverContext) -> PropertyMeta:
        for resolver in self.options.custom_resolvers:
            override = resolver(dataclasses.replace(meta), context)
            if not override:
                continue
            if isinstance(override, PropertyMeta):
                return override
            return dataclasses.replace(meta, **self._override_fields(override))
        return meta

    # --- helpers ---
    def _override_fields(self, override: Any) -> dict:
        if not isinstance(override, dict):
            raise ConfigurationError(
                f"Custom resolvers must return a PropertyMeta or a dict, got {type(override).__name__}"
            )
        fields = {}
        for name, value in override.items():
            attr = "global_" if name == "global" else name
            if attr not in _PROPERTY_FIELDS:
                raise ConfigurationError(f"Custom resolver returned unknown field '{name}'")
            fields[attr] = value
        return fields

    def _touch(self, resolved: ResolvedType) -> None:
        if self._frames:
            self._frames[-1].files.update(normalize_path(path) for path in resolved.source_files())

    def _note_ref(self, key: str) -> None:
        self.registry.touch(key)
        if self._frames:
            self._frames[-1].refs.add(key)

    def _is_suppressed(self, resolved: ResolvedType) -> bool:
        name = resolved.name or resolved.text
        return self._exclude.matches(name, resolved) or self._ignore.matches(name, resolved)

    def _suppressed(self, resolved: ResolvedType) -> PropertyMetaSchema:
        args = [] if self.options.ignore_type_args else resolved.type_arguments()
        if not args:
            return BasicSchema(type=resolved.text)
        return UnknownSchema(type=resolved.text, schema=[self.build(arg) for arg in args])

    def _expand(self, resolved: ResolvedType) -> PropertyMetaSchema:
        kind = resolved.kind
        text = resolved.text
        if kind == TypeKind.LITERAL:
            value = resolved.literal if resolved.literal is not None else text
            return LiteralSchema(type=text, value=value)
        if kind == TypeKind.PRIMITIVE:
            return BasicSchema(type=text)
        if kind in (TypeKind.UNION, TypeKind.ENUM):
            return EnumSchema(type=text, schema=[self.build(v) for v in resolved.variants()])
        if kind in (TypeKind.ARRAY, TypeKind.TUPLE):
            return ArraySchema(type=text, schema=[self.build(e) for e in resolved.elements()])
        if kind == TypeKind.FUNCTION:
            signatures = resolved.signatures()
            signature = self.build_signature(signatures[0]) if signatures else None
            return FuncSchema(type=text, schema=signature)
        if kind == TypeKind.OBJECT:
            props = {}
            for node in resolved.members():
                prop = self.build_property(node)
                props[prop.name] = prop
            return ObjectSchema(type=text, schema=props)
        if kind == TypeKind.TYPE_PARAM:
            constraint = resolved.constraint()
            default = resolved.default()
            return TypeParamSchema(
                type=text,
                schema=TypeParamMetaSchema(
                    type=self.build(constraint) if constraint is not None else None,
                    default=self.build(default) if default is not None else None,
                ),
            )
        return UnknownSchema(
            type=text, schema=[self.build(arg) for arg in resolved.type_arguments()]
        )
