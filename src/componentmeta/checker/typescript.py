from __future__ import annotations

import asyncio
import posixpath
import re
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Set, Tuple

import tree_sitter_typescript
from tree_sitter import Language, Node, Parser

from ..errors import ResolutionFailure
from ..logging import get_logger
from ..models.records import BlockTagContentTextMeta, BlockTagMeta, TypeMeta
from .base import (
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

logger = get_logger("checker.typescript")

TYPE_DECLARATIONS = {
    "interface_declaration",
    "type_alias_declaration",
    "enum_declaration",
    "class_declaration",
    "abstract_class_declaration",
}

VALUE_DECLARATIONS = {
    "class_declaration",
    "abstract_class_declaration",
    "function_declaration",
    "function_signature",
    "generator_function_declaration",
}

FUNCTION_NODES = {
    "function_type",
    "method_signature",
    "method_definition",
    "abstract_method_signature",
    "function_declaration",
    "function_signature",
    "generator_function_declaration",
    "call_signature",
    "arrow_function",
    "function_expression",
}

ARRAY_TYPES = {"Array", "ReadonlyArray"}

# Ambient lib and DOM names resolved as opaque types.
GLOBAL_TYPES = {
    "Promise", "PromiseLike", "Awaited", "Record", "Partial", "Required",
    "Readonly", "Pick", "Omit", "Exclude", "Extract", "NonNullable",
    "ReturnType", "Parameters", "InstanceType", "ConstructorParameters",
    "ThisType", "Uppercase", "Lowercase", "Capitalize", "Uncapitalize",
    "Map", "ReadonlyMap", "Set", "ReadonlySet", "WeakMap", "WeakSet",
    "Iterable", "Iterator", "IterableIterator", "AsyncIterable", "AsyncIterator",
    "ArrayLike", "Date", "RegExp", "Error", "Function", "Object", "String",
    "Number", "Boolean", "Symbol", "BigInt", "JSON", "Element", "HTMLElement",
    "SVGElement", "Node", "Event", "UIEvent", "MouseEvent", "KeyboardEvent",
    "FocusEvent", "InputEvent", "PointerEvent", "TouchEvent", "WheelEvent",
    "DragEvent", "File", "Blob", "FormData", "Window", "Document",
}

MODIFIER_TAGS = {
    "public", "internal", "alpha", "beta", "experimental", "deprecated",
    "readonly", "sealed", "virtual", "override",
}

MODULE_SUFFIXES = (".ts", ".tsx", ".d.ts", "/index.ts", "/index.tsx", "/index.d.ts")

_JSDOC_LINE_RE = re.compile(r"^\s*\*?\s?")
_TAG_RE = re.compile(r"^@(?P<tag>[A-Za-z][\w-]*)\s*(?P<text>.*)$")


@dataclass(slots=True)
class TsModule:
    path: str
    source: bytes
    root: Node
    types: Dict[str, Node] = field(default_factory=dict)
    values: Dict[str, Node] = field(default_factory=dict)
    imports: Dict[str, Tuple[str, str]] = field(default_factory=dict)
    exports: Dict[str, str] = field(default_factory=dict)
    reexports: Dict[str, Tuple[str, str]] = field(default_factory=dict)
    star_exports: List[str] = field(default_factory=list)


@dataclass(slots=True)
class TsNode:
    """Handle on a declaration node together with its type-parameter bindings."""

    module: TsModule
    node: Node
    env: Mapping[str, "TsType"] = field(default_factory=dict)

    def __repr__(self) -> str:
        line, column = self.node.start_point
        return f"{self.module.path}:{line + 1}:{column + 1}"


class TsType(ResolvedType):
    def __init__(
        self,
        checker: "TypeScriptChecker",
        kind: TypeKind,
        text: str,
        *,
        module: Optional[TsModule] = None,
        node: Optional[Node] = None,
        env: Optional[Mapping[str, "TsType"]] = None,
        name: Optional[str] = None,
        declaration: Optional[Declaration] = None,
        literal: Optional[str] = None,
        args: Optional[List["TsType"]] = None,
        parts: Optional[List["TsType"]] = None,
        via: Iterable[str] = (),
    ) -> None:
        self._checker = checker
        self.kind = kind
        self.text = text
        self.module = module
        self.node = node
        self.env: Mapping[str, TsType] = env or {}
        self.name = name
        self.declaration = declaration
        self.literal = literal
        self._args = list(args or [])
        self._parts = list(parts or [])
        # Modules crossed while looking up the declaration (imports, barrels).
        self.via: FrozenSet[str] = frozenset(via)

    def with_identity(
        self,
        text: str,
        name: Optional[str],
        declaration: Optional[Declaration],
        args: List["TsType"],
        via: Iterable[str] = (),
    ) -> "TsType":
        return TsType(
            self._checker,
            self.kind,
            text,
            module=self.module,
            node=self.node,
            env=self.env,
            name=name,
            declaration=declaration,
            literal=self.literal,
            args=args,
            parts=self._parts,
            via=self.via | frozenset(via),
        )

    def canonical_text(self) -> str:
        if self.name and self._args:
            return super().canonical_text()
        if self.kind == TypeKind.TYPE_PARAM or not self.env:
            return self.text
        # Inline text such as `T[]` only means something together with its bindings.
        bindings = ", ".join(
            f"{param}={bound.canonical_text()}" for param, bound in sorted(self.env.items())
        )
        return f"{self.text}[{bindings}]"

    def source_files(self) -> Set[str]:
        files = super().source_files() | set(self.via)
        if self.kind == TypeKind.OBJECT:
            for base in self._checker.base_types(self):
                files |= base.source_files()
        return files

    def type_arguments(self) -> List[ResolvedType]:
        return list(self._args)

    def members(self) -> List[TsNode]:
        if self.kind != TypeKind.OBJECT:
            return []
        return self._checker.object_members(self)

    def variants(self) -> List[ResolvedType]:
        if self.kind == TypeKind.UNION:
            return self._checker.union_variants(self)
        if self.kind == TypeKind.ENUM:
            return self._checker.enum_variants(self)
        return []

    def elements(self) -> List[ResolvedType]:
        if self.kind in (TypeKind.ARRAY, TypeKind.TUPLE):
            return self._checker.element_types(self)
        return []

    def signatures(self) -> List[Signature]:
        if self.kind != TypeKind.FUNCTION or self.module is None or self.node is None:
            return []
        return [self._checker.signature(self.module, self.node, self.env)]

    def constraint(self) -> Optional[ResolvedType]:
        return self._type_parameter_part("constraint")

    def default(self) -> Optional[ResolvedType]:
        return self._type_parameter_part("value")

    def _type_parameter_part(self, field_name: str) -> Optional[ResolvedType]:
        if self.kind != TypeKind.TYPE_PARAM or self.node is None or self.module is None:
            return None
        part = self.node.child_by_field_name(field_name)
        inner = _first_named(part) if part is not None else None
        if inner is None:
            return None
        return self._checker.type_from_node(self.module, inner, self.env)


class TypeScriptChecker(TypeChecker):
    """Structural TypeScript resolver built on tree-sitter.

    Tracks file texts in memory, parses them lazily and resolves interfaces,
    aliases, enums, classes and inline types across relative imports. It does
    not infer types of expressions.
    """

    language = "typescript"

    def __init__(self, component_wrappers: Optional[Mapping[str, TypeMeta]] = None) -> None:
        self._language = Language(tree_sitter_typescript.language_typescript())
        self._parser = Parser(self._language)
        self._tsx_parser = Parser(Language(tree_sitter_typescript.language_tsx()))
        self._texts: Dict[str, str] = {}
        self._modules: Dict[str, TsModule] = {}
        self._dirty: Set[str] = set()
        self.component_wrappers: Dict[str, TypeMeta] = dict(
            component_wrappers
            or {"DefineComponent": TypeMeta.CLASS, "FunctionalComponent": TypeMeta.FUNCTION}
        )

    # --- project view ---
    def update_file(self, path: str, text: str) -> None:
        key = normalize_path(path)
        self._texts[key] = text
        self._modules.pop(key, None)
        self._dirty.add(key)

    def remove_file(self, path: str) -> None:
        key = normalize_path(path)
        self._texts.pop(key, None)
        self._modules.pop(key, None)
        self._dirty.discard(key)

    def files(self) -> List[str]:
        return sorted(self._texts)

    async def synchronize(self) -> None:
        for path in sorted(self._dirty):
            self._parse(path)
            await asyncio.sleep(0)

    def close(self) -> None:
        self._texts.clear()
        self._modules.clear()
        self._dirty.clear()

    def module(self, path: str) -> TsModule:
        key = normalize_path(path)
        module = self._modules.get(key)
        if module is not None:
            return module
        if key not in self._texts:
            raise ResolutionFailure(f"File is not part of the project: {key}", node=key)
        return self._parse(key)

    def _parse(self, path: str) -> TsModule:
        source = self._texts[path].encode("utf-8")
        parser = self._tsx_parser if path.endswith(".tsx") else self._parser
        tree = parser.parse(source)
        module = TsModule(path=path, source=source, root=tree.root_node)
        self._index(module)
        self._modules[path] = module
        self._dirty.discard(path)
        logger.debug(
            "Parsed %s: %d types, %d values", path, len(module.types), len(module.values)
        )
        return module

    # --- indexing ---
    def _index(self, module: TsModule) -> None:
        for node in module.root.named_children:
            if node.type == "import_statement":
                self._index_import(module, node)
            elif node.type == "export_statement":
                self._index_export(module, node)
            else:
                self._register(module, node, exported=False)

    def _index_import(self, module: TsModule, node: Node) -> None:
        source = node.child_by_field_name("source")
        if source is None:
            return
        specifier = _unquote(self._text(module, source))
        clause = _child_of_type(node, "import_clause")
        if clause is None:
            return
        for child in clause.named_children:
            if child.type == "identifier":
                module.imports[self._text(module, child)] = (specifier, "default")
            elif child.type == "namespace_import":
                ident = _child_of_type(child, "identifier")
                if ident is not None:
                    module.imports[self._text(module, ident)] = (specifier, "*")
            elif child.type == "named_imports":
                for spec in child.named_children:
                    if spec.type != "import_specifier":
                        continue
                    name = self._text(module, spec.child_by_field_name("name"))
                    alias = spec.child_by_field_name("alias")
                    local = self._text(module, alias) if alias is not None else name
                    module.imports[local] = (specifier, name)

    def _index_export(self, module: TsModule, node: Node) -> None:
        declaration = node.child_by_field_name("declaration")
        if declaration is not None:
            self._register(module, declaration, exported=True)
            return
        source = node.child_by_field_name("source")
        specifier = _unquote(self._text(module, source)) if source is not None else None
        clause = _child_of_type(node, "export_clause")
        if clause is not None:
            for spec in clause.named_children:
                if spec.type != "export_specifier":
                    continue
                name = _unquote(self._text(module, spec.child_by_field_name("name")))
                alias = spec.child_by_field_name("alias")
                exported = _unquote(self._text(module, alias)) if alias is not None else name
                if specifier is not None:
                    module.reexports[exported] = (specifier, name)
                else:
                    module.exports[exported] = name
            return
        if specifier is not None and any(child.type == "*" for child in node.children):
            if _child_of_type(node, "namespace_export") is None:
                module.star_exports.append(specifier)

    def _register(self, module: TsModule, node: Node, exported: bool) -> None:
        if node.type == "ambient_declaration":
            for child in node.named_children:
                self._register(module, child, exported)
            return
        if node.type in ("lexical_declaration", "variable_declaration"):
            for declarator in node.named_children:
                if declarator.type != "variable_declarator":
                    continue
                name_node = declarator.child_by_field_name("name")
                if name_node is None or name_node.type != "identifier":
                    continue
                name = self._text(module, name_node)
                module.values[name] = declarator
                if exported:
                    module.exports[name] = name
            return
        if node.type not in TYPE_DECLARATIONS and node.type not in VALUE_DECLARATIONS:
            return
        name_node = node.child_by_field_name("name")
        if name_node is None:
            return
        name = self._text(module, name_node)
        if node.type in TYPE_DECLARATIONS:
            module.types[name] = node
        if node.type in VALUE_DECLARATIONS:
            module.values[name] = node
        if exported:
            module.exports[name] = name

    # --- symbol lookup ---
    def _resolve_module(
        self,
        module: TsModule,
        specifier: str,
        at: Node,
        trail: Optional[Set[str]] = None,
    ) -> TsModule:
        base = posixpath.normpath(posixpath.join(posixpath.dirname(module.path), specifier))
        stem = base[:-3] if base.endswith(".js") else base
        candidates = [base] if base.endswith((".ts", ".tsx")) else []
        candidates.extend(stem + suffix for suffix in MODULE_SUFFIXES)
        for candidate in candidates:
            if candidate in self._texts:
                if trail is not None:
                    trail.add(candidate)
                return self.module(candidate)
        raise ResolutionFailure(
            f"Cannot resolve module '{specifier}'", node=self._identity(module, at)
        )

    def _lookup(
        self,
        module: TsModule,
        name: str,
        space: str,
        at: Node,
        visited: Optional[Set[Tuple[str, str]]] = None,
        trail: Optional[Set[str]] = None,
    ) -> Optional[Tuple[TsModule, Node] | Tuple[str, str]]:
        """Find the declaration of a local name in the 'types' or 'values' space.

        Returns a ``(module, node)`` pair, a ``(specifier, name)`` pair for bare
        module imports, or None. Modules passed through on the way are added
        to ``trail`` when one is given.
        """
        declarations = getattr(module, space)
        if name in declarations:
            return module, declarations[name]
        if name in module.imports:
            specifier, imported = module.imports[name]
            if not specifier.startswith("."):
                return specifier, imported
            target = self._resolve_module(module, specifier, at, trail)
            return self._lookup_export(target, imported, space, at, visited or set(), trail)
        return None

    def _lookup_export(
        self,
        module: TsModule,
        name: str,
        space: str,
        at: Node,
        visited: Set[Tuple[str, str]],
        trail: Optional[Set[str]] = None,
    ) -> Optional[Tuple[TsModule, Node] | Tuple[str, str]]:
        marker = (module.path, name)
        if marker in visited:
            return None
        visited.add(marker)
        local = module.exports.get(name)
        if local is not None:
            found = self._lookup(module, local, space, at, visited, trail)
            if found is not None:
                return found
        if name in module.reexports:
            specifier, imported = module.reexports[name]
            if not specifier.startswith("."):
                return specifier, imported
            target = self._resolve_module(module, specifier, at, trail)
            return self._lookup_export(target, imported, space, at, visited, trail)
        for specifier in module.star_exports:
            if not specifier.startswith("."):
                continue
            target = self._resolve_module(module, specifier, at, trail)
            found = self._lookup_export(target, name, space, at, visited, trail)
            if found is not None:
                return found
        # Lenient fallback for declarations that are not exported.
        declarations = getattr(module, space)
        if name in declarations:
            return module, declarations[name]
        return None

    def _exported_values(self, module: TsModule, visited: Set[str]) -> Dict[str, TsNode]:
        if module.path in visited:
            return {}
        visited.add(module.path)
        exported: Dict[str, TsNode] = {}
        for specifier in module.star_exports:
            if specifier.startswith("."):
                target = self._resolve_module(module, specifier, module.root)
                for name, handle in self._exported_values(target, visited).items():
                    if name != "default":
                        exported[name] = handle
        names = list(module.exports) + list(module.reexports)
        for name in names:
            found = self._lookup_export(module, name, "values", module.root, set())
            if found is None or isinstance(found[0], str):
                continue
            target_module, node = found
            exported[name] = TsNode(target_module, node)
        return exported

    # --- TypeChecker API ---
    def get_exports(self, entry_file: str) -> List[ExportedSymbol]:
        module = self.module(entry_file)
        symbols: List[ExportedSymbol] = []
        for name, handle in self._exported_values(module, set()).items():
            symbols.append(
                ExportedSymbol(
                    name=name,
                    node=handle,
                    is_component=self._component_wrapper(handle) is not None,
                )
            )
        return symbols

    def get_declared_members(self, component: TsNode) -> DeclaredMembers:
        wrapper = self._component_wrapper(component)
        if wrapper is None:
            raise ResolutionFailure(
                "Export is not declared with a component wrapper type", node=repr(component)
            )
        name, type_node = wrapper
        module = component.module
        args_node = type_node.child_by_field_name("type_arguments")
        args = _named(args_node) if args_node is not None else []
        categories: List[List[TsNode]] = []
        for index in range(4):
            if index >= len(args):
                categories.append([])
                continue
            resolved = self.type_from_node(module, args[index], {})
            categories.append(resolved.members() if resolved.kind == TypeKind.OBJECT else [])
        props, events, slots, exposed = categories
        return DeclaredMembers(
            kind=self.component_wrappers[name],
            props=props,
            events=events,
            slots=slots,
            exposed=exposed,
        )

    def resolve_symbol(self, node: TsNode) -> Symbol:
        target = node.node
        module = node.module
        if target.type in ("required_parameter", "optional_parameter"):
            pattern = target.child_by_field_name("pattern")
            name = self._text(module, pattern).lstrip(".") if pattern is not None else ""
        else:
            name_node = target.child_by_field_name("name")
            name = _unquote(self._text(module, name_node)) if name_node is not None else ""
        optional = target.type == "optional_parameter" or any(
            child.type == "?" for child in target.children
        )
        value = target.child_by_field_name("value")
        default = _clean(self._text(module, value)) if value is not None else None
        line = target.start_point[0] + 1
        return Symbol(
            name=name,
            optional=optional or default is not None and target.type.endswith("parameter"),
            default=default,
            declaration=Declaration(file=module.path, name=name, line=line),
        )

    def resolve_type(self, node: TsNode) -> TsType:
        target = node.node
        module = node.module
        if target.type in FUNCTION_NODES:
            return TsType(
                self,
                TypeKind.FUNCTION,
                self._signature_text(module, target),
                module=module,
                node=target,
                env=node.env,
            )
        annotation = target.child_by_field_name("type")
        if annotation is not None:
            inner = _first_named(annotation) if annotation.type == "type_annotation" else annotation
            if inner is not None:
                return self.type_from_node(module, inner, node.env)
        value = target.child_by_field_name("value") if target.type == "variable_declarator" else None
        if value is not None and value.type in FUNCTION_NODES:
            return self.resolve_type(TsNode(module, value, node.env))
        if target.type in ("property_signature", "public_field_definition",
                           "required_parameter", "optional_parameter", "variable_declarator"):
            return TsType(self, TypeKind.PRIMITIVE, "any")
        raise ResolutionFailure(
            f"Cannot resolve the type of a '{target.type}' node", node=repr(node)
        )

    def get_doc_comment(self, node: TsNode) -> DocComment:
        target = node.node
        while target.parent is not None and target.parent.type in (
            "lexical_declaration",
            "variable_declaration",
            "ambient_declaration",
            "export_statement",
        ):
            target = target.parent
        previous = target.prev_sibling
        while previous is not None and not previous.is_named:
            previous = previous.prev_sibling
        if previous is None or previous.type != "comment":
            return DocComment()
        raw = self._text(node.module, previous)
        if not raw.startswith("/**"):
            return DocComment()
        return parse_doc_comment(raw)

    def node_identity(self, node: TsNode) -> str:
        return repr(node)

    # --- type construction ---
    def type_from_node(
        self,
        module: TsModule,
        node: Node,
        env: Mapping[str, TsType],
        seen: FrozenSet[Tuple[str, str]] = frozenset(),
    ) -> TsType:
        kind = node.type
        text = _clean(self._text(module, node))
        if kind in ("parenthesized_type", "readonly_type"):
            inner = _first_named(node)
            return self.type_from_node(module, inner, env, seen) if inner is not None else self._any()
        if kind == "predefined_type":
            return TsType(self, TypeKind.PRIMITIVE, text)
        if kind == "literal_type":
            inner = _first_named(node)
            if inner is not None and inner.type in ("null", "undefined"):
                return TsType(self, TypeKind.PRIMITIVE, text)
            return TsType(self, TypeKind.LITERAL, text, literal=text)
        if kind == "union_type":
            return TsType(self, TypeKind.UNION, text, module=module, node=node, env=env)
        if kind in ("array_type", "tuple_type"):
            type_kind = TypeKind.ARRAY if kind == "array_type" else TypeKind.TUPLE
            return TsType(self, type_kind, text, module=module, node=node, env=env)
        if kind == "function_type":
            return TsType(self, TypeKind.FUNCTION, text, module=module, node=node, env=env)
        if kind == "object_type":
            members = _named(node)
            if members and all(member.type == "call_signature" for member in members):
                return TsType(
                    self, TypeKind.FUNCTION, text, module=module, node=members[0], env=env
                )
            return TsType(self, TypeKind.OBJECT, text, module=module, node=node, env=env)
        if kind == "intersection_type":
            parts = [self.type_from_node(module, part, env, seen) for part in _named(node)]
            if parts and all(part.kind == TypeKind.OBJECT for part in parts):
                return TsType(
                    self, TypeKind.OBJECT, text, module=module, node=node, env=env, parts=parts
                )
            return TsType(self, TypeKind.OPAQUE, text)
        if kind in ("type_identifier", "generic_type", "nested_type_identifier"):
            return self._reference(module, node, env, seen)
        return TsType(self, TypeKind.OPAQUE, text)

    def _reference(
        self,
        module: TsModule,
        node: Node,
        env: Mapping[str, TsType],
        seen: FrozenSet[Tuple[str, str]],
    ) -> TsType:
        text = _clean(self._text(module, node))
        if node.type == "generic_type":
            name_node = node.child_by_field_name("name")
            args_node = node.child_by_field_name("type_arguments")
            arg_nodes = _named(args_node) if args_node is not None else []
        else:
            name_node = node
            arg_nodes = []
        name = self._text(module, name_node)
        args = [self.type_from_node(module, arg, env, seen) for arg in arg_nodes]

        if name_node.type == "nested_type_identifier":
            return TsType(self, TypeKind.OPAQUE, text, name=name, args=args)
        if not arg_nodes and name in env:
            return env[name]

        trail: Set[str] = set()
        found = self._lookup(module, name, "types", node, trail=trail)
        if found is None:
            if name in ARRAY_TYPES:
                return TsType(self, TypeKind.ARRAY, text, name=name, args=args)
            if name in GLOBAL_TYPES:
                return TsType(self, TypeKind.OPAQUE, text, name=name, args=args)
            raise ResolutionFailure(
                f"Cannot resolve type '{name}'", node=self._identity(module, node)
            )
        if isinstance(found[0], str):
            specifier, imported = found
            return TsType(
                self,
                TypeKind.OPAQUE,
                text,
                name=name,
                args=args,
                declaration=Declaration(file=f"node_modules/{specifier}", name=imported),
                via=trail,
            )
        decl_module, decl = found
        return self._from_declaration(decl_module, decl, args, text, seen, node, trail)

    def _from_declaration(
        self,
        module: TsModule,
        decl: Node,
        args: List[TsType],
        text: str,
        seen: FrozenSet[Tuple[str, str]],
        at: Node,
        trail: Set[str],
    ) -> TsType:
        name = self._text(module, decl.child_by_field_name("name"))
        declaration = Declaration(file=module.path, name=name, line=decl.start_point[0] + 1)
        bindings = self._bind_type_parameters(module, decl, args)
        if not args and bindings:
            args = list(bindings.values())

        if decl.type == "type_alias_declaration":
            marker = (module.path, name)
            if marker in seen:
                raise ResolutionFailure(
                    f"Circular type alias '{name}'", node=self._identity(module, at)
                )
            value = decl.child_by_field_name("value")
            inner = self.type_from_node(module, value, bindings, seen | {marker})
            if inner.declaration is not None:
                return inner.with_identity(
                    text, inner.name, inner.declaration, inner.type_arguments(), via=trail
                )
            return inner.with_identity(text, name, declaration, args, via=trail)

        kind = TypeKind.ENUM if decl.type == "enum_declaration" else TypeKind.OBJECT
        return TsType(
            self,
            kind,
            text,
            module=module,
            node=decl,
            env=bindings,
            name=name,
            declaration=declaration,
            args=args,
            via=trail,
        )

    def _bind_type_parameters(
        self, module: TsModule, decl: Node, args: List[TsType]
    ) -> Dict[str, TsType]:
        params_node = decl.child_by_field_name("type_parameters")
        if params_node is None:
            return {}
        bindings: Dict[str, TsType] = {}
        params = [p for p in params_node.named_children if p.type == "type_parameter"]
        for index, param in enumerate(params):
            param_name = self._text(module, param.child_by_field_name("name"))
            if index < len(args):
                bindings[param_name] = args[index]
                continue
            default = param.child_by_field_name("value")
            default_type = _first_named(default) if default is not None else None
            if default_type is not None:
                bindings[param_name] = self.type_from_node(module, default_type, dict(bindings))
            else:
                bindings[param_name] = self._type_parameter(module, param, dict(bindings))
        return bindings

    def _type_parameter(
        self, module: TsModule, param: Node, env: Mapping[str, TsType]
    ) -> TsType:
        name = self._text(module, param.child_by_field_name("name"))
        return TsType(
            self, TypeKind.TYPE_PARAM, name, module=module, node=param, env=env, name=name
        )

    # --- structure ---
    def object_members(self, resolved: TsType) -> List[TsNode]:
        node = resolved.node
        module = resolved.module
        if node is None or module is None:
            return []
        members: Dict[str, TsNode] = {}
        for base in self.base_types(resolved):
            for member in base.members():
                members[self.resolve_symbol(member).name] = member
        if node.type == "intersection_type":
            return list(members.values())
        if node.type in ("interface_declaration", "class_declaration", "abstract_class_declaration"):
            body = node.child_by_field_name("body")
        else:
            body = node
        if body is None:
            return list(members.values())
        for child in body.named_children:
            if not self._is_public_member(module, child):
                continue
            handle = TsNode(module, child, resolved.env)
            members[self.resolve_symbol(handle).name] = handle
        return list(members.values())

    def base_types(self, resolved: TsType) -> List[TsType]:
        """Intersection parts, or the interfaces an interface extends."""
        node = resolved.node
        if node is None or resolved.module is None:
            return []
        if node.type == "intersection_type":
            return list(resolved._parts)
        if node.type != "interface_declaration":
            return []
        bases: List[TsType] = []
        for clause in node.children:
            if clause.type == "extends_type_clause":
                bases.extend(
                    self.type_from_node(resolved.module, base_node, resolved.env)
                    for base_node in clause.named_children
                )
        return bases

    def _is_public_member(self, module: TsModule, node: Node) -> bool:
        if node.type not in (
            "property_signature",
            "method_signature",
            "public_field_definition",
            "method_definition",
            "abstract_method_signature",
        ):
            return False
        name_node = node.child_by_field_name("name")
        if name_node is None or name_node.type == "private_property_identifier":
            return False
        if self._text(module, name_node) == "constructor":
            return False
        for child in node.children:
            if child.type == "static":
                return False
            if child.type == "accessibility_modifier" and self._text(module, child) != "public":
                return False
        return True

    def union_variants(self, resolved: TsType) -> List[ResolvedType]:
        if resolved.node is None or resolved.module is None:
            return []
        flat: List[Node] = []
        pending = [resolved.node]
        while pending:
            current = pending.pop(0)
            if current.type == "union_type":
                pending[:0] = _named(current)
            else:
                flat.append(current)
        return [self.type_from_node(resolved.module, item, resolved.env) for item in flat]

    def enum_variants(self, resolved: TsType) -> List[ResolvedType]:
        module = resolved.module
        body = resolved.node.child_by_field_name("body") if resolved.node is not None else None
        if body is None or module is None:
            return []
        variants: List[ResolvedType] = []
        counter = 0
        for child in body.named_children:
            if child.type == "enum_assignment":
                member = _unquote(self._text(module, child.child_by_field_name("name")))
                value = _clean(self._text(module, child.child_by_field_name("value")))
                if value.lstrip("-").isdigit():
                    counter = int(value) + 1
            elif child.type in ("property_identifier", "string"):
                member = _unquote(self._text(module, child))
                value = str(counter)
                counter += 1
            else:
                continue
            variants.append(
                TsType(self, TypeKind.LITERAL, f"{resolved.name}.{member}", literal=value)
            )
        return variants

    def element_types(self, resolved: TsType) -> List[ResolvedType]:
        node = resolved.node
        if node is None or resolved.module is None:
            args = resolved.type_arguments()
            return args[:1] if args else [self._any()]
        if node.type == "array_type":
            element = _first_named(node)
            return [self.type_from_node(resolved.module, element, resolved.env)]
        elements: List[ResolvedType] = []
        for child in _named(node):
            if child.type in ("optional_type", "rest_type"):
                child = _first_named(child)
            elif child.type in ("tuple_parameter", "optional_tuple_parameter"):
                annotation = child.child_by_field_name("type")
                child = _first_named(annotation) if annotation is not None else None
            if child is None:
                continue
            elements.append(self.type_from_node(resolved.module, child, resolved.env))
        return elements

    def signature(self, module: TsModule, node: Node, env: Mapping[str, TsType]) -> Signature:
        scope: Dict[str, TsType] = dict(env)
        type_params: List[ResolvedType] = []
        params_node = node.child_by_field_name("type_parameters")
        if params_node is not None:
            for param in params_node.named_children:
                if param.type != "type_parameter":
                    continue
                placeholder = self._type_parameter(module, param, scope)
                scope[placeholder.text] = placeholder
                type_params.append(placeholder)

        parameters: List[Parameter] = []
        formal = node.child_by_field_name("parameters")
        for param in _named(formal) if formal is not None else []:
            if param.type not in ("required_parameter", "optional_parameter"):
                continue
            handle = TsNode(module, param, scope)
            symbol = self.resolve_symbol(handle)
            if symbol.name == "this":
                continue
            parameters.append(
                Parameter(name=symbol.name, type=self.resolve_type(handle), optional=symbol.optional)
            )

        return_node = node.child_by_field_name("return_type")
        return_type = self._return_type(module, return_node, scope)
        is_async = any(child.type == "async" for child in node.children) or (
            return_type.name == "Promise"
        )
        return Signature(
            parameters=parameters,
            return_type=return_type,
            type_parameters=type_params,
            is_async=is_async,
        )

    def _return_type(
        self, module: TsModule, node: Optional[Node], env: Mapping[str, TsType]
    ) -> TsType:
        if node is None:
            return self._any()
        if node.type in ("type_predicate_annotation", "type_predicate", "asserts_annotation", "asserts"):
            return TsType(self, TypeKind.PRIMITIVE, "boolean")
        if node.type == "type_annotation":
            inner = _first_named(node)
            return self.type_from_node(module, inner, env) if inner is not None else self._any()
        return self.type_from_node(module, node, env)

    def _signature_text(self, module: TsModule, node: Node) -> str:
        if node.type == "function_type":
            return _clean(self._text(module, node))
        params = node.child_by_field_name("parameters")
        params_text = _clean(self._text(module, params)) if params is not None else "()"
        return_node = node.child_by_field_name("return_type")
        if return_node is None:
            return_text = "any"
        elif return_node.type == "type_annotation":
            return_text = _clean(self._text(module, return_node)).lstrip(":").strip()
        else:
            return_text = _clean(self._text(module, return_node))
        type_params = node.child_by_field_name("type_parameters")
        prefix = _clean(self._text(module, type_params)) if type_params is not None else ""
        return f"{prefix}{params_text} => {return_text}"

    # --- helpers ---
    def _component_wrapper(self, handle: TsNode) -> Optional[Tuple[str, Node]]:
        if handle.node.type != "variable_declarator":
            return None
        annotation = handle.node.child_by_field_name("type")
        type_node = _first_named(annotation) if annotation is not None else None
        if type_node is None or type_node.type != "generic_type":
            return None
        name = self._text(handle.module, type_node.child_by_field_name("name"))
        if name not in self.component_wrappers:
            return None
        return name, type_node

    def _any(self) -> TsType:
        return TsType(self, TypeKind.PRIMITIVE, "any")

    def _text(self, module: TsModule, node: Optional[Node]) -> str:
        if node is None:
            return ""
        return module.source[node.start_byte : node.end_byte].decode("utf-8")

    def _identity(self, module: TsModule, node: Node) -> str:
        line, column = node.start_point
        return f"{module.path}:{line + 1}:{column + 1}"


def parse_doc_comment(raw: str) -> DocComment:
    """Split a JSDoc block into description, block tags and modifier tags."""
    body = raw.strip()
    body = body[3:] if body.startswith("/**") else body
    body = body[:-2] if body.endswith("*/") else body
    description: List[str] = []
    tags: List[Tuple[str, List[str]]] = []
    for line in body.splitlines():
        content = _JSDOC_LINE_RE.sub("", line, count=1).rstrip()
        match = _TAG_RE.match(content.strip())
        if match:
            tags.append((match.group("tag"), [match.group("text")]))
        elif tags:
            tags[-1][1].append(content)
        else:
            description.append(content)

    doc = DocComment(description="\n".join(description).strip())
    for tag, lines in tags:
        text = "\n".join(lines).strip()
        if tag in MODIFIER_TAGS:
            doc.modifier_tags.append(tag)
            if not text:
                continue
        doc.block_tags.append(
            BlockTagMeta(tag=tag, content=[BlockTagContentTextMeta(kind="text", text=text)])
        )
    return doc


def _named(node: Optional[Node]) -> List[Node]:
    if node is None:
        return []
    return [child for child in node.named_children if child.type != "comment"]


def _first_named(node: Optional[Node]) -> Optional[Node]:
    children = _named(node)
    return children[0] if children else None


def _child_of_type(node: Node, node_type: str) -> Optional[Node]:
    for child in node.children:
        if child.type == node_type:
            return child
    return None


def _unquote(text: str) -> str:
    if len(text) >= 2 and text[0] == text[-1] and text[0] in "'\"`":
        return text[1:-1]
    return text


def _clean(text: str) -> str:
    return " ".join(text.split())

