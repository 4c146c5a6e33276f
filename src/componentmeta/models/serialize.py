"""Plain-dict rendering of extracted metadata.

The dictionaries use the camelCase keys that documentation transformers
expect (``blockTags``, ``isAsync``, ``returnType`` ...) and contain only
JSON-safe values.
"""
from __future__ import annotations

from typing import Any, Dict, Optional

from .records import (
    ArgumentMeta,
    ArraySchema,
    BasicSchema,
    CommentMeta,
    ComponentLibraryMeta,
    ComponentMeta,
    EnumSchema,
    EventMeta,
    ExposeMeta,
    FuncSchema,
    LiteralSchema,
    ObjectSchema,
    PropertyMeta,
    PropertyMetaSchema,
    RefSchema,
    SignatureMetaSchema,
    SingleComponentMeta,
    SlotMeta,
    TypeParamSchema,
    UnknownSchema,
)


def schema_to_dict(schema: PropertyMetaSchema) -> Dict[str, Any]:
    if isinstance(schema, RefSchema):
        return {"kind": schema.kind.value, "ref": schema.ref}
    payload: Dict[str, Any] = {"kind": schema.kind.value, "type": schema.type}
    if isinstance(schema, LiteralSchema):
        payload["value"] = schema.value
        return payload
    if isinstance(schema, BasicSchema):
        return payload
    if isinstance(schema, (EnumSchema, ArraySchema, UnknownSchema)):
        payload["schema"] = [schema_to_dict(item) for item in schema.schema]
    elif isinstance(schema, FuncSchema):
        if schema.schema is not None:
            payload["schema"] = signature_to_dict(schema.schema)
    elif isinstance(schema, ObjectSchema):
        payload["schema"] = {
            name: property_to_dict(prop) for name, prop in schema.schema.items()
        }
    elif isinstance(schema, TypeParamSchema):
        param: Dict[str, Any] = {}
        if schema.schema.type is not None:
            param["type"] = schema_to_dict(schema.schema.type)
        if schema.schema.default is not None:
            param["default"] = schema_to_dict(schema.schema.default)
        payload["schema"] = param
    if schema.ref is not None:
        payload["ref"] = schema.ref
    return payload


def signature_to_dict(signature: SignatureMetaSchema) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "isAsync": signature.is_async,
        "returnType": schema_to_dict(signature.return_type),
        "arguments": [_argument_to_dict(arg) for arg in signature.arguments],
    }
    if signature.type_params is not None:
        payload["typeParams"] = [schema_to_dict(item) for item in signature.type_params]
    return payload


def _argument_to_dict(argument: ArgumentMeta) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "key": argument.key,
        "type": argument.type,
        "required": argument.required,
    }
    if argument.schema is not None:
        payload["schema"] = schema_to_dict(argument.schema)
    return payload


def comment_to_dict(comment: CommentMeta) -> Dict[str, Any]:
    payload: Dict[str, Any] = {}
    if comment.block_tags:
        payload["blockTags"] = [
            {
                "tag": tag.tag,
                "content": [{"kind": part.kind, "text": part.text} for part in tag.content],
            }
            for tag in comment.block_tags
        ]
    if comment.modifier_tags:
        payload["modifierTags"] = list(comment.modifier_tags)
    return payload


def _with_default(payload: Dict[str, Any], default: Optional[str]) -> Dict[str, Any]:
    if default is not None:
        payload["default"] = default
    return payload


def property_to_dict(prop: PropertyMeta) -> Dict[str, Any]:
    payload = {
        "name": prop.name,
        "type": prop.type,
        "description": prop.description,
        "global": prop.global_,
        "required": prop.required,
        "comment": comment_to_dict(prop.comment),
        "schema": schema_to_dict(prop.schema),
    }
    return _with_default(payload, prop.default)


def event_to_dict(event: EventMeta) -> Dict[str, Any]:
    payload = {
        "name": event.name,
        "type": event.type,
        "description": event.description,
        "comment": comment_to_dict(event.comment),
        "schema": schema_to_dict(event.schema),
    }
    return _with_default(payload, event.default)


def slot_to_dict(slot: SlotMeta) -> Dict[str, Any]:
    payload = {
        "name": slot.name,
        "type": slot.type,
        "description": slot.description,
        "comment": comment_to_dict(slot.comment),
        "schema": schema_to_dict(slot.schema),
    }
    return _with_default(payload, slot.default)


def expose_to_dict(exposed: ExposeMeta) -> Dict[str, Any]:
    return {
        "name": exposed.name,
        "type": exposed.type,
        "description": exposed.description,
        "comment": comment_to_dict(exposed.comment),
        "schema": schema_to_dict(exposed.schema),
    }


def component_to_dict(component: ComponentMeta) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "name": component.name,
        "type": int(component.type),
        "props": [property_to_dict(prop) for prop in component.props],
        "events": [event_to_dict(event) for event in component.events],
        "slots": [slot_to_dict(slot) for slot in component.slots],
        "exposed": [expose_to_dict(item) for item in component.exposed],
    }
    if component.type_params is not None:
        payload["typeParams"] = [schema_to_dict(item) for item in component.type_params]
    return payload


def library_to_dict(meta: ComponentLibraryMeta) -> Dict[str, Any]:
    """Render a library snapshot; usable directly as a metadata transformer."""
    return {
        "components": {
            name: component_to_dict(component)
            for name, component in meta.components.items()
        },
        "functions": {name: schema_to_dict(func) for name, func in meta.functions.items()},
        "types": {key: schema_to_dict(schema) for key, schema in meta.types.items()},
    }


def single_component_to_dict(meta: SingleComponentMeta) -> Dict[str, Any]:
    return {
        "component": component_to_dict(meta.component),
        "types": {key: schema_to_dict(schema) for key, schema in meta.types.items()},
    }
