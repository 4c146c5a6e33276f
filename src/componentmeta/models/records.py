from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import ClassVar, Dict, List, Optional, Union


class PropertyMetaKind(str, Enum):
    LITERAL = "literal"
    BASIC = "basic"
    ENUM = "enum"
    ARRAY = "array"
    FUNC = "function"
    OBJECT = "object"
    TYPE_PARAM = "type_param"
    UNKNOWN = "unknown"
    REF = "ref"


class TypeMeta(IntEnum):
    UNKNOWN = 0
    CLASS = 1
    FUNCTION = 2


@dataclass(slots=True)
class BlockTagContentTextMeta:
    kind: str
    text: str


@dataclass(slots=True)
class BlockTagMeta:
    tag: str
    content: List[BlockTagContentTextMeta] = field(default_factory=list)

    @property
    def text(self) -> str:
        return "".join(part.text for part in self.content).strip()


@dataclass(slots=True)
class CommentMeta:
    block_tags: List[BlockTagMeta] = field(default_factory=list)
    modifier_tags: List[str] = field(default_factory=list)

    def block_tag(self, tag: str) -> Optional[BlockTagMeta]:
        return next((item for item in self.block_tags if item.tag == tag), None)


# --- schema variants ---


@dataclass(slots=True)
class LiteralSchema:
    kind: ClassVar[PropertyMetaKind] = PropertyMetaKind.LITERAL
    type: str
    value: str


@dataclass(slots=True)
class BasicSchema:
    kind: ClassVar[PropertyMetaKind] = PropertyMetaKind.BASIC
    type: str


@dataclass(slots=True)
class EnumSchema:
    kind: ClassVar[PropertyMetaKind] = PropertyMetaKind.ENUM
    type: str
    schema: List["PropertyMetaSchema"] = field(default_factory=list)
    ref: Optional[str] = None


@dataclass(slots=True)
class ArraySchema:
    kind: ClassVar[PropertyMetaKind] = PropertyMetaKind.ARRAY
    type: str
    schema: List["PropertyMetaSchema"] = field(default_factory=list)
    ref: Optional[str] = None


@dataclass(slots=True)
class ArgumentMeta:
    key: str
    type: str
    required: bool
    schema: Optional["PropertyMetaSchema"] = None


@dataclass(slots=True)
class SignatureMetaSchema:
    is_async: bool
    return_type: "PropertyMetaSchema"
    arguments: List[ArgumentMeta] = field(default_factory=list)
    type_params: Optional[List["PropertyMetaSchema"]] = None


@dataclass(slots=True)
class FuncSchema:
    kind: ClassVar[PropertyMetaKind] = PropertyMetaKind.FUNC
    type: str
    schema: Optional[SignatureMetaSchema] = None
    ref: Optional[str] = None


@dataclass(slots=True)
class ObjectSchema:
    kind: ClassVar[PropertyMetaKind] = PropertyMetaKind.OBJECT
    type: str
    schema: Dict[str, "PropertyMeta"] = field(default_factory=dict)
    ref: Optional[str] = None


@dataclass(slots=True)
class TypeParamMetaSchema:
    type: Optional["PropertyMetaSchema"] = None  # extends Type
    default: Optional["PropertyMetaSchema"] = None  # = Type


@dataclass(slots=True)
class TypeParamSchema:
    kind: ClassVar[PropertyMetaKind] = PropertyMetaKind.TYPE_PARAM
    type: str
    schema: TypeParamMetaSchema = field(default_factory=TypeParamMetaSchema)
    ref: Optional[str] = None


@dataclass(slots=True)
class UnknownSchema:
    """Opaque type; only its type arguments are expanded."""

    kind: ClassVar[PropertyMetaKind] = PropertyMetaKind.UNKNOWN
    type: str
    schema: List["PropertyMetaSchema"] = field(default_factory=list)
    ref: Optional[str] = None


@dataclass(slots=True)
class RefSchema:
    """Pointer into the reference registry, never carries an inline shape."""

    kind: ClassVar[PropertyMetaKind] = PropertyMetaKind.REF
    ref: str

    def __post_init__(self) -> None:
        if not self.ref:
            raise ValueError("RefSchema requires a registry key")


PropertyMetaSchema = Union[
    LiteralSchema,
    BasicSchema,
    EnumSchema,
    ArraySchema,
    FuncSchema,
    ObjectSchema,
    TypeParamSchema,
    UnknownSchema,
    RefSchema,
]

# Variants that may be stored in the registry and therefore carry `ref`.
REFERABLE_SCHEMAS = (
    EnumSchema,
    ArraySchema,
    FuncSchema,
    ObjectSchema,
    TypeParamSchema,
    UnknownSchema,
)


# --- component item entities ---


@dataclass(slots=True)
class PropertyMeta:
    name: str
    type: str
    schema: PropertyMetaSchema
    description: str = ""
    default: Optional[str] = None
    required: bool = False
    global_: bool = False
    comment: CommentMeta = field(default_factory=CommentMeta)


@dataclass(slots=True)
class EventMeta:
    name: str
    type: str
    schema: PropertyMetaSchema
    description: str = ""
    default: Optional[str] = None
    comment: CommentMeta = field(default_factory=CommentMeta)


@dataclass(slots=True)
class SlotMeta:
    name: str
    type: str
    schema: PropertyMetaSchema
    description: str = ""
    default: Optional[str] = None
    comment: CommentMeta = field(default_factory=CommentMeta)


@dataclass(slots=True)
class ExposeMeta:
    name: str
    type: str
    schema: PropertyMetaSchema
    description: str = ""
    comment: CommentMeta = field(default_factory=CommentMeta)


ComponentItemMeta = Union[PropertyMeta, EventMeta, SlotMeta, ExposeMeta]


@dataclass(slots=True)
class ComponentMeta:
    name: str
    type: TypeMeta = TypeMeta.UNKNOWN
    type_params: Optional[List[PropertyMetaSchema]] = None
    props: List[PropertyMeta] = field(default_factory=list)
    events: List[EventMeta] = field(default_factory=list)
    slots: List[SlotMeta] = field(default_factory=list)
    exposed: List[ExposeMeta] = field(default_factory=list)


@dataclass(slots=True)
class ComponentLibraryMeta:
    components: Dict[str, ComponentMeta] = field(default_factory=dict)
    functions: Dict[str, FuncSchema] = field(default_factory=dict)
    types: Dict[str, PropertyMetaSchema] = field(default_factory=dict)


@dataclass(slots=True)
class SingleComponentMeta:
    """One component together with the registry entries it reaches."""

    component: ComponentMeta
    types: Dict[str, PropertyMetaSchema] = field(default_factory=dict)
