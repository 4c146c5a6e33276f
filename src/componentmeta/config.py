"""Configuration for componentmeta.

Settings can be supplied programmatically or loaded from a YAML file:
- root_path: project root scanned for source files
- schema_options: exclude / ignore / ignore_type_args / custom_resolvers
- filter_global_props, filter_exposed: item filtering switches
- component_wrappers: generic wrapper types that mark an export as a component
"""
from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .errors import ConfigurationError
from .models.records import TypeMeta

DEFAULT_GLOBAL_PROPS = ["key", "ref", "ref_for", "ref_key", "class", "style"]


class SchemaOptions(BaseModel):
    """Schema resolver options."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    exclude: Any = Field(
        default_factory=lambda: ["node_modules"],
        description="Path substrings, regex patterns or predicates for declaring files that are not expanded",
    )
    ignore: List[Any] = Field(
        default_factory=list,
        description="Type names or predicates(name, type, checker) suppressed from expansion",
    )
    ignore_type_args: bool = Field(
        default=False,
        description="Also skip the type arguments of excluded or ignored types",
    )
    custom_resolvers: List[Callable[..., Any]] = Field(
        default_factory=list,
        description="Ordered property schema override hooks; the first non-empty result wins",
    )


class Settings(BaseModel):
    """componentmeta settings."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    root_path: Path = Field(
        default_factory=lambda: Path(".").resolve(),
        description="Project root containing the component library sources",
    )
    entry: Optional[Path] = Field(
        default=None,
        description="Entry file exporting the library's components, relative to root_path",
    )
    extensions: List[str] = Field(default_factory=lambda: [".ts", ".tsx"])
    skip_dirs: List[str] = Field(default_factory=lambda: ["node_modules", ".git", "dist"])
    schema_options: SchemaOptions = Field(default_factory=SchemaOptions)
    filter_global_props: bool = True
    filter_exposed: bool = True
    global_props: List[str] = Field(default_factory=lambda: list(DEFAULT_GLOBAL_PROPS))
    component_wrappers: Dict[str, TypeMeta] = Field(
        default_factory=lambda: {
            "DefineComponent": TypeMeta.CLASS,
            "FunctionalComponent": TypeMeta.FUNCTION,
        },
        description="Wrapper type name -> component kind; type arguments are props, events, slots, exposed",
    )

    @field_validator("root_path", mode="before")
    def _coerce_path(cls, value: str | Path) -> Path:
        return Path(value).expanduser().resolve()

    @field_validator("component_wrappers", mode="before")
    def _coerce_wrappers(cls, value: Any) -> Any:
        if not isinstance(value, dict):
            return value
        coerced: Dict[str, Any] = {}
        for name, kind in value.items():
            if isinstance(kind, str):
                try:
                    kind = TypeMeta[kind.upper()]
                except KeyError as exc:
                    raise ConfigurationError(
                        f"Unknown component kind '{kind}' for wrapper '{name}'"
                    ) from exc
            coerced[name] = kind
        return coerced

    def entry_path(self, entry: Optional[Path | str] = None) -> Path:
        candidate = Path(entry) if entry is not None else self.entry
        if candidate is None:
            raise ConfigurationError("No entry file configured")
        if not candidate.is_absolute():
            candidate = self.root_path / candidate
        return candidate.resolve()


def load_settings(config_path: Optional[Path] = None) -> Settings:
    """Load configuration from YAML if provided, otherwise use defaults."""
    path = config_path or Path("componentmeta.yaml")
    if path.exists():
        data = yaml.safe_load(path.read_text()) or {}
    else:
        data = {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"{path} must contain a mapping at the root")
    return Settings(**data)
