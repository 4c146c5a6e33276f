"""Tests for the extraction session lifecycle."""

import asyncio

import pytest

from componentmeta.checker.base import TypeKind, normalize_path
from componentmeta.errors import InvalidStateError, MetaError, PatchEventError, ResolutionFailure
from componentmeta.models.records import ComponentLibraryMeta, RefSchema, SingleComponentMeta
from componentmeta.models.serialize import library_to_dict, single_component_to_dict
from componentmeta.session import MetaSession, PatchEvent, SessionState

from conftest import FakeComponent, FakeMember, FakeType, func_type, primitive

ENTRY = "/proj/src/index.ts"
TYPES = "/proj/src/types.ts"


def _library(checker) -> FakeType:
    size = FakeType(
        TypeKind.OBJECT,
        "Size",
        name="Size",
        file=TYPES,
        members=[FakeMember("px", primitive("number"))],
    )
    props = FakeType(
        TypeKind.OBJECT,
        "ButtonProps",
        name="ButtonProps",
        file="/proj/src/button.ts",
        members=[FakeMember("size", size)],
    )
    checker.export_component(
        "Button",
        FakeComponent(props=[FakeMember("size", size), FakeMember("config", props)]),
    )
    checker.export_value("format", FakeMember("format", func_type("() => string", [], primitive("string"))))
    checker.export_value("VERSION", FakeMember("VERSION", primitive("string")))
    return size


def test_extract_returns_library_snapshot(checker):
    _library(checker)
    session = MetaSession(checker, ENTRY)

    meta = asyncio.run(session.extract())

    assert isinstance(meta, ComponentLibraryMeta)
    assert list(meta.components) == ["Button"]
    assert list(meta.functions) == ["format"]
    assert len(meta.types) == 2
    assert session.state == SessionState.IDLE


def test_extract_applies_transformer(checker):
    _library(checker)
    session = MetaSession(checker, ENTRY)

    payload = asyncio.run(session.extract(library_to_dict))

    assert payload["components"]["Button"]["type"] == 1
    assert payload["functions"]["format"]["kind"] == "function"


def test_repeated_extraction_is_idempotent(checker):
    _library(checker)
    session = MetaSession(checker, ENTRY)

    first = library_to_dict(asyncio.run(session.extract()))
    second = library_to_dict(asyncio.run(session.extract()))

    assert first == second
    assert session.registry.generation == 2


def test_unchanged_types_are_not_rebuilt(checker):
    _library(checker)
    session = MetaSession(checker, ENTRY)
    asyncio.run(session.extract())
    key = session.registry.make_key(TYPES, "Size")

    asyncio.run(session.extract())

    assert session.registry.revision(key) == 0


def test_patch_invalidates_changed_file(checker):
    size = _library(checker)
    session = MetaSession(checker, ENTRY)
    asyncio.run(session.extract())
    key = session.registry.make_key(TYPES, "Size")
    assert key in session.registry

    session.patch(PatchEvent.change(TYPES, "export interface Size { px: number; em: number }"))
    assert key not in session.registry
    assert checker.files[normalize_path(TYPES)].startswith("export interface Size")

    size.member_list.append(FakeMember("em", primitive("number")))
    meta = asyncio.run(session.extract())
    assert set(meta.types[key].schema) == {"px", "em"}


def test_unlink_removes_file_and_dependents(checker):
    _library(checker)
    session = MetaSession(checker, ENTRY)
    checker.update_file(TYPES, "export interface Size { px: number }")
    asyncio.run(session.extract())
    props_key = session.registry.make_key("/proj/src/button.ts", "ButtonProps")

    session.patch({"event": "unlink", "fileName": TYPES})

    assert normalize_path(TYPES) not in checker.files
    assert props_key not in session.registry
    assert len(session.registry) == 0


def test_extract_after_unlink_has_no_reference_into_removed_file(checker):
    _library(checker)
    session = MetaSession(checker, ENTRY)
    size_key = session.registry.make_key(TYPES, "Size")
    assert size_key in asyncio.run(session.extract()).types

    session.patch(PatchEvent.unlink(TYPES))
    # Without types.ts the prop degrades to a plain number.
    checker.export_component("Button", FakeComponent(props=[FakeMember("size", primitive("number"))]))
    meta = asyncio.run(session.extract())

    assert meta.types == {}
    assert meta.components["Button"].props[0].schema.type == "number"


def _extra() -> FakeType:
    return FakeType(TypeKind.OBJECT, "Extra", name="Extra", file="/proj/src/extra.ts")


def test_types_no_longer_reached_are_dropped(checker):
    _library(checker)
    checker.export_component("Card", FakeComponent(props=[FakeMember("extra", _extra())]))
    session = MetaSession(checker, ENTRY)
    extra_key = session.registry.make_key("/proj/src/extra.ts", "Extra")
    assert extra_key in asyncio.run(session.extract()).types

    del checker.exports["Card"]
    incremental = asyncio.run(session.extract())
    fresh = asyncio.run(MetaSession(checker, ENTRY).extract())

    assert extra_key not in incremental.types
    assert extra_key not in session.registry
    assert library_to_dict(incremental) == library_to_dict(fresh)


def test_extract_component_returns_only_reached_types(checker):
    _library(checker)
    checker.export_component("Card", FakeComponent(props=[FakeMember("extra", _extra())]))
    session = MetaSession(checker, ENTRY)

    single = asyncio.run(session.extract_component("Button"))

    assert isinstance(single, SingleComponentMeta)
    assert single.component.name == "Button"
    assert set(single.types) == {
        session.registry.make_key(TYPES, "Size"),
        session.registry.make_key("/proj/src/button.ts", "ButtonProps"),
    }
    size = single.component.props[0].schema
    assert isinstance(size, RefSchema)
    assert size.ref in single.types
    assert session.state == SessionState.IDLE


def test_extract_component_keeps_other_entries_for_later_passes(checker):
    _library(checker)
    checker.export_component("Card", FakeComponent(props=[FakeMember("extra", _extra())]))
    session = MetaSession(checker, ENTRY)
    asyncio.run(session.extract())
    size_key = session.registry.make_key(TYPES, "Size")

    card = asyncio.run(session.extract_component("Card"))
    meta = asyncio.run(session.extract())

    assert list(card.types) == [session.registry.make_key("/proj/src/extra.ts", "Extra")]
    assert size_key in meta.types
    assert session.registry.revision(size_key) == 0


def test_extract_component_transformer_and_unknown_name(checker):
    _library(checker)
    session = MetaSession(checker, ENTRY)

    payload = asyncio.run(session.extract_component("Button", single_component_to_dict))
    assert payload["component"]["name"] == "Button"
    assert len(payload["types"]) == 2

    with pytest.raises(ResolutionFailure, match="Missing"):
        asyncio.run(session.extract_component("Missing"))
    assert session.state == SessionState.IDLE


def test_patch_files_applies_batch(checker):
    session = MetaSession(checker, ENTRY)
    session.patch_files(
        [
            PatchEvent.add("/proj/src/a.ts", "export const a = 1"),
            {"event": "add", "fileName": "/proj/src/b.ts", "text": "export const b = 2"},
            PatchEvent.unlink("/proj/src/a.ts"),
        ]
    )
    assert list(checker.files) == [normalize_path("/proj/src/b.ts")]


@pytest.mark.parametrize(
    "data",
    [
        {"event": "rename", "fileName": "a.ts", "text": ""},
        {"event": "change", "fileName": "a.ts"},
        {"event": "unlink", "fileName": "a.ts", "text": "x"},
        {"event": "add", "text": "x"},
    ],
)
def test_malformed_patch_events_are_rejected(data):
    with pytest.raises(PatchEventError) as info:
        PatchEvent.from_mapping(data)
    assert isinstance(info.value, MetaError)
    assert isinstance(info.value, ValueError)


def test_overlapping_extract_is_rejected(checker):
    _library(checker)
    session = MetaSession(checker, ENTRY)

    async def scenario():
        checker.gate = asyncio.Event()
        first = asyncio.create_task(session.extract())
        await asyncio.sleep(0)
        assert session.state == SessionState.EXTRACTING
        with pytest.raises(InvalidStateError):
            await session.extract()
        checker.gate.set()
        return await first

    meta = asyncio.run(scenario())
    assert "Button" in meta.components
    assert session.state == SessionState.IDLE


def test_patch_during_extraction_defers_invalidation(checker):
    _library(checker)
    session = MetaSession(checker, ENTRY)
    asyncio.run(session.extract())
    key = session.registry.make_key(TYPES, "Size")

    async def scenario():
        checker.gate = asyncio.Event()
        task = asyncio.create_task(session.extract())
        await asyncio.sleep(0)
        session.patch(PatchEvent.change(TYPES, "export interface Size {}"))
        assert key in session.registry
        checker.gate.set()
        return await task

    meta = asyncio.run(scenario())
    assert key in meta.types
    assert key not in session.registry


def test_close_during_extraction_is_deferred(checker):
    _library(checker)
    session = MetaSession(checker, ENTRY)

    async def scenario():
        checker.gate = asyncio.Event()
        task = asyncio.create_task(session.extract())
        await asyncio.sleep(0)
        session.close()
        assert not checker.closed
        checker.gate.set()
        return await task

    meta = asyncio.run(scenario())
    assert "Button" in meta.components
    assert checker.closed
    assert session.state == SessionState.CLOSED


def test_close_is_idempotent_and_blocks_further_use(checker):
    session = MetaSession(checker, ENTRY)
    session.close()
    session.close()

    assert session.state == SessionState.CLOSED
    with pytest.raises(InvalidStateError, match="closed"):
        asyncio.run(session.extract())
    with pytest.raises(InvalidStateError):
        session.patch(PatchEvent.add("/proj/src/a.ts", ""))


def test_context_manager_closes_session(checker):
    with MetaSession(checker, ENTRY) as session:
        assert session.state == SessionState.IDLE
    assert checker.closed


def test_failed_extraction_returns_session_to_idle(checker):
    def explode(component):
        raise RuntimeError("checker crashed")

    checker.export_component("Broken", FakeComponent())
    checker.get_declared_members = explode
    session = MetaSession(checker, ENTRY)

    with pytest.raises(RuntimeError):
        asyncio.run(session.extract())
    assert session.state == SessionState.IDLE
