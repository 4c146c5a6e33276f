"""Tests for the reference registry."""

from componentmeta.models.records import BasicSchema, ObjectSchema
from componentmeta.schema.registry import ReferenceRegistry

TYPES_FILE = "/proj/src/types.ts"
OTHER_FILE = "/proj/src/other.ts"


def _object(text: str) -> ObjectSchema:
    return ObjectSchema(type=text, schema={})


def test_make_key_is_stable_and_path_normalized():
    key = ReferenceRegistry.make_key(TYPES_FILE, "ButtonProps")
    assert key == ReferenceRegistry.make_key("/proj/src/../src/types.ts", "ButtonProps")
    assert key != ReferenceRegistry.make_key(OTHER_FILE, "ButtonProps")
    assert key != ReferenceRegistry.make_key(TYPES_FILE, "ButtonProps<string>")
    assert len(key) == 40


def test_put_and_lookup_tracks_hits_and_misses():
    registry = ReferenceRegistry()
    registry.begin_generation()
    key = registry.make_key(TYPES_FILE, "A")

    assert registry.lookup(key) is None
    registry.put(key, _object("A"), files={TYPES_FILE})

    assert registry.lookup(key).type == "A"
    assert key in registry
    assert len(registry) == 1
    stats = registry.get_stats()
    assert stats["hit_count"] == 1
    assert stats["miss_count"] == 1
    assert stats["entry_count"] == 1
    assert stats["generation"] == 1


def test_overwrite_bumps_revision():
    registry = ReferenceRegistry()
    key = registry.make_key(TYPES_FILE, "A")
    registry.put(key, _object("A"))
    assert registry.revision(key) == 0
    registry.put(key, _object("A"))
    assert registry.revision(key) == 1


def test_surviving_entries_carry_into_new_generation():
    registry = ReferenceRegistry()
    registry.begin_generation()
    key = registry.make_key(TYPES_FILE, "A")
    registry.put(key, _object("A"), files={TYPES_FILE})
    assert registry.is_current(key)

    assert registry.begin_generation() == 2
    assert registry.is_current(key)


def test_invalidate_file_removes_dependents_transitively():
    registry = ReferenceRegistry()
    leaf = registry.make_key(TYPES_FILE, "Leaf")
    middle = registry.make_key(OTHER_FILE, "Middle")
    top = registry.make_key(OTHER_FILE, "Top")
    unrelated = registry.make_key(OTHER_FILE, "Unrelated")

    registry.put(leaf, _object("Leaf"), files={TYPES_FILE})
    registry.put(middle, _object("Middle"), files={OTHER_FILE}, refs={leaf})
    registry.put(top, _object("Top"), files={OTHER_FILE}, refs={middle})
    registry.put(unrelated, BasicSchema(type="string"), files={OTHER_FILE})

    removed = registry.invalidate_file(TYPES_FILE)

    assert removed == {leaf, middle, top}
    assert unrelated in registry
    assert leaf not in registry


def test_self_reference_is_not_recorded_as_dependency():
    registry = ReferenceRegistry()
    key = registry.make_key(TYPES_FILE, "Tree")
    registry.put(key, _object("Tree"), files={TYPES_FILE}, refs={key})
    assert registry.invalidate_file(TYPES_FILE) == {key}


def test_snapshot_is_independent_copy():
    registry = ReferenceRegistry()
    key = registry.make_key(TYPES_FILE, "A")
    registry.put(key, _object("A"))

    snapshot = registry.snapshot()
    snapshot[key].type = "changed"
    registry.invalidate()

    assert registry.lookup(key) is None
    assert snapshot[key].type == "changed"
    assert len(registry) == 0


def test_sweep_keeps_only_entries_reached_this_generation():
    registry = ReferenceRegistry()
    registry.begin_generation()
    leaf = registry.make_key(TYPES_FILE, "Leaf")
    top = registry.make_key(OTHER_FILE, "Top")
    stale = registry.make_key(OTHER_FILE, "Stale")
    registry.put(leaf, _object("Leaf"), files={TYPES_FILE})
    registry.put(top, _object("Top"), files={OTHER_FILE}, refs={leaf})
    registry.put(stale, _object("Stale"), files={OTHER_FILE})

    registry.begin_generation()
    registry.touch(top)

    assert registry.reachable() == {top, leaf}
    assert registry.sweep() == {stale}
    assert set(registry.snapshot()) == {top, leaf}


def test_snapshot_can_be_restricted_to_keys():
    registry = ReferenceRegistry()
    first = registry.make_key(TYPES_FILE, "First")
    second = registry.make_key(TYPES_FILE, "Second")
    registry.put(first, _object("First"))
    registry.put(second, _object("Second"))

    assert list(registry.snapshot([second, "missing"])) == [second]
    assert registry.reachable([first, "missing"]) == {first}
