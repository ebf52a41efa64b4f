"""
Integration tests for ModuleService against a real SQLite database.

Graph state is read back through a separate session so the assertions see
what was committed, not what the service's session has cached.
"""

import uuid
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from learnpath.engines.prerequisites import (
    ModuleDraft,
    ModulePatch,
    StructureChanges,
    build_graph,
    has_cycle,
    has_redundancy,
)
from learnpath.engines.prerequisites.module_service import ModuleService
from learnpath.kernel.errors import (
    CyclicDependencyError,
    DuplicateInBatchError,
    DuplicateKeyOrNameError,
    ImmutableFieldChangeError,
    NotAuthorizedError,
    NotFoundError,
    PrerequisiteNotFoundError,
    RedundantPrerequisiteError,
    SelfPrerequisiteError,
    TransactionFailureError,
)
from learnpath.kernel.events import EventStore
from learnpath.kernel.models import EventType
from learnpath.kernel.persistence.module_gateway import ModuleGateway


def draft(key, prerequisites=None, name=None, concepts=None):
    return ModuleDraft(
        key=key,
        name=name or key.upper(),
        prerequisites=prerequisites or [],
        concepts=concepts or [],
    )


def _assert_graph_healthy(stored):
    graph = build_graph(draft(key, groups) for key, groups in stored.items())
    assert not has_cycle(graph)
    assert not has_redundancy(graph)


class TestCreateModule:
    """Tests for single module creation."""

    @pytest.mark.asyncio
    async def test_create_with_prerequisite(self, db_session, owner, pathway, stored_prerequisites):
        service = ModuleService(db_session)
        await service.create_module(owner, pathway.id, draft("a"))
        module = await service.create_module(owner, pathway.id, draft("b", [["a"]]))

        assert module.id is not None
        assert module.prerequisites == [["a"]]
        assert await stored_prerequisites() == {"a": [], "b": [["a"]]}

    @pytest.mark.asyncio
    async def test_duplicate_key(self, db_session, owner, pathway, seed_modules):
        await seed_modules([("a", [])])
        with pytest.raises(DuplicateKeyOrNameError) as exc:
            await ModuleService(db_session).create_module(owner, pathway.id, draft("a", name="Other"))
        assert exc.value.field == "key"

    @pytest.mark.asyncio
    async def test_duplicate_name(self, db_session, owner, pathway, seed_modules):
        await seed_modules([("a", [])])
        with pytest.raises(DuplicateKeyOrNameError) as exc:
            await ModuleService(db_session).create_module(owner, pathway.id, draft("b", name="A"))
        assert exc.value.field == "name"

    @pytest.mark.asyncio
    async def test_missing_prerequisite(self, db_session, owner, pathway, stored_prerequisites):
        with pytest.raises(PrerequisiteNotFoundError):
            await ModuleService(db_session).create_module(owner, pathway.id, draft("b", [["ghost"]]))
        assert await stored_prerequisites() == {}

    @pytest.mark.asyncio
    async def test_redundant_prerequisite(
        self, db_session, owner, pathway, seed_modules, stored_prerequisites
    ):
        await seed_modules([("a", []), ("b", [["a"]])])
        with pytest.raises(RedundantPrerequisiteError) as exc:
            await ModuleService(db_session).create_module(owner, pathway.id, draft("d", [["a", "b"]]))

        assert (exc.value.redundant_key, exc.value.via_key) == ("a", "b")
        assert "d" not in await stored_prerequisites()

    @pytest.mark.asyncio
    async def test_not_owner_rejected_before_validation(self, db_session, other_user, pathway):
        with pytest.raises(NotAuthorizedError):
            await ModuleService(db_session).create_module(
                other_user, pathway.id, draft("b", [["ghost"]])
            )

    @pytest.mark.asyncio
    async def test_unknown_pathway(self, db_session, owner):
        with pytest.raises(NotFoundError):
            await ModuleService(db_session).create_module(owner, uuid.uuid4(), draft("a"))

    @pytest.mark.asyncio
    async def test_event_logged(self, db_session, owner, pathway):
        module = await ModuleService(db_session).create_module(owner, pathway.id, draft("a"))
        history = await EventStore(db_session).get_entity_history("module", module.id)

        assert [event.event_type for event in history] == [EventType.MODULE_CREATED]
        assert history[0].payload["key"] == "a"


class TestUpdateModule:
    """Tests for module updates."""

    @pytest.mark.asyncio
    async def test_cycle_rejected(self, db_session, owner, seed_modules, stored_prerequisites):
        modules = await seed_modules([("a", []), ("b", [["a"]]), ("c", [["b"]])])

        with pytest.raises(CyclicDependencyError):
            await ModuleService(db_session).update_module(
                owner, modules["a"].id, ModulePatch(prerequisites=[["c"]])
            )
        assert (await stored_prerequisites())["a"] == []

    @pytest.mark.asyncio
    async def test_self_reference_rejected(self, db_session, owner, seed_modules):
        modules = await seed_modules([("a", [])])
        with pytest.raises(SelfPrerequisiteError):
            await ModuleService(db_session).update_module(
                owner, modules["a"].id, ModulePatch(prerequisites=[["a"]])
            )

    @pytest.mark.asyncio
    async def test_key_is_immutable(self, db_session, owner, seed_modules):
        modules = await seed_modules([("a", [])])
        with pytest.raises(ImmutableFieldChangeError):
            await ModuleService(db_session).update_module(owner, modules["a"].id, ModulePatch(key="z"))

    @pytest.mark.asyncio
    async def test_same_key_allowed(self, db_session, owner, seed_modules):
        modules = await seed_modules([("a", [])])
        module = await ModuleService(db_session).update_module(
            owner, modules["a"].id, ModulePatch(key="a", description="Updated")
        )
        assert module.description == "Updated"

    @pytest.mark.asyncio
    async def test_rename_to_taken_name(self, db_session, owner, seed_modules):
        modules = await seed_modules([("a", []), ("b", [])])
        with pytest.raises(DuplicateKeyOrNameError) as exc:
            await ModuleService(db_session).update_module(owner, modules["a"].id, ModulePatch(name="B"))
        assert exc.value.field == "name"

    @pytest.mark.asyncio
    async def test_rewire_prerequisites(self, db_session, owner, seed_modules, stored_prerequisites):
        modules = await seed_modules([("a", []), ("b", []), ("c", [["a"]])])
        await ModuleService(db_session).update_module(
            owner, modules["c"].id, ModulePatch(prerequisites=[["a"], ["b"]], concepts=["x"])
        )
        assert (await stored_prerequisites())["c"] == [["a"], ["b"]]

    @pytest.mark.asyncio
    async def test_not_owner(self, db_session, other_user, seed_modules):
        modules = await seed_modules([("a", [])])
        with pytest.raises(NotAuthorizedError):
            await ModuleService(db_session).update_module(
                other_user, modules["a"].id, ModulePatch(name="Mine")
            )

    @pytest.mark.asyncio
    async def test_unknown_module(self, db_session, owner):
        with pytest.raises(NotFoundError):
            await ModuleService(db_session).update_module(owner, uuid.uuid4(), ModulePatch(name="X"))

    @pytest.mark.asyncio
    async def test_accepted_mutations_keep_graph_healthy(
        self, db_session, owner, pathway, stored_prerequisites
    ):
        service = ModuleService(db_session)
        a = await service.create_module(owner, pathway.id, draft("a"))
        b = await service.create_module(owner, pathway.id, draft("b", [["a"]]))
        await service.create_module(owner, pathway.id, draft("c", [["b"]]))
        d = await service.create_module(owner, pathway.id, draft("d", [["c"]]))

        attempts = [
            (a.id, [["d"]]),
            (d.id, [["c"], ["a"]]),
            (b.id, []),
            (d.id, [["c"], ["a"]]),
            (b.id, [["a"]]),
        ]
        for module_id, prerequisites in attempts:
            try:
                await service.update_module(owner, module_id, ModulePatch(prerequisites=prerequisites))
            except (CyclicDependencyError, RedundantPrerequisiteError):
                pass
            _assert_graph_healthy(await stored_prerequisites())


class TestBatchCreate:
    """Tests for batch creation."""

    @pytest.mark.asyncio
    async def test_in_batch_reference(self, db_session, owner, pathway, stored_prerequisites):
        created = await ModuleService(db_session).create_modules_batch(
            owner, pathway.id, [draft("x", [["y"]]), draft("y", [])]
        )
        assert [m.key for m in created] == ["x", "y"]
        assert await stored_prerequisites() == {"x": [["y"]], "y": []}

    @pytest.mark.asyncio
    async def test_missing_prerequisite_persists_nothing(
        self, db_session, owner, pathway, stored_prerequisites
    ):
        with pytest.raises(PrerequisiteNotFoundError):
            await ModuleService(db_session).create_modules_batch(
                owner, pathway.id, [draft("x", [["z"]])]
            )
        assert await stored_prerequisites() == {}

    @pytest.mark.asyncio
    async def test_one_bad_module_rejects_batch(
        self, db_session, owner, pathway, seed_modules, stored_prerequisites
    ):
        await seed_modules([("a", []), ("b", [["a"]])])

        with pytest.raises(RedundantPrerequisiteError):
            await ModuleService(db_session).create_modules_batch(
                owner,
                pathway.id,
                [draft("c", [["b"]]), draft("d", [["c", "a"]]), draft("e", [])],
            )
        assert set(await stored_prerequisites()) == {"a", "b"}

    @pytest.mark.asyncio
    async def test_duplicate_in_batch(self, db_session, owner, pathway, stored_prerequisites):
        with pytest.raises(DuplicateInBatchError):
            await ModuleService(db_session).create_modules_batch(
                owner, pathway.id, [draft("x"), draft("x", name="Another")]
            )
        assert await stored_prerequisites() == {}


class TestDeleteModule:
    """Tests for deletion with dependent re-linking."""

    @pytest.mark.asyncio
    async def test_dependents_relinked(self, db_session, owner, seed_modules, stored_prerequisites):
        modules = await seed_modules([
            ("a", []),
            ("b", [["a"]]),
            ("c", [["b"]]),
            ("e", []),
            ("f", []),
            ("d", [["b", "e"], ["f"]]),
        ])

        deletion = await ModuleService(db_session).delete_module(owner, modules["b"].id)

        assert deletion.key == "b"
        assert deletion.updated_module_count == 2
        assert await stored_prerequisites() == {
            "a": [],
            "c": [],
            "e": [],
            "f": [],
            "d": [["e"], ["f"]],
        }

    @pytest.mark.asyncio
    async def test_no_dependents(self, db_session, owner, seed_modules, stored_prerequisites):
        modules = await seed_modules([("a", []), ("b", [])])
        deletion = await ModuleService(db_session).delete_module(owner, modules["b"].id)

        assert deletion.updated_module_count == 0
        assert await stored_prerequisites() == {"a": []}

    @pytest.mark.asyncio
    async def test_relinked_groups_stay_distinct(
        self, db_session, owner, seed_modules, stored_prerequisites
    ):
        modules = await seed_modules([("a", []), ("b", []), ("c", [["a", "b"], ["a"]])])

        deletion = await ModuleService(db_session).delete_module(owner, modules["b"].id)

        assert deletion.updated_module_count == 1
        assert await stored_prerequisites() == {"a": [], "c": [["a"]]}

    @pytest.mark.asyncio
    async def test_database_failure_rolls_back_relinks(
        self, db_session, owner, seed_modules, stored_prerequisites
    ):
        modules = await seed_modules([("a", []), ("b", [["a"]]), ("e", []), ("c", [["a", "e"]])])
        a_id, b_id = modules["a"].id, modules["b"].id
        before = await stored_prerequisites()

        async def failing_delete(gateway, module):
            # Relink updates reach the database before the delete fails
            await gateway.session.flush()
            raise OperationalError("DELETE FROM modules", {}, Exception("database is locked"))

        with patch.object(ModuleGateway, "delete_module", failing_delete):
            with pytest.raises(TransactionFailureError):
                await ModuleService(db_session).delete_module(owner, a_id)

        assert await stored_prerequisites() == before
        history = await EventStore(db_session).get_entity_history("module", b_id)
        assert history == []

    @pytest.mark.asyncio
    async def test_events_logged(self, db_session, owner, seed_modules):
        modules = await seed_modules([("a", []), ("b", [["a"]])])
        await ModuleService(db_session).delete_module(owner, modules["a"].id)

        store = EventStore(db_session)
        deleted = await store.get_entity_history("module", modules["a"].id)
        relinked = await store.get_entity_history("module", modules["b"].id)
        assert [e.event_type for e in deleted] == [EventType.MODULE_DELETED]
        assert [e.event_type for e in relinked] == [EventType.MODULE_RELINKED]
        assert relinked[0].payload["removed_key"] == "a"

    @pytest.mark.asyncio
    async def test_not_owner(self, db_session, other_user, seed_modules, stored_prerequisites):
        modules = await seed_modules([("a", [])])
        with pytest.raises(NotAuthorizedError):
            await ModuleService(db_session).delete_module(other_user, modules["a"].id)
        assert await stored_prerequisites() == {"a": []}


class TestApplyStructure:
    """Tests for whole-structure apply."""

    @pytest.mark.asyncio
    async def test_identical_structure_changes_nothing(self, db_session, owner, pathway, seed_modules):
        await seed_modules([("a", []), ("b", [["a"]])])
        incoming = [draft("a"), draft("b", [["a"]])]

        changes = await ModuleService(db_session).apply_structure(owner, pathway.id, incoming)
        assert changes == StructureChanges(created=0, updated=0, deleted=0)

    @pytest.mark.asyncio
    async def test_apply_then_reapply_converges(
        self, db_session, owner, pathway, seed_modules, stored_prerequisites
    ):
        await seed_modules([("a", []), ("old", [])])
        incoming = [
            draft("a", concepts=["select"]),
            draft("b", [["a"]]),
            draft("c", [["b"]]),
        ]
        service = ModuleService(db_session)

        first = await service.apply_structure(owner, pathway.id, incoming)
        assert first == StructureChanges(created=2, updated=1, deleted=1)
        assert await stored_prerequisites() == {"a": [], "b": [["a"]], "c": [["b"]]}

        second = await service.apply_structure(owner, pathway.id, incoming)
        assert second == StructureChanges(created=0, updated=0, deleted=0)

    @pytest.mark.asyncio
    async def test_deleted_name_reused(
        self, db_session, owner, pathway, seed_modules, stored_prerequisites
    ):
        await seed_modules([("a", []), ("b", [["a"]])])
        # "b" is dropped and its name handed to a new module
        incoming = [draft("a"), draft("c", [["a"]], name="B")]

        changes = await ModuleService(db_session).apply_structure(owner, pathway.id, incoming)
        assert changes == StructureChanges(created=1, updated=0, deleted=1)
        assert await stored_prerequisites() == {"a": [], "c": [["a"]]}

    @pytest.mark.asyncio
    async def test_kept_modules_swap_names(
        self, db_session, owner, pathway, seed_modules, stored_names
    ):
        await seed_modules([("a", []), ("b", [])])
        incoming = [draft("a", name="B"), draft("b", name="A")]

        changes = await ModuleService(db_session).apply_structure(owner, pathway.id, incoming)
        assert changes == StructureChanges(created=0, updated=2, deleted=0)
        assert await stored_names() == {"a": "B", "b": "A"}

    @pytest.mark.asyncio
    async def test_names_rotate_alongside_create_and_delete(
        self, db_session, owner, pathway, seed_modules, stored_names, stored_prerequisites
    ):
        await seed_modules([("a", []), ("b", [["a"]]), ("c", []), ("old", [])])
        incoming = [
            draft("a", name="B"),
            draft("b", [["a"]], name="C"),
            draft("c", name="A"),
            draft("d", [["b"]], name="OLD"),
        ]

        changes = await ModuleService(db_session).apply_structure(owner, pathway.id, incoming)
        assert changes == StructureChanges(created=1, updated=3, deleted=1)
        assert await stored_names() == {"a": "B", "b": "C", "c": "A", "d": "OLD"}
        assert await stored_prerequisites() == {"a": [], "b": [["a"]], "c": [], "d": [["b"]]}

    @pytest.mark.asyncio
    async def test_kept_module_keeps_description(self, db_session, owner, pathway, seed_modules):
        modules = await seed_modules([("a", [])])
        modules["a"].description = "Hand written"
        await db_session.commit()

        service = ModuleService(db_session)
        await service.apply_structure(owner, pathway.id, [draft("a", name="Renamed")])
        refreshed = await service.modules.find_module_by_key(pathway.id, "a")
        assert refreshed.name == "Renamed"
        assert refreshed.description == "Hand written"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "incoming, error",
        [
            ([draft("a", [["b"]]), draft("b", [["a"]])], CyclicDependencyError),
            ([draft("a"), draft("b", [["a"]]), draft("c", [["a", "b"]])], RedundantPrerequisiteError),
            ([draft("a", [["ghost"]])], PrerequisiteNotFoundError),
            ([draft("a"), draft("a", name="Again")], DuplicateInBatchError),
        ],
    )
    async def test_invalid_structure_writes_nothing(
        self, db_session, owner, pathway, seed_modules, stored_prerequisites, incoming, error
    ):
        await seed_modules([("x", []), ("y", [["x"]])])

        with pytest.raises(error):
            await ModuleService(db_session).apply_structure(owner, pathway.id, incoming)
        assert await stored_prerequisites() == {"x": [], "y": [["x"]]}

    @pytest.mark.asyncio
    async def test_not_owner(self, db_session, other_user, pathway):
        with pytest.raises(NotAuthorizedError):
            await ModuleService(db_session).apply_structure(other_user, pathway.id, [draft("a")])
