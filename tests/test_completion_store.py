from __future__ import annotations

import asyncio
import uuid

import pytest
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from helpers import USER_ID, seed_skill_path

from app.core.exceptions import CompletionStoreError, RecordNotFoundError, SportPathNotFoundError
from app.models import ChallengeParticipation, FigureProgress, PurchaseStatus, SportDemoUser, SportPath, SportPurchase
from app.progression.completion_store import CompletionStore


async def test_get_sport_path_only_returns_published(db) -> None:
    await seed_skill_path(db)
    db.add(SportPath(key_name="silks", name="Silks", is_published=False))
    await db.commit()
    store = CompletionStore(db)

    path = await store.get_sport_path("aerial")

    assert path.free_levels_count == 2
    assert path.price_pln == 4900
    with pytest.raises(SportPathNotFoundError):
        await store.get_sport_path("silks")


async def test_get_levels_skips_drafts_and_keeps_order(db) -> None:
    seeded = await seed_skill_path(db)
    store = CompletionStore(db)

    levels = await store.get_levels(seeded.path.id)

    assert [level.sequence_number for level in levels] == [1, 2, 3]
    first = levels[0]
    assert first.boss_figure.figure_id == seeded.boss.id
    assert first.boss_figure.boss_description == "Hold 5s"
    assert [f.figure_id for f in first.regular_figures] == [seeded.fig_a.id, seeded.fig_b.id, seeded.fig_c.id]
    assert first.training_ids == {seeded.training.id}
    assert [a.achievement_id for a in first.achievements] == [seeded.badge_one.id]
    assert levels[1].challenge_id == seeded.challenge.id
    assert levels[1].challenge_title == "30 days of hoop"


async def test_load_snapshot(db) -> None:
    seeded = await seed_skill_path(db)
    store = CompletionStore(db)
    await store.set_figure_status(USER_ID, seeded.fig_a.id, "completed")
    await store.set_figure_status(USER_ID, seeded.fig_b.id, "for_later")
    await store.record_training_completion(USER_ID, seeded.level_one.id, seeded.training.id)
    await store.join_challenge(USER_ID, seeded.challenge.id)
    # Another user's progress stays out of the snapshot
    await store.set_figure_status(uuid.uuid4(), seeded.fig_c.id, "completed")
    levels = await store.get_levels(seeded.path.id)

    snapshot = await store.load_snapshot(USER_ID, levels)

    assert snapshot.is_figure_completed(seeded.fig_a.id)
    assert snapshot.figure_status(seeded.fig_b.id) == "for_later"
    assert snapshot.figure_status(seeded.fig_c.id) == "not_tried"
    assert snapshot.training_completions == {(seeded.level_one.id, seeded.training.id)}
    assert not snapshot.is_challenge_completed(seeded.challenge.id)
    assert snapshot.participation(seeded.challenge.id).status == "active"
    assert snapshot.owned_achievement_ids == frozenset()


async def test_set_figure_status_updates_existing_row(db) -> None:
    seeded = await seed_skill_path(db)
    store = CompletionStore(db)

    first = await store.set_figure_status(USER_ID, seeded.fig_a.id, "failed", notes="grip")
    second = await store.set_figure_status(USER_ID, seeded.fig_a.id, "completed")

    assert first.id == second.id
    assert second.status == "completed"
    assert second.notes == "grip"


async def test_concurrent_first_figure_writes_share_one_row(file_session_factory) -> None:
    async with file_session_factory() as db:
        seeded = await seed_skill_path(db)
        figure_id = seeded.fig_a.id

    async def record(notes):
        async with file_session_factory() as session:
            return await CompletionStore(session).set_figure_status(USER_ID, figure_id, "completed", notes=notes)

    first, second = await asyncio.gather(record("hold longer"), record(None))

    assert first.id == second.id
    assert {first.status, second.status} == {"completed"}
    async with file_session_factory() as db:
        rows = (await db.execute(select(FigureProgress))).scalars().all()
    assert len(rows) == 1
    assert rows[0].notes == "hold longer"


async def test_training_completion_counts_first_time_only(db) -> None:
    seeded = await seed_skill_path(db)
    store = CompletionStore(db)

    assert await store.record_training_completion(USER_ID, seeded.level_one.id, seeded.training.id) is True
    assert await store.record_training_completion(USER_ID, seeded.level_one.id, seeded.training.id) is False


async def test_training_must_be_linked_to_level(db) -> None:
    seeded = await seed_skill_path(db)
    store = CompletionStore(db)

    with pytest.raises(RecordNotFoundError):
        await store.record_training_completion(USER_ID, seeded.level_two.id, seeded.training.id)


async def test_join_challenge_is_idempotent(db) -> None:
    seeded = await seed_skill_path(db)
    store = CompletionStore(db)

    participation, created = await store.join_challenge(USER_ID, seeded.challenge.id)
    again, created_again = await store.join_challenge(USER_ID, seeded.challenge.id)

    assert created is True
    assert created_again is False
    assert participation.id == again.id


async def test_join_keeps_completed_participation(db) -> None:
    seeded = await seed_skill_path(db)
    db.add(ChallengeParticipation(user_id=USER_ID, challenge_id=seeded.challenge.id, completed=True, status="completed"))
    await db.commit()
    store = CompletionStore(db)

    participation, created = await store.join_challenge(USER_ID, seeded.challenge.id)

    assert created is False
    assert participation.completed is True


async def test_unknown_records_raise_not_found(db) -> None:
    await seed_skill_path(db)
    store = CompletionStore(db)

    with pytest.raises(RecordNotFoundError):
        await store.join_challenge(USER_ID, uuid.uuid4())
    with pytest.raises(RecordNotFoundError):
        await store.get_sport_paths_for_figure(uuid.uuid4())
    with pytest.raises(RecordNotFoundError):
        await store.get_sport_path_for_level(uuid.uuid4())


async def test_sport_paths_for_figure(db) -> None:
    seeded = await seed_skill_path(db)
    store = CompletionStore(db)

    paths = await store.get_sport_paths_for_figure(seeded.fig_e.id)

    assert [path.key_name for path in paths] == ["aerial"]


async def test_access_facts(db) -> None:
    seeded = await seed_skill_path(db)
    other_user = uuid.uuid4()
    db.add_all([
        SportPurchase(user_id=USER_ID, sport_path_id=seeded.path.id, status=PurchaseStatus.COMPLETED.value),
        SportPurchase(user_id=other_user, sport_path_id=seeded.path.id, status=PurchaseStatus.PENDING.value),
        SportDemoUser(user_id=other_user, sport_path_id=seeded.path.id),
    ])
    await db.commit()
    store = CompletionStore(db)

    buyer = await store.get_access_facts(USER_ID, seeded.path.id, "free")
    demo = await store.get_access_facts(other_user, seeded.path.id, "free")

    assert buyer.has_completed_purchase is True
    assert buyer.in_demo_allowlist is False
    assert demo.has_completed_purchase is False
    assert demo.in_demo_allowlist is True


async def test_query_failure_raises_completion_store_error(db, monkeypatch) -> None:
    seeded = await seed_skill_path(db)
    store = CompletionStore(db)
    levels = await store.get_levels(seeded.path.id)

    async def failing_execute(*args, **kwargs):
        raise SQLAlchemyError("connection lost")

    monkeypatch.setattr(AsyncSession, "execute", failing_execute)

    with pytest.raises(CompletionStoreError):
        await store.load_snapshot(USER_ID, levels)
