"""
Tests for fingerprint_repo.py - template store operations.
"""

import pytest

from app.exceptions import IdConflict
from app.models.finger_print import FingerPrint
from app.repos.fingerprint_repo import FingerPrintRepository


class TestFingerPrintRepository:
    """Test store reads and writes against SQLite."""

    async def test_empty_store(self, repo):
        assert await repo.find_all() == []
        assert await repo.find_max_id() is None
        assert await repo.find_by_id(1) is None

    async def test_insert_and_find(self, repo):
        await repo.insert(FingerPrint(id=1, template="AAAA"))

        found = await repo.find_by_id(1)
        assert found is not None
        assert found.template == "AAAA"
        assert found.created_at is not None

    async def test_find_all_ordered_by_id(self, repo):
        for fp_id in (3, 1, 2):
            await repo.insert(FingerPrint(id=fp_id, template=f"AAA{fp_id}"))

        assert [fp.id for fp in await repo.find_all()] == [1, 2, 3]
        assert await repo.find_max_id() == 3

    async def test_duplicate_id_raises_conflict(self, repo, database):
        # Another writer took id 1 first
        async with database.session() as other:
            await FingerPrintRepository(other).insert(FingerPrint(id=1, template="AAAA"))

        with pytest.raises(IdConflict):
            await repo.insert(FingerPrint(id=1, template="BBBB"))

        # Session stays usable after the rollback
        assert len(await repo.find_all()) == 1

    async def test_find_by_exact_template(self, repo):
        await repo.insert(FingerPrint(id=1, template="AAAA"))

        assert (await repo.find_by_exact_template("AAAA")).id == 1
        assert await repo.find_by_exact_template("AAAB") is None

    async def test_find_by_fingerprint_id(self, repo):
        await repo.insert(FingerPrint(id=1, fingerprint_id="alice", template="AAAA"))

        assert (await repo.find_by_fingerprint_id("alice")).id == 1
        assert await repo.find_by_fingerprint_id("bob") is None

    async def test_replace_template(self, repo):
        original = await repo.insert(FingerPrint(id=1, fingerprint_id="alice", template="AAAA"))
        first_created = original.created_at

        updated = await repo.replace_template(original, "BBBB")

        assert updated.id == 1
        assert updated.template == "BBBB"
        assert updated.created_at >= first_created

    async def test_attendance(self, repo):
        await repo.insert(FingerPrint(id=1, template="AAAA"))
        await repo.insert(FingerPrint(id=2, template="BBBB"))

        await repo.insert_attendance(1)
        await repo.insert_attendance(1)
        await repo.insert_attendance(2)

        assert len(await repo.list_attendance(1)) == 2
        assert len(await repo.list_attendance()) == 3
