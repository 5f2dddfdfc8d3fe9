from datetime import datetime
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.exceptions import IdConflict, StoreError
from app.models.finger_print import Attendance, FingerPrint


class FingerPrintRepository:
    """Template store over an async SQLAlchemy session"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def insert(self, fingerprint: FingerPrint) -> FingerPrint:
        try:
            self.db.add(fingerprint)
            await self.db.commit()
            await self.db.refresh(fingerprint)
            return fingerprint
        except IntegrityError as e:
            await self.db.rollback()
            raise IdConflict(f"Fingerprint id {fingerprint.id} already exists", e) from e
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise StoreError(f"Could not insert fingerprint: {e}", e) from e

    async def replace_template(self, fingerprint: FingerPrint, template: str) -> FingerPrint:
        try:
            fingerprint.template = template
            fingerprint.created_at = datetime.utcnow()
            self.db.add(fingerprint)
            await self.db.commit()
            await self.db.refresh(fingerprint)
            return fingerprint
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise StoreError(f"Could not replace fingerprint template: {e}", e) from e

    async def find_by_id(self, fingerprint_id: int) -> Optional[FingerPrint]:
        return await self._first(select(FingerPrint).where(FingerPrint.id == fingerprint_id))

    async def find_by_fingerprint_id(self, external_id: str) -> Optional[FingerPrint]:
        return await self._first(select(FingerPrint).where(FingerPrint.fingerprint_id == external_id))

    async def find_by_exact_template(self, template: str) -> Optional[FingerPrint]:
        statement = (
            select(FingerPrint)
            .where(FingerPrint.template == template)
            .order_by(FingerPrint.id)
        )
        return await self._first(statement)

    async def find_all(self) -> List[FingerPrint]:
        statement = select(FingerPrint).order_by(FingerPrint.id)
        try:
            result = await self.db.execute(statement)
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            raise StoreError(f"Could not load fingerprints: {e}", e) from e

    async def find_max_id(self) -> Optional[int]:
        try:
            result = await self.db.execute(select(func.max(FingerPrint.id)))
            return result.scalar()
        except SQLAlchemyError as e:
            raise StoreError(f"Could not read max fingerprint id: {e}", e) from e

    async def insert_attendance(self, fingerprint_id: int) -> Attendance:
        attendance = Attendance(fingerprint_id=fingerprint_id)
        try:
            self.db.add(attendance)
            await self.db.commit()
            await self.db.refresh(attendance)
            return attendance
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise StoreError(f"Could not log attendance for fingerprint {fingerprint_id}: {e}", e) from e

    async def list_attendance(self, fingerprint_id: Optional[int] = None) -> List[Attendance]:
        statement = select(Attendance).order_by(Attendance.timestamp, Attendance.id)
        if fingerprint_id is not None:
            statement = statement.where(Attendance.fingerprint_id == fingerprint_id)
        try:
            result = await self.db.execute(statement)
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            raise StoreError(f"Could not load attendance: {e}", e) from e

    async def _first(self, statement) -> Optional[FingerPrint]:
        try:
            result = await self.db.execute(statement)
            return result.scalars().first()
        except SQLAlchemyError as e:
            raise StoreError(f"Fingerprint lookup failed: {e}", e) from e

    def detach(self, fingerprint: FingerPrint) -> FingerPrint:
        """Remove a loaded record from the session so later rollbacks leave it readable"""
        if fingerprint in self.db:
            self.db.expunge(fingerprint)
        return fingerprint
