from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

# Register table metadata before create_all
from app.models import finger_print  # noqa: F401


class Database:
   """Explicit store handle: created at startup, disposed at shutdown"""

   def __init__(self, url: str, echo: bool = False):
      self.url = url
      self.engine = create_async_engine(url, echo=echo)
      self.session_factory = async_sessionmaker(
         bind=self.engine,
         class_=AsyncSession,
         expire_on_commit=False
      )

   async def create_all(self) -> None:
      async with self.engine.begin() as conn:
         await conn.run_sync(SQLModel.metadata.create_all)

   async def dispose(self) -> None:
      await self.engine.dispose()

   @asynccontextmanager
   async def session(self) -> AsyncIterator[AsyncSession]:
      async with self.session_factory() as session:
         try:
            yield session
         finally:
            await session.close()


async def get_db(request: Request):
   database: Database = request.app.state.database
   async with database.session() as session:
      yield session
