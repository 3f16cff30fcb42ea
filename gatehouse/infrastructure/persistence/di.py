from typing import AsyncIterable

from dishka import provide
from sqlalchemy.ext.asyncio import AsyncEngine

from gatehouse.config import Config
from gatehouse.domain.auth.port.identity_directory import IdentityDirectory
from gatehouse.infrastructure.persistence.database import create_db_engine
from gatehouse.infrastructure.persistence.directory import SqlIdentityDirectory
from gatehouse.util.di.base import Provider
from gatehouse.util.di.scope import Scope


class PersistenceProvider(Provider):
    @provide(scope=Scope.APP)
    async def get_engine(self, config: Config) -> AsyncIterable[AsyncEngine]:
        engine = create_db_engine(config.database)
        yield engine
        await engine.dispose()

    # Each directory call opens its own transaction, so one instance serves the app
    @provide(scope=Scope.APP)
    def get_identity_directory(self, engine: AsyncEngine) -> IdentityDirectory:
        return SqlIdentityDirectory(engine)
