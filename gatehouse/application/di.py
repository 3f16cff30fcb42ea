from dishka import AsyncContainer, make_async_container

from gatehouse.config import Config
from gatehouse.domain.auth.util.di import AuthProvider
from gatehouse.infrastructure.auth import AuthInfraProvider
from gatehouse.infrastructure.persistence import PersistenceProvider
from gatehouse.util.di.scope import Scope


def create_container(config: Config | None = None) -> AsyncContainer:
    # Pydantic Settings populates from env vars at runtime
    config = config or Config()  # type: ignore[call-arg]

    return make_async_container(
        PersistenceProvider(),
        AuthInfraProvider(),
        AuthProvider(),
        context={Config: config},
        scopes=Scope,  # type: ignore[arg-type]  # Custom scope class
    )
