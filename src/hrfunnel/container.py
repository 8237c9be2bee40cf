"""Dependency injection container for the screening funnel."""

from __future__ import annotations

from typing import Any

from dependency_injector import containers, providers

from .core import (
    CandidateRecordWriter,
    DashboardAggregator,
    JobDirectory,
    JobPublisher,
    SessionFactory,
)
from .identity import StaticIdentityProvider
from .schemas.config import load_config
from .store import LocalResumeStorage, SQLiteStore


class FunnelContainer(containers.DeclarativeContainer):
    """Dependency-injector container definition."""

    config = providers.Configuration()

    store = providers.Singleton(SQLiteStore, path=config.database.path)
    resume_storage = providers.Singleton(LocalResumeStorage, root=config.storage.resume_dir)

    identity_provider = providers.Singleton(StaticIdentityProvider)

    job_directory = providers.Singleton(JobDirectory, store=store)
    job_publisher = providers.Singleton(
        JobPublisher,
        store=store,
        base_url=config.links.base_url,
    )

    record_writer = providers.Singleton(
        CandidateRecordWriter,
        candidates=store,
        resumes=resume_storage,
    )

    sessions = providers.Singleton(
        SessionFactory,
        jobs=job_directory,
        writer=record_writer,
    )

    dashboard = providers.Singleton(
        DashboardAggregator,
        jobs=store,
        candidates=store,
        base_url=config.links.base_url,
    )


def create_container(
    *,
    settings: dict[str, Any] | None = None,
    recruiter_id: str | None = None,
) -> FunnelContainer:
    """Instantiate container with validated settings and an optional identity."""

    container = FunnelContainer()
    container.config.from_dict(load_config(settings or {}).to_settings())

    if recruiter_id:
        container.identity_provider.override(
            providers.Singleton(StaticIdentityProvider, recruiter_id=recruiter_id)
        )

    return container
