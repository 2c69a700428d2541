from protean.domain import Domain
from sqlalchemy import create_engine


def _register_models(domain: Domain, provider_name: str) -> None:
    """Force SQLAlchemy model registration for everything stored in the provider.

    Accessing a repository's `_dao` loads the model and binds it to the
    provider's metadata, so `create_all` can see it.
    """
    records = (
        list(domain.registry.aggregates.values())
        + list(domain.registry.entities.values())
        + list(domain.registry.projections.values())
    )
    for record in records:
        if record.cls.meta_.provider == provider_name and not _is_event_sourced(record.cls):
            domain.repository_for(record.cls)._dao  # noqa: B018


def _is_event_sourced(cls) -> bool:
    # Event-sourced aggregates (and their entities) live in the event store
    owner = getattr(cls.meta_, "part_of", None) or cls
    return bool(getattr(owner.meta_, "is_event_sourced", False))


def setup_db(domain: Domain):
    """Create database tables for relational providers (sqlite, postgresql)."""
    with domain.domain_context():
        for name, provider in domain.providers.items():
            if provider.conn_info["provider"] in ("sqlite", "postgresql"):
                engine = create_engine(provider.conn_info["database_uri"])
                _register_models(domain, name)
                provider._metadata.create_all(engine)


def drop_db(domain: Domain):
    """Drop database tables for relational providers."""
    with domain.domain_context():
        for _, provider in domain.providers.items():
            if provider.conn_info["provider"] in ("sqlite", "postgresql"):
                engine = create_engine(provider.conn_info["database_uri"])
                provider._metadata.drop_all(engine)
