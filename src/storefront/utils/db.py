"""Schema management for SQL-backed providers."""

from protean.domain import Domain
from sqlalchemy import create_engine

from storefront.domain import logger

_SQL_PROVIDERS = ("sqlite", "postgresql")


def _register_models(domain: Domain, provider_name: str) -> None:
    # Touching a repository's DAO builds and registers its SQLAlchemy model.
    for registry in (domain.registry.aggregates, domain.registry.entities):
        for _, record in registry.items():
            if record.cls.meta_.provider == provider_name:
                domain.repository_for(record.cls)._dao  # noqa: B018


def setup_db(domain: Domain) -> None:
    """Create tables for every SQL provider configured on the domain."""
    with domain.domain_context():
        for name, provider in domain.providers.items():
            if provider.conn_info["provider"] not in _SQL_PROVIDERS:
                continue

            engine = create_engine(provider.conn_info["database_uri"])
            _register_models(domain, provider.name)
            provider._metadata.create_all(engine)
            logger.info("schema_created", provider=name)


def drop_db(domain: Domain) -> None:
    """Drop tables for every SQL provider configured on the domain."""
    with domain.domain_context():
        for name, provider in domain.providers.items():
            if provider.conn_info["provider"] not in _SQL_PROVIDERS:
                continue

            engine = create_engine(provider.conn_info["database_uri"])
            provider._metadata.drop_all(engine)
            logger.info("schema_dropped", provider=name)
