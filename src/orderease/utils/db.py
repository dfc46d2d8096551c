"""Schema management for SQL-backed providers.

The in-memory provider needs no schema, so both helpers are no-ops unless
``database.driver`` selects sqlite or postgresql.
"""

from itertools import chain

from protean.domain import Domain
from sqlalchemy import create_engine

_SQL_PROVIDERS = ("sqlite", "postgresql")


def _sql_providers(domain: Domain):
    return [p for _, p in domain.providers.items() if p.conn_info["provider"] in _SQL_PROVIDERS]


def _stored_elements(domain: Domain, provider):
    records = chain(domain.registry.aggregates.values(), domain.registry.entities.values())
    return [record.cls for record in records if record.cls.meta_.provider == provider.name]


def setup_db(domain: Domain) -> None:
    """Create the tables of every shop, user, product, tag and order element."""
    with domain.domain_context():
        for provider in _sql_providers(domain):
            # A DAO registers its table on the provider's metadata when first built
            for element in _stored_elements(domain, provider):
                domain.repository_for(element)._dao  # noqa: B018

            engine = create_engine(provider.conn_info["database_uri"])
            try:
                provider._metadata.create_all(engine)
            finally:
                engine.dispose()


def drop_db(domain: Domain) -> None:
    with domain.domain_context():
        for provider in _sql_providers(domain):
            engine = create_engine(provider.conn_info["database_uri"])
            try:
                provider._metadata.drop_all(engine)
            finally:
                engine.dispose()
