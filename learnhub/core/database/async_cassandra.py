"""Async Cassandra connection using cassandra-asyncio-driver.

The cassandra-asyncio-driver ``Cluster`` hands out sessions that add
``session.aexecute()`` on top of the regular cassandra-driver API, so every
service can ``await`` its queries.
"""

import structlog
from cassandra.auth import PlainTextAuthProvider
from cassandra.policies import DCAwareRoundRobinPolicy, TokenAwarePolicy
from cassandra_asyncio.cluster import Cluster

from learnhub.assignments.models import ASSIGNMENTS_TABLES_CQL
from learnhub.auth.models import AUTH_TABLES_CQL
from learnhub.comments.models import COMMENTS_TABLES_CQL
from learnhub.config.settings import get_settings
from learnhub.courses.models import COURSES_TABLES_CQL
from learnhub.paths.models import PATHS_TABLES_CQL
from learnhub.progress.models import PROGRESS_TABLES_CQL


logger = structlog.get_logger(__name__)


# Creation order matters only for readability; tables are independent.
SCHEMA: dict[str, list[str]] = {
    "auth": AUTH_TABLES_CQL,
    "courses": COURSES_TABLES_CQL,
    "assignments": ASSIGNMENTS_TABLES_CQL,
    "progress": PROGRESS_TABLES_CQL,
    "paths": PATHS_TABLES_CQL,
    "comments": COMMENTS_TABLES_CQL,
}


class AsyncCassandraConnection:
    """Process-wide cluster and session holder."""

    _cluster: Cluster | None = None
    _session = None

    @classmethod
    def connect(cls):
        """Connect to the cluster, reusing the session if already open.

        Raises:
            ConnectionError: If no contact point can be reached.
        """
        if cls._session is not None:
            return cls._session

        settings = get_settings()

        auth_provider = None
        if settings.cassandra_username and settings.cassandra_password:
            auth_provider = PlainTextAuthProvider(
                username=settings.cassandra_username,
                password=settings.cassandra_password,
            )

        cls._cluster = Cluster(
            contact_points=settings.cassandra_hosts,
            port=settings.cassandra_port,
            auth_provider=auth_provider,
            protocol_version=settings.cassandra_protocol_version,
            load_balancing_policy=TokenAwarePolicy(DCAwareRoundRobinPolicy()),
            connect_timeout=settings.cassandra_connect_timeout,
        )

        try:
            cls._session = cls._cluster.connect()
        except Exception as e:
            logger.error("cassandra_connection_failed", error=str(e))
            raise ConnectionError(f"Failed to connect to Cassandra: {e}") from e

        cls._session.default_timeout = settings.cassandra_request_timeout
        logger.info(
            "cassandra_connected",
            hosts=settings.cassandra_hosts,
            port=settings.cassandra_port,
        )
        return cls._session

    @classmethod
    def get_session(cls):
        if cls._session is None:
            return cls.connect()
        return cls._session

    @classmethod
    def disconnect(cls) -> None:
        if cls._session is not None:
            cls._session.shutdown()
            cls._session = None
        if cls._cluster is not None:
            cls._cluster.shutdown()
            cls._cluster = None
        logger.info("cassandra_disconnected")

    @classmethod
    def is_connected(cls) -> bool:
        return cls._session is not None and not cls._session.is_shutdown


def get_async_cassandra_session():
    """Return the shared session, connecting on first use."""
    return AsyncCassandraConnection.get_session()


async def create_keyspace(session, keyspace: str, replication_factor: int) -> None:
    """Create the keyspace if it does not exist yet."""
    cql = f"""
        CREATE KEYSPACE IF NOT EXISTS {keyspace}
        WITH replication = {{
            'class': 'SimpleStrategy',
            'replication_factor': {replication_factor}
        }}
        AND durable_writes = true
    """
    await session.aexecute(cql)
    logger.info("keyspace_ready", keyspace=keyspace)


async def create_tables(session, keyspace: str) -> None:
    """Run every module's ``CREATE TABLE IF NOT EXISTS`` statements."""
    for module, statements in SCHEMA.items():
        for cql_template in statements:
            await session.aexecute(cql_template.format(keyspace=keyspace))
        logger.info("tables_ready", module=module, count=len(statements))


async def init_async_cassandra():
    """Connect, create keyspace and tables, and return the session."""
    settings = get_settings()

    session = AsyncCassandraConnection.connect()
    await create_keyspace(
        session, settings.cassandra_keyspace, settings.cassandra_replication_factor
    )
    session.set_keyspace(settings.cassandra_keyspace)
    await create_tables(session, settings.cassandra_keyspace)

    logger.info("cassandra_initialized", keyspace=settings.cassandra_keyspace)
    return session


async def shutdown_async_cassandra() -> None:
    AsyncCassandraConnection.disconnect()
