"""Connection and cache settings resolved from arguments and the environment.

Explicit arguments win, then environment variables, then the non-secret
defaults below. There is deliberately no default password: when none is
configured libpq falls back to PGPASSWORD or ~/.pgpass.
"""

import os
from typing import Optional

from psycopg2.extensions import make_dsn

DEFAULT_HOST = "localhost"
DEFAULT_PORT = "5432"
DEFAULT_DBNAME = "platform"
DEFAULT_USER = "postgres"
DEFAULT_CACHE_DIR = "~/shared/rds"

# argument name -> environment variable
ENV_VARS = {
    "host": "VAXDB_HOST",
    "port": "VAXDB_PORT",
    "dbname": "VAXDB_DBNAME",
    "user": "VAXDB_USER",
    "password": "VAXDB_PASSWORD",
}

DEFAULTS = {
    "host": DEFAULT_HOST,
    "port": DEFAULT_PORT,
    "dbname": DEFAULT_DBNAME,
    "user": DEFAULT_USER,
}


def resolve_params(**overrides) -> dict:
    """Merge explicit connection parameters with environment and defaults.

    When DATABASE_URL is set it provides the base; VAXDB_* variables and
    explicit arguments are layered on top of it. Parameters that end up
    unset are omitted from the result.
    """
    params = {}
    database_url = os.environ.get("DATABASE_URL")
    for key, env_var in ENV_VARS.items():
        value = overrides.get(key)
        if value is None:
            value = os.environ.get(env_var)
        if value is None and not database_url:
            value = DEFAULTS.get(key)
        if value is not None:
            params[key] = str(value)
    return params


def get_dsn(
    host: Optional[str] = None,
    port: Optional[str] = None,
    dbname: Optional[str] = None,
    user: Optional[str] = None,
    password: Optional[str] = None,
) -> str:
    """Build a libpq connection string."""
    params = resolve_params(host=host, port=port, dbname=dbname, user=user, password=password)
    return make_dsn(os.environ.get("DATABASE_URL"), **params)


def cache_dir(path: Optional[str] = None) -> str:
    """Cache directory with `~` expanded. Does not create it."""
    if path is None:
        path = os.environ.get("VAXDB_CACHE_DIR", DEFAULT_CACHE_DIR)
    return os.path.expanduser(str(path))
