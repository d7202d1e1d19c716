"""Connection data service: schema introspection, constraints and row streaming
across Postgres, MySQL and S3 job run artifacts."""

__version__ = "0.1.0"
