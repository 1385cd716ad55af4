"""Thread-safe utilities: FNV hashing, a sharded map, snowflake IDs, timing wheels and a rotating log writer."""

__version__ = "0.1.0"