"""Configuration: TOML file, environment variables and CLI flags in one settings object."""
