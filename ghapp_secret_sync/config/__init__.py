"""Configuration: environment settings and config file loading."""
