"""Core building blocks: configuration, logging, errors and result values."""
