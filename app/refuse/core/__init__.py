"""Core services: configuration, paths, errors, filtering and the trash manager."""
