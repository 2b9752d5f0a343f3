"""Infrastructure adapters: storage, analyzers, fetchers, logging."""
