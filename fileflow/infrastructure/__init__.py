"""Infrastructure: storage adapters, repositories, cache, security."""
