"""SQLAlchemy persistence for the transactional storage backend."""
