"""Firestore REST integration (no firebase-admin)."""

from fileflow.infrastructure.firebase.client import create_firestore_client

__all__ = ["create_firestore_client"]
