"""Firestore Document Store (firebase_admin)."""

from .store import FirestoreDocumentStore

__all__ = ["FirestoreDocumentStore"]
