# =======================================================================================
# rfid_gate/services/firestore_store.py - Firestore Document Store
# =======================================================================================
from typing import Any, Dict, Optional
import firebase_admin
from firebase_admin import credentials, firestore
from google.api_core import exceptions as google_exceptions
from .store import DocumentStore
from ..utils.exceptions import StoreError


class FirestoreDocumentStore(DocumentStore):
    """Residents and audit logs kept as Firestore documents, one collection each."""

    def __init__(self, client):
        self.client = client

    @classmethod
    def from_credentials(cls, credentials_path: str) -> "FirestoreDocumentStore":
        if not firebase_admin._apps:
            firebase_admin.initialize_app(credentials.Certificate(credentials_path))
        return cls(firestore.client())

    def get(self, collection: str, key: str) -> Optional[Dict[str, Any]]:
        try:
            snapshot = self.client.collection(collection).document(key).get()
        except google_exceptions.GoogleAPIError as e:
            raise StoreError(f"Failed to read {collection}/{key}: {e}") from e
        return snapshot.to_dict() if snapshot.exists else None

    def set(self, collection: str, key: str, data: Dict[str, Any]) -> None:
        try:
            self.client.collection(collection).document(key).set(data)
        except google_exceptions.GoogleAPIError as e:
            raise StoreError(f"Failed to write {collection}/{key}: {e}") from e

    def ping(self) -> None:
        try:
            # Listing a single collection id is the cheapest authenticated round trip.
            next(iter(self.client.collections()), None)
        except google_exceptions.GoogleAPIError as e:
            raise StoreError(f"Firestore unreachable: {e}") from e
