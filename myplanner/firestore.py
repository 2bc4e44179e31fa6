"""Planner repository backed by the Firestore REST API."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests

from myplanner.storage import PlannerRepository, PlannerState

LOG = logging.getLogger(__name__)

BASE_URL = "https://firestore.googleapis.com/v1"
COLLECTION = "schedules"


class FirestoreError(RuntimeError):
    """Raised when the Firestore API returns an error."""


# ---------------------------------------------------------------------------
# Typed value conversion
# ---------------------------------------------------------------------------


def to_value(obj: Any) -> Dict[str, Any]:
    """Convert a plain JSON value into a Firestore typed value."""
    if obj is None:
        return {"nullValue": None}
    # bool before int: bool is a subclass of int
    if isinstance(obj, bool):
        return {"booleanValue": obj}
    if isinstance(obj, int):
        return {"integerValue": str(obj)}
    if isinstance(obj, float):
        return {"doubleValue": obj}
    if isinstance(obj, str):
        return {"stringValue": obj}
    if isinstance(obj, dict):
        return {"mapValue": {"fields": {str(k): to_value(v) for k, v in obj.items()}}}
    if isinstance(obj, (list, tuple)):
        return {"arrayValue": {"values": [to_value(v) for v in obj]}}
    raise TypeError(f"Cannot store value of type {type(obj).__name__}")


def from_value(value: Dict[str, Any]) -> Any:
    """Convert a Firestore typed value back into a plain JSON value."""
    if "nullValue" in value:
        return None
    if "booleanValue" in value:
        return bool(value["booleanValue"])
    if "integerValue" in value:
        return int(value["integerValue"])
    if "doubleValue" in value:
        return float(value["doubleValue"])
    if "stringValue" in value:
        return value["stringValue"]
    # timestamps are kept as their RFC 3339 string
    if "timestampValue" in value:
        return value["timestampValue"]
    if "mapValue" in value:
        return from_fields(value["mapValue"].get("fields", {}))
    if "arrayValue" in value:
        return [from_value(v) for v in value["arrayValue"].get("values", [])]
    raise FirestoreError(f"Unsupported Firestore value: {sorted(value)}")


def from_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    return {k: from_value(v) for k, v in fields.items()}


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class FirestoreRepository(PlannerRepository):
    """
    One document per user at schedules/{user_id}.

    save() is a merge write: only the fields present in the state are sent
    (updateMask), other fields of the remote document stay as they are.
    Concurrent writers are not reconciled, the last write wins.
    """

    def __init__(
        self,
        project_id: str,
        user_id: str,
        id_token: str,
        session: Optional[requests.Session] = None,
        timeout: float = 30,
    ) -> None:
        self.project_id = project_id
        self.user_id = user_id
        self.id_token = id_token
        self.session = session or requests.Session()
        self.timeout = timeout

    @property
    def document_url(self) -> str:
        return (
            f"{BASE_URL}/projects/{self.project_id}/databases/(default)/documents/"
            f"{COLLECTION}/{self.user_id}"
        )

    def _headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.id_token}"}

    def load(self) -> PlannerState:
        url = self.document_url
        LOG.debug("GET %s", url)
        resp = self.session.get(url, headers=self._headers(), timeout=self.timeout)
        if resp.status_code == 404:
            LOG.info("No planner document for user %s yet", self.user_id)
            return PlannerState()
        if resp.status_code >= 400:
            raise FirestoreError(f"{resp.status_code} from Firestore: {resp.text}")
        try:
            body = resp.json()
        except ValueError as exc:
            raise FirestoreError(f"Invalid JSON from Firestore: {resp.text}") from exc
        return PlannerState.from_document(from_fields(body.get("fields", {})))

    def save(self, state: PlannerState) -> None:
        doc = state.to_document()
        url = self.document_url
        # repeated query parameter: updateMask.fieldPaths=a&updateMask.fieldPaths=b
        params = [("updateMask.fieldPaths", name) for name in sorted(doc)]
        body = {"fields": {k: to_value(v) for k, v in doc.items()}}
        LOG.debug("PATCH %s (%d fields)", url, len(doc))
        resp = self.session.patch(url, headers=self._headers(), params=params, json=body, timeout=self.timeout)
        if resp.status_code >= 400:
            raise FirestoreError(f"{resp.status_code} from Firestore: {resp.text}")
