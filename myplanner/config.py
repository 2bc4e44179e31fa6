"""
Runtime configuration.

Defaults are resolved by functions instead of module constants so tests can
override them through arguments or environment variables.

Environment variables:
    MYPLANNER_DATA               path of the local planner JSON file
    MYPLANNER_FIRESTORE_PROJECT  Firebase project id
    MYPLANNER_USER_ID            signed-in user id
    MYPLANNER_ID_TOKEN           Google/Firebase ID token

Setting all three Firestore variables selects the cloud backend.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

PACKAGE_DIR = Path(__file__).resolve().parent


def default_data_path(env: Optional[Mapping[str, str]] = None) -> Path:
    """
    Return the planner JSON path: MYPLANNER_DATA if set, otherwise
    data/planner.json inside the package.
    """
    env = os.environ if env is None else env
    custom = env.get("MYPLANNER_DATA", "").strip()
    if custom:
        return Path(custom).expanduser()
    return PACKAGE_DIR / "data" / "planner.json"


@dataclass
class FirestoreSettings:
    project_id: str
    user_id: str
    id_token: str


def firestore_settings(env: Optional[Mapping[str, str]] = None) -> Optional[FirestoreSettings]:
    """
    Cloud settings, or None if any of the three variables is missing.
    """
    env = os.environ if env is None else env
    project = env.get("MYPLANNER_FIRESTORE_PROJECT", "").strip()
    user = env.get("MYPLANNER_USER_ID", "").strip()
    token = env.get("MYPLANNER_ID_TOKEN", "").strip()
    if not (project and user and token):
        return None
    return FirestoreSettings(project_id=project, user_id=user, id_token=token)
