"""Persistence layer for saved plans.

Saved plans are kept the way a browser keeps them in local storage: a JSON
array of ``{"id": ..., "loanPlan": {...}}`` objects stored under a single key
(``emiPlans``), one such key per user token. The store is backed by
SQLAlchemy; it defaults to SQLite for local development but accepts any
SQLAlchemy-compatible URL.
"""

from __future__ import annotations

import json
import logging
import threading
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import Column, DateTime, String, Text, create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from emi_plan.data_models import LoanPlan, SavedPlan
from emi_plan.serialization import new_saved_plan, saved_plan_from_dict, saved_plan_to_dict

logger = logging.getLogger(__name__)

Base = declarative_base()

PLANS_KEY = "emiPlans"


class StoredValueModel(Base):
    __tablename__ = "plan_storage"

    user_token = Column(String(64), primary_key=True)
    storage_key = Column(String(64), primary_key=True)
    value_json = Column(Text, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class PlanStore:
    """Database-backed store of each user's saved plans."""

    def __init__(self, url: str) -> None:
        kwargs: Dict[str, Any] = {"future": True}
        if url in ("sqlite://", "sqlite:///:memory:"):
            # a single shared connection keeps the in-memory database alive
            kwargs.update(connect_args={"check_same_thread": False}, poolclass=StaticPool)
        self._engine = create_engine(url, **kwargs)
        Base.metadata.create_all(self._engine)
        self._session_factory = sessionmaker(self._engine, expire_on_commit=False, future=True)
        self._write_lock = threading.Lock()

    def _read(self, session, user_token: str) -> List[Dict[str, Any]]:
        row = session.get(StoredValueModel, (user_token, PLANS_KEY))
        if row is None:
            return []
        return json.loads(row.value_json)

    def list_plans(self, user_token: str) -> List[SavedPlan]:
        if not user_token:
            return []
        with self._session_factory() as session:
            return [saved_plan_from_dict(item) for item in self._read(session, user_token)]

    def get_plan(self, user_token: str, plan_id: str) -> Optional[SavedPlan]:
        for saved in self.list_plans(user_token):
            if saved.id == plan_id:
                return saved
        return None

    def save_plan(self, user_token: str, plan: LoanPlan) -> Optional[SavedPlan]:
        """Append ``plan`` to the user's list and return the saved wrapper."""
        if not user_token:
            return None
        with self._write_lock, self._session_factory() as session:
            plans = self._read(session, user_token)
            taken = {item.get("id") for item in plans}
            stamp = datetime.now(timezone.utc)
            saved = new_saved_plan(plan, stamp)
            # ids are millisecond timestamps and must stay unique per user
            while saved.id in taken:
                stamp += timedelta(milliseconds=1)
                saved = new_saved_plan(plan, stamp)
            plans.append(saved_plan_to_dict(saved))
            self._write(session, user_token, plans)
            session.commit()
        logger.info("Saved plan %s for user %s (%d stored)", saved.id, user_token, len(plans))
        return saved

    def remove_plan(self, user_token: str, plan_id: str) -> None:
        if not user_token:
            return
        with self._write_lock, self._session_factory() as session:
            plans = self._read(session, user_token)
            remaining = [item for item in plans if item.get("id") != plan_id]
            if len(remaining) != len(plans):
                self._write(session, user_token, remaining)
                session.commit()

    def clear_plans(self, user_token: str) -> None:
        if not user_token:
            return
        with self._write_lock, self._session_factory() as session:
            row = session.get(StoredValueModel, (user_token, PLANS_KEY))
            if row is not None:
                session.delete(row)
                session.commit()

    @staticmethod
    def _write(session, user_token: str, plans: List[Dict[str, Any]]) -> None:
        row = session.get(StoredValueModel, (user_token, PLANS_KEY))
        payload = json.dumps(plans)
        if row is None:
            session.add(StoredValueModel(user_token=user_token, storage_key=PLANS_KEY, value_json=payload))
        else:
            row.value_json = payload


def create_store_from_env(url: str | None) -> PlanStore:
    return PlanStore(url or "sqlite:///emi_plans.sqlite3")
