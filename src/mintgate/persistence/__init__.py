"""Persistence — append-only event log and state snapshots."""

from mintgate.persistence.event_log import EventKind, EventLog, EventRecord
from mintgate.persistence.state_store import StateStore

__all__ = ["EventKind", "EventLog", "EventRecord", "StateStore"]
