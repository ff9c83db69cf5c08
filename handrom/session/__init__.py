"""Session recording, summary, replay and the recorded-session format."""

from .recorder import Session, SessionRecorder
from .aggregator import summarize_all_digits, summarize_session
from .replay import PlaybackState, ReplayController
from .storage import (
    SessionFormatError,
    frames_from_records,
    frames_to_records,
    load_hdf5,
    load_json,
    load_session,
    save_hdf5,
    save_json,
    save_session,
)

__all__ = [
    "Session",
    "SessionRecorder",
    "summarize_all_digits",
    "summarize_session",
    "PlaybackState",
    "ReplayController",
    "SessionFormatError",
    "frames_from_records",
    "frames_to_records",
    "load_hdf5",
    "load_json",
    "load_session",
    "save_hdf5",
    "save_json",
    "save_session",
]
