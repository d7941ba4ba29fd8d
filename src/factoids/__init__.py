"""Persistent keyed factoid store for chat bots."""

from .config import FactoidsConfig, config_from_env, load_config, save_config
from .keys import normalize, validate
from .models import Content, Factoid, FactoidRecord, Intent
from .result import Fail, FailReason, Ok, Outcome, UnwrapError
from .store import FactoidStore

__all__ = [
    "Content",
    "Factoid",
    "FactoidRecord",
    "FactoidStore",
    "FactoidsConfig",
    "Fail",
    "FailReason",
    "Intent",
    "Ok",
    "Outcome",
    "UnwrapError",
    "config_from_env",
    "load_config",
    "normalize",
    "save_config",
    "validate",
]
