"""Factoid store: validation, alias resolution and edit authorization.

All mutating operations on a key (set, replace, delete, freeze, unfreeze)
run under a per-key asyncio.Lock, held from the first read of the key
until the new value is committed. Reads never take the lock.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import re
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator, Awaitable, Callable

from .config import FactoidsConfig
from .keys import normalize, validate
from .logging import JSONLLogger, configure_logger
from .models import Content, Factoid, FactoidRecord, Intent, now
from .policy import BeforeCommit, allow_all
from .result import Fail, FailReason, Ok, Outcome, first_failure
from .storage import DurableMap, open_map

logger = logging.getLogger(__name__)

AdminCheck = Callable[[str], Awaitable[bool]]

_WHITESPACE = re.compile(r"\s+")


def _reason_text(reason: FailReason | str) -> str:
    return reason.value if isinstance(reason, FailReason) else str(reason)


def _substitute(
    regex: re.Pattern[str], replacement: str, text: str, count: int
) -> tuple[str, int]:
    """Substitute matches, using replacement literally if it is not a valid template.

    Back-references such as ``\\1`` are expanded; text like ``C:\\Users`` or a
    reference to a missing group is inserted as written.
    """
    try:
        return regex.subn(replacement, text, count=count)
    except re.error:
        return regex.subn(lambda _: replacement, text, count=count)


class FactoidStore:
    """Keyed store of factoids.

    Args:
        durable_map: Backing storage.
        is_editor_admin: Async callable telling whether an editor may edit
            frozen factoids.
        before_commit: Policy run on every factoid right before it is written.
        config: Store limits and policies.
        audit: Optional JSONL audit log.
    """

    def __init__(
        self,
        durable_map: DurableMap,
        is_editor_admin: AdminCheck,
        before_commit: BeforeCommit = allow_all,
        config: FactoidsConfig | None = None,
        audit: JSONLLogger | None = None,
    ) -> None:
        if not callable(is_editor_admin):
            raise TypeError("is_editor_admin must be callable")
        if not callable(before_commit):
            raise TypeError("before_commit must be callable")

        self.config = config or FactoidsConfig()
        self.audit = audit
        self._map = durable_map
        self._is_editor_admin = is_editor_admin
        self._before_commit = before_commit
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}

    @classmethod
    def open(
        cls,
        config: FactoidsConfig,
        is_editor_admin: AdminCheck,
        before_commit: BeforeCommit = allow_all,
    ) -> FactoidStore:
        """Create a store whose storage and audit log come from config."""
        audit = configure_logger(log_dir=Path(config.audit_log_dir)) if config.audit_log_dir else None
        return cls(
            open_map(config.database),
            is_editor_admin,
            before_commit=before_commit,
            config=config,
            audit=audit,
        )

    # Reads

    def _read(self, key: str) -> FactoidRecord | None:
        value = self._map.get(key)
        if value is None:
            return None
        return FactoidRecord.from_dict(value)

    def info(self, key: str) -> FactoidRecord | None:
        """Get the stored record for a key, including tombstones."""
        return self._read(normalize(key))

    def get(self, key: str) -> Outcome[Content]:
        """Look up a factoid, following aliases.

        At most ``max_alias_depth`` aliases are followed; a longer chain,
        or one that loops back on itself, fails with MAX_ALIAS_DEPTH_REACHED.
        """
        current = normalize(key)
        depth = 0

        while True:
            record = self._read(current)
            if record is None or record.content is None:
                return Fail(FailReason.NO_FACTOID)

            if record.content.intent != Intent.ALIAS:
                return Ok(record.content)

            if depth >= self.config.max_alias_depth:
                logger.debug("Alias depth exceeded resolving %r", key)
                return Fail(FailReason.MAX_ALIAS_DEPTH_REACHED)

            depth += 1
            current = normalize(record.content.message)

    def keys(self) -> list[str]:
        """List keys that currently have content."""
        list_keys = getattr(self._map, "keys", None)
        if list_keys is None:
            raise TypeError(f"{type(self._map).__name__} cannot list keys")
        return list(list_keys())

    # Authorization

    @asynccontextmanager
    async def _locked(self, key: str) -> AsyncIterator[None]:
        """Hold the mutation lock for key."""
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        self._lock_users[key] = self._lock_users.get(key, 0) + 1

        try:
            async with lock:
                yield
        finally:
            self._lock_users[key] -= 1
            if self._lock_users[key] == 0:
                del self._lock_users[key]
                del self._locks[key]

    async def _check_admin(self, editor: str) -> bool:
        result: Any = self._is_editor_admin(editor)
        if inspect.isawaitable(result):
            if self.config.admin_check_timeout is None:
                result = await result
            else:
                result = await asyncio.wait_for(result, self.config.admin_check_timeout)
        return bool(result)

    async def _authorize(
        self, prior: FactoidRecord | None, editor: str
    ) -> Outcome[FactoidRecord | None]:
        if prior is None or not prior.frozen:
            return Ok(prior)

        try:
            is_admin = await self._check_admin(editor)
        except asyncio.TimeoutError:
            logger.warning("Admin check for %r timed out", editor)
            return Fail(FailReason.ADMIN_CHECK_TIMEOUT)

        return Ok(prior) if is_admin else Fail(FailReason.FROZEN)

    async def can_edit(self, key: str, editor: str) -> Outcome[FactoidRecord | None]:
        """Check whether editor may change the factoid at key.

        Returns the current record (or None) on success, FROZEN if the
        factoid is frozen and the editor is not an admin, ADMIN_CHECK_TIMEOUT
        if the admin check did not answer in time.
        """
        return await self._authorize(self._read(normalize(key)), editor)

    # Mutations

    def _reject(
        self, operation: str, key: str, failure: Fail, editor: str | None = None
    ) -> Fail:
        logger.debug("%s %r rejected: %s", operation, key, _reason_text(failure.reason))
        if self.audit:
            self.audit.log_rejected(operation, key, _reason_text(failure.reason), editor=editor)
        return failure

    def _commit(self, operation: str, factoid: Factoid) -> Outcome[Factoid]:
        """Run the pre-commit policy and write the factoid."""
        outcome = self._before_commit(factoid)
        if isinstance(outcome, Fail):
            return self._reject(operation, factoid.key, outcome, factoid.editor)

        # the policy may rewrite content but never the key or the lock flag
        final = Factoid(
            key=factoid.key,
            intent=outcome.value.intent,
            message=outcome.value.message,
            editor=outcome.value.editor,
            time=outcome.value.time,
            frozen=factoid.frozen,
        )

        self._map.set(final.key, final.to_record().to_dict())
        logger.debug("%s %r by %s", operation, final.key, final.editor)
        if self.audit:
            self.audit.log_edit(
                f"factoid_{operation}",
                final.key,
                final.editor,
                intent=final.intent.value,
                message=final.message,
            )
        return Ok(final)

    def _check_length(self, message: str) -> Outcome[None]:
        if self.config.message_too_long(message):
            return Fail(FailReason.MESSAGE_LENGTH_EXCEEDED)
        return Ok(None)

    def _check_safe_replace(
        self, prior: FactoidRecord | None, is_safe_replace: bool
    ) -> Outcome[None]:
        if self.config.safe_replace and not is_safe_replace and prior is not None and prior.exists:
            return Fail(FailReason.UNSAFE_REPLACE)
        return Ok(None)

    async def set(
        self,
        key: str,
        intent: Intent | str,
        message: str,
        editor: str,
        *,
        is_safe_replace: bool = False,
    ) -> Outcome[Factoid]:
        """Create or overwrite a factoid.

        Args:
            key: Factoid key, any casing.
            intent: Delivery intent; for ALIAS the message is the target key.
            message: Factoid text.
            editor: Identity of the editor.
            is_safe_replace: Confirms an overwrite when safe replace is on.

        Returns:
            Ok with the committed factoid, or Fail with the first reason
            among MESSAGE_LENGTH_EXCEEDED, AT_SYMBOL_IN_KEY, UNSAFE_REPLACE,
            FROZEN, ADMIN_CHECK_TIMEOUT, or one from the pre-commit policy.

        Raises:
            ValueError: If intent, message or editor is missing.
        """
        if not (intent and message and editor):
            raise ValueError("Setting a factoid requires an intent, message, and editor")

        intent = Intent(intent)
        key = normalize(key)

        failure = first_failure(self._check_length(message), validate(key))
        if failure:
            return self._reject("set", key, failure, editor)

        async with self._locked(key):
            prior = self._read(key)

            unsafe = self._check_safe_replace(prior, is_safe_replace)
            if isinstance(unsafe, Fail):
                return self._reject("set", key, unsafe, editor)

            authorized = await self._authorize(prior, editor)
            if isinstance(authorized, Fail):
                return self._reject("set", key, authorized, editor)

            factoid = Factoid(
                key=key,
                intent=intent,
                message=message,
                editor=editor,
                time=now(),
                frozen=prior.frozen if prior else False,
            )
            return self._commit("set", factoid)

    async def replace(
        self,
        key: str,
        pattern: str | re.Pattern[str],
        replacement: str,
        editor: str,
        *,
        count: int = 1,
    ) -> Outcome[Factoid]:
        """Edit a factoid's message with a regex substitution.

        Replaces the first match by default; pass ``count=0`` to replace all.
        Whitespace runs in the result are collapsed to single spaces.

        Returns:
            Ok with the committed factoid, or Fail with DNE, FROZEN,
            ADMIN_CHECK_TIMEOUT, UNCHANGED, MESSAGE_LENGTH_EXCEEDED, NO_MESSAGE_LEFT, or a reason
            from the pre-commit policy.
        """
        key = normalize(key)
        regex = pattern if isinstance(pattern, re.Pattern) else re.compile(pattern)

        async with self._locked(key):
            prior = self._read(key)
            if prior is None or prior.content is None:
                return self._reject("replace", key, Fail(FailReason.DNE), editor)

            authorized = await self._authorize(prior, editor)
            if isinstance(authorized, Fail):
                return self._reject("replace", key, authorized, editor)

            old_message = prior.content.message
            substituted, matches = _substitute(regex, replacement, old_message, count)
            message = _WHITESPACE.sub(" ", substituted).strip()

            if matches == 0 or message == old_message:
                return self._reject("replace", key, Fail(FailReason.UNCHANGED), editor)

            failure = self._check_length(message)
            if isinstance(failure, Fail):
                return self._reject("replace", key, failure, editor)

            if not message:
                return self._reject("replace", key, Fail(FailReason.NO_MESSAGE_LEFT), editor)

            factoid = Factoid(
                key=key,
                intent=prior.content.intent,
                message=message,
                editor=editor,
                time=now(),
                frozen=prior.frozen,
            )
            return self._commit("replace", factoid)

    async def delete(self, key: str, editor: str) -> Outcome[None]:
        """Delete a factoid, leaving a tombstone with its lock and edit metadata.

        Returns:
            Ok(None), or Fail with DNE, FROZEN or ADMIN_CHECK_TIMEOUT.
        """
        key = normalize(key)

        async with self._locked(key):
            prior = self._read(key)
            if prior is None or not prior.exists:
                return self._reject("delete", key, Fail(FailReason.DNE), editor)

            authorized = await self._authorize(prior, editor)
            if isinstance(authorized, Fail):
                return self._reject("delete", key, authorized, editor)

            tombstone = FactoidRecord(editor=editor, time=now(), frozen=prior.frozen)
            self._map.set(key, tombstone.to_dict())
            logger.debug("delete %r by %s", key, editor)
            if self.audit:
                self.audit.log_edit("factoid_delete", key, editor)
            return Ok(None)

    async def freeze(self, key: str) -> bool:
        """Lock a factoid so only admins can edit it.

        The caller is responsible for checking that whoever asked is an
        admin. Keys that were never set get a frozen stub.
        """
        key = normalize(key)

        async with self._locked(key):
            prior = self._read(key) or FactoidRecord()
            self._map.set(key, prior.with_frozen(True).to_dict())
            if self.audit:
                self.audit.log_lock(key, True)
            return True

    async def unfreeze(self, key: str) -> bool:
        """Unlock a factoid. Returns False if nothing was ever stored at key.

        The caller is responsible for checking that whoever asked is an admin.
        """
        key = normalize(key)

        async with self._locked(key):
            prior = self._read(key)
            if prior is None:
                return False
            self._map.set(key, prior.with_frozen(False).to_dict())
            if self.audit:
                self.audit.log_lock(key, False)
            return True

    def close(self) -> None:
        """Close the backing storage if it holds resources."""
        close = getattr(self._map, "close", None)
        if close is not None:
            close()
