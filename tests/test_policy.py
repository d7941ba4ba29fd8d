"""Tests for pre-commit policies."""

import pytest

from factoids.models import Factoid, Intent
from factoids.policy import (
    COMMAND,
    CONTROL_CHARACTERS,
    allow_all,
    chain,
    reject_commands,
    reject_control_characters,
)
from factoids.result import Fail, Ok


def make_factoid(message: str, intent: Intent = Intent.SAY) -> Factoid:
    return Factoid(key="k", intent=intent, message=message, editor="user", time="t")


def test_allow_all():
    factoid = make_factoid("hello")
    assert allow_all(factoid) == Ok(factoid)


class TestRejectControlCharacters:
    def test_plain_text_passes(self):
        factoid = make_factoid("hello world")
        assert reject_control_characters(factoid) == Ok(factoid)

    @pytest.mark.parametrize("message", ["a\nb", "a\rb", "a\x00b", "\x02bold\x02", "a\x7fb"])
    def test_control_characters_rejected(self, message):
        assert reject_control_characters(make_factoid(message)) == Fail(CONTROL_CHARACTERS)


class TestRejectCommands:
    def test_command_rejected(self):
        policy = reject_commands()
        assert policy(make_factoid("/quit bye")) == Fail(COMMAND)

    def test_leading_whitespace_still_rejected(self):
        policy = reject_commands()
        assert policy(make_factoid("  /nick evil")) == Fail(COMMAND)

    def test_custom_prefixes(self):
        policy = reject_commands(prefixes=("!", "."))
        assert policy(make_factoid("!kick someone")) == Fail(COMMAND)
        assert policy(make_factoid("/me is fine here")).is_ok

    def test_alias_exempt(self):
        policy = reject_commands()
        factoid = make_factoid("/target", intent=Intent.ALIAS)
        assert policy(factoid) == Ok(factoid)

    def test_empty_prefix_rejected(self):
        with pytest.raises(ValueError):
            reject_commands(prefixes=("",))


class TestChain:
    def test_runs_all_on_success(self):
        policy = chain(reject_control_characters, reject_commands())
        factoid = make_factoid("fine")
        assert policy(factoid) == Ok(factoid)

    def test_stops_at_first_failure(self):
        calls = []

        def record(factoid):
            calls.append(factoid)
            return Ok(factoid)

        policy = chain(reject_control_characters, record)
        assert policy(make_factoid("bad\n")) == Fail(CONTROL_CHARACTERS)
        assert calls == []

    def test_passes_modified_factoid_along(self):
        def shout(factoid):
            return Ok(Factoid(
                key=factoid.key,
                intent=factoid.intent,
                message=factoid.message.upper(),
                editor=factoid.editor,
                time=factoid.time,
            ))

        policy = chain(shout, reject_commands())
        outcome = policy(make_factoid("hi"))
        assert outcome.unwrap().message == "HI"
