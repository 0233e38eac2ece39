import pytest

from nurdaily.core.errors import NetworkFailure, QuotaExceeded, ResolutionError
from nurdaily.core.resolver import ResolutionChain, ResolverStage, StageOutcome


class FakeStage(ResolverStage):
    def __init__(self, name, result=None, error=None):
        super().__init__()
        self.name = name
        self.result = result
        self.error = error
        self.calls = []

    def attempt(self, key):
        self.calls.append(key)
        if self.error:
            raise self.error
        if self.result is None:
            return None
        return StageOutcome(self.result, self.name)


def test_first_outcome_wins_and_later_stages_are_skipped():
    first = FakeStage("first")
    second = FakeStage("second", result="value")
    third = FakeStage("third", result="never")
    chain = ResolutionChain("test", [first, second, third])

    outcome = chain.resolve("k")

    assert outcome.value == "value"
    assert outcome.source == "second"
    assert outcome.cacheable is True
    assert first.calls == ["k"]
    assert third.calls == []


def test_resolution_errors_fall_through():
    chain = ResolutionChain("test", [
        FakeStage("down", error=NetworkFailure("offline")),
        FakeStage("limited", error=QuotaExceeded("429")),
        FakeStage("local", result="ok"),
    ])

    assert chain.resolve("k").source == "local"


def test_other_exceptions_propagate():
    chain = ResolutionChain("test", [FakeStage("bug", error=KeyError("x")), FakeStage("local", result="ok")])

    with pytest.raises(KeyError):
        chain.resolve("k")


def test_exhausted_chain_raises():
    chain = ResolutionChain("test", [FakeStage("a"), FakeStage("b", error=NetworkFailure("x"))])

    with pytest.raises(ResolutionError):
        chain.resolve("k")


def test_chain_needs_stages():
    with pytest.raises(ValueError):
        ResolutionChain("empty", [])


def test_stage_names_reflect_order():
    chain = ResolutionChain("test", [FakeStage("a"), FakeStage("b")])
    assert chain.stage_names == ["a", "b"]
