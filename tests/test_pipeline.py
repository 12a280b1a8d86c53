from __future__ import annotations

from typing import Any, Callable

from navcaddy.cognition.classification import ClassifyResponse
from navcaddy.cognition.classifier import ConfidenceClassifier
from navcaddy.cognition.entities import IntentType
from navcaddy.cognition.errors import ClassificationError, ClassificationErrorKind
from navcaddy.cognition.pipeline import NavCaddyPipeline
from navcaddy.navigation.executor import (
    Navigated,
    PromptPrerequisites,
    RequestConfirmation,
    ShowInlineResponse,
)
from navcaddy.navigation.prerequisites import SessionPrerequisiteChecker
from navcaddy.navigation.router import NavigationRouter
from navcaddy.nervous_system.connectivity import ConnectivityMonitor, ConnectivityState
from navcaddy.session.manager import SessionContextManager


class _StubClient:
    def __init__(self, *replies: ClassifyResponse | ClassificationError) -> None:
        self.replies = list(replies)
        self.calls: list[str] = []

    def classify(self, normalized_input: str, context: Any) -> ClassifyResponse:
        self.calls.append(normalized_input)
        reply = self.replies.pop(0)
        if isinstance(reply, ClassificationError):
            raise reply
        return reply


class _ManualTimer:
    def __init__(self, interval: float, function: Callable[..., None], args: tuple[Any, ...] = ()) -> None:
        self.function = function
        self.args = args

    def start(self) -> None:
        return None

    def cancel(self) -> None:
        return None


def _pipeline(client: _StubClient, session: SessionContextManager | None = None, **kwargs: Any) -> NavCaddyPipeline:
    return NavCaddyPipeline(ConfidenceClassifier(client), session or SessionContextManager(), **kwargs)


def test_confident_intent_navigates_and_is_remembered() -> None:
    session = SessionContextManager()
    pipeline = _pipeline(_StubClient(ClassifyResponse(IntentType.WEATHER_CHECK, 0.9)), session)

    outcome = pipeline.handle("How's the weather looking?")

    assert outcome is not None
    assert isinstance(outcome.action, Navigated)
    assert outcome.action.route == "caddy/weather"
    assert outcome.response == "Opening weather."
    history = session.snapshot().conversation_history
    assert [turn.content for turn in history] == ["How's the weather looking?", "Opening weather."]


def test_confirmation_accepted_on_next_turn() -> None:
    client = _StubClient(ClassifyResponse(IntentType.WEATHER_CHECK, 0.6))
    pipeline = _pipeline(client)

    first = pipeline.handle("is it gonna blow out there")
    second = pipeline.handle("yes")

    assert first is not None and isinstance(first.action, RequestConfirmation)
    assert second is not None and isinstance(second.action, Navigated)
    assert second.action.route == "caddy/weather"
    assert len(client.calls) == 1


def test_confirmation_declined() -> None:
    session = SessionContextManager()
    pipeline = _pipeline(_StubClient(ClassifyResponse(IntentType.WEATHER_CHECK, 0.6)), session)

    pipeline.handle("is it gonna blow out there")
    outcome = pipeline.handle("no")

    assert outcome is not None
    assert outcome.response == "Okay, never mind."
    assert session.peek_pending() is None


def test_clarification_option_picked_by_number() -> None:
    client = _StubClient(ClassifyResponse(IntentType.DRILL_REQUEST, 0.35))
    pipeline = _pipeline(client)

    first = pipeline.handle("hmm")
    second = pipeline.handle("1")

    assert first is not None and isinstance(first.action, ShowInlineResponse)
    assert "1. Find a Drill" in first.response.splitlines()
    assert second is not None and isinstance(second.action, Navigated)
    assert second.action.destination.screen == "drill"
    assert len(client.calls) == 1


def test_unanswered_question_falls_through_to_classification() -> None:
    client = _StubClient(
        ClassifyResponse(IntentType.WEATHER_CHECK, 0.6),
        ClassifyResponse(IntentType.STATS_LOOKUP, 0.9),
    )
    pipeline = _pipeline(client)

    pipeline.handle("is it gonna blow out there")
    outcome = pipeline.handle("actually show my stats")

    assert outcome is not None and isinstance(outcome.action, Navigated)
    assert outcome.action.route == "caddy/stats"
    assert len(client.calls) == 2


def test_timeout_recovers_with_offline_match() -> None:
    pipeline = _pipeline(_StubClient(ClassificationError(ClassificationErrorKind.TIMEOUT)))

    outcome = pipeline.handle("show my stats")

    assert outcome is not None and isinstance(outcome.action, Navigated)
    assert outcome.action.route == "caddy/stats"


def test_network_failure_without_offline_match_offers_suggestions() -> None:
    pipeline = _pipeline(_StubClient(ClassificationError(ClassificationErrorKind.NETWORK_ERROR)))

    outcome = pipeline.handle("what club for 150")

    assert outcome is not None and isinstance(outcome.action, ShowInlineResponse)
    assert outcome.response.startswith("I'm having trouble connecting right now.")
    assert outcome.action.suggestions == (
        IntentType.ROUND_START,
        IntentType.STATS_LOOKUP,
        IntentType.EQUIPMENT_INFO,
    )


def test_parse_failure_offers_common_options() -> None:
    pipeline = _pipeline(_StubClient(ClassificationError(ClassificationErrorKind.PARSE_ERROR)))

    outcome = pipeline.handle("flibbertigibbet")

    assert outcome is not None
    assert outcome.response.startswith("I didn't quite catch that.")
    assert "1. Get Shot Advice" in outcome.response


def test_offline_mode_skips_the_classifier_and_checks_prerequisites() -> None:
    client = _StubClient()
    session = SessionContextManager()
    pipeline = _pipeline(
        client,
        session,
        router=NavigationRouter(SessionPrerequisiteChecker(session)),
        force_offline=True,
    )

    blocked = pipeline.handle("enter my score")
    session.update_round("r-1", "Harbour Town")
    allowed = pipeline.handle("enter my score for hole 4")

    assert client.calls == []
    assert blocked is not None and isinstance(blocked.action, PromptPrerequisites)
    assert allowed is not None and isinstance(allowed.action, Navigated)
    assert allowed.action.route == "caddy/score_entry?hole=4"
    assert allowed.offline is True


def test_offline_banner_shown_once() -> None:
    timers: list[_ManualTimer] = []

    def _factory(interval: float, function: Callable[..., None], args: tuple[Any, ...] = ()) -> _ManualTimer:
        timer = _ManualTimer(interval, function, args)
        timers.append(timer)
        return timer

    monitor = ConnectivityMonitor(500, timer_factory=_factory, initial_state=ConnectivityState.ONLINE)
    pipeline = _pipeline(_StubClient(), connectivity=monitor)
    monitor.report(False)
    timers[-1].function(*timers[-1].args)

    first = pipeline.handle("show my stats")
    second = pipeline.handle("show my stats")

    assert first is not None and second is not None
    assert first.offline is True
    assert first.response.startswith("You're offline.")
    assert not second.response.startswith("You're offline.")


def test_empty_input_is_not_recorded() -> None:
    session = SessionContextManager()
    client = _StubClient()

    outcome = _pipeline(client, session).handle("   ")

    assert outcome is not None
    assert outcome.response == "Please say or type something."
    assert client.calls == []
    assert session.snapshot().conversation_history == ()
