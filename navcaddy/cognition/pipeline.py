from __future__ import annotations

import logging
import threading
from dataclasses import dataclass

from navcaddy.cognition.clarification import suggestion_label
from navcaddy.cognition.classification import ClassificationResult, Failed
from navcaddy.cognition.classifier import ConfidenceClassifier
from navcaddy.cognition.entities import IntentType, ParsedIntent
from navcaddy.cognition.errors import ClassificationErrorKind
from navcaddy.cognition.normalizer import InputNormalizer, NormalizedUtterance
from navcaddy.cognition.offline_classifier import (
    OfflineClassifier,
    OfflineMatch,
    is_offline_capable,
    offline_limitation_message,
    offline_suggestions,
)
from navcaddy.cognition.pending_interaction import (
    PendingInteraction,
    PendingInteractionType,
    build_pending_confirmation,
    build_pending_selection,
    try_consume,
)
from navcaddy.cognition.recovery import recovery_for
from navcaddy.cognition.safe_fallbacks import render_safe_message
from navcaddy.navigation.executor import (
    NavigationAction,
    NavigationExecutor,
    RequestConfirmation,
    ShowInlineResponse,
    describe_action,
)
from navcaddy.navigation.router import NavigationRouter, NoNavigation, RoutingResult
from navcaddy.nervous_system.connectivity import ConnectivityMonitor, ConnectivityState
from navcaddy.observability.log_manager import LogManager, get_log_manager
from navcaddy.session.manager import SessionContextManager

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PipelineOutcome:
    utterance: NormalizedUtterance
    classification: ClassificationResult | None
    routing: RoutingResult
    action: NavigationAction
    response: str
    offline: bool = False


class NavCaddyPipeline:
    """Utterance in, navigation action and reply text out.

    normalize -> pending answer? -> classify (online) or keyword match
    (offline) -> route -> execute -> remember the turn.
    """

    def __init__(
        self,
        classifier: ConfidenceClassifier,
        session: SessionContextManager,
        *,
        connectivity: ConnectivityMonitor | None = None,
        offline_classifier: OfflineClassifier | None = None,
        normalizer: InputNormalizer | None = None,
        router: NavigationRouter | None = None,
        executor: NavigationExecutor | None = None,
        log_manager: LogManager | None = None,
        force_offline: bool = False,
    ) -> None:
        self._classifier = classifier
        self._session = session
        self._connectivity = connectivity
        self._offline = offline_classifier or OfflineClassifier()
        self._normalizer = normalizer or InputNormalizer()
        self._router = router or NavigationRouter()
        self._executor = executor or NavigationExecutor()
        self._log = log_manager or get_log_manager()
        self._force_offline = force_offline
        self._banner_lock = threading.Lock()
        self._banner: str | None = None
        if connectivity is not None:
            connectivity.subscribe(self._on_connectivity_change)

    @property
    def is_offline(self) -> bool:
        if self._force_offline:
            return True
        return self._connectivity is not None and self._connectivity.is_offline

    def handle(self, text: str) -> PipelineOutcome | None:
        """Process one utterance; None means a newer utterance superseded it."""
        utterance = self._normalizer.normalize(text)
        offline = self.is_offline
        classification: ClassificationResult | None = None

        routing = self._resolve_pending(utterance, offline)
        if routing is None:
            if offline:
                routing = self._route_offline(utterance.text)
            else:
                classification = self._classifier.classify(
                    utterance.text,
                    self._session.snapshot(),
                    session_id=self._session.session_id,
                )
                if classification is None:
                    return None
                routing = self._route_online(classification, utterance.text)

        action = self._executor.execute(routing)
        response = self._with_banner(render_response(action))
        self._park_pending(action)
        if utterance.text:
            self._session.add_conversation_turn(utterance.original, response)
        self._log.emit(
            event="pipeline.routed",
            component="pipeline",
            session_id=self._session.session_id,
            intent=_intent_of(routing),
            status=type(action).__name__.lower(),
            payload={"offline": offline},
        )
        return PipelineOutcome(
            utterance=utterance,
            classification=classification,
            routing=routing,
            action=action,
            response=response,
            offline=offline,
        )

    def _resolve_pending(self, utterance: NormalizedUtterance, offline: bool) -> RoutingResult | None:
        pending = self._session.take_pending()
        if pending is None or not utterance.text:
            return None
        resolution = try_consume(utterance.text, pending)
        if not resolution.consumed:
            return None
        if resolution.confirmed is False:
            self._classifier.cancel(self._session.session_id)
            return NoNavigation(response=render_safe_message("ack.cancelled"))
        parsed = _accepted_intent(pending, resolution.selected)
        if parsed is None:
            return None
        if offline and not is_offline_capable(parsed.intent):
            return self._offline_unavailable(parsed.intent)
        return self._router.route_confirmed(parsed)

    def _route_online(self, classification: ClassificationResult, text: str) -> RoutingResult:
        if not isinstance(classification, Failed):
            return self._router.route(classification)
        if classification.cause.kind == ClassificationErrorKind.EMPTY_INPUT:
            return self._router.route(classification)
        strategy = recovery_for(classification.cause)
        if strategy.use_offline:
            match = self._offline.classify(text, round_active=self._session.has_active_round())
            if isinstance(match, OfflineMatch):
                logger.info("classify failed, recovered offline intent=%s", match.intent.intent.value)
                return self._router.route_confirmed(match.intent)
            return NoNavigation(response=strategy.message(), suggestions=match.suggestions)
        return self._router.route(
            Failed(
                cause=classification.cause,
                message=strategy.message(),
                suggestions=strategy.suggested_intents,
            )
        )

    def _route_offline(self, text: str) -> RoutingResult:
        if not text:
            return NoNavigation(response=render_safe_message("error.empty_input"))
        result = self._offline.classify(text, round_active=self._session.has_active_round())
        if isinstance(result, OfflineMatch):
            return self._router.route_confirmed(result.intent)
        return NoNavigation(response=result.message, suggestions=result.suggestions)

    def _offline_unavailable(self, intent: IntentType) -> RoutingResult:
        return NoNavigation(
            response=offline_limitation_message(intent),
            suggestions=offline_suggestions(round_active=self._session.has_active_round(), exclude=intent),
        )

    def _park_pending(self, action: NavigationAction) -> None:
        if isinstance(action, RequestConfirmation):
            self._session.set_pending(build_pending_confirmation(action.intent))
        elif isinstance(action, ShowInlineResponse) and action.suggestions:
            self._session.set_pending(build_pending_selection(action.suggestions))
        else:
            self._session.set_pending(None)

    def _on_connectivity_change(self, previous: ConnectivityState, current: ConnectivityState) -> None:
        with self._banner_lock:
            if current == ConnectivityState.OFFLINE:
                self._banner = render_safe_message("offline.mode")
            elif previous == ConnectivityState.OFFLINE and current == ConnectivityState.ONLINE:
                self._banner = render_safe_message("offline.online_again")

    def _with_banner(self, response: str) -> str:
        with self._banner_lock:
            banner, self._banner = self._banner, None
        if not banner:
            return response
        return f"{banner}\n{response}" if response else banner


def render_response(action: NavigationAction) -> str:
    text = describe_action(action)
    if isinstance(action, ShowInlineResponse) and action.suggestions:
        options = [f"{index}. {suggestion_label(intent)}" for index, intent in enumerate(action.suggestions, start=1)]
        return "\n".join([text, *options])
    return text


def _accepted_intent(pending: PendingInteraction, selected: IntentType | None) -> ParsedIntent | None:
    if pending.type == PendingInteractionType.CONFIRMATION:
        return pending.intent
    if selected is not None:
        return ParsedIntent(intent=selected, confidence=1.0)
    return None


def _intent_of(routing: RoutingResult) -> str | None:
    intent = getattr(routing, "intent", None)
    if isinstance(intent, ParsedIntent):
        return intent.intent.value
    return None
