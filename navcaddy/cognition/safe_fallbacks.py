from __future__ import annotations

from navcaddy.config import settings


_SAFE_FALLBACKS: dict[str, dict[str, str]] = {
    "en": {
        "error.empty_input": "Please say or type something.",
        "error.classification": "Unable to process your request. Please try again.",
        "error.unexpected": "Something went wrong. Please try again.",
        "ack.generic": "I'll help you with that.",
        "ack.cancelled": "Okay, never mind.",
        "confirm.intent": "It sounds like you want {action}{details}. Should I go ahead?",
        "clarify.missing_entities": "To {description}, I need more information about: {entities}.",
        "clarify.vague": "I'm not quite sure what you need. Did you mean:",
        "clarify.physical": "I'm not quite sure what you're referring to. Are you looking to:",
        "clarify.problem": "Could you clarify what's off? Are you looking to:",
        "clarify.advice": "I can help with that. What would you like to do:",
        "clarify.equipment": "Is this about your clubs? Did you want to:",
        "clarify.round": "Is this about your round? Did you want to:",
        "clarify.default": "I'm not quite sure what you're asking. Did you want to:",
        "offline.mode": "You're offline. I can help with scores, stats, equipment, and settings. Full features will be back when you reconnect.",
        "offline.online_again": "You're back online! All features are now available.",
        "offline.no_match": "I'm offline and didn't catch that. I can still help with scores, stats, equipment, and settings.",
        "offline.unavailable.shot_recommendation": "Shot recommendations need an internet connection. Try checking your stats or equipment instead.",
        "offline.unavailable.recovery_check": "Recovery insights need an internet connection. Check back when you're online.",
        "offline.unavailable.readiness_check": "Readiness insights need an internet connection. Check back when you're online.",
        "offline.unavailable.drill_request": "Personalized drills need an internet connection. Check your patterns in the meantime.",
        "offline.unavailable.weather_check": "Weather data needs an internet connection. I can't check conditions offline.",
        "offline.unavailable.course_info": "Course information needs an internet connection. Try looking at your saved rounds instead.",
        "offline.unavailable.feedback": "Feedback needs an internet connection. Please send it again when you're back online.",
        "offline.unavailable.bailout_query": "Bailout advice needs an internet connection. Play to the fat part of the green for now.",
        "offline.unavailable.default": "This feature needs an internet connection. You can still enter scores, check stats, or view your equipment.",
        "recovery.network": "I'm having trouble connecting right now. You can still use offline features or try again when you're back online.",
        "recovery.timeout": "That's taking longer than expected. Let's try again, or pick one of these quick options.",
        "recovery.classification": "I didn't quite catch that. Could you rephrase, or pick from these common options?",
        "recovery.service": "I'm having technical difficulties at the moment. You can still browse manually or try again in a bit.",
        "recovery.invalid_input": "Something doesn't look quite right with that input. Can you double-check and try again?",
        "prerequisite.recovery_data": "I don't have any recovery data yet. Log your sleep, HRV, or readiness score first, and I'll give you insights.",
        "prerequisite.round_active": "You need to start a round first. Would you like to start a new round now?",
        "prerequisite.bag_configured": "Your bag isn't configured yet. Set up your clubs and distances so I can give you better recommendations.",
        "prerequisite.course_selected": "Which course are you playing? Select a course to get specific information.",
        "prerequisite.default": "Some required information is missing. Please complete your profile first.",
        "prerequisite.also_missing": "Also missing: {missing}.",
        "answer.pattern_query": "Let me check your miss patterns. Based on your recent shots, I'll give you insights.",
        "answer.pattern_query.none": "I don't have enough recent shots to spot a pattern yet. Log a few misses and ask me again.",
        "answer.pattern_query.top": "Your most common miss lately is a {direction}{club}: {frequency} of your last {total} shots.",
        "answer.pattern_query.also": "Watch for the {direction} too ({frequency} shots).",
        "answer.help_request": "I'm your digital caddy. Ask me about club selection, check your recovery, enter scores, or get coaching tips. What can I help you with?",
        "answer.feedback": "Thanks for the feedback! It helps make the caddy better.",
        "answer.default": "I understand. Let me help you with that.",
        "navigation.opening": "Opening {screen}.",
        "navigation.failed": "I couldn't open that screen. Please try again.",
        "queue.failed": "{count} item(s) couldn't be synced after several attempts.",
        "default": "I can't do that right now.",
    },
    "es": {
        "error.empty_input": "Por favor di o escribe algo.",
        "error.classification": "No pude procesar tu solicitud. Inténtalo de nuevo.",
        "error.unexpected": "Algo salió mal. Inténtalo de nuevo.",
        "ack.generic": "Te ayudo con eso.",
        "ack.cancelled": "Listo, lo dejamos.",
        "confirm.intent": "Parece que quieres {action}{details}. ¿Continúo?",
        "clarify.missing_entities": "Para {description}, necesito más información sobre: {entities}.",
        "clarify.vague": "No estoy seguro de lo que necesitas. ¿Quisiste decir:",
        "clarify.default": "No estoy seguro de lo que preguntas. ¿Quieres:",
        "offline.mode": "Estás sin conexión. Puedo ayudarte con tarjetas, estadísticas, equipo y ajustes.",
        "offline.online_again": "¡Estás de nuevo en línea! Todas las funciones están disponibles.",
        "offline.no_match": "Estoy sin conexión y no entendí eso. Aún puedo ayudarte con tarjetas, estadísticas, equipo y ajustes.",
        "offline.unavailable.default": "Esta función necesita conexión a internet. Aún puedes anotar tu tarjeta o ver tus estadísticas.",
        "recovery.network": "Tengo problemas de conexión. Puedes usar las funciones sin conexión o intentarlo más tarde.",
        "recovery.classification": "No entendí bien. ¿Puedes decirlo de otra forma o elegir una de estas opciones?",
        "navigation.failed": "No pude abrir esa pantalla. Inténtalo de nuevo.",
        "default": "No puedo hacer eso ahora mismo.",
    },
}


def get_safe_fallback(key: str, locale: str | None = None) -> str:
    language = _language(locale)
    templates = _SAFE_FALLBACKS.get(language, _SAFE_FALLBACKS["en"])
    return templates.get(key) or _SAFE_FALLBACKS["en"].get(key) or templates["default"]


def render_safe_message(
    key: str, locale: str | None = None, variables: dict[str, object] | None = None
) -> str:
    template = get_safe_fallback(key, locale)
    try:
        return template.format(**(variables or {}))
    except (KeyError, IndexError, ValueError):
        return template


def has_safe_fallback(key: str) -> bool:
    return key in _SAFE_FALLBACKS["en"]


def _language(locale: str | None) -> str:
    resolved = locale if locale is not None else settings.get_locale()
    return "es" if str(resolved or "").lower().startswith("es") else "en"
