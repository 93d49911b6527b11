"""Static guidance used when the text-generation service cannot be used.

Pure data plus one lookup function: no I/O, available offline. One entry per
severity state in both locales; the Severe entry depends on whether the user
shared a location.
"""

from __future__ import annotations

from mindscreen.domains.depression.domain_logic.questionnaire import SeverityState

_FALLBACK_TEXT: dict[SeverityState, dict[str, dict[str, str]]] = {
    SeverityState.NONE: {
        "suggestion": {
            "en": "Your responses suggest you are doing well. Keep up the positive habits!",
            "id": "Jawabanmu menunjukkan kondisimu baik. Pertahankan kebiasaan positifmu!",
        },
        "tips": {
            "en": "Keep a regular sleep routine, stay active, and stay connected with people you care about.",
            "id": "Jaga rutinitas tidur, tetap aktif bergerak, dan tetap terhubung dengan orang-orang terdekat.",
        },
    },
    SeverityState.MILD: {
        "suggestion": {
            "en": "You might be experiencing mild symptoms. Consider monitoring your mood and practicing self-care.",
            "id": "Kamu mungkin mengalami gejala ringan. Coba pantau suasana hatimu dan lakukan perawatan diri.",
        },
        "tips": {
            "en": "Write down how you feel each day, take short walks, and share what you are going through with someone you trust.",
            "id": "Catat perasaanmu setiap hari, luangkan waktu untuk jalan santai, dan ceritakan yang kamu alami kepada orang yang kamu percaya.",
        },
    },
    SeverityState.MODERATE: {
        "suggestion": {
            "en": "Your responses indicate moderate symptoms. It would be beneficial to talk to a mental health professional.",
            "id": "Jawabanmu menunjukkan gejala sedang. Akan sangat membantu jika kamu berbicara dengan tenaga profesional kesehatan mental.",
        },
        "tips": {
            "en": "Consider booking a session with a psychologist or counselor, keep a simple daily routine, and avoid facing this alone.",
            "id": "Pertimbangkan untuk membuat janji dengan psikolog atau konselor, jaga rutinitas harian yang sederhana, dan jangan menghadapinya sendirian.",
        },
    },
}

_SEVERE_SUGGESTION = {
    "en": "It appears you are facing significant challenges. It is highly recommended to seek professional help.",
    "id": "Tampaknya kamu sedang menghadapi tantangan yang berat. Sangat disarankan untuk segera mencari bantuan profesional.",
}

_SEVERE_TIPS_WITH_LOCATION = {
    "en": (
        "Please contact a psychologist, psychiatrist, or the nearest hospital or community health "
        "center around your location as soon as you can. If you have thoughts of harming yourself, "
        "call your local emergency number now."
    ),
    "id": (
        "Segera hubungi psikolog, psikiater, atau rumah sakit maupun puskesmas terdekat di sekitar "
        "lokasimu. Jika muncul pikiran untuk menyakiti diri sendiri, segera hubungi nomor darurat setempat."
    ),
}

_SEVERE_TIPS_WITHOUT_LOCATION = {
    "en": (
        "Reaching out for help is a sign of strength, not weakness. Please talk to a psychologist "
        "or psychiatrist soon, and enable location access so we can point you to help nearby. "
        "If you have thoughts of harming yourself, call your local emergency number now."
    ),
    "id": (
        "Mencari bantuan adalah tanda kekuatan, bukan kelemahan. Segera bicarakan dengan psikolog "
        "atau psikiater, dan aktifkan akses lokasi agar kami dapat menunjukkan layanan bantuan "
        "terdekat. Jika muncul pikiran untuk menyakiti diri sendiri, segera hubungi nomor darurat setempat."
    ),
}


def fallback_texts(state: SeverityState, has_location: bool) -> dict[str, dict[str, str]]:
    """Return ``{"suggestion": {en, id}, "tips": {en, id}}`` for a state (fresh copies)."""
    state = SeverityState(state)
    if state is SeverityState.SEVERE:
        tips = _SEVERE_TIPS_WITH_LOCATION if has_location else _SEVERE_TIPS_WITHOUT_LOCATION
        return {"suggestion": dict(_SEVERE_SUGGESTION), "tips": dict(tips)}
    entry = _FALLBACK_TEXT[state]
    return {"suggestion": dict(entry["suggestion"]), "tips": dict(entry["tips"])}
