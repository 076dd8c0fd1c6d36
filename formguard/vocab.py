
VOCAB = {
    "en": {
        "session_expired": "Your session has expired or the form was submitted from elsewhere. Please reload the page and try again.",
        "note_saved": "Note saved.",
        "note_empty": "A note cannot be empty.",
        "session_started": "Session started.",
        "search_results": "Search results",
    },
    "de": {
        "session_expired": "Ihre Sitzung ist abgelaufen oder das Formular wurde von anderer Stelle gesendet. Bitte laden Sie die Seite neu und versuchen Sie es erneut.",
        "note_saved": "Notiz gespeichert.",
        "note_empty": "Eine Notiz darf nicht leer sein.",
        "session_started": "Sitzung gestartet.",
        "search_results": "Suchergebnisse",
    },
    "fr": {
        "session_expired": "Votre session a expiré ou le formulaire a été envoyé depuis un autre site. Veuillez recharger la page et réessayer.",
        "note_saved": "Note enregistrée.",
        "note_empty": "Une note ne peut pas être vide.",
        "session_started": "Session ouverte.",
        "search_results": "Résultats de recherche",
    },
}

FALLBACK_LANGUAGE = "en"


def preferred_language(accept_language: str | None, default: str = FALLBACK_LANGUAGE) -> str:
    if not accept_language:
        return default if default in VOCAB else FALLBACK_LANGUAGE

    for part in accept_language.split(","):
        tag = part.split(";", 1)[0].strip().lower()
        primary = tag.split("-", 1)[0]
        if primary in VOCAB:
            return primary
    return default if default in VOCAB else FALLBACK_LANGUAGE


def get_vocab(key: str, language: str = FALLBACK_LANGUAGE) -> str:
    table = VOCAB.get(language, VOCAB[FALLBACK_LANGUAGE])
    return table.get(key) or VOCAB[FALLBACK_LANGUAGE].get(key, key)
