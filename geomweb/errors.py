"""Translation of database and network errors into readable French messages."""

from __future__ import annotations

from geomweb import constants

_RULES: tuple[tuple[tuple[str, ...], str], ...] = (
    (("row-level security", "rls", "permission denied"), "Action refusee par la securite des donnees."),
    (("failed to fetch", "networkerror", "network error"), "Connexion reseau impossible. Reessayez."),
    (("jwt", "token", "session"), "Session invalide. Reconnectez-vous puis reessayez."),
    (("invalid login credentials", "invalid credentials"), "Identifiants invalides."),
)
_SCHEMA_MISMATCH = "Base de donnees non synchronisee. Appliquez les migrations SQL puis reessayez."


def _includes_any(text: str, patterns: tuple[str, ...]) -> bool:
    return any(pattern in text for pattern in patterns)


def readable_error_message(
    error: BaseException | None,
    fallback: str = constants.ERROR_GENERIC,
) -> str:
    """Return a message suitable for end users.

    ``error`` may carry a ``code`` attribute (PostgreSQL error code) as
    :class:`geomweb.store.StoreError` does.
    """
    if error is None:
        return fallback
    raw = str(error).strip()
    message = raw.lower()
    code = str(getattr(error, "code", "") or "").strip().lower()

    if not message and not code:
        return fallback
    if code == "23505" or _includes_any(message, ("duplicate key", "already exists")):
        return "Cette valeur existe deja."
    for patterns, readable in _RULES:
        if _includes_any(message, patterns):
            return readable
    if _includes_any(message, ("schema cache", "does not exist", "could not find the")) and (
        _includes_any(message, ("column", "'users'"))
    ):
        return _SCHEMA_MISMATCH
    return raw or fallback
