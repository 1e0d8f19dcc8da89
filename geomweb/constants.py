"""Default configuration settings for the geomweb package."""

from __future__ import annotations

# --- Chat client ---
CHAT_ENDPOINT_PATH = "/functions/v1/chat"
ERROR_CONTACT_FAILED = "Impossible de contacter l'assistant..."
ERROR_NO_BODY = "Pas de reponse du serveur."
ERROR_NO_USABLE_RESPONSE = "Aucune reponse exploitable de l'assistant."
ERROR_GENERIC = "Une erreur est survenue."
ERROR_INVALID_RESPONSE = "Reponse invalide de l'assistant."
CHAT_ERROR_PREFIX = "[Erreur]"

# --- Chat gateway ---
DEFAULT_GATEWAY_URL = "https://ai.gateway.lovable.dev/v1/chat/completions"
DEFAULT_GATEWAY_MODEL = "google/gemini-2.5-pro"
GATEWAY_ERROR_RATE_LIMITED = "Trop de requetes, veuillez reessayer plus tard."
GATEWAY_ERROR_PAYMENT = "Service temporairement indisponible."
GATEWAY_ERROR_UPSTREAM = "Erreur du service IA"

# --- Profiles ---
CACHE_TTL_SECONDS = 60.0

# --- Notifications ---
CONTACT_NOTIFICATION_TITLE = "Nouveau message"
DEFAULT_SENDER_NAME = "Utilisateur"
SYSTEM_SENDER_NAME = "Systeme"

# --- Auth ---
MIN_PASSWORD_LENGTH = 6
