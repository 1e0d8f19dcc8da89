"""Assistant instructions and the offline replies used without a gateway key."""

from __future__ import annotations

SYSTEM_PROMPT = """\
Tu es Assistant GeoExpert.

Objectif:
- Repondre clairement a toute question generale (culture, technique, redaction, etc.).
- Pour les sujets fonciers, cadastraux et topographiques en Algerie, donner des reponses precises et structurees.

Style:
- Reponds en francais, ton professionnel et utile.
- Donne des etapes concretes quand c'est pertinent.
- Si l'information est incertaine, indique les limites clairement.

Regles metier GeoExpert:
- Pour un prix exact, inviter l'utilisateur a contacter le cabinet.
- Horaires du cabinet: lundi-vendredi 9h-18h, samedi 9h-12h."""

GREETING_REPLY = (
    "Bonjour. Je peux vous aider pour le bornage, la topographie, la copropriete "
    "et les demarches foncieres."
)
DEFAULT_REPLY = (
    "Merci pour votre message. Je peux vous aider sur les services de geometre-expert, "
    "les demarches foncieres et la preparation de votre demande de devis."
)

# Checked in order; the first rule with a matching keyword answers.
KEYWORD_REPLIES: tuple[tuple[tuple[str, ...], str], ...] = (
    (
        ("devis", "prix", "tarif"),
        "Pour un tarif precis, merci de nous contacter via le formulaire. "
        "Le montant depend du type de mission et de la localisation.",
    ),
    (
        ("bornage",),
        "Le bornage permet de fixer officiellement les limites d'un terrain. "
        "Nous pouvons vous accompagner de la preparation du dossier jusqu'au plan final.",
    ),
    (
        ("contact", "telephone", "rendez"),
        "Vous pouvez nous contacter via la page Contact ou demander un devis en ligne. "
        "Horaires: lundi-vendredi 9h-18h, samedi 9h-12h.",
    ),
)


def build_fallback_reply(user_text: str) -> str:
    """Pick a canned answer for the last user message."""
    normalized = user_text.strip().lower()
    if not normalized:
        return GREETING_REPLY
    for keywords, reply in KEYWORD_REPLIES:
        if any(keyword in normalized for keyword in keywords):
            return reply
    return DEFAULT_REPLY
