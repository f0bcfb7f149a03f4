"""assistant/classifier.py

Intent classification for parsed queries: meta questions, update / count /
list requests, conversational chatter and the language of the message.
"""

from __future__ import annotations

# Standard Library
import dataclasses
import re
from typing import Any, Final

# Local Modules
from assistant.models import Lang

_META_QUESTION: Final[re.Pattern[str]] = re.compile(
    r"tu sais faire|tes capacit|tes possibilit|tes fonctionnalit|que peux[- ]?tu|what can you|"
    r"qui es[- ]?tu|tu t['’]?appelles|who are you|aide[- ]?moi|help me|"
    r"comment [çc]a marche|how does it work"
)
_UPDATE: Final[re.Pattern[str]] = re.compile(
    r"modifie|modifier|change|changer|mets|met|passe|passer|met\s+à\s+jour|mettre\s+à\s+jour|"
    r"update|set|déplace|déplacer|pousse|pousser|recul|reculer|retarde|retarder|décal|décaler|"
    r"marque|marquer|supprime|supprimer|retire|retirer|remove|delete|enlève|enlever|enleve|"
    r"prévoit|prévoir|avance|avancer|mark|move|push|postpone|delay|"
    r"^deadline\s+(?:à|pour)|(?:en\s+)?(?:collab|collaborateur)\s+avec\s+[a-z0-9_\s]{1,60}?\s+à"
)
_CREATE: Final[re.Pattern[str]] = re.compile(
    r"ajoute|ajouter|créer|créé|nouveau\s+projet|add|create|new\s+project"
)
_COUNT: Final[re.Pattern[str]] = re.compile(r"combien|cb|nombre|compte|total|how\s*many|count")
_LIST: Final[tuple[re.Pattern[str], ...]] = (
    re.compile(r"liste|montre|affiche|donne|lesquels|list|show|display"),
    re.compile(
        r"(?:quels?|quelle|which|what)\s+(?:sont|sont\s+les?|are|are\s+the|projets?|projects?|"
        r"mes|nos|tes|vos)"
    ),
)
_ENGLISH: Final[re.Pattern[str]] = re.compile(
    r"\b(?:how|many|project|under|list|show|which|what|with|no\s*progress|in\s*the\s*works|"
    r"finished|completed|cancelled)\b"
)
_PROJECT_WORD: Final[re.Pattern[str]] = re.compile(r"projet|project")
_NON_MUSICAL_TOPICS: Final[str] = (
    r"politique|loi|réforme|société|économique|social|éducatif|culturel|scientifique|recherche|"
    r"construction|bâtiment|immobilier|développement|numérique|informatique|web|site|"
    r"application|logiciel|software"
)
_NON_MUSICAL_PROJECT: Final[tuple[re.Pattern[str], ...]] = (
    re.compile(rf"projet\s+(?:de|du|des?|{_NON_MUSICAL_TOPICS})"),
    re.compile(rf"(?:{_NON_MUSICAL_TOPICS})\s+(?:de\s+)?(?:projet|project)"),
)
_MANAGE_VERBS: Final[str] = r"as|a|gères?|fais|fait|gère|manage|manages|have|has"
_ASSISTANT_PROJECTS: Final[tuple[re.Pattern[str], ...]] = (
    re.compile(r"(?:tes|vos|ton|votre|your)\s+(?:projets?|projects?)"),
    re.compile(r"(?:projets?|projects?)\s+(?:de\s+)?(?:toi|vous|you)\b"),
    re.compile(rf"(?:tu|vous|you)\s+(?:{_MANAGE_VERBS})\s+(?:des?\s+)?(?:projets?|projects?)"),
    re.compile(rf"(?:projets?|projects?)[^?]{{0,80}}?\s+(?:tu|vous|you)\s+(?:{_MANAGE_VERBS})\b"),
    re.compile(
        r"(?:les?\s+)?(?:projets?|projects?)\s+(?:que|that|which)\s+(?:tu|vous|you)\s+"
        r"(?:gères?|manage|manages)"
    ),
    re.compile(
        rf"(?:quels?|which|what)\s+(?:projets?|projects?)\s+(?:tu|vous|you)\s+(?:{_MANAGE_VERBS})"
    ),
)
_FILLER: Final[str] = (
    r"et|alors|ok|ouais|oui|bah|ben|hein|dis|écoute|regarde|tiens|voilà|bon|bien|"
    r"d'accord|daccord|okay|oké|okey"
)
_OPINION: Final[str] = (
    r"t['’]?en\s+penses?\s+quoi|qu['’]?est[- ]?ce\s+que\s+tu\s+en\s+penses?|"
    r"what\s+do\s+you\s+think|tu\s+penses?\s+quoi"
)
_CHATTER_STRIPPED: Final[tuple[re.Pattern[str], ...]] = (
    re.compile(
        r"^(?:ok|alors|et|ouais|oui|bah|ben|eh|ah|oh|hein|dis|écoute|regarde|tiens|voilà|voici|"
        r"bon|bien|d'accord|daccord|okay|oké|okey)"
    ),
    re.compile(r"^(?:et|alors)\s+(?:nos|mes|les|des)\s+(?:projets?|projects?)(?:\s+(?:alors|hein|non|quoi))?\s*\??$"),
    re.compile(r"^(?:alors|et)\s+(?:pour|concernant|sur|à\s+propos\s+de)\s+(?:nos|mes|les|des)\s+(?:projets?|projects?)\s*\??$"),
    re.compile(r"^(?:ça\s+fait|c['’]?est|that['’]?s|it['’]?s)\s+"),
    re.compile(r"(?:non|hein|tu\s+trouves?\s+pas|you\s+think|n['’]?est[- ]?ce\s+pas)\s*\??$"),
)
_CHATTER_ANYWHERE: Final[tuple[re.Pattern[str], ...]] = (
    re.compile(
        rf"(?:^|\s)(?:{_FILLER})\s+(?:concernant|pour|sur|à\s+propos\s+de|nos|mes|les|des)\s+"
        r"(?:projets?|projects?)"
    ),
    re.compile(r"(?:concernant|pour|sur|à\s+propos\s+de)\s+(?:nos|mes|les|des)\s+(?:projets?|projects?)\s*\??$"),
    re.compile(r"(?:t['’]?en|tu\s+en|vous\s+en)\s+penses?\s+quoi"),
    re.compile(r"qu['’]?est[- ]?ce\s+que\s+tu\s+en\s+penses?|what\s+do\s+you\s+think"),
    re.compile(r"tu\s+penses?\s+quoi|you\s+think\s+what"),
    re.compile(r"ça\s+fait\s+[^?]{0,80}?\s+(?:de\s+)?(?:projets?|projects?)"),
)
_OPINION_AT_END: Final[re.Pattern[str]] = re.compile(rf"(?:{_OPINION})\s*\??$")
_OPEN_QUESTION: Final[re.Pattern[str]] = re.compile(
    r"^(?:qu['’]?est[- ]?ce|que|quoi|comment|pourquoi|où|quand|qui)"
)


@dataclasses.dataclass(slots=True)
class QueryClassification:
    """Boolean intent flags derived from a query and its detected filters."""

    is_meta_question: bool
    is_update: bool
    is_create: bool
    is_count: bool
    is_list: bool
    lang: Lang
    has_action_verb: bool
    has_project_mention: bool
    is_project_in_non_musical_context: bool
    has_project_related_filters: bool
    is_action_verb_but_not_project_related: bool
    is_question_about_assistant_projects: bool
    is_conversational_question: bool
    understood: bool


def _is_chatter(lower_query: str, is_count: bool, is_list: bool, has_filters: bool) -> bool:
    stripped = lower_query.strip()
    if any(pattern.search(stripped) for pattern in _CHATTER_STRIPPED):
        return True
    if any(pattern.search(lower_query) for pattern in _CHATTER_ANYWHERE):
        return True
    if _OPINION_AT_END.search(lower_query) and not is_count and not has_filters:
        return True
    return bool(
        _OPEN_QUESTION.search(stripped) and not is_count and not is_list and not has_filters
    )


def classify_query(
    query: str, lower_query: str, filters: dict[str, Any]
) -> QueryClassification:
    """Classify a user query.

    Args:
        query: The user query with its original casing.
        lower_query: The same query, lower-cased.
        filters: Filters detected for the query.

    Returns:
        A :class:`QueryClassification`.
    """
    has_filters = len(filters) > 0

    is_meta_question = bool(_META_QUESTION.search(lower_query))
    is_update = bool(_UPDATE.search(lower_query))
    is_create = bool(_CREATE.search(lower_query))
    is_count = bool(_COUNT.search(lower_query))
    is_list = any(pattern.search(lower_query) for pattern in _LIST)
    lang: Lang = "en" if _ENGLISH.search(lower_query) else "fr"
    has_action_verb = is_list or is_count or is_create or is_update

    non_musical = any(pattern.search(lower_query) for pattern in _NON_MUSICAL_PROJECT)
    has_project_mention = bool(_PROJECT_WORD.search(lower_query)) and not non_musical
    has_project_related_filters = has_filters or has_project_mention
    action_without_project = has_action_verb and not has_project_related_filters

    about_assistant = any(pattern.search(lower_query) for pattern in _ASSISTANT_PROJECTS)
    is_conversational = (
        about_assistant
        or action_without_project
        or (not has_action_verb and _is_chatter(lower_query, is_count, is_list, has_filters))
    )

    understood = (
        (not about_assistant and has_filters)
        or (has_action_verb and not is_conversational)
        or (has_project_mention and not is_conversational)
    )

    return QueryClassification(
        is_meta_question=is_meta_question,
        is_update=is_update,
        is_create=is_create,
        is_count=is_count,
        is_list=is_list,
        lang=lang,
        has_action_verb=has_action_verb,
        has_project_mention=has_project_mention,
        is_project_in_non_musical_context=non_musical,
        has_project_related_filters=has_project_related_filters,
        is_action_verb_but_not_project_related=action_without_project,
        is_question_about_assistant_projects=about_assistant,
        is_conversational_question=is_conversational,
        understood=understood,
    )
