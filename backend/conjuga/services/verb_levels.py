"""Which verbs are pedagogically appropriate at each CEFR level.

A1-B1 use a cumulative whitelist of verbs. B2-C2 use a blacklist driven by
how rare a verb is: B2 hides the extremely rare, C1 hides the everyday
essentials, C2 keeps only rare and extremely rare verbs.
"""

A1_VERBS = {
    "ser", "estar", "tener", "haber", "ir", "venir", "llegar", "salir",
    "hablar", "decir", "preguntar", "llamar", "hacer", "trabajar", "estudiar",
    "comer", "beber", "caminar", "mirar", "escuchar", "vivir", "escribir",
}

A2_VERBS = A1_VERBS | {
    "poder", "querer", "saber", "deber", "ver", "oír", "sentir",
    "dar", "recibir", "enviar", "traer", "llevar",
    "levantarse", "acostarse", "ducharse", "vestirse", "desayunar", "almorzar", "cenar",
    "aprender", "enseñar", "leer", "entender", "recordar",
    "conocer", "encontrar", "ayudar", "invitar", "visitar",
    "comprar", "vender", "pagar", "viajar", "jugar",
}

B1_VERBS = A2_VERBS | {
    "pensar", "empezar", "comenzar", "cerrar", "despertar", "preferir", "mentir",
    "volver", "contar", "mostrar", "dormir", "morir", "soñar",
    "poner", "valer", "caer",
    "creer", "opinar", "explicar", "describir",
    "cocinar", "bailar", "cantar", "correr", "nadar", "dibujar", "pintar", "tocar", "practicar",
    "amar", "odiar", "gustar", "molestar", "preocupar", "alegrar", "entristecer", "enojar",
    "funcionar", "conseguir", "lograr", "intentar", "tratar", "mejorar", "cambiar", "crear", "producir",
}

VERBS_BY_LEVEL = {"A1": A1_VERBS, "A2": A2_VERBS, "B1": B1_VERBS}

WHITELIST_LEVELS = {"A1", "A2", "B1"}
BLACKLIST_LEVELS = {"B2", "C1", "C2"}

VERY_HIGH_FREQUENCY = {
    "ser", "estar", "tener", "hacer", "haber", "ir", "decir", "ver", "dar", "saber",
    "querer", "poder", "venir", "llegar", "pasar", "deber", "poner", "parecer",
    "quedar", "creer", "hablar", "llevar", "dejar", "seguir", "encontrar",
    "llamar", "pensar", "salir", "volver", "empezar", "conocer", "sentir",
    "trabajar", "vivir", "estudiar", "entrar", "escribir", "producir", "ocurrir",
    "conseguir", "contar", "pedir", "recibir", "servir", "abrir", "caminar",
    "preguntar", "esperar", "buscar",
}

HIGH_FREQUENCY = {
    "mirar", "comer", "leer", "aprender", "escuchar", "beber", "dormir",
    "levantarse", "comprar", "vender", "viajar", "jugar", "ganar", "perder",
    "ayudar", "enseñar", "mostrar", "explicar", "decidir", "cambiar",
    "terminar", "comenzar", "acabar", "continuar", "mantener", "crear",
    "desarrollar", "establecer", "presentar", "considerar", "ofrecer",
    "realizar", "permitir", "tratar", "evitar", "lograr", "obtener",
    "incluir", "suponer", "recordar", "resultar", "añadir", "aparecer",
    "formar", "dirigir", "correr", "mover", "nadar", "cantar", "bailar",
    "tocar", "cocinar", "limpiar", "preparar", "organizar", "invitar", "visitar",
}

MEDIUM_FREQUENCY = {
    "construir", "destruir", "funcionar", "manejar", "conducir", "traducir",
    "reducir", "introducir", "vestirse", "lavarse", "ducharse", "acostarse",
    "despertarse", "comunicar", "informar", "anunciar", "advertir", "aconsejar",
    "sugerir", "proponer", "recomendar", "insistir", "exigir", "analizar",
    "investigar", "examinar", "observar", "comparar", "clasificar", "ordenar",
    "separar", "dividir", "calcular", "medir", "dibujar", "pintar", "diseñar",
    "fabricar", "reparar", "arreglar", "instalar", "conectar",
}

LOW_FREQUENCY = {
    "vencer", "convencer", "ejercer", "torcer", "cocer", "mecer", "poseer",
    "proveer", "releer", "instruir", "sustituir", "constituir", "atribuir",
    "contribuir", "distribuir", "caber", "sostener", "contener", "detener",
    "entretener", "retener", "componer", "exponer", "imponer", "disponer",
    "bendecir", "maldecir", "predecir", "contradecir",
}

VERY_LOW_FREQUENCY = {
    "yacer", "placer", "raer", "roer", "asir", "erguir", "oler", "errar",
    "agorar", "adecuar", "licuar", "soler", "atañer", "concernir", "incumbir",
    "acaecer", "acontecer", "suceder", "bullir", "mullir", "engullir",
    "zambullir", "escabullir", "tañer", "gruñir", "ceñir", "teñir", "reñir",
    "deshacer", "rehacer", "satisfacer",
}

EXTREMELY_LOW_FREQUENCY = {
    "abolir", "balbucir", "blandir", "colorir", "desvaír", "empedernir",
    "preterir", "transgredir", "aterir", "agredir", "despavorir",
    "granizar", "nevar", "llover", "tronar", "relampaguear", "lloviznar",
    "amanecer", "anochecer", "atardecer", "clarear", "oscurecer",
    "manir", "incoar", "garantir", "precaver", "demoler",
}

FREQUENCY_BANDS = (
    ("very_high", VERY_HIGH_FREQUENCY),
    ("high", HIGH_FREQUENCY),
    ("medium", MEDIUM_FREQUENCY),
    ("low", LOW_FREQUENCY),
    ("very_low", VERY_LOW_FREQUENCY),
    ("extremely_low", EXTREMELY_LOW_FREQUENCY),
)

RARITY_BY_FREQUENCY = {
    "very_high": "essential",
    "high": "important",
    "medium": "useful",
    "low": "specialized",
    "very_low": "rare",
    "extremely_low": "extremely_rare",
}

# Weather/time verbs only conjugate in 3rd person
UNIPERSONAL_VERBS = {"llover", "nevar", "granizar", "amanecer", "anochecer", "atardecer", "tronar", "lloviznar"}
UNIPERSONAL_PERSONS = {"3s", "3p"}


def get_verb_frequency(lemma: str) -> str:
    for band, verbs in FREQUENCY_BANDS:
        if lemma in verbs:
            return band
    return "unknown"


def get_verb_rarity(lemma: str) -> str:
    return RARITY_BY_FREQUENCY.get(get_verb_frequency(lemma), "unknown")


def is_verb_allowed_in_level(lemma: str, level: str) -> bool:
    allowed = VERBS_BY_LEVEL.get(level)
    return allowed is None or lemma in allowed


def should_filter_verb_by_level(lemma: str, families, level: str, tense: str | None = None) -> bool:
    """True when the verb should be hidden at this level."""
    if level == "ALL":
        return False
    if level in WHITELIST_LEVELS:
        return not is_verb_allowed_in_level(lemma, level)
    if level not in BLACKLIST_LEVELS:
        return False

    rarity = get_verb_rarity(lemma)
    if level == "B2":
        return rarity == "extremely_rare"
    if level == "C1":
        return rarity in ("essential", "important")
    return rarity not in ("rare", "extremely_rare")


def is_unipersonal_violation(lemma: str, person: str | None, level: str) -> bool:
    """Weather verbs outside 3rd person are hidden from B2 up."""
    if level not in BLACKLIST_LEVELS and level != "ALL":
        return False
    if lemma not in UNIPERSONAL_VERBS or person is None:
        return False
    return person not in UNIPERSONAL_PERSONS
