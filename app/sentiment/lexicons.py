"""
Tabelas estáticas multilíngues usadas pelos preditores e pelo extrator de features.

Todas as tabelas são indexadas por idioma com fallback para inglês, para que
possam ser estendidas e testadas de forma independente da lógica do ensemble.
As palavras são armazenadas em minúsculas e sem diacríticos.
"""
import re
from typing import Dict, FrozenSet, List, Pattern, Tuple

FALLBACK_LANGUAGE = "en"
SUPPORTED_LANGUAGES: Tuple[str, ...] = ("en", "es", "fr", "de")


def _compile(patterns: List[str]) -> Tuple[Pattern[str], ...]:
    return tuple(re.compile(p, re.IGNORECASE | re.UNICODE) for p in patterns)


# Padrões de sarcasmo: cada match soma SARCASM_PATTERN_WEIGHT
SARCASM_PATTERNS: Dict[str, Tuple[Pattern[str], ...]] = {
    "en": _compile([
        r"oh\s+(great|wonderful|perfect|amazing|fantastic|awesome)",
        r"just\s+what\s+i\s+needed",
        r"how\s+(wonderful|lovely|nice)",
        r"really\s+know\s+how\s+to",
        r"exactly\s+what\s+i\s+wanted",
        r"yeah[\s,]*right",
        r"\bas\s+if\b",
        r"thanks\s+(a\s+lot|so\s+much)",
        r"great\s+job(?:\s+(everyone|team))?",
        r"love\s+that\s+for\s+me",
        r"what\s+could\s+possibly\s+go\s+wrong",
        r"can['’]t\s+wait\b",
        r"(nice|awesome|brilliant)\s*(\.\.\.|…)",
        r"thanks\s+for\s+nothing",
    ]),
    "es": _compile([
        r"que\s+(maravilloso|genial|perfecto|lindo|bonito)",
        r"justo\s+lo\s+que\s+necesitaba",
        r"realmente\s+saben?\s+como",
        r"exactamente\s+lo\s+que\s+quer[ií]a",
        r"s[ií][\s,]*claro",
        r"\baj[aá]\b",
        r"gracias\s+por\s+nada",
        r"lo\s+que\s+me\s+faltaba",
        r"me\s+encanta\s+cuando",
        r"qu[eé]\s+bien\s*(\.\.\.|…)",
        r"buen[ií]simo\s*(\.\.\.|…)",
        r"qu[eé]\s+podr[ií]a\s+salir\s+mal",
        r"perfecto\s*(\.\.\.|…)",
    ]),
    "fr": _compile([
        r"oh\s+(genial|génial|parfait|merveilleux)",
        r"juste\s+ce\s+qu(?:'|’)?il\s+me\s+fallait",
        r"vraiment\s+savoir\s+comment",
        r"oui[\s,]*bien\s+s[uû]r",
        r"bah\s+oui",
        r"merci\s+(bien|du\s+cadeau)",
        r"fallait\s+pas",
        r"[cç]a\s+promet",
        r"j(?:'|’)?adore\s+quand",
        r"(super|genial|génial)\s*(\.\.\.|…)",
        r"quelle\s+surprise",
    ]),
    "de": _compile([
        r"oh\s+(toll|perfekt|wunderbar|klasse)",
        r"genau\s+was\s+ich\s+(brauchte|gebraucht\s+habe)",
        r"wirklich\s+wissen\s+wie",
        r"ja[\s,]*klar",
        r"na\s+(toll|prima)",
        r"ganz\s+toll",
        r"danke\s+auch",
        r"herzlichen\s+gl(u|ü)ckwunsch",
        r"freu\s+mich\s+ja\s+so+",
        r"das\s+ist\s+ja\s+super",
        r"wie\s+(u|ü)berraschend",
        r"was\s+kann\s+da\s+schiefgehen",
        r"klasse\s*(\.\.\.|…)",
    ]),
}

SARCASM_PATTERN_WEIGHT = 2
ELLIPSIS_WEIGHT = 1
SARCASTIC_EMOJI_WEIGHT = 1
EMPHASIS_WEIGHT = 1

ELLIPSIS_RE = re.compile(r"\.\.\.|…")
SARCASTIC_EMOJI_RE = re.compile("\\s+[\U0001F612\U0001F644\U0001F60F]")
EMPHASIS_RE = re.compile(r"\b(really|sure|totally)\s+\w+", re.IGNORECASE)

# Faixas de emoji usadas pelo extrator de features
FEATURE_EMOJI_RE = re.compile(
    "[\U0001F600-\U0001F64F\U0001F300-\U0001F5FF\U0001F680-\U0001F6FF\U0001F1E0-\U0001F1FF]"
)

# Faixas mais amplas usadas pelo léxico (inclui símbolos e pictogramas suplementares)
LEXICON_EMOJI_RE = re.compile(
    "[\U0001F600-\U0001F64F\U0001F300-\U0001F5FF\U0001F680-\U0001F6FF"
    "\u2600-\u26FF\u2700-\u27BF\U0001F900-\U0001F9FF]"
)

EMOTIONAL_WORDS: Tuple[str, ...] = (
    "love", "hate", "amazing", "terrible", "fantastic", "awful",
    "brilliant", "horrible", "excellent", "disgusting", "wonderful",
    "pathetic", "outstanding", "dreadful", "marvelous", "atrocious",
)

POSITIVE_WORDS: Dict[str, FrozenSet[str]] = {
    "en": frozenset({
        "good", "great", "excellent", "amazing", "love", "loved", "loving",
        "fantastic", "awesome", "perfect", "wonderful", "best", "happy",
        "nice", "brilliant", "beautiful", "outstanding", "superb", "glad",
        "delightful", "enjoy", "enjoyed", "pleased", "recommend", "marvelous",
        "impressive", "incredible", "favorite", "lovely", "helpful",
    }),
    "es": frozenset({
        "bueno", "buena", "excelente", "increible", "fantastico", "perfecto",
        "maravilloso", "mejor", "genial", "encanta", "feliz", "precioso",
        "estupendo", "recomiendo",
    }),
    "fr": frozenset({
        "bon", "bonne", "excellent", "incroyable", "fantastique", "parfait",
        "merveilleux", "meilleur", "genial", "adore", "heureux", "superbe",
        "magnifique", "formidable",
    }),
    "de": frozenset({
        "gut", "toll", "ausgezeichnet", "unglaublich", "fantastisch", "perfekt",
        "wunderbar", "beste", "super", "liebe", "glucklich",
        "hervorragend", "klasse", "prima",
    }),
}

NEGATIVE_WORDS: Dict[str, FrozenSet[str]] = {
    "en": frozenset({
        "bad", "terrible", "horrible", "hate", "hated", "worst", "awful",
        "disgusting", "pathetic", "useless", "fail", "failed", "broken",
        "poor", "disappointing", "disappointed", "sad", "angry", "annoying",
        "boring", "dreadful", "atrocious", "waste", "ugly", "worse",
        "rude", "refund", "scam", "garbage", "unacceptable",
    }),
    "es": frozenset({
        "malo", "mala", "terrible", "horrible", "odio", "peor", "fatal",
        "desastre", "pesimo", "triste", "basura", "inutil", "decepcionante",
    }),
    "fr": frozenset({
        "mauvais", "terrible", "horrible", "deteste", "pire", "nul", "nulle",
        "affreux", "triste", "decevant", "inutile", "catastrophe",
    }),
    "de": frozenset({
        "schlecht", "schrecklich", "furchtbar", "hasse", "schlechteste",
        "schlimm", "traurig", "nutzlos", "enttauschend", "katastrophe", "mist",
    }),
}

EMOJI_VALENCE: Dict[str, float] = {
    "\U0001F600": 1.0,   # grinning
    "\U0001F603": 1.0,
    "\U0001F604": 1.0,
    "\U0001F601": 1.0,
    "\U0001F60A": 0.8,
    "\U0001F60D": 1.0,
    "\U0001F970": 1.0,
    "\U0001F602": 0.6,
    "\U0001F44D": 0.7,
    "\U0001F389": 0.8,
    "\u2764": 1.0,       # heavy black heart
    "\u2728": 0.5,
    "\U0001F622": -1.0,
    "\U0001F62D": -1.0,
    "\U0001F61E": -0.8,
    "\U0001F614": -0.8,
    "\U0001F621": -1.0,
    "\U0001F620": -1.0,
    "\U0001F44E": -0.7,
    "\U0001F494": -1.0,
    "\U0001F612": -0.6,
    "\U0001F644": -0.5,
    "\U0001F60F": -0.2,
    "\U0001F92C": -1.0,
}

# Palavras frequentes por idioma, usadas na estimativa de idioma
LANGUAGE_HINTS: Dict[str, FrozenSet[str]] = {
    "en": frozenset({"the", "and", "is", "this", "with", "you", "not", "but", "for", "are", "it", "was"}),
    "es": frozenset({"el", "los", "las", "que", "es", "y", "pero", "con", "por", "muy", "esto", "una"}),
    "fr": frozenset({"le", "les", "est", "et", "pas", "une", "des", "avec", "pour", "tres", "mais", "je"}),
    "de": frozenset({"der", "die", "das", "und", "ist", "nicht", "ich", "sehr", "mit", "auch", "ein", "eine"}),
}

# Palavras sem carga semântica removidas pelo classificador estatístico.
# Negações ficam de fora: carregam sinal de sentimento.
STOPWORDS: FrozenSet[str] = frozenset({
    # en
    "a", "an", "the", "and", "or", "but", "if", "of", "at", "by", "for",
    "with", "about", "to", "from", "in", "on", "is", "am", "are", "was",
    "were", "be", "been", "being", "have", "has", "had", "do", "does", "did",
    "i", "me", "my", "we", "our", "you", "your", "he", "she", "it", "its",
    "they", "them", "their", "this", "that", "these", "those", "what",
    "which", "who", "as", "so", "than", "too", "s", "t", "ive", "im", "its",
    # es
    "el", "la", "los", "las", "un", "una", "y", "o", "de", "del", "en",
    "que", "es", "por", "con", "para", "lo", "se", "mi",
    # fr
    "le", "les", "une", "des", "et", "du", "est", "je", "il", "elle", "ce",
    "pour", "dans", "sur", "au",
    # de
    "der", "die", "das", "und", "ein", "eine", "ist", "ich", "zu", "mit",
    "den", "dem", "es",
})

NEGATIONS: Dict[str, FrozenSet[str]] = {
    "en": frozenset({
        "not", "no", "never", "nothing", "nobody", "nowhere", "neither",
        "nor", "none", "dont", "doesnt", "didnt", "isnt", "wasnt", "cant",
        "cannot", "wont", "without",
    }),
    "es": frozenset({"no", "nunca", "nada", "nadie", "ningun", "ninguna", "ninguno", "ni", "tampoco", "sin"}),
    "fr": frozenset({"ne", "pas", "non", "jamais", "rien", "personne", "aucun", "aucune", "ni", "sans"}),
    "de": frozenset({"nicht", "kein", "keine", "niemals", "nie", "nichts", "niemand", "nirgends", "weder", "ohne"}),
}

INTENSIFIER_WEIGHTS: Dict[str, float] = {"high": 1.0, "medium": 0.5, "low": 0.25}

INTENSIFIERS: Dict[str, Dict[str, FrozenSet[str]]] = {
    "en": {
        "high": frozenset({
            "absolutely", "completely", "totally", "extremely", "incredibly",
            "utterly", "highly", "insanely", "ridiculously", "unbelievably",
            "super", "ultra", "mega",
        }),
        "medium": frozenset({"very", "really", "quite", "pretty", "fairly", "rather", "so"}),
        "low": frozenset({"somewhat", "slightly", "kinda", "sorta", "barely"}),
    },
    "es": {
        "high": frozenset({
            "absolutamente", "completamente", "totalmente", "extremadamente",
            "increiblemente", "super", "hiper", "ultra",
        }),
        "medium": frozenset({"muy", "bastante", "tan", "bien"}),
        "low": frozenset({"algo", "poquito", "medio"}),
    },
    "fr": {
        "high": frozenset({
            "absolument", "completement", "totalement", "extremement",
            "incroyablement", "hyper", "super", "ultra", "archi",
        }),
        "medium": frozenset({"tres", "vraiment", "assez", "plutot", "tellement"}),
        "low": frozenset({"legerement", "peu"}),
    },
    "de": {
        "high": frozenset({
            "absolut", "vollkommen", "vollig", "total", "ausserst", "extrem",
            "unglaublich", "mega", "super", "ultra",
        }),
        "medium": frozenset({"sehr", "wirklich", "ziemlich", "recht", "ganz", "echt", "so"}),
        "low": frozenset({"etwas", "bisschen", "leicht"}),
    },
}


def for_language(table: Dict[str, object], language: str):
    """Retorna a entrada do idioma ou a do idioma de fallback."""
    return table.get(language) or table[FALLBACK_LANGUAGE]


def union_of(table: Dict[str, FrozenSet[str]]) -> FrozenSet[str]:
    merged: set = set()
    for words in table.values():
        merged.update(words)
    return frozenset(merged)


ALL_POSITIVE_WORDS = union_of(POSITIVE_WORDS)
ALL_NEGATIVE_WORDS = union_of(NEGATIVE_WORDS)
