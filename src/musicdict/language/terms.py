"""Curated musical vocabularies and surface patterns per language.

The order of :data:`LANGUAGE_PRIORITY` is the classifier's tie-break: a word
present in several vocabularies resolves to the earliest language. Italian is
first so shared musical directions (``piano``, ``lento``, ``con``, ``voce``)
keep their musical reading.
"""

from __future__ import annotations

import re

ITALIAN_TERMS: frozenset[str] = frozenset(
    {
        # tempo
        "allegro", "allegretto", "andante", "andantino", "adagio", "adagietto",
        "presto", "prestissimo", "largo", "larghetto", "lento", "moderato",
        "vivace", "vivacissimo", "grave", "maestoso",
        # dynamics
        "piano", "pianissimo", "forte", "fortissimo", "mezzo", "mezzopiano",
        "mezzoforte", "crescendo", "decrescendo", "diminuendo", "sforzando",
        "sforzato", "fortepiano", "rinforzando", "smorzando", "morendo",
        "perdendosi", "calando",
        # articulation
        "staccato", "staccatissimo", "legato", "legatissimo", "tenuto",
        "marcato", "pizzicato", "arco", "tremolo", "vibrato", "portamento",
        "portato", "glissando",
        # expression
        "dolce", "espressivo", "cantabile", "affettuoso", "agitato", "animato",
        "appassionato", "brillante", "con brio", "con fuoco", "con moto",
        "con spirito", "delicato", "energico", "furioso", "giocoso", "grazioso",
        "lamentoso", "leggiero", "lusingando", "misterioso", "nobile",
        "patetico", "pesante", "risoluto", "scherzando", "serioso", "sostenuto",
        "teneramente", "tranquillo", "trionfante",
        # tempo changes
        "accelerando", "ritardando", "rallentando", "ritenuto", "rubato",
        "stringendo", "allargando", "slentando",
        # structure and directions
        "fermata", "coda", "fine", "tutti", "solo", "soli", "tacet", "attacca",
        "segue", "subito", "sempre", "simile", "ossia", "sopra", "sotto",
        "voce", "mano", "destra", "sinistra", "da capo", "dal segno", "capo",
        "segno",
        # common phrases and modifiers
        "a tempo", "in tempo", "tempo primo", "tempo giusto", "l'istesso tempo",
        "meno mosso", "più mosso", "poco a poco", "molto", "poco", "più",
        "meno", "assai", "troppo", "non troppo", "quasi", "come", "senza",
        "col", "colla", "con", "prima", "secondo", "terzo",
        # forms
        "sonata", "concerto", "sinfonia", "opera", "aria", "recitativo",
        "scherzo", "intermezzo", "capriccio", "fantasia",
        # instruments
        "violino", "viola", "violoncello", "contrabbasso", "flauto", "oboe",
        "clarinetto", "fagotto", "corno", "tromba", "trombone", "timpani",
        "arpa", "pianoforte", "cembalo", "organo",
    }
)  # fmt: skip

GERMAN_TERMS: frozenset[str] = frozenset(
    {
        "langsam", "schnell", "sehr", "mäßig", "massig", "lebhaft", "ruhig",
        "bewegt", "gehend", "fließend", "schleppend", "breit", "schwer",
        "leicht", "zart", "kräftig", "stark", "schwach", "laut", "leise",
        "mit", "ohne", "und", "aber", "oder", "nicht", "immer", "wieder",
        "noch", "etwas", "wenig", "viel", "mehr", "ganz", "recht", "ziemlich",
        "ausdruck", "empfindung", "gefühl", "innigkeit", "kraft",
        "leidenschaft", "seele", "wärme", "nach",
        "geige", "bratsche", "flöte", "klarinette", "fagott", "horn",
        "trompete", "posaune", "pauke", "harfe", "klavier", "orgel",
        "lied", "lieder", "singspiel",
    }
)  # fmt: skip

FRENCH_TERMS: frozenset[str] = frozenset(
    {
        "lent", "vite", "modéré", "modere", "animé", "anime", "vif", "rapide",
        "lentement", "doucement",
        "doux", "fort", "très", "tres", "peu", "plus", "moins", "assez",
        "beaucoup", "trop",
        "avec", "sans", "et", "ou", "mais", "comme", "en", "sur", "sous",
        "dans", "chaleur", "tendresse", "passion", "élan", "elan", "grâce",
        "grace", "légèreté", "legerete",
        "retenu", "cédez", "cedez", "pressez", "élargissez", "elargissez",
        "retenez", "ralentissez", "accélérez", "accelerez",
        "détaché", "detache", "lié", "lie", "lourd", "léger", "leger", "sec",
        "soutenu",
        "sourdine", "jeu", "en dehors", "bouché", "bouche", "cuivré", "cuivre",
        "ouvert",
        "violon", "alto", "violoncelle", "contrebasse", "flûte", "flute",
        "hautbois", "clarinette", "basson", "cor", "trompette", "trombone",
        "timbales", "harpe", "piano", "orgue", "clavecin",
        "chanson", "ballet", "suite", "prélude", "prelude", "ballade",
        "berceuse", "nocturne",
    }
)  # fmt: skip

# "et" is shared with French on purpose; either answer is acceptable.
LATIN_TERMS: frozenset[str] = frozenset(
    {
        "requiem", "gloria", "sanctus", "agnus", "agnus dei", "kyrie",
        "kyrie eleison", "credo", "benedictus", "hosanna", "magnificat",
        "stabat mater", "te deum", "ave maria", "miserere", "nunc dimittis",
        "dies irae",
        "ad libitum", "a cappella", "a capella", "opus", "tacet",
        "et", "cum", "sine", "vox", "voce", "in", "ex", "de", "pro", "per",
        "ante", "post",
        "cantus", "cantus firmus", "discantus", "organum", "motetus", "motet",
    }
)  # fmt: skip

ENGLISH_TERMS: frozenset[str] = frozenset(
    {
        "slow", "fast", "loud", "soft", "quick", "quiet", "smooth", "detached",
        "connected",
        "rhythm", "melody", "harmony", "chord", "beat", "tempo", "key",
        "scale", "note", "rest", "measure", "bar", "staff", "stave", "clef",
        "sharp", "flat", "natural", "pitch", "tone", "interval", "octave",
        "piano", "violin", "viola", "cello", "bass", "flute", "oboe",
        "clarinet", "bassoon", "horn", "trumpet", "trombone", "tuba", "drum",
        "drums", "harp", "guitar", "organ",
        "jazz", "blues", "rock", "pop", "folk", "country", "swing", "funk",
        "soul", "gospel",
        "loop", "sample", "track", "mix", "fade", "groove",
        "mute", "muted", "open", "stopped", "damped", "sustained", "plucked",
        "bowed", "struck",
    }
)  # fmt: skip

SPANISH_TERMS: frozenset[str] = frozenset(
    {
        "rápido", "rapido", "lento", "fuerte", "suave", "con", "sin", "muy",
        "poco", "más", "mas", "menos", "y", "o", "pero",
        "flamenco", "tango", "bolero", "fandango", "jota", "seguidilla",
        "habanera", "zarzuela",
        "guitarra", "castañuelas", "castanuelas",
    }
)  # fmt: skip


def _compile(*patterns: str) -> tuple[re.Pattern[str], ...]:
    return tuple(re.compile(p, re.IGNORECASE) for p in patterns)


ITALIAN_PATTERNS = _compile(
    r"^allegr", r"^andant", r"^adagi", r"^prest", r"^larg", r"^lent", r"^vivac",
    r"issimo$", r"issima$", r"etto$", r"etta$", r"ino$", r"ina$", r"ando$",
    r"endo$", r"ato$", r"ata$", r"abile$", r"oso$", r"osa$",
)  # fmt: skip

GERMAN_PATTERNS = _compile(
    r"^sehr\s", r"^mit\s", r"^ohne\s", r"lich$", r"keit$", r"ung$", r"schaft$",
)  # fmt: skip

FRENCH_PATTERNS = _compile(
    r"^très\s", r"^tres\s", r"^avec\s", r"^sans\s", r"^en\s", r"ment$", r"é$",
    r"ée$", r"er$", r"ez$", r"eur$", r"euse$",
)  # fmt: skip

#: (language, vocabulary, exact-match confidence, phrase weight), in priority order.
LANGUAGE_PRIORITY: tuple[tuple[str, frozenset[str], float, int], ...] = (
    ("it", ITALIAN_TERMS, 0.95, 2),
    ("de", GERMAN_TERMS, 0.95, 2),
    ("fr", FRENCH_TERMS, 0.95, 2),
    ("la", LATIN_TERMS, 0.9, 2),
    ("en", ENGLISH_TERMS, 0.85, 1),
    ("es", SPANISH_TERMS, 0.9, 2),
)

#: Languages with surface patterns, in the order they are tried.
PATTERN_LANGUAGES: tuple[tuple[str, tuple[re.Pattern[str], ...]], ...] = (
    ("it", ITALIAN_PATTERNS),
    ("de", GERMAN_PATTERNS),
    ("fr", FRENCH_PATTERNS),
)

#: Vocabularies used for stem (prefix) matching, in the order they are tried.
STEM_LANGUAGES: tuple[tuple[str, frozenset[str]], ...] = (
    ("it", ITALIAN_TERMS),
    ("de", GERMAN_TERMS),
    ("fr", FRENCH_TERMS),
)

__all__ = [
    "ENGLISH_TERMS",
    "FRENCH_PATTERNS",
    "FRENCH_TERMS",
    "GERMAN_PATTERNS",
    "GERMAN_TERMS",
    "ITALIAN_PATTERNS",
    "ITALIAN_TERMS",
    "LANGUAGE_PRIORITY",
    "LATIN_TERMS",
    "PATTERN_LANGUAGES",
    "SPANISH_TERMS",
    "STEM_LANGUAGES",
]
