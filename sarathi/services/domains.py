"""Life-domain configuration for the scoring engine.

Every number here is a hand-tuned heuristic, not physical law. They are kept
as named tables so a caller can override any of them per request with
``dataclasses.replace`` (or :func:`get_domain` keyword overrides).
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Mapping, Tuple

from .bodies import Body
from .vedic import NAKSHATRAS, nakshatra_index

ASPECT_ANGLES: Mapping[str, float] = MappingProxyType({
    "conjunction": 0.0,
    "sextile": 60.0,
    "square": 90.0,
    "trine": 120.0,
    "opposition": 180.0,
})

DEFAULT_ORBS: Mapping[str, float] = MappingProxyType({
    "conjunction": 6.0,
    "sextile": 4.0,
    "square": 5.0,
    "trine": 5.0,
    "opposition": 6.0,
})

# Positive = supportive, negative = friction. Conjunction sign follows the
# transiting body's nature; hard aspects from benefics count half.
ASPECT_WEIGHTS: Mapping[str, float] = MappingProxyType({
    "conjunction": 0.15,
    "sextile": 0.12,
    "trine": 0.20,
    "square": -0.15,
    "opposition": -0.20,
})

PLANET_WEIGHTS: Mapping[Body, float] = MappingProxyType({
    Body.JUPITER: 1.0,
    Body.SATURN: 1.0,
    Body.VENUS: 0.8,
    Body.MARS: 0.7,
    Body.RAHU: 0.7,
    Body.MERCURY: 0.6,
    Body.SUN: 0.5,
    Body.KETU: 0.5,
    Body.MOON: 0.3,
})

# MD > AD > PD
DEPTH_WEIGHTS: Tuple[float, float, float] = (0.30, 0.20, 0.10)

SHUBHA_NAKSHATRAS = frozenset({
    "Rohini", "Mrigashira", "Punarvasu", "Pushya", "Hasta", "Anuradha",
    "Uttara Phalguni", "Uttara Ashadha", "Uttara Bhadrapada", "Revati",
})


@dataclass(frozen=True)
class DomainWeights:
    name: str
    label: str
    affine_lords: frozenset = frozenset()
    averse_lords: frozenset = frozenset()
    depth_weights: Tuple[float, float, float] = DEPTH_WEIGHTS
    cusp_houses: Tuple[int, ...] = ()
    lord_houses: Tuple[int, ...] = ()
    karakas: Tuple[Body, ...] = ()
    transit_bodies: Tuple[Body, ...] = (Body.JUPITER, Body.SATURN, Body.VENUS, Body.MERCURY)
    supportive_nakshatras: frozenset = SHUBHA_NAKSHATRAS
    nakshatra_bonus: float = 0.08
    orbs: Mapping[str, float] = field(default_factory=lambda: DEFAULT_ORBS)
    aspect_weights: Mapping[str, float] = field(default_factory=lambda: ASPECT_WEIGHTS)
    planet_weights: Mapping[Body, float] = field(default_factory=lambda: PLANET_WEIGHTS)
    retrograde_bodies: frozenset = frozenset({Body.MERCURY})
    retrograde_penalty: float = 0.06
    tara_penalty: float = 0.05
    own_sign_bonus: float = 0.04
    natal_strength_weight: float = 0.05
    score_scale: float = 0.5
    threshold: float = 0.62
    min_days: int = 7
    max_days: int = 35
    horizon_days: int = 180
    top_n: int = 5
    window_labels: Tuple[str, str, str] = ("prepare", "act with care", "act")
    lead: str = "Use the windows deliberately; patience between them helps."
    nuance: str = ""
    action_hints: Tuple[str, ...] = ("Use the top window for key steps", "Document decisions for learning")
    risk_hints: Tuple[str, ...] = ("Watch for overcommitment", "Verify documents twice")
    aliases: Tuple[str, ...] = field(default=(), compare=False)

    def __post_init__(self) -> None:
        # scoring matches by canonical name, so a misspelt star would never fire
        names = frozenset(NAKSHATRAS[nakshatra_index(n)] for n in self.supportive_nakshatras)
        object.__setattr__(self, "supportive_nakshatras", names)

    @property
    def sampled_bodies(self) -> Tuple[Body, ...]:
        """Transit bodies plus the Moon (needed for nakshatra and tara signals)."""

        bodies = list(self.transit_bodies)
        for extra in (Body.MOON, *sorted(self.retrograde_bodies, key=lambda b: b.value)):
            if extra not in bodies:
                bodies.append(extra)
        return tuple(bodies)


DOMAINS: dict[str, DomainWeights] = {}


def _register(weights: DomainWeights) -> DomainWeights:
    DOMAINS[weights.name] = weights
    return weights


_register(DomainWeights(
    name="career",
    label="career",
    affine_lords=frozenset({Body.SATURN, Body.JUPITER, Body.MERCURY, Body.SUN}),
    averse_lords=frozenset({Body.KETU}),
    cusp_houses=(10,),
    lord_houses=(10,),
    karakas=(Body.SATURN, Body.SUN),
    transit_bodies=(Body.SATURN, Body.JUPITER, Body.MERCURY, Body.VENUS, Body.SUN, Body.MARS),
    supportive_nakshatras=frozenset({
        "Rohini", "Pushya", "Uttara Phalguni", "Chitra", "Anuradha",
        "Uttara Ashadha", "Shravana", "Dhanishtha", "Shatabhisha", "Uttara Bhadrapada",
    }),
    window_labels=("prep + momentum", "outreach + interviews", "offer + close"),
    lead="Momentum via structured outreach; expect quality spikes.",
    nuance="10th/11th activation helps outreach; avoid impulse resignations.",
    action_hints=(
        "Refresh CV + LinkedIn, schedule 3 outreach emails",
        "Target interviews in the first half of a strong window",
    ),
    aliases=("job", "jobs", "work", "career", "promotion", "employment"),
))

_register(DomainWeights(
    name="business",
    label="business",
    affine_lords=frozenset({Body.MERCURY, Body.JUPITER, Body.VENUS, Body.RAHU}),
    averse_lords=frozenset({Body.KETU}),
    cusp_houses=(10, 7),
    lord_houses=(10, 7),
    karakas=(Body.MERCURY,),
    transit_bodies=(Body.JUPITER, Body.SATURN, Body.MERCURY, Body.VENUS),
    window_labels=("plan + validate", "pitch + partner", "launch + close"),
    lead="Ventures move best when outreach and paperwork land inside a strong window.",
    aliases=("business", "startup", "venture", "trade"),
))

_register(DomainWeights(
    name="wealth",
    label="wealth",
    affine_lords=frozenset({Body.JUPITER, Body.VENUS, Body.MERCURY}),
    averse_lords=frozenset({Body.KETU}),
    cusp_houses=(2, 11),
    lord_houses=(2, 11),
    karakas=(Body.JUPITER,),
    supportive_nakshatras=frozenset({
        "Rohini", "Punarvasu", "Pushya", "Hasta", "Shravana", "Dhanishtha", "Revati",
    }),
    window_labels=("review + budget", "invest gradually", "commit + expand"),
    lead="Gains compound when commitments sit inside the strongest window.",
    aliases=("wealth", "money", "finance", "finances", "investment", "investments"),
))

_register(DomainWeights(
    name="property",
    label="property",
    affine_lords=frozenset({Body.JUPITER, Body.VENUS, Body.SATURN}),
    averse_lords=frozenset({Body.RAHU}),
    cusp_houses=(4,),
    lord_houses=(4,),
    karakas=(Body.JUPITER, Body.MARS),
    transit_bodies=(Body.JUPITER, Body.SATURN, Body.MARS, Body.VENUS),
    supportive_nakshatras=frozenset({
        "Rohini", "Mrigashira", "Pushya", "Uttara Phalguni", "Anuradha",
        "Uttara Ashadha", "Uttara Bhadrapada", "Revati",
    }),
    min_days=9,
    max_days=42,
    horizon_days=240,
    window_labels=("shortlist + inspect", "negotiate + finance", "token + register"),
    lead="A property step is best timed to the strongest window; paperwork first.",
    action_hints=(
        "Finalize mortgage pre-approval",
        "Do a site visit in daylight; check Vastu basics",
        "Time token booking within your best window",
    ),
    risk_hints=(
        "Hidden fees or unclear titles",
        "Delays in loan disbursal during Saturn peaks",
    ),
    aliases=("property", "home", "house", "real estate", "land", "flat", "apartment"),
))

_register(DomainWeights(
    name="vehicle",
    label="vehicle",
    affine_lords=frozenset({Body.VENUS, Body.JUPITER, Body.MERCURY}),
    averse_lords=frozenset({Body.RAHU}),
    cusp_houses=(4,),
    lord_houses=(4,),
    karakas=(Body.VENUS,),
    transit_bodies=(Body.VENUS, Body.JUPITER, Body.MERCURY),
    supportive_nakshatras=frozenset({
        "Ashwini", "Rohini", "Mrigashira", "Punarvasu", "Pushya", "Hasta", "Chitra",
        "Swati", "Anuradha", "Shravana", "Dhanishtha", "Shatabhisha", "Revati",
    }),
    window_labels=("research + test drive", "compare + negotiate", "book + deliver"),
    lead="A cautious buy is possible; use windows intentionally.",
    action_hints=(
        "Shortlist 2-3 models and book a test drive",
        "Complete registration checks and insurance comparison",
        "Avoid inauspicious daytime windows (Rahu/Gulika)",
    ),
    risk_hints=(
        "Impulsive upgrades (Rahu) lead to going over budget",
        "Avoid deliveries during Mercury Rx paperwork days",
    ),
    aliases=("vehicle", "car", "bike", "scooter", "automobile"),
))

_register(DomainWeights(
    name="relationships",
    label="relationships",
    affine_lords=frozenset({Body.VENUS, Body.MOON, Body.JUPITER}),
    averse_lords=frozenset({Body.KETU}),
    cusp_houses=(7,),
    lord_houses=(7,),
    karakas=(Body.VENUS, Body.MOON),
    transit_bodies=(Body.VENUS, Body.JUPITER, Body.MARS, Body.SATURN),
    retrograde_bodies=frozenset({Body.VENUS}),
    window_labels=("reflect + reconnect", "open up", "commit"),
    lead="Connections deepen when conversations land inside the stronger windows.",
    aliases=("relationships", "relationship", "love", "romance", "partner", "dating"),
))

_register(DomainWeights(
    name="marriage",
    label="marriage",
    affine_lords=frozenset({Body.VENUS, Body.JUPITER, Body.MOON}),
    averse_lords=frozenset({Body.KETU, Body.SATURN}),
    cusp_houses=(7,),
    lord_houses=(7,),
    karakas=(Body.VENUS, Body.JUPITER),
    transit_bodies=(Body.JUPITER, Body.VENUS, Body.SATURN, Body.MARS),
    retrograde_bodies=frozenset({Body.VENUS, Body.MERCURY}),
    supportive_nakshatras=frozenset({
        "Rohini", "Mrigashira", "Magha", "Uttara Phalguni", "Hasta", "Swati",
        "Anuradha", "Mula", "Uttara Ashadha", "Uttara Bhadrapada", "Revati",
    }),
    min_days=10,
    max_days=60,
    horizon_days=365,
    window_labels=("discuss + prep", "align + meet families", "engage + register"),
    lead="Marriage lands best when dasha & 7th-house cues align; use the strongest window(s) for formal steps.",
    action_hints=("Fix shortlists and documents early", "Use strongest sub-window for formal steps"),
    aliases=("marriage", "wedding", "spouse", "engagement", "shaadi"),
))

_register(DomainWeights(
    name="health",
    label="health",
    affine_lords=frozenset({Body.SUN, Body.MARS, Body.JUPITER, Body.MOON}),
    averse_lords=frozenset({Body.SATURN, Body.RAHU}),
    cusp_houses=(1,),
    lord_houses=(1, 6),
    karakas=(Body.SUN, Body.MOON),
    transit_bodies=(Body.SATURN, Body.JUPITER, Body.MARS, Body.SUN),
    supportive_nakshatras=frozenset({
        "Ashwini", "Rohini", "Mrigashira", "Pushya", "Hasta", "Anuradha", "Revati",
    }),
    min_days=5,
    max_days=21,
    horizon_days=120,
    window_labels=("rest + assess", "build routines", "treat + recover"),
    lead="Schedule procedures and new routines inside the steadier windows.",
    aliases=("health", "wellness", "surgery", "treatment", "fitness"),
))

_register(DomainWeights(
    name="disputes",
    label="disputes",
    affine_lords=frozenset({Body.MARS, Body.SATURN, Body.SUN}),
    averse_lords=frozenset({Body.RAHU, Body.KETU}),
    cusp_houses=(6,),
    lord_houses=(6,),
    karakas=(Body.MARS,),
    transit_bodies=(Body.MARS, Body.SATURN, Body.JUPITER, Body.SUN),
    supportive_nakshatras=frozenset({
        "Krittika", "Magha", "Vishakha", "Jyeshtha", "Mula", "Purva Ashadha",
    }),
    window_labels=("gather evidence", "negotiate", "file + settle"),
    lead="Settle or file when the stronger windows open; avoid escalation outside them.",
    aliases=("disputes", "dispute", "legal", "court", "litigation", "case"),
))

_register(DomainWeights(
    name="general",
    label="general",
    affine_lords=frozenset({Body.JUPITER, Body.VENUS}),
    cusp_houses=(1,),
    lord_houses=(1,),
    karakas=(Body.JUPITER,),
    aliases=("general", "life", "overall"),
))

_ALIASES: dict[str, str] = {}
for _weights in DOMAINS.values():
    _ALIASES[_weights.name] = _weights.name
    for _alias in _weights.aliases:
        _ALIASES[_alias] = _weights.name


def normalise_category(raw: str | None) -> str:
    """Map a free-form category to a registered domain name ("general" if unknown)."""

    if not raw:
        return "general"
    c = raw.strip().lower()
    if c in _ALIASES:
        return _ALIASES[c]
    # prefix match, e.g. "jobs-change", "car purchase"
    for alias, name in _ALIASES.items():
        if c.startswith(alias) or alias in c.split():
            return name
    return "general"


def get_domain(name: str | None, **overrides) -> DomainWeights:
    weights = DOMAINS[normalise_category(name)]
    return replace(weights, **overrides) if overrides else weights


__all__ = [
    "ASPECT_ANGLES",
    "ASPECT_WEIGHTS",
    "DEFAULT_ORBS",
    "DEPTH_WEIGHTS",
    "DOMAINS",
    "DomainWeights",
    "PLANET_WEIGHTS",
    "get_domain",
    "normalise_category",
]
