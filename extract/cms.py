"""
CMS detection from raw HTML: generator meta tags, asset paths and class prefixes.
"""
import re
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

UNKNOWN = "unknown"
MIN_CONFIDENCE = 50

# cms -> [(pattern, weight, signal)]
CMS_PATTERNS: Dict[str, List[Tuple[re.Pattern, int, str]]] = {
    "next.js": [
        (re.compile(r"<script[^>]+id=[\"']__NEXT_DATA__[\"']"), 95, "__NEXT_DATA__ script tag"),
        (re.compile(r"window\.__NEXT_DATA__\s*="), 95, "__NEXT_DATA__ assignment"),
        (re.compile(r"/_next/static/"), 80, "_next/static assets"),
    ],
    "nuxt": [
        (re.compile(r"window\.__NUXT__\s*="), 95, "__NUXT__ assignment"),
        (re.compile(r"<script[^>]+id=[\"']__NUXT_DATA__[\"']"), 95, "__NUXT_DATA__ script tag"),
        (re.compile(r"/_nuxt/"), 80, "_nuxt/ assets"),
    ],
    "react": [
        (re.compile(r"window\.__INITIAL_STATE__\s*="), 90, "__INITIAL_STATE__ found"),
        (re.compile(r"window\.__PRELOADED_STATE__\s*="), 90, "__PRELOADED_STATE__ found"),
        (re.compile(r"window\.__APP_DATA__\s*="), 85, "__APP_DATA__ found"),
        (re.compile(r"data-reactroot"), 70, "data-reactroot attribute"),
    ],
    "wix": [
        (re.compile(r"wixstatic\.com"), 90, "wixstatic.com assets"),
        (re.compile(r"window\.wixBiSession"), 95, "Wix BI session"),
        (re.compile(r"<meta[^>]+content=[\"']Wix\.com", re.I), 95, "Wix generator meta"),
    ],
    "squarespace": [
        (re.compile(r"static\d*\.squarespace\.com"), 90, "Squarespace static assets"),
        (re.compile(r"Squarespace\.Constants"), 95, "Squarespace.Constants"),
        (re.compile(r"class=[\"'][^\"']*\bsqs-"), 70, "sqs- class prefix"),
    ],
    "wordpress": [
        (re.compile(r"<meta[^>]+name=[\"']generator[\"'][^>]+content=[\"']WordPress", re.I), 95, "WordPress generator meta"),
        (re.compile(r"/wp-content/"), 80, "wp-content/ directory"),
        (re.compile(r"/wp-includes/"), 80, "wp-includes/ directory"),
        (re.compile(r"/wp-json/"), 85, "WP REST API reference"),
        (re.compile(r"tribe-events"), 75, "Tribe Events reference"),
    ],
    "drupal": [
        (re.compile(r"<meta[^>]+name=[\"']generator[\"'][^>]+content=[\"']Drupal", re.I), 95, "Drupal generator meta"),
        (re.compile(r"/sites/default/files/"), 75, "Drupal files path"),
        (re.compile(r"Drupal\.settings"), 90, "Drupal.settings"),
    ],
}

# Selector groups tried in order by the DOM strategy.
CMS_SELECTORS: Dict[str, List[str]] = {
    "wordpress": [
        "article.type-tribe_events",
        ".tribe-events-calendar-list__event-row",
        "article.event",
        ".event-article",
    ],
    "wix": ["[data-hook='event-list-item']", ".wix-events-list-item"],
    "squarespace": [".eventlist-event", ".event-item"],
    "drupal": [".view-events .views-row", "article.node--type-event"],
}
GENERIC_SELECTORS: List[str] = [
    "article.event",
    ".event-item",
    ".event-card",
    ".agenda-item",
    ".calendar-event",
    "li.event",
    ".post-item",
    ".activity-card",
]


@dataclass
class CmsFingerprint:
    cms: str = UNKNOWN
    confidence: int = 0
    signals: List[str] = field(default_factory=list)


def detect_cms(html: str) -> CmsFingerprint:
    """Best-scoring CMS: strongest signal plus 5 per additional signal, capped at 100."""
    best = CmsFingerprint()
    for cms, patterns in CMS_PATTERNS.items():
        hits = [(weight, signal) for rx, weight, signal in patterns if rx.search(html or "")]
        if not hits:
            continue
        score = min(100, max(w for w, _ in hits) + 5 * (len(hits) - 1))
        if score > best.confidence:
            best = CmsFingerprint(cms=cms, confidence=score, signals=[s for _, s in hits])
    if best.confidence < MIN_CONFIDENCE:
        return CmsFingerprint()
    return best


def selectors_for(cms: str) -> List[str]:
    """CMS-specific selector groups first, then generic ones, without repeats."""
    ordered = list(CMS_SELECTORS.get(cms, []))
    for selector in GENERIC_SELECTORS:
        if selector not in ordered:
            ordered.append(selector)
    return ordered
