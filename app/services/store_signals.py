"""
Leakwatch - Store Signal Scanners
Theme freshness, installed apps, trust pages and tracking pixels

All detection is plain substring matching against the keyword tables below.
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple

from app.schemas.scan import TrackingHealthIssue, TrustGapIssue, UxSpeedSignals


# Themes superseded by Online Store 2.0 themes
OUTDATED_THEMES = {"Debut", "Brooklyn", "Simple", "Minimal", "Supply", "Narrative"}

# Theme names that also cost score points
PENALIZED_THEME_MARKERS = ("Debut", "Brooklyn")


@dataclass(frozen=True)
class SignalRule:
    """One keyword lookup: found if any keyword appears in the scanned text"""

    issue: str
    severity: str
    keywords: Tuple[str, ...]
    found_details: str
    missing_details: str


# Matched against lower-cased page titles
TRUST_SIGNAL_RULES: List[SignalRule] = [
    SignalRule(
        issue="Shipping policy",
        severity="high",
        keywords=("shipping", "delivery"),
        found_details="✓ Found",
        missing_details="✗ Missing - Add shipping policy to build trust",
    ),
    SignalRule(
        issue="Return policy",
        severity="high",
        keywords=("return", "refund"),
        found_details="✓ Found",
        missing_details="✗ Missing - Add return policy to reduce purchase anxiety",
    ),
    SignalRule(
        issue="Privacy policy",
        severity="high",
        keywords=("privacy",),
        found_details="✓ Found",
        missing_details="✗ Missing - Privacy policy is legally required",
    ),
    SignalRule(
        issue="About Us page",
        severity="medium",
        keywords=("about",),
        found_details="✓ Found",
        missing_details="✗ Missing - Add About Us page to build brand trust",
    ),
    SignalRule(
        issue="FAQ page",
        severity="medium",
        keywords=("faq", "questions"),
        found_details="✓ Found",
        missing_details="✗ Missing - FAQ page answers common questions",
    ),
]

# Matched case-sensitively against theme layout and snippet bodies
TRACKING_RULES: List[SignalRule] = [
    SignalRule(
        issue="Meta Pixel",
        severity="high",
        keywords=("fbq(", "connect.facebook.net"),
        found_details="✓ Detected in theme",
        missing_details="✗ Not detected - Install Meta Pixel for better ad tracking",
    ),
    SignalRule(
        issue="Purchase events",
        severity="high",
        keywords=("Purchase", "AddPaymentInfo"),
        found_details="✓ Purchase events detected",
        missing_details="✗ Not found - Check tracking setup",
    ),
]

# No detector exists for server-side events; always reported as not found
CONVERSION_API_PLACEHOLDER = TrackingHealthIssue(
    issue="Conversion API (CAPI)",
    severity="medium",
    found=False,
    details="CAPI not configured - Recommended for accurate tracking",
)

TRACKING_UNVERIFIED = TrackingHealthIssue(
    issue="Meta Pixel",
    severity="medium",
    found=False,
    details="Unable to verify - manually check tracking setup",
)


def _matches(rule: SignalRule, texts: List[str]) -> bool:
    return any(keyword in text for text in texts for keyword in rule.keywords)


# ==================== Theme & apps ====================

def analyze_themes(themes: List[dict]) -> UxSpeedSignals:
    """Active theme (role main, else first) and whether it is an outdated one"""
    main_theme = next(
        (t for t in themes if str(t.get("role") or "").lower() == "main"),
        None,
    )

    name = None
    if main_theme:
        name = main_theme.get("name")
    if not name and themes:
        name = themes[0].get("name")
    name = name or "Custom"

    role = str(main_theme.get("role")).lower() if main_theme and main_theme.get("role") else "unknown"

    if name in OUTDATED_THEMES:
        insight = f"Your theme ({name}) is outdated. Consider upgrading to Online Store 2.0."
    else:
        insight = f"Your theme ({name}) is up to date."

    return UxSpeedSignals(theme=name, theme_role=role, insight=insight)


def is_penalized_theme(theme_name: str) -> bool:
    return any(marker in theme_name for marker in PENALIZED_THEME_MARKERS)


def app_names(installations: List[dict]) -> List[str]:
    """Installed app names; informational only, never scored"""
    names = []
    for node in installations:
        name = node.get("name") or (node.get("app") or {}).get("title")
        names.append(name or "Unknown app")
    return names


# ==================== Trust pages ====================

def detect_trust_signals(pages: List[dict]) -> List[TrustGapIssue]:
    """One record per trust category, found or not, in rule order"""
    titles = [(page.get("title") or "").lower() for page in pages]

    issues = []
    for rule in TRUST_SIGNAL_RULES:
        found = _matches(rule, titles)
        issues.append(TrustGapIssue(
            issue=rule.issue,
            severity=rule.severity,
            found=found,
            details=rule.found_details if found else rule.missing_details,
        ))
    return issues


# ==================== Tracking ====================

def file_body(node: dict) -> str:
    """Theme file text; body is either a plain string or a text-body object"""
    body = node.get("body")
    if isinstance(body, dict):
        return body.get("content") or ""
    return body or ""


def detect_tracking(files: Optional[List[dict]]) -> List[TrackingHealthIssue]:
    """
    Pixel and purchase-event records from theme file contents.

    None means the files could not be read: a single unverified record is
    emitted instead. The CAPI placeholder is appended either way.
    """
    if files is None:
        return [TRACKING_UNVERIFIED, CONVERSION_API_PLACEHOLDER]

    bodies = [file_body(node) for node in files]

    issues = []
    for rule in TRACKING_RULES:
        found = _matches(rule, bodies)
        issues.append(TrackingHealthIssue(
            issue=rule.issue,
            severity=rule.severity,
            found=found,
            details=rule.found_details if found else rule.missing_details,
        ))
    issues.append(CONVERSION_API_PLACEHOLDER)
    return issues
