"""Ruleset catalog: versioned principles, their default weights, and rule definitions."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

from principia.models import Severity

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

DEFAULT_RULESET_VERSION = "1.0.0"

# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PrincipleDef:
    """A weighted category of architectural rules."""

    id: str
    name: str
    weight: float
    description: str


@dataclass(frozen=True)
class RuleDef:
    """One checkable condition within a principle."""

    id: str
    principle_id: str
    description: str
    severity: Severity
    remediation: str
    doc_reference: str | None = None
    example: str | None = None
    effort: str | None = None


@dataclass(frozen=True)
class Ruleset:
    """A versioned set of principles and rules."""

    version: str
    principles: tuple[PrincipleDef, ...]
    rules: tuple[RuleDef, ...]

    @property
    def principle_ids(self) -> tuple[str, ...]:
        return tuple(p.id for p in self.principles)

    @property
    def default_weights(self) -> dict[str, float]:
        return {p.id: p.weight for p in self.principles}

    def principle(self, principle_id: str) -> PrincipleDef | None:
        for p in self.principles:
            if p.id == principle_id:
                return p
        return None

    def rule(self, rule_id: str) -> RuleDef | None:
        for r in self.rules:
            if r.id == rule_id:
                return r
        return None

    def rules_for(self, principle_id: str) -> tuple[RuleDef, ...]:
        return tuple(r for r in self.rules if r.principle_id == principle_id)


# ---------------------------------------------------------------------------
# Ruleset 1.0.0
# ---------------------------------------------------------------------------

DESIGN_SYSTEM = "principle-1-design-system"
TYPE_SAFETY = "principle-2-type-safety"
COMPONENT_ARCHITECTURE = "principle-3-component-architecture"
ACCESSIBILITY = "principle-4-accessibility"
PERFORMANCE = "principle-5-performance"
STATE_MANAGEMENT = "principle-6-state-management"
TESTING_DOCUMENTATION = "principle-7-testing-documentation"

_PRINCIPLES_V1: tuple[PrincipleDef, ...] = (
    PrincipleDef(
        id=DESIGN_SYSTEM,
        name="Design System Adherence",
        weight=0.20,
        description="Theme-aware colors and memoized styles keep dark mode and UX consistent.",
    ),
    PrincipleDef(
        id=TYPE_SAFETY,
        name="Type Safety",
        weight=0.20,
        description="Precise types and handled async errors prevent runtime failures.",
    ),
    PrincipleDef(
        id=COMPONENT_ARCHITECTURE,
        name="Component Architecture",
        weight=0.20,
        description="Hook discipline and safe rendering prevent crashes.",
    ),
    PrincipleDef(
        id=ACCESSIBILITY,
        name="Accessibility",
        weight=0.10,
        description="Interactive elements are labelled and give feedback.",
    ),
    PrincipleDef(
        id=PERFORMANCE,
        name="Performance",
        weight=0.15,
        description="Lists and render paths avoid needless work.",
    ),
    PrincipleDef(
        id=STATE_MANAGEMENT,
        name="State Management",
        weight=0.10,
        description="Stores are typed and persisted for offline use.",
    ),
    PrincipleDef(
        id=TESTING_DOCUMENTATION,
        name="Testing & Documentation",
        weight=0.05,
        description="Components are documented and untrusted input is guarded.",
    ),
)

_RULES_V1: tuple[RuleDef, ...] = (
    # Design system
    RuleDef(
        id="missing-use-theme-colors",
        principle_id=DESIGN_SYSTEM,
        description="Component uses useColorScheme directly instead of the useThemeColors hook",
        severity=Severity.HIGH,
        remediation="Replace useColorScheme with the useThemeColors hook",
        doc_reference="ARCHITECTURE.md#design-system",
        example="const palette = useThemeColors();",
        effort="5 minutes",
    ),
    RuleDef(
        id="hardcoded-colors",
        principle_id=DESIGN_SYSTEM,
        description="Hardcoded hex color value instead of a theme color",
        severity=Severity.HIGH,
        remediation="Use palette colors from useThemeColors() instead of hardcoded hex values",
        doc_reference="ARCHITECTURE.md#design-system",
        example="color: palette.textPrimary",
        effort="5 minutes",
    ),
    RuleDef(
        id="missing-use-memo-styles",
        principle_id=DESIGN_SYSTEM,
        description="Styles created inside a component without useMemo",
        severity=Severity.MEDIUM,
        remediation="Wrap style creation in useMemo with the palette as dependency",
        doc_reference="ARCHITECTURE.md#design-system",
        example="const styles = useMemo(() => createStyles(palette), [palette]);",
        effort="10 minutes",
    ),
    # Type safety
    RuleDef(
        id="any-type-usage",
        principle_id=TYPE_SAFETY,
        description='Usage of "any" bypasses type checking',
        severity=Severity.HIGH,
        remediation='Replace "any" with a specific type, or use unknown with type guards',
        doc_reference="ARCHITECTURE.md#type-safety",
        effort="15 minutes",
    ),
    RuleDef(
        id="missing-error-handling",
        principle_id=TYPE_SAFETY,
        description="Async function awaits without try/catch error handling",
        severity=Severity.MEDIUM,
        remediation="Add a try/catch block around awaited calls",
        doc_reference="ARCHITECTURE.md#type-safety",
        effort="10 minutes",
    ),
    RuleDef(
        id="missing-interface",
        principle_id=TYPE_SAFETY,
        description="Component props are not typed with an interface",
        severity=Severity.MEDIUM,
        remediation="Define an interface for the component props",
        doc_reference="ARCHITECTURE.md#type-safety",
        example="interface CardProps { title: string }\nfunction Card({ title }: CardProps) {}",
        effort="10 minutes",
    ),
    # Component architecture
    RuleDef(
        id="hooks-in-loops",
        principle_id=COMPONENT_ARCHITECTURE,
        description="Hook called inside a loop or iteration callback",
        severity=Severity.CRITICAL,
        remediation="Extract a child component so the hook is called at its top level",
        doc_reference="ARCHITECTURE.md#hooks",
        effort="30 minutes",
    ),
    RuleDef(
        id="missing-text-fallback",
        principle_id=COMPONENT_ARCHITECTURE,
        description="Text renders a possibly undefined value without a fallback",
        severity=Severity.CRITICAL,
        remediation='Add a fallback: {value ?? ""} or use a ternary',
        doc_reference="ARCHITECTURE.md#text-rendering",
        effort="5 minutes",
    ),
    RuleDef(
        id="conditional-text-render",
        principle_id=COMPONENT_ARCHITECTURE,
        description="Conditional rendering with && instead of a ternary",
        severity=Severity.CRITICAL,
        remediation="Use a ternary with an explicit null: {condition ? <View /> : null}",
        doc_reference="ARCHITECTURE.md#text-rendering",
        effort="5 minutes",
    ),
    RuleDef(
        id="large-component",
        principle_id=COMPONENT_ARCHITECTURE,
        description="Component exceeds 200 lines",
        severity=Severity.MEDIUM,
        remediation="Extract smaller components or custom hooks",
        doc_reference="ARCHITECTURE.md#components",
        effort="2 hours",
    ),
    # Accessibility
    RuleDef(
        id="missing-accessibility-label",
        principle_id=ACCESSIBILITY,
        description="Interactive component missing accessibilityLabel",
        severity=Severity.HIGH,
        remediation="Add an accessibilityLabel prop for screen readers",
        doc_reference="ARCHITECTURE.md#accessibility",
        effort="5 minutes",
    ),
    RuleDef(
        id="missing-haptic-feedback",
        principle_id=ACCESSIBILITY,
        description="Pressable element without haptic feedback",
        severity=Severity.HIGH,
        remediation="Trigger haptic feedback on press using the Haptics API",
        doc_reference="ARCHITECTURE.md#accessibility",
        effort="5 minutes",
    ),
    RuleDef(
        id="missing-loading-states",
        principle_id=ACCESSIBILITY,
        description="Async action without a loading state",
        severity=Severity.HIGH,
        remediation="Track a loading flag and render an indicator during async work",
        doc_reference="ARCHITECTURE.md#accessibility",
        effort="20 minutes",
    ),
    # Performance
    RuleDef(
        id="missing-flatlist-optimization",
        principle_id=PERFORMANCE,
        description="FlatList missing keyExtractor",
        severity=Severity.MEDIUM,
        remediation="Add keyExtractor (and getItemLayout for fixed-height rows)",
        doc_reference="ARCHITECTURE.md#performance",
        effort="10 minutes",
    ),
    RuleDef(
        id="inline-render-functions",
        principle_id=PERFORMANCE,
        description="Inline function passed as a prop re-creates on every render",
        severity=Severity.MEDIUM,
        remediation="Extract the function and wrap it with useCallback",
        doc_reference="ARCHITECTURE.md#performance",
        effort="10 minutes",
    ),
    # State management
    RuleDef(
        id="missing-zustand-interface",
        principle_id=STATE_MANAGEMENT,
        description="Zustand store created without a state interface",
        severity=Severity.MEDIUM,
        remediation="Declare a state interface and pass it to create<State>()",
        doc_reference="ARCHITECTURE.md#state",
        effort="15 minutes",
    ),
    RuleDef(
        id="missing-persistence",
        principle_id=STATE_MANAGEMENT,
        description="Store has no persistence middleware",
        severity=Severity.MEDIUM,
        remediation="Wrap the store with the persist middleware",
        doc_reference="ARCHITECTURE.md#state",
        effort="20 minutes",
    ),
    # Testing & documentation
    RuleDef(
        id="missing-jsdoc",
        principle_id=TESTING_DOCUMENTATION,
        description="Exported component missing a JSDoc comment",
        severity=Severity.LOW,
        remediation="Add a JSDoc comment describing the component and its props",
        doc_reference="ARCHITECTURE.md#documentation",
        effort="5 minutes",
    ),
    RuleDef(
        id="missing-defensive-coding",
        principle_id=TESTING_DOCUMENTATION,
        description="JSON.parse on untrusted input outside try/catch",
        severity=Severity.LOW,
        remediation="Guard JSON.parse with try/catch and a fallback value",
        doc_reference="ARCHITECTURE.md#documentation",
        effort="5 minutes",
    ),
)

RULESET_V1 = Ruleset(version="1.0.0", principles=_PRINCIPLES_V1, rules=_RULES_V1)

RULESETS: dict[str, Ruleset] = {RULESET_V1.version: RULESET_V1}

# ---------------------------------------------------------------------------
# Weight table validation
# ---------------------------------------------------------------------------

WEIGHT_EPSILON = 1e-9


def weight_problems(weights: Mapping[str, float], principle_ids: Iterable[str]) -> list[str]:
    """Return every problem with a principle weight table (empty when valid).

    A valid table names exactly the given principles, has no negative
    weights, and sums to 1.0 within :data:`WEIGHT_EPSILON`.
    """
    problems: list[str] = []
    expected = set(principle_ids)
    unknown = sorted(set(weights) - expected)
    missing = sorted(expected - set(weights))
    if unknown:
        problems.append(f"unknown principle ids in weight table: {unknown}")
    if missing:
        problems.append(f"weight table is missing principles: {missing}")
    negative = sorted(pid for pid, w in weights.items() if w < 0)
    if negative:
        problems.append(f"negative weights for: {negative}")
    total = math.fsum(weights.values())
    if abs(total - 1.0) > WEIGHT_EPSILON:
        problems.append(f"principle weights must sum to 1.0, got {total:.12g}")
    return problems


def _verify_default_weights() -> None:
    for ruleset in RULESETS.values():
        problems = weight_problems(ruleset.default_weights, ruleset.principle_ids)
        if problems:
            msg = f"ruleset {ruleset.version}: " + "; ".join(problems)
            raise RuntimeError(msg)


_verify_default_weights()

# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------


def get_ruleset(version: str = DEFAULT_RULESET_VERSION) -> Ruleset:
    """Return the ruleset for *version*.

    Raises ``KeyError`` for unknown versions.
    """
    try:
        return RULESETS[version]
    except KeyError:
        msg = f"unknown ruleset version '{version}', expected one of {sorted(RULESETS)}"
        raise KeyError(msg) from None


def get_rule(rule_id: str, version: str = DEFAULT_RULESET_VERSION) -> RuleDef | None:
    return get_ruleset(version).rule(rule_id)


def rules_for_principle(
    principle_id: str, version: str = DEFAULT_RULESET_VERSION
) -> tuple[RuleDef, ...]:
    return get_ruleset(version).rules_for(principle_id)


def all_rule_ids(version: str = DEFAULT_RULESET_VERSION) -> list[str]:
    return [r.id for r in get_ruleset(version).rules]
