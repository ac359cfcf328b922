"""
Positional argument resolution for the scale command.

Two grammars are accepted:

    scale <deployment> <min> [max]                  (legacy, targets all regions)
    scale <deployment> <regions> [min] [max]        (current)

The grammar is picked by a single lookahead on the token after the deployment
identifier: a scaling bound (digits or "auto") selects the legacy form,
anything else is a region designator.
"""
import logging
import re
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Union

from deploy_scale.errors import (
    AllRegionsConflictError,
    InvalidRegionError,
    UsageError,
    ValidationError,
)
from deploy_scale.regions import ALL_REGIONS, normalize_regions

logger = logging.getLogger(__name__)

# the "auto" value for scaling
AUTO = "auto"

USAGE = "scale <deployment> <regions> [min] [max]"

MIN_ARGUMENTS = 2
MAX_ARGUMENTS = 4

_NUMERIC = re.compile(r"[0-9]+")

ScalingBound = Union[int, str]


def is_scaling_bound(token: str) -> bool:
    """Whether the token is an unsigned integer or "auto"."""
    return token == AUTO or _NUMERIC.fullmatch(token) is not None


def parse_scaling_bound(token: str) -> ScalingBound:
    """Convert "3" to 3 and "auto" to "auto"."""
    if not is_scaling_bound(token):
        raise ValueError(f'"{token}" is not a number or "{AUTO}"')
    return token if token == AUTO else int(token)


@dataclass(frozen=True)
class ScalingRule:
    """Instance bounds applied to a single region."""
    min: ScalingBound
    max: ScalingBound

    def to_dict(self) -> Dict[str, ScalingBound]:
        return {"min": self.min, "max": self.max}


@dataclass(frozen=True)
class ScalingIntent:
    """Per-region scaling rules, built once and never mutated."""
    rules: Tuple[Tuple[str, ScalingRule], ...]

    def __post_init__(self):
        if not self.rules:
            raise ValueError("A scaling intent needs at least one region")

    @classmethod
    def uniform(cls, regions: Sequence[str], rule: ScalingRule) -> "ScalingIntent":
        return cls(rules=tuple((region, rule) for region in dict.fromkeys(regions)))

    @property
    def regions(self) -> List[str]:
        return [region for region, _ in self.rules]

    def rule_for(self, region: str) -> ScalingRule:
        for name, rule in self.rules:
            if name == region:
                return rule
        raise KeyError(region)

    def as_payload(self) -> Dict[str, Dict[str, ScalingBound]]:
        """Request body for the scale update: {region: {"min": .., "max": ..}}"""
        return {region: rule.to_dict() for region, rule in self.rules}


@dataclass(frozen=True)
class LegacyForm:
    """`<min> [max]`, applied to every region."""
    rule: ScalingRule


@dataclass(frozen=True)
class CurrentForm:
    """`<regions> [min] [max]`."""
    designator: str
    rule: ScalingRule


ArgumentForm = Union[LegacyForm, CurrentForm]


def _single_bound_rule(bound: ScalingBound) -> ScalingRule:
    # "auto" alone means autoscale from zero; a number alone pins the count
    if bound == AUTO:
        return ScalingRule(min=0, max=AUTO)
    return ScalingRule(min=bound, max=bound)


def _classify_legacy(positional: Sequence[str]) -> LegacyForm:
    min_value = parse_scaling_bound(positional[1])

    if len(positional) < 3:
        return LegacyForm(rule=_single_bound_rule(min_value))

    maybe_max = positional[2]
    if not is_scaling_bound(maybe_max):
        raise UsageError(
            f'Expected "{maybe_max}" to be a <max> argument, but it\'s not numeric '
            f'or "{AUTO}" (<min> was supplied as "{min_value}")',
            meta={"token": maybe_max, "position": 2}
        )

    if len(positional) > 3:
        raise UsageError(
            f'Invalid number of arguments: expected <min> ("{min_value}") and [max]',
            meta={"token": positional[3], "position": 3}
        )

    return LegacyForm(rule=ScalingRule(min=min_value, max=parse_scaling_bound(maybe_max)))


def _parse_bound_argument(positional: Sequence[str], position: int, name: str) -> Optional[ScalingBound]:
    if len(positional) <= position:
        return None
    token = positional[position]
    if not is_scaling_bound(token):
        raise UsageError(
            f'Invalid <{name}> parameter "{token}". A number or "{AUTO}" were expected',
            meta={"token": token, "position": position}
        )
    return parse_scaling_bound(token)


def _classify_current(positional: Sequence[str]) -> CurrentForm:
    designator = positional[1]
    min_value = _parse_bound_argument(positional, 2, "min")
    max_value = _parse_bound_argument(positional, 3, "max")

    if min_value is None:
        rule = ScalingRule(min=0, max=AUTO)
    elif max_value is None:
        if designator.strip().lower() == ALL_REGIONS:
            # `all 3` keeps 3 instances everywhere at all times
            rule = _single_bound_rule(min_value)
        else:
            rule = ScalingRule(min=min_value, max=AUTO)
    else:
        rule = ScalingRule(min=min_value, max=max_value)

    return CurrentForm(designator=designator, rule=rule)


def check_argument_count(positional: Sequence[str]) -> None:
    if len(positional) < MIN_ARGUMENTS:
        raise UsageError(f"`{USAGE}` expects at least two arguments",
                         meta={"count": len(positional)})
    if len(positional) > MAX_ARGUMENTS:
        raise UsageError(f"`{USAGE}` expects at most four arguments",
                         meta={"count": len(positional)})


def classify_arguments(positional: Sequence[str]) -> ArgumentForm:
    """Pick the grammar from the token after the deployment identifier.

    Args:
        positional: All positional tokens, deployment identifier first

    Returns:
        LegacyForm when that token is a scaling bound, CurrentForm otherwise

    Raises:
        UsageError: wrong number of tokens, or a bound token is malformed
    """
    check_argument_count(positional)
    if is_scaling_bound(positional[1]):
        return _classify_legacy(positional)
    return _classify_current(positional)


def resolve_scaling_intent(positional: Sequence[str],
                           regions_override: Optional[str] = None,
                           normalize: Callable[[List[str]], List[str]] = normalize_regions) -> ScalingIntent:
    """Resolve the positional arguments into per-region scaling rules.

    Args:
        positional: All positional tokens, deployment identifier first
        regions_override: Comma-separated regions replacing the implicit
            "all" of the legacy form
        normalize: Region normalizer, receives the designator split on ","

    Raises:
        UsageError: bad argument count or shape
        ValidationError: the region designator holds an invalid identifier
    """
    form = classify_arguments(positional)

    if isinstance(form, LegacyForm):
        designator = regions_override or ALL_REGIONS
    else:
        if regions_override:
            raise UsageError(
                f'Regions were given both as "{form.designator}" and with '
                f'`--regions` ("{regions_override}")',
                meta={"token": form.designator}
            )
        designator = form.designator

    try:
        regions = normalize(designator.split(","))
    except InvalidRegionError as err:
        raise ValidationError(err.message, code=err.code, meta=err.meta) from err
    except AllRegionsConflictError as err:
        raise ValidationError(err.message, code=err.code, meta=err.meta) from err

    logger.debug(f"{designator} normalized to {','.join(regions)}")
    return ScalingIntent.uniform(regions, form.rule)
