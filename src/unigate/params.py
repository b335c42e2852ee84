"""Declarative parameter mapping from a unified request to a provider body.

A provider is described by a :data:`ProviderConfig`: an ordered mapping from
unified parameter name to one :class:`ParamSpec`, or to a sequence of them
when a single unified parameter populates several provider fields (for
example ``messages`` feeding both ``messages`` and ``system``).
"""

from __future__ import annotations

import enum
import logging
import math
from collections.abc import Callable, Mapping, MutableMapping, Sequence
from dataclasses import dataclass
from typing import Any

from unigate.errors import MissingRequiredParameter, ParameterOutOfRange

logger = logging.getLogger(__name__)

UnifiedRequest = Mapping[str, Any]
ParamTransform = Callable[[UnifiedRequest], Any]

_UNSET: Any = object()


class RangePolicy(str, enum.Enum):
    """What to do with a numeric value outside its declared range."""

    REJECT = "reject"
    CLAMP = "clamp"


@dataclass(frozen=True)
class ParamSpec:
    """How one unified parameter maps to one provider field.

    Attributes:
        param: Target field path in the provider body; dots nest
            (``"metadata.user_id"``).
        required: Fail the request when no value and no default resolve.
        default: Value used when the parameter is absent. Leave unset for
            no default; ``None`` is not a usable default.
        min: Inclusive lower bound for numeric values.
        max: Inclusive upper bound for numeric values.
        transform: Computes the field from the whole unified request
            instead of reading the parameter directly. Returning None
            means absent.
    """

    param: str
    required: bool = False
    default: Any = _UNSET
    min: float | None = None
    max: float | None = None
    transform: ParamTransform | None = None

    @property
    def has_default(self) -> bool:
        return self.default is not _UNSET and self.default is not None


ProviderConfig = Mapping[str, ParamSpec | Sequence[ParamSpec]]


def _specs_for(entry: ParamSpec | Sequence[ParamSpec]) -> Sequence[ParamSpec]:
    if isinstance(entry, ParamSpec):
        return (entry,)
    return entry


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def apply_range(
    name: str,
    value: Any,
    spec: ParamSpec,
    policy: RangePolicy = RangePolicy.REJECT,
) -> Any:
    """Check *value* against the ParamSpec's ``min``/``max`` bounds.

    Non-numeric values and specs without bounds pass through unchanged.
    Boundary values are always accepted. NaN is never in range and has no
    clamp target, so it is rejected under either policy.

    Raises:
        ParameterOutOfRange: If the value is outside the range and the
            policy is ``REJECT``, or the value is NaN.
    """
    if not _is_number(value) or (spec.min is None and spec.max is None):
        return value

    if math.isnan(value):
        raise ParameterOutOfRange(name, value, minimum=spec.min, maximum=spec.max)

    below = spec.min is not None and value < spec.min
    above = spec.max is not None and value > spec.max
    if not (below or above):
        return value

    if policy == RangePolicy.REJECT:
        raise ParameterOutOfRange(name, value, minimum=spec.min, maximum=spec.max)

    clamped = spec.min if below else spec.max
    logger.debug("Clamped %s from %r to %r", name, value, clamped)
    return clamped


def set_path(target: MutableMapping[str, Any], path: str, value: Any) -> None:
    """Write *value* at a dotted *path*, creating nested dicts on demand.

    Existing sibling keys are preserved; a non-dict value sitting where an
    intermediate object is needed gets replaced by a dict.
    """
    keys = path.split(".")
    node = target
    for key in keys[:-1]:
        child = node.get(key)
        if not isinstance(child, MutableMapping):
            child = {}
            node[key] = child
        node = child
    node[keys[-1]] = value


def resolve_param(
    name: str,
    spec: ParamSpec,
    request: UnifiedRequest,
    policy: RangePolicy = RangePolicy.REJECT,
) -> Any:
    """Resolve one spec to its provider value, or ``_UNSET`` to omit it.

    Raises:
        MissingRequiredParameter: If required and nothing resolves.
        ParameterOutOfRange: If out of range under the reject policy.
    """
    if spec.transform is not None:
        value = spec.transform(request)
    else:
        value = request.get(name)

    if value is None:
        if spec.has_default:
            value = spec.default
        elif spec.required:
            raise MissingRequiredParameter(name)
        else:
            return _UNSET

    return apply_range(name, value, spec, policy)


def build_provider_request(
    request: UnifiedRequest,
    config: ProviderConfig,
    *,
    range_policy: RangePolicy = RangePolicy.REJECT,
) -> dict[str, Any]:
    """Build a provider request body from a unified request.

    Specs are resolved in config declaration order; each spec of a fan-out
    entry is resolved independently and writes its own target path.
    Unified parameters with no entry in *config* are not forwarded.

    Args:
        request: The unified request mapping.
        config: The provider's parameter mapping table.
        range_policy: Out-of-range handling for numeric parameters.

    Returns:
        The provider request body.

    Raises:
        MissingRequiredParameter: A required parameter resolved to nothing.
        ParameterOutOfRange: A numeric parameter is out of range and the
            policy is ``REJECT``.
    """
    body: dict[str, Any] = {}
    for name, entry in config.items():
        for spec in _specs_for(entry):
            value = resolve_param(name, spec, request, range_policy)
            if value is _UNSET:
                continue
            set_path(body, spec.param, value)

    ignored = set(request) - set(config)
    if ignored:
        logger.debug("Parameters not mapped for provider: %s", sorted(ignored))
    return body
