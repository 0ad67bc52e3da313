"""Badge requirement variants.

A badge's ``requirements`` column stores one of::

    {"kind": "reputation", "minimum": 500}
    {"kind": "contribution", "action": "write_review", "count": 10}

Older rows without ``kind`` (``{"action": "reputation", "minimum": N}`` or
``{"action": "vote", "count": N}``) are normalised on load.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

ContributionAction = Literal["submit_group", "write_review", "vote", "report_group"]
CONTRIBUTION_ACTIONS: tuple[str, ...] = ("submit_group", "write_review", "vote", "report_group")


class ReputationRequirement(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: Literal["reputation"] = "reputation"
    minimum: int = Field(ge=0)


class ContributionRequirement(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: Literal["contribution"] = "contribution"
    action: ContributionAction
    count: int = Field(ge=1)


BadgeRequirement = Annotated[
    Union[ReputationRequirement, ContributionRequirement],
    Field(discriminator="kind"),
]

_adapter: TypeAdapter[BadgeRequirement] = TypeAdapter(BadgeRequirement)


def _normalise(raw: dict[str, Any]) -> dict[str, Any]:
    if "kind" in raw:
        return raw
    data = dict(raw)
    if data.get("action") == "reputation":
        data.pop("action")
        data["kind"] = "reputation"
    else:
        data["kind"] = "contribution"
    return data


def parse_requirement(raw: Any) -> ReputationRequirement | ContributionRequirement:  # noqa: ANN401
    """Validate a stored requirement blob.

    Raises:
        ValueError: (pydantic.ValidationError) if the blob matches no variant.
    """
    if not isinstance(raw, dict):
        msg = "Badge requirements must be an object"
        raise ValueError(msg)
    return _adapter.validate_python(_normalise(raw))


def requirement_to_json(requirement: ReputationRequirement | ContributionRequirement) -> dict[str, Any]:
    return requirement.model_dump()


def validate_for_category(raw: Any, category: str) -> dict[str, Any]:  # noqa: ANN401
    """Parse ``raw`` and check its kind agrees with the badge category. Returns the canonical JSON."""
    requirement = parse_requirement(raw)
    if requirement.kind != category:
        msg = f"A {category} badge needs a {category} requirement, got {requirement.kind}"
        raise ValueError(msg)
    return requirement_to_json(requirement)
