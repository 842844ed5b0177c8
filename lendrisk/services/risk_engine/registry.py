"""Configuration registry — versioned lifecycle of risk configurations.

Lifecycle:
  create  -> new INACTIVE version (v1.0, v2.0, ...; numbers are never reused)
  update  -> allowed only while inactive; returns a new validated value
  activate-> atomically deactivates the current active version
  delete  -> allowed only while inactive

Reads of the active configuration and activation are serialised by one
lock, so an assessment can never observe a half-switched state.  Callers
receive immutable RiskConfiguration values, not live references.

Lifecycle changes are reported to an optional listener as
ConfigurationEvent records; persisting them is the caller's job.
"""

from __future__ import annotations

import logging
import re
import threading
from dataclasses import dataclass, field, fields, replace
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Mapping, Optional

from lendrisk.models.risk import ConfigAction, RiskFactor
from lendrisk.services.risk_engine.configuration import (
    FactorWeights,
    RiskConfiguration,
    RiskThresholds,
)
from lendrisk.services.risk_engine.exceptions import (
    ConfigurationError,
    ConfigurationLockedError,
    MissingConfigurationError,
)

logger = logging.getLogger(__name__)

_VERSION_RE = re.compile(r"^v(\d+)\.0$")

IMMUTABLE_FIELDS = frozenset({"version", "is_active", "created_by", "created_at"})
EDITABLE_FIELDS = frozenset(
    f.name for f in fields(RiskConfiguration)
) - IMMUTABLE_FIELDS

EVENT_POLICY = {
    ConfigAction.CREATE: ("MEDIUM", ("CONFIG_CHANGE",)),
    ConfigAction.UPDATE: ("MEDIUM", ("CONFIG_CHANGE",)),
    ConfigAction.ACTIVATE: ("HIGH", ("CONFIG_ACTIVATION",)),
    ConfigAction.DELETE: ("HIGH", ("CONFIG_DELETION",)),
}


@dataclass(frozen=True)
class ConfigurationEvent:
    action: ConfigAction
    version: str
    risk_level: str
    compliance_flags: tuple[str, ...]
    occurred_at: datetime
    actor: Optional[str] = None
    changes: dict = field(default_factory=dict)


def _coerce_weights(value: Any, base: Optional[FactorWeights] = None) -> FactorWeights:
    """Accept FactorWeights or a mapping (partial when *base* is given)."""
    if isinstance(value, FactorWeights):
        return value
    if not isinstance(value, Mapping):
        raise ConfigurationError(
            f"weights must be a mapping of factor -> percentage, got {type(value).__name__}",
            field="weights", constraint="mapping",
        )
    known = {f.value for f in RiskFactor}
    unknown = set(value) - known
    if unknown:
        raise ConfigurationError(
            f"Unknown weight factor(s): {sorted(unknown)}",
            field="weights", constraint="unknown_factor",
        )
    merged = base.as_dict() if base else {}
    merged.update(value)
    missing = known - set(merged)
    if missing:
        raise ConfigurationError(
            f"Missing weight(s) for: {sorted(missing)}",
            field="weights", constraint="required",
        )
    return FactorWeights(**merged)


def _coerce_thresholds(value: Any, base: Optional[RiskThresholds] = None) -> RiskThresholds:
    if isinstance(value, RiskThresholds):
        return value
    if not isinstance(value, Mapping):
        raise ConfigurationError(
            "thresholds must be a mapping with low_risk / medium_risk / high_risk",
            field="thresholds", constraint="mapping",
        )
    merged = {
        "low_risk": base.low_risk, "medium_risk": base.medium_risk, "high_risk": base.high_risk,
    } if base else {}
    merged.update(value)
    expected = {"low_risk", "medium_risk", "high_risk"}
    if set(merged) != expected:
        raise ConfigurationError(
            f"thresholds must define exactly {sorted(expected)}, got {sorted(merged)}",
            field="thresholds", constraint="required",
        )
    return RiskThresholds(**merged)


def _required_text(value: Any, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ConfigurationError(
            f"Configuration {field_name} is required", field=field_name, constraint="required",
        )
    return value.strip()


class ConfigurationRegistry:
    def __init__(
        self,
        listener: Optional[Callable[[ConfigurationEvent], None]] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._configs: dict[str, RiskConfiguration] = {}
        self._sequence = 0
        self._lock = threading.RLock()
        self._listener = listener
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    # ── Reads ──────────────────────────────────────────────────────

    def get(self, version: str) -> RiskConfiguration:
        with self._lock:
            config = self._configs.get(version)
        if config is None:
            raise MissingConfigurationError(version)
        return config

    def get_active(self) -> RiskConfiguration:
        with self._lock:
            for config in self._configs.values():
                if config.is_active:
                    return config
        raise MissingConfigurationError()

    def resolve(self, version: Optional[str] = None) -> RiskConfiguration:
        """A specific version when given, otherwise the active configuration."""
        return self.get(version) if version else self.get_active()

    def history(self) -> list[RiskConfiguration]:
        """All versions, newest first."""
        with self._lock:
            return list(reversed(self._configs.values()))

    def to_records(self) -> list[dict[str, Any]]:
        return [config.to_record() for config in reversed(self.history())]

    @property
    def sequence(self) -> int:
        """Highest version number ever issued, deleted versions included.

        Store it with ``to_records()`` and hand it back to ``load`` so a
        reloaded registry never re-issues a deleted version number.
        """
        with self._lock:
            return self._sequence

    # ── Lifecycle ──────────────────────────────────────────────────

    def create(
        self,
        *,
        name: str,
        description: str,
        weights: FactorWeights | Mapping[str, float],
        thresholds: RiskThresholds | Mapping[str, float],
        auto_approve_threshold: float,
        auto_reject_threshold: float,
        require_human_review: bool = False,
        created_by: Optional[str] = None,
    ) -> RiskConfiguration:
        """Create a new inactive configuration version."""
        name = _required_text(name, "name")
        description = _required_text(description, "description")

        with self._lock:
            version = f"v{self._sequence + 1}.0"
            config = RiskConfiguration(
                version=version,
                weights=_coerce_weights(weights),
                thresholds=_coerce_thresholds(thresholds),
                auto_approve_threshold=auto_approve_threshold,
                auto_reject_threshold=auto_reject_threshold,
                name=name,
                description=description,
                is_active=False,
                require_human_review=require_human_review,
                created_by=created_by,
                created_at=self._clock(),
            )
            self._sequence += 1
            self._configs[version] = config

        logger.info("Risk configuration %s created (%s)", version, config.name)
        self._emit(ConfigAction.CREATE, version, created_by, {"name": config.name})
        return config

    def update(self, version: str, /, *, actor: Optional[str] = None, **changes: Any) -> RiskConfiguration:
        """Edit an inactive configuration.  Active versions are immutable."""
        locked = IMMUTABLE_FIELDS & set(changes)
        if locked:
            raise ConfigurationError(
                f"Cannot change {sorted(locked)} through update",
                field=sorted(locked)[0], constraint="immutable",
            )
        unknown = set(changes) - EDITABLE_FIELDS
        if unknown:
            raise ConfigurationError(
                f"Unknown configuration field(s): {sorted(unknown)}",
                field=sorted(unknown)[0], constraint="unknown_field",
            )
        for text_field in ("name", "description"):
            if text_field in changes:
                changes[text_field] = _required_text(changes[text_field], text_field)

        with self._lock:
            current = self.get(version)
            if current.is_active:
                raise ConfigurationLockedError(
                    f"Cannot update active configuration {version}. Create a new version instead.",
                    field="is_active", constraint="inactive_only",
                )
            if "weights" in changes:
                changes["weights"] = _coerce_weights(changes["weights"], base=current.weights)
            if "thresholds" in changes:
                changes["thresholds"] = _coerce_thresholds(changes["thresholds"], base=current.thresholds)
            updated = replace(current, **changes)
            self._configs[version] = updated

        logger.info("Risk configuration %s updated: %s", version, sorted(changes))
        self._emit(ConfigAction.UPDATE, version, actor, {"fields": sorted(changes)})
        return updated

    def activate(self, version: str, *, actor: Optional[str] = None) -> RiskConfiguration:
        """Make *version* the single active configuration."""
        with self._lock:
            target = self.get(version)
            if target.is_active:
                raise ConfigurationLockedError(
                    f"Configuration {version} is already active",
                    field="is_active", constraint="already_active",
                )
            activated = replace(target, is_active=True)
            swapped = {
                v: (replace(c, is_active=False) if c.is_active else c)
                for v, c in self._configs.items()
            }
            previous = [v for v, c in self._configs.items() if c.is_active]
            swapped[version] = activated
            self._configs = swapped

        logger.info("Risk configuration %s activated (previous: %s)", version, previous or "none")
        self._emit(ConfigAction.ACTIVATE, version, actor, {"previous": previous})
        return activated

    def delete(self, version: str, *, actor: Optional[str] = None) -> None:
        with self._lock:
            config = self.get(version)
            if config.is_active:
                raise ConfigurationLockedError(
                    f"Cannot delete active configuration {version}",
                    field="is_active", constraint="inactive_only",
                )
            del self._configs[version]

        logger.info("Risk configuration %s deleted", version)
        self._emit(ConfigAction.DELETE, version, actor, {})

    def load(self, records: Iterable[Mapping[str, Any]], *, sequence: int = 0) -> None:
        """Replace the registry contents with stored records, re-validating each one.

        *sequence* is the stored high-water mark.  Version numbering resumes
        after the highest of it, the loaded versions and this registry's own
        counter.
        """
        if isinstance(sequence, bool) or not isinstance(sequence, int) or sequence < 0:
            raise ConfigurationError(
                f"sequence must be a non-negative integer, got {sequence!r}",
                field="sequence", constraint="non_negative",
            )
        loaded: dict[str, RiskConfiguration] = {}
        for record in records:
            try:
                config = RiskConfiguration.from_record(dict(record))
            except ConfigurationError as exc:
                logger.warning(
                    "Stored risk configuration %s failed validation: %s",
                    record.get("version"), exc,
                )
                raise
            if config.version in loaded:
                raise ConfigurationError(
                    f"Duplicate configuration version {config.version}",
                    field="version", constraint="unique",
                )
            loaded[config.version] = config

        active = [v for v, c in loaded.items() if c.is_active]
        if len(active) > 1:
            raise ConfigurationError(
                f"At most one configuration may be active, found {active}",
                field="is_active", constraint="single_active",
            )

        sequence = max(sequence, len(loaded))
        for v in loaded:
            match = _VERSION_RE.match(v)
            if match:
                sequence = max(sequence, int(match.group(1)))

        with self._lock:
            self._configs = loaded
            self._sequence = max(self._sequence, sequence)
        logger.info("Loaded %d risk configuration(s); active=%s", len(loaded), active or "none")

    def _emit(self, action: ConfigAction, version: str, actor: Optional[str], changes: dict) -> None:
        if self._listener is None:
            return
        risk_level, flags = EVENT_POLICY[action]
        self._listener(ConfigurationEvent(
            action=action,
            version=version,
            risk_level=risk_level,
            compliance_flags=flags,
            occurred_at=self._clock(),
            actor=actor,
            changes=changes,
        ))
