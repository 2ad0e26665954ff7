"""Build plan parser and serializer."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import cbor2

from stackplan.errors import ValidationError
from stackplan.plan.model import (
    DEFAULT_BASE_IMAGE,
    PHASE_ORDER,
    PLAN_SCHEMA_VERSION,
    BuildPlan,
    Package,
    Phase,
)


def parse_plan(raw: str) -> BuildPlan:
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValidationError("Invalid build plan JSON.", hint=str(exc)) from exc
    return plan_from_payload(payload)


def parse_plan_cbor(raw: bytes) -> BuildPlan:
    try:
        payload = cbor2.loads(raw)
    except cbor2.CBORDecodeError as exc:
        raise ValidationError("Invalid build plan CBOR.", hint=str(exc)) from exc
    return plan_from_payload(payload)


def read_plan(path: str | Path) -> BuildPlan:
    plan_path = Path(path)
    try:
        raw = plan_path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise ValidationError(
            "Build plan file does not exist.",
            context={"path": str(plan_path), "operation": "read_plan"},
        ) from exc
    return parse_plan(raw)


def write_plan(plan: BuildPlan, path: str | Path) -> Path:
    plan_path = Path(path)
    plan_path.parent.mkdir(parents=True, exist_ok=True)
    plan_path.write_text(plan.to_json(), encoding="utf-8")
    return plan_path


def plan_from_payload(payload: Any) -> BuildPlan:
    if not isinstance(payload, dict):
        raise ValidationError("Invalid build plan payload type.")
    version = payload.get("schema_version")
    if version != PLAN_SCHEMA_VERSION:
        raise ValidationError(
            "Unsupported build plan schema version.",
            context={"schema_version": str(version)},
        )
    phases_raw = _required_dict(payload, "phases")
    phases: dict[str, Phase] = {}
    for kind, phase_raw in phases_raw.items():
        if kind not in PHASE_ORDER:
            raise ValidationError(f"Unknown phase `{kind}` in build plan.")
        phases[kind] = _parse_phase(kind, phase_raw)
    return BuildPlan(
        setup=phases.get("setup"),
        install=phases.get("install"),
        build=phases.get("build"),
        start=phases.get("start"),
        variables=_string_map(payload, "variables"),
        static_assets=_string_map(payload, "static_assets"),
    )


def _parse_phase(kind: str, raw: Any) -> Phase:
    if not isinstance(raw, dict) or raw.get("kind") != kind:
        raise ValidationError(f"Invalid `{kind}` phase entry in build plan.")
    packages_raw = raw.get("packages", [])
    if not isinstance(packages_raw, list):
        raise ValidationError("Invalid build plan `packages` value.")
    return Phase(
        kind=kind,  # type: ignore[arg-type]
        commands=_string_tuple(raw, "commands"),
        packages=tuple(_parse_package(item) for item in packages_raw),
        apt_packages=_string_tuple(raw, "apt_packages"),
        only_include_files=_optional_string_tuple(raw, "only_include_files"),
        cache_directories=_optional_string_tuple(raw, "cache_directories"),
        base_image=_optional_str(raw, "base_image") or DEFAULT_BASE_IMAGE,
        run_image=_optional_str(raw, "run_image"),
        start_command=_optional_str(raw, "start_command"),
        env_path_entries=_optional_string_tuple(raw, "env_path_entries"),
    )


def _parse_package(item: Any) -> Package:
    if not isinstance(item, dict):
        raise ValidationError("Invalid package entry in build plan.")
    name = item.get("name")
    if not isinstance(name, str) or not name:
        raise ValidationError("Invalid package `name` value.")
    return Package(name=name, version=_optional_str(item, "version"))


def _required_dict(payload: dict[str, Any], key: str) -> dict[str, Any]:
    value = payload.get(key)
    if not isinstance(value, dict):
        raise ValidationError(f"Invalid build plan `{key}` value.")
    return value


def _string_map(payload: dict[str, Any], key: str) -> dict[str, str]:
    value = payload.get(key, {})
    if not isinstance(value, dict) or not all(
        isinstance(k, str) and isinstance(v, str) for k, v in value.items()
    ):
        raise ValidationError(f"Invalid build plan `{key}` value.")
    return dict(sorted(value.items()))


def _string_tuple(payload: dict[str, Any], key: str) -> tuple[str, ...]:
    value = payload.get(key, [])
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ValidationError(f"Invalid build plan `{key}` value.")
    return tuple(value)


def _optional_string_tuple(payload: dict[str, Any], key: str) -> tuple[str, ...] | None:
    if payload.get(key) is None:
        return None
    return _string_tuple(payload, key)


def _optional_str(payload: dict[str, Any], key: str) -> str | None:
    value = payload.get(key)
    if value is not None and not isinstance(value, str):
        raise ValidationError(f"Invalid build plan `{key}` value.")
    return value


__all__ = ["parse_plan", "parse_plan_cbor", "plan_from_payload", "read_plan", "write_plan"]
