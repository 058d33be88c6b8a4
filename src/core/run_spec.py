"""Typed run-spec parsing for declarative Ward pipelines.

A run-spec is a YAML file listing ingest, versions, report, and
export-reports steps. Parsing is strict: unknown root, default, or
step fields are rejected before any step runs.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal, Mapping, Sequence, cast

from core.errors import WardDependencyError, WardRunSpecError

RunSpecCommand = Literal["ingest", "versions", "report", "export-reports"]
SUPPORTED_RUN_SPEC_COMMANDS: tuple[RunSpecCommand, ...] = (
    "ingest",
    "versions",
    "report",
    "export-reports",
)
STEP_ARGUMENT_KEYS: Mapping[RunSpecCommand, frozenset[str]] = {
    "ingest": frozenset({"warehouse", "source"}),
    "versions": frozenset({"warehouse"}),
    "report": frozenset({"warehouse", "names", "group", "version_id"}),
    "export-reports": frozenset({"warehouse", "output_dir", "names", "version_id", "format"}),
}
_ROOT_KEYS = frozenset({"version", "defaults", "steps"})
_DEFAULTS_KEYS = frozenset({"data_root", "warehouse"})


@dataclass(frozen=True)
class RunSpecDefaults:
    """Default values applied to run-spec steps.

    Attributes:
        data_root: Optional data root overriding the client config.
        warehouse_name: Warehouse used by steps that omit one.
    """

    data_root: str | None = None
    warehouse_name: str | None = None


@dataclass(frozen=True)
class RunSpecStep:
    """One runnable pipeline step from a run-spec file."""

    command: RunSpecCommand
    args: Mapping[str, object]


@dataclass(frozen=True)
class RunSpec:
    """Validated run-spec root object."""

    version: int
    defaults: RunSpecDefaults
    steps: tuple[RunSpecStep, ...]


def load_run_spec(spec_path: str) -> RunSpec:
    """Load and validate a YAML run-spec from disk.

    Args:
        spec_path: File path to YAML run-spec.

    Returns:
        Fully validated run-spec object.

    Raises:
        WardDependencyError: If PyYAML is unavailable.
        WardRunSpecError: If file is invalid or schema checks fail.
    """
    return parse_run_spec(_load_yaml_payload(spec_path))


def parse_run_spec(payload: object) -> RunSpec:
    """Validate an already-decoded run-spec payload.

    Raises:
        WardRunSpecError: If schema checks fail.
    """
    root_mapping = _expect_mapping(payload, "run spec root")
    _reject_unknown_keys(root_mapping, _ROOT_KEYS, "Run spec root")
    return RunSpec(
        version=_parse_version(root_mapping),
        defaults=_parse_defaults(root_mapping),
        steps=_parse_steps(root_mapping),
    )


def _load_yaml_payload(spec_path: str) -> object:
    try:
        import yaml  # type: ignore[import-untyped]
    except ImportError as error:  # pragma: no cover - dependency failure
        raise WardDependencyError(
            "YAML run-spec support requires PyYAML. Install with 'pip install pyyaml'."
        ) from error
    spec_file = Path(spec_path).expanduser().resolve()
    if not spec_file.is_file():
        raise WardRunSpecError(
            f"Run spec file does not exist at {spec_file}. Provide a valid YAML file path."
        )
    try:
        payload = cast(object, yaml.safe_load(spec_file.read_text(encoding="utf-8")))
    except OSError as error:
        raise WardRunSpecError(
            f"Failed to read run spec at {spec_file}: {error}. Check file permissions and retry."
        ) from error
    except yaml.YAMLError as error:
        raise WardRunSpecError(
            f"Failed to parse YAML run spec at {spec_file}: {error}. Fix YAML syntax and retry."
        ) from error
    if payload is None:
        raise WardRunSpecError(f"Run spec at {spec_file} is empty. Define 'version' and 'steps'.")
    return payload


def _expect_mapping(value: object, context: str) -> Mapping[str, object]:
    if not isinstance(value, Mapping):
        raise WardRunSpecError(
            f"Invalid {context}: expected object mapping, got {type(value).__name__}."
        )
    for key in value:
        if not isinstance(key, str):
            raise WardRunSpecError(
                f"Invalid {context}: expected string keys, got {type(key).__name__}."
            )
    return dict(value)


def _parse_version(root_mapping: Mapping[str, object]) -> int:
    raw_version = root_mapping.get("version")
    if isinstance(raw_version, bool) or not isinstance(raw_version, int):
        raise WardRunSpecError("Run spec field 'version' must be an integer. Set version: 1.")
    if raw_version != 1:
        raise WardRunSpecError(f"Unsupported run spec version {raw_version}. Use version: 1.")
    return raw_version


def _parse_defaults(root_mapping: Mapping[str, object]) -> RunSpecDefaults:
    raw_defaults = root_mapping.get("defaults")
    if raw_defaults is None:
        return RunSpecDefaults()
    defaults_mapping = _expect_mapping(raw_defaults, "run spec defaults")
    _reject_unknown_keys(defaults_mapping, _DEFAULTS_KEYS, "Run spec defaults")
    return RunSpecDefaults(
        data_root=_optional_string(defaults_mapping, "data_root"),
        warehouse_name=_optional_string(defaults_mapping, "warehouse"),
    )


def _parse_steps(root_mapping: Mapping[str, object]) -> tuple[RunSpecStep, ...]:
    raw_steps = root_mapping.get("steps")
    if raw_steps is None:
        raise WardRunSpecError(
            "Run spec missing required field 'steps'. Add a non-empty list of commands."
        )
    if not isinstance(raw_steps, Sequence) or isinstance(raw_steps, (str, bytes)):
        raise WardRunSpecError(
            f"Invalid run spec steps: expected list, got {type(raw_steps).__name__}."
        )
    if not raw_steps:
        raise WardRunSpecError("Run spec field 'steps' must include at least one step.")
    return tuple(_parse_step(step_value, index) for index, step_value in enumerate(raw_steps))


def _parse_step(step_value: object, step_index: int) -> RunSpecStep:
    context = f"run spec step #{step_index + 1}"
    step_mapping = _expect_mapping(step_value, context)
    raw_command = step_mapping.get("command")
    if not isinstance(raw_command, str):
        raise WardRunSpecError(f"Invalid {context}: field 'command' must be a string.")
    if raw_command not in SUPPORTED_RUN_SPEC_COMMANDS:
        raise WardRunSpecError(
            f"Unsupported command '{raw_command}' in {context}. "
            f"Use one of: {', '.join(SUPPORTED_RUN_SPEC_COMMANDS)}."
        )
    command = cast(RunSpecCommand, raw_command)
    args = _parse_step_args(step_mapping, context)
    _reject_unknown_keys(args, STEP_ARGUMENT_KEYS[command], f"Step '{command}' in {context}")
    return RunSpecStep(command=command, args=args)


def _parse_step_args(step_mapping: Mapping[str, object], context: str) -> Mapping[str, object]:
    """Accept arguments either nested under ``args`` or inline beside ``command``."""
    if "args" not in step_mapping:
        return {key: value for key, value in step_mapping.items() if key != "command"}
    if step_mapping.keys() - {"command", "args"}:
        raise WardRunSpecError(f"Invalid {context}: when using 'args', do not mix inline keys.")
    return _expect_mapping(step_mapping["args"], f"{context} args")


def _optional_string(mapping: Mapping[str, object], field_name: str) -> str | None:
    raw_value = mapping.get(field_name)
    if raw_value is None:
        return None
    if not isinstance(raw_value, str):
        raise WardRunSpecError(f"Run spec field '{field_name}' must be a string when provided.")
    return raw_value.strip() or None


def _reject_unknown_keys(
    mapping: Mapping[str, object],
    allowed_keys: frozenset[str],
    context: str,
) -> None:
    unknown_keys = sorted(set(mapping) - allowed_keys)
    if unknown_keys:
        raise WardRunSpecError(
            f"{context} contains unknown fields: {', '.join(unknown_keys)}. "
            f"Allowed fields: {', '.join(sorted(allowed_keys))}."
        )
