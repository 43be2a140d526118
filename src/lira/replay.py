"""
Replay - drive a fresh Board from a YAML script.

Scripts name the ids they create with ``as`` aliases so later steps can refer
to them. Nothing is read from or written to disk beyond the script itself.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping, Optional, Union
from uuid import UUID

import yaml
from jsonschema import Draft202012Validator
from packaging import version

from . import errors
from .board import Board
from .errors import LiraError, ScriptError
from .logs import get_logger
from .version import SCRIPT_SCHEMA_VERSION

log = get_logger("replay")

_ref = {"type": "string", "minLength": 1}
_nullable_ref = {"type": ["string", "null"], "minLength": 1}

_STEP_ARGS = {
    "add_user": {"name": {"type": "string"}, "as": _ref},
    "remove_user": {"user": _ref},
    "add_issue": {
        "title": {"type": "string"},
        "type": {"enum": ["epic", "feature", "task"]},
        "as": _ref,
    },
    "remove_issue": {"issue": _ref},
    "set_state": {"issue": _ref, "state": {"enum": ["todo", "in_progress", "done"]}},
    "set_parent": {"issue": _ref, "parent": _nullable_ref},
    "assign": {"user": _nullable_ref, "issue": _ref},
}

_REQUIRED = {
    "add_user": ["name"],
    "remove_user": ["user"],
    "add_issue": ["title", "type"],
    "remove_issue": ["issue"],
    "set_state": ["issue", "state"],
    "set_parent": ["issue", "parent"],
    "assign": ["user", "issue"],
}


def _step_schema(with_expect: bool) -> Dict[str, Any]:
    options = [
        {
            "type": "object",
            "properties": {
                name: {
                    "type": "object",
                    "properties": props,
                    "required": _REQUIRED[name],
                    "additionalProperties": False,
                }
            },
            "required": [name],
            "additionalProperties": False,
        }
        for name, props in _STEP_ARGS.items()
    ]
    if with_expect:
        options.append({
            "type": "object",
            "properties": {
                "expect_error": {
                    "type": "object",
                    "properties": {
                        "error": _ref,
                        "step": {"$ref": "#/$defs/plain_step"},
                    },
                    "required": ["error", "step"],
                    "additionalProperties": False,
                }
            },
            "required": ["expect_error"],
            "additionalProperties": False,
        })
    return {"oneOf": options}


SCRIPT_SCHEMA: Dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "title": "lira replay script",
    "type": "object",
    "properties": {
        "version": {"type": "string"},
        "steps": {"type": "array", "items": _step_schema(with_expect=True)},
    },
    "required": ["version", "steps"],
    "additionalProperties": False,
    "$defs": {"plain_step": _step_schema(with_expect=False)},
}


@dataclass
class ReplayResult:
    """The board a script ran against and the aliases it created."""

    board: Board
    aliases: Dict[str, UUID] = field(default_factory=dict)
    steps_run: int = 0

    def resolve(self, alias: str) -> UUID:
        return self.aliases[alias]


def load_script(source: Union[str, Mapping[str, Any]]) -> Dict[str, Any]:
    """
    Parse and validate a replay script.

    Args:
        source: YAML text or an already parsed mapping.

    Returns:
        The validated script mapping.

    Raises:
        ScriptError: If the YAML is malformed, does not match SCRIPT_SCHEMA or
            targets an unsupported script version.
    """
    if isinstance(source, str):
        try:
            data = yaml.safe_load(source)
        except yaml.YAMLError as e:
            raise ScriptError(f"Invalid YAML: {e}") from e
    else:
        data = dict(source)

    if not isinstance(data, dict):
        raise ScriptError("Script must be a mapping with 'version' and 'steps'")

    validator = Draft202012Validator(SCRIPT_SCHEMA)
    problems = sorted(validator.iter_errors(data), key=lambda e: list(e.absolute_path))
    if problems:
        first = problems[0]
        where = "/".join(str(p) for p in first.absolute_path) or "<root>"
        raise ScriptError(f"Schema violation at {where}: {first.message}")

    try:
        script_version = version.parse(data["version"])
    except version.InvalidVersion as e:
        raise ScriptError(f"Invalid script version: {data['version']}") from e

    supported = version.parse(SCRIPT_SCHEMA_VERSION)
    if script_version.major > supported.major:
        raise ScriptError(f"Script version {script_version} is newer than supported {supported}")

    return data


class _Replayer:
    def __init__(self, board: Board):
        self.result = ReplayResult(board=board)
        self.handlers: Dict[str, Callable[[Dict[str, Any]], None]] = {
            "add_user": self._add_user,
            "remove_user": lambda a: self.board.remove_user(self._ref(a["user"])),
            "add_issue": self._add_issue,
            "remove_issue": lambda a: self.board.remove_issue(self._ref(a["issue"])),
            "set_state": lambda a: self.board.set_issue_state(self._ref(a["issue"]), a["state"]),
            "set_parent": lambda a: self.board.set_parent_issue(
                self._ref(a["issue"]), self._ref(a["parent"])),
            "assign": lambda a: self.board.assign_user(self._ref(a["user"]), self._ref(a["issue"])),
        }
        self.index = 0

    @property
    def board(self) -> Board:
        return self.result.board

    def _ref(self, alias: Optional[str]) -> Optional[UUID]:
        if alias is None:
            return None
        if alias not in self.result.aliases:
            raise ScriptError(f"Unknown alias '{alias}'", self.index)
        return self.result.aliases[alias]

    def _bind(self, alias: Optional[str], identifier: UUID) -> None:
        if alias is None:
            return
        if alias in self.result.aliases:
            raise ScriptError(f"Alias '{alias}' is already defined", self.index)
        self.result.aliases[alias] = identifier

    def _add_user(self, args: Dict[str, Any]) -> None:
        self._bind(args.get("as"), self.board.add_user(args["name"]))

    def _add_issue(self, args: Dict[str, Any]) -> None:
        self._bind(args.get("as"), self.board.add_issue(args["title"], args["type"]))

    def _expect_error(self, args: Dict[str, Any]) -> None:
        expected = getattr(errors, args["error"], None)
        if not (isinstance(expected, type) and issubclass(expected, LiraError)):
            raise ScriptError(f"Unknown error type '{args['error']}'", self.index)
        try:
            self._dispatch(args["step"])
        except expected as e:
            log.debug(f"Step {self.index} raised expected {type(e).__name__}: {e}")
            return
        raise ScriptError(f"Expected {args['error']} but the step succeeded", self.index)

    def _dispatch(self, step: Dict[str, Any]) -> None:
        (name, args), = step.items()
        if name == "expect_error":
            self._expect_error(args)
        else:
            self.handlers[name](args)

    def run(self, steps) -> ReplayResult:
        for index, step in enumerate(steps, start=1):
            self.index = index
            self._dispatch(step)
            self.result.steps_run = self.index
        return self.result


def run_script(source: Union[str, Mapping[str, Any]], board: Optional[Board] = None) -> ReplayResult:
    """
    Run a replay script against ``board`` (a new Board by default).

    Errors raised by the board propagate unchanged unless the step is wrapped
    in ``expect_error``.
    """
    script = load_script(source)
    replayer = _Replayer(board if board is not None else Board())
    log.info(f"Replaying {len(script['steps'])} steps (script version {script['version']})")
    return replayer.run(script["steps"])
