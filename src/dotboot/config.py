from __future__ import annotations

import copy
from datetime import timedelta
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Optional

import yaml

from .errors import ConfigError
from .types import ProfileEntry, Resource, SyncPlan

if TYPE_CHECKING:
    from .system import Environment


class Config:
    """Configuration for a dotboot run.

    User settings from ``~/.dotboot.yaml`` are deep-merged over
    DEFAULT_CONFIG. Lists (resources, excludes, profile lines) replace the
    defaults rather than extending them.
    """

    # Keys whose string values may use {local_user}, {home} and vars.
    PATH_KEYS = frozenset({"dest", "source", "target", "path"})

    DEFAULT_CONFIG = {
        "vars": {},
        "fetch": {
            "max_age_days": 30,
            "connect_timeout": 10,
            "timeout": 60,
        },
        "resources": [
            {
                "name": "git-completion",
                "url": (
                    "https://raw.githubusercontent.com/git/git/refs/heads/"
                    "master/contrib/completion/git-completion.bash"
                ),
                "dest": "~/.git-completion.bash",
            },
            {
                "name": "bash-prompt",
                "url": (
                    "https://raw.githubusercontent.com/mathiasbynens/"
                    "dotfiles/refs/heads/main/.bash_prompt"
                ),
                "dest": "~/.bash-prompt",
            },
        ],
        "repository": {
            "enabled": True,
            "path": None,
            "remote": "origin",
            "timeout": 10,
        },
        "sync": {
            "enabled": True,
            "source": "~/.dotfiles",
            "dest": "~",
            "marker": "bootstrap.sh",
            "exclude": [".git", ".DS_Store", ".osx", ".macos"],
        },
        "profile": {
            "target": "~/.bashrc",
            "header": "# Git completion and prompt",
            "lines": [
                "source ~/.git-completion.bash",
                "source ~/.bash-prompt",
            ],
        },
        "required_tools": [],
    }

    def __init__(
        self,
        config_path: Optional[Path] = None,
        env: Optional[Environment] = None,
    ):
        # Use deepcopy to avoid mutating the class-level DEFAULT_CONFIG
        self.data = copy.deepcopy(self.DEFAULT_CONFIG)
        self.env = env
        self.home = env.home if env else Path.home()

        if config_path and config_path.exists():
            try:
                with open(config_path, "r") as f:
                    user_config = yaml.safe_load(f)
            except (OSError, yaml.YAMLError) as e:
                raise ConfigError(f"Could not read {config_path}: {e}")
            if user_config:
                if not isinstance(user_config, dict):
                    raise ConfigError(
                        f"{config_path} must contain a mapping at the top level"
                    )
                self._deep_update(self.data, user_config)

        self._apply_replacements(self.data)

    def _deep_update(self, base: Dict, update: Dict):
        for k, v in update.items():
            if isinstance(v, dict) and k in base and isinstance(base[k], dict):
                self._deep_update(base[k], v)
            else:
                base[k] = v

    def _apply_replacements(self, data: Any):
        """Replace {local_user}, {home} and custom vars in path values."""
        replacements = {
            "local_user": self.env.user if self.env else "user",
            "home": str(self.home),
        }
        if "vars" in self.data and isinstance(self.data["vars"], dict):
            replacements.update(self.data["vars"])
        self._walk_and_format(data, replacements)

    def _walk_and_format(self, data: Any, replacements: Dict[str, str]):
        if isinstance(data, dict):
            for k, v in list(data.items()):
                if isinstance(v, (dict, list)):
                    self._walk_and_format(v, replacements)
                elif isinstance(v, str) and k in self.PATH_KEYS:
                    try:
                        data[k] = v.format(**replacements)
                    except (KeyError, IndexError, ValueError):
                        pass
        elif isinstance(data, list):
            for item in data:
                if isinstance(item, (dict, list)):
                    self._walk_and_format(item, replacements)

    def get(self, key_path: str, default: Any = None) -> Any:
        """Get a config value by dot-separated path."""
        keys = key_path.split(".")
        value = self.data
        try:
            for key in keys:
                value = value[key]
            return value
        except (KeyError, TypeError):
            return default

    def resolve_path(self, value: Any) -> Path:
        """Expand ``~`` against the configured home; relative paths too."""
        text = str(value)
        if text == "~" or text.startswith("~/"):
            path = self.home / text[2:]
        else:
            path = Path(text).expanduser()
        if not path.is_absolute():
            path = self.home / path
        return path

    def get_resources(self) -> List[Resource]:
        """Build Resource records from the ``resources`` list."""
        default_age = self.get("fetch.max_age_days", 30)
        resources = []
        for i, item in enumerate(self.get("resources") or []):
            if not isinstance(item, dict):
                raise ConfigError(f"resources[{i}] must be a mapping")
            missing = [k for k in ("name", "url", "dest") if not item.get(k)]
            if missing:
                raise ConfigError(
                    f"resources[{i}] is missing: {', '.join(missing)}"
                )
            try:
                max_age = timedelta(
                    days=float(item.get("max_age_days", default_age))
                )
            except (TypeError, ValueError):
                raise ConfigError(
                    f"resources[{i}].max_age_days must be a number"
                )
            resources.append(
                Resource(
                    name=str(item["name"]),
                    url=str(item["url"]),
                    destination=self.resolve_path(item["dest"]),
                    max_age=max_age,
                )
            )
        return resources

    def get_sync_plan(self) -> SyncPlan:
        marker = str(self.get("sync.marker") or "bootstrap.sh")
        excludes = set(str(e) for e in (self.get("sync.exclude") or []))
        excludes.add(marker)
        return SyncPlan(
            source_root=self.resolve_path(self.get("sync.source")),
            destination_root=self.resolve_path(self.get("sync.dest")),
            excludes=frozenset(excludes),
            marker=marker,
        )

    def get_repository_path(self) -> Path:
        """Checkout to fast-forward; defaults to the sync source."""
        path = self.get("repository.path") or self.get("sync.source")
        return self.resolve_path(path)

    def get_profile_entries(self) -> List[ProfileEntry]:
        target = self.resolve_path(self.get("profile.target"))
        return [
            ProfileEntry(line=str(line), target=target)
            for line in (self.get("profile.lines") or [])
        ]

    def get_required_tools(self) -> List[str]:
        tools = [str(t) for t in (self.get("required_tools") or [])]
        if self.get("repository.enabled") and "git" not in tools:
            tools.append("git")
        return tools
