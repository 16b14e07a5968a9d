from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, model_validator

DEFAULTS_TYPE_FLAGS = {
    "string": "-string",
    "bool": "-bool",
    "int": "-int",
    "float": "-float",
}


class PreferenceDirective(BaseModel):
    model_config = ConfigDict(extra="forbid")

    domain: str = Field(..., min_length=1)
    key: str = Field(..., min_length=1)
    type: Literal["string", "bool", "int", "float"] = "string"
    value: bool | int | float | str
    scope: Literal["user", "system"] = "user"
    ensure_directory: bool = False
    restart: str | None = None

    @model_validator(mode="after")
    def _check_value_type(self) -> PreferenceDirective:
        expected: dict[str, tuple[type, ...]] = {
            "string": (str,),
            "bool": (bool,),
            "int": (int,),
            "float": (int, float),
        }
        value = self.value
        if self.type != "bool" and isinstance(value, bool):
            raise ValueError(f"{self.domain} {self.key}: expected {self.type}, got bool")
        if not isinstance(value, expected[self.type]):
            raise ValueError(
                f"{self.domain} {self.key}: expected {self.type}, got {type(value).__name__}"
            )
        if self.ensure_directory and self.type != "string":
            raise ValueError(f"{self.domain} {self.key}: ensure_directory needs a string path")
        return self

    def cli_value(self, home: str) -> str:
        """Render the value the way `defaults write` expects it on the command line."""
        if self.type == "bool":
            return "true" if self.value else "false"
        if self.type == "string":
            return expand_home(str(self.value), home)
        return str(self.value)


def expand_home(value: str, home: str) -> str:
    # expand against the console user's home, never root's
    if value == "~":
        return home
    if value.startswith("~/"):
        return f"{home.rstrip('/')}/{value[2:]}"
    return value


DEFAULT_PREFERENCES: list[dict[str, Any]] = [
    # list view in all Finder windows; other styles: icnv, clmv, Flwv
    {"domain": "com.apple.finder", "key": "FXPreferredViewStyle", "value": "Nlsv"},
    {"domain": "com.apple.finder", "key": "_FXSortFoldersFirst", "type": "bool", "value": True},
    {
        "domain": "NSGlobalDomain",
        "key": "NSDocumentSaveNewDocumentsToCloud",
        "type": "bool",
        "value": False,
    },
    {
        "domain": "com.apple.desktopservices",
        "key": "DSDontWriteNetworkStores",
        "type": "bool",
        "value": True,
    },
    {
        "domain": "com.apple.desktopservices",
        "key": "DSDontWriteUSBStores",
        "type": "bool",
        "value": True,
    },
    {
        "domain": "com.apple.screencapture",
        "key": "location",
        "value": "~/Pictures/Screenshots",
        "ensure_directory": True,
    },
    # BMP, GIF, JPG, PDF and TIFF also work
    {
        "domain": "com.apple.screencapture",
        "key": "type",
        "value": "PNG",
        "restart": "SystemUIServer",
    },
    {
        "domain": "com.apple.systempreferences",
        "key": "NSQuitAlwaysKeepsWindows",
        "type": "bool",
        "value": False,
        "scope": "system",
    },
]

DEFAULT_DOCK_PREFERENCES: list[dict[str, Any]] = [
    {"domain": "com.apple.dock", "key": "launchanim", "type": "bool", "value": False},
    {"domain": "com.apple.dock", "key": "show-recents", "type": "bool", "value": False},
]

DEFAULT_MANIFEST = [
    "/Applications/Self Service.app",
    "/System/Applications/Launchpad.app",
    "/Applications/Google Chrome.app",
    "/Applications/Safari.app",
    "/Applications/Microsoft Outlook.app",
    "/Applications/OneDrive.app",
    "/System/Applications/System Settings.app",
]


class StandardizeConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    script_version: str = "1.2.0"
    log_tag: str = "Standardize-macOS"
    log_file: str = "/var/log/standardize.log"
    search_paths: list[str] = Field(
        default_factory=lambda: ["/usr/bin", "/bin", "/usr/sbin", "/sbin", "/usr/local/bin"]
    )
    require_root: bool = True
    dockutil_path: str = "/usr/local/bin/dockutil"
    installer_path: str = "/Library/Management/AppAutoPatch/Installomator/Installomator.sh"
    installer_label: str = "dockutil"
    installer_args: list[str] = Field(default_factory=lambda: ["NOTIFY=silent"])
    enable_gatekeeper: bool = True
    dock_wait_timeout: float = Field(300.0, gt=0)
    dock_poll_interval: float = Field(1.0, gt=0)
    preferences: list[PreferenceDirective] = Field(
        default_factory=lambda: [PreferenceDirective(**item) for item in DEFAULT_PREFERENCES]
    )
    dock_preferences: list[PreferenceDirective] = Field(
        default_factory=lambda: [PreferenceDirective(**item) for item in DEFAULT_DOCK_PREFERENCES]
    )
    manifest: list[str] = Field(default_factory=lambda: list(DEFAULT_MANIFEST))

    @model_validator(mode="after")
    def _check_manifest(self) -> StandardizeConfig:
        for entry in self.manifest:
            if not entry.startswith("/"):
                raise ValueError(f"Manifest entries must be absolute paths: {entry!r}")
        return self


def load_config(raw_yaml: str) -> StandardizeConfig:
    data = yaml.safe_load(raw_yaml)
    if data is None:
        return StandardizeConfig()
    if not isinstance(data, dict):
        raise ValueError("Config YAML must be a mapping")
    return StandardizeConfig.model_validate(data)


def load_config_from_file(path: str | Path) -> StandardizeConfig:
    with open(path, encoding="utf-8") as handle:
        return load_config(handle.read())


def dump_config(config: StandardizeConfig) -> str:
    payload = config.model_dump(mode="json", exclude_none=True)
    return yaml.safe_dump(payload, sort_keys=False)
