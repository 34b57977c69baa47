"""Configuration management for jjstack."""

import configparser
import dataclasses
import os
from typing import Optional

from jjstack.utils.logging import debug
from jjstack.utils.types import BranchName


def default_branch_prefix() -> str:
    """Default branch prefix based on the current user."""
    return os.environ.get("USER", "dev") + "/"


@dataclasses.dataclass
class JjStackConfig:
    """Configuration options for jjstack."""
    # STACK
    branch_prefix: str = dataclasses.field(default_factory=default_branch_prefix)
    trunk_branch: BranchName = BranchName("main")
    remote_name: str = "origin"
    max_stack_depth: int = 100
    max_epochs: int = 20
    skip_empty_working_change: bool = True
    # NETWORK
    probe_concurrency: int = 8
    command_timeout: float = 60.0
    read_retries: int = 2
    share_ssh_session: bool = False
    # GITHUB
    draft_prs: bool = False
    enable_stack_comment: bool = True
    # UI
    skip_confirm: bool = False

    def read_one_config(self, config_path: str):
        """Read configuration from a single file."""
        rawconfig = configparser.ConfigParser()
        rawconfig.read(config_path)
        if rawconfig.has_section("STACK"):
            self.branch_prefix = rawconfig.get("STACK", "branch_prefix", fallback=self.branch_prefix)
            self.trunk_branch = BranchName(rawconfig.get("STACK", "trunk_branch", fallback=self.trunk_branch))
            self.remote_name = rawconfig.get("STACK", "remote_name", fallback=self.remote_name)
            self.max_stack_depth = rawconfig.getint("STACK", "max_stack_depth", fallback=self.max_stack_depth)
            self.max_epochs = rawconfig.getint("STACK", "max_epochs", fallback=self.max_epochs)
            self.skip_empty_working_change = rawconfig.getboolean(
                "STACK", "skip_empty_working_change", fallback=self.skip_empty_working_change
            )

        if rawconfig.has_section("NETWORK"):
            self.probe_concurrency = rawconfig.getint("NETWORK", "probe_concurrency", fallback=self.probe_concurrency)
            self.command_timeout = rawconfig.getfloat("NETWORK", "command_timeout", fallback=self.command_timeout)
            self.read_retries = rawconfig.getint("NETWORK", "read_retries", fallback=self.read_retries)
            self.share_ssh_session = rawconfig.getboolean("NETWORK", "share_ssh_session", fallback=self.share_ssh_session)

        if rawconfig.has_section("GITHUB"):
            self.draft_prs = rawconfig.getboolean("GITHUB", "draft_prs", fallback=self.draft_prs)
            self.enable_stack_comment = rawconfig.getboolean(
                "GITHUB", "enable_stack_comment", fallback=self.enable_stack_comment
            )

        if rawconfig.has_section("UI"):
            self.skip_confirm = rawconfig.getboolean("UI", "skip_confirm", fallback=self.skip_confirm)


# Global config singleton
CONFIG: Optional[JjStackConfig] = None


def get_config() -> JjStackConfig:
    """Get the global configuration, loading it if necessary."""
    global CONFIG
    if CONFIG is None:
        CONFIG = read_config()
    return CONFIG


def read_config() -> JjStackConfig:
    """Read configuration from config files."""
    config = JjStackConfig()
    config_paths = [os.path.expanduser("~/.jjstackconfig")]

    try:
        from jjstack.git.real import get_top_level_dir
        root_dir = get_top_level_dir()
        config_paths.append(f"{root_dir}/.jjstackconfig")
    except Exception:
        # Not in a git repository, skip the repo-level config
        debug("Not in a git repository, skipping repo-level config")

    for p in config_paths:
        # Root dir config overwrites home directory config
        if os.path.exists(p):
            config.read_one_config(p)

    return config
