"""Platform abstraction layer: layout, files, processes, shell fragments."""

from .files import atomic_write_text, backup_with_timestamp, copy_tree_contents, remove_tree
from .paths import Layout, default_root, home
from .process import CommandRunner, MockRunner, ProcessError, SubprocessRunner, run
from .shell import ShellFragments, bash_path, render_template

__all__ = [
    # files
    "atomic_write_text",
    "backup_with_timestamp",
    "copy_tree_contents",
    "remove_tree",
    # paths
    "Layout",
    "default_root",
    "home",
    # process
    "CommandRunner",
    "MockRunner",
    "ProcessError",
    "SubprocessRunner",
    "run",
    # shell
    "ShellFragments",
    "bash_path",
    "render_template",
]
