"""
Project Switcher
Lists editor workspaces (plus auto-discovered git repos) as launcher entries
with per-modifier open actions and theme-aware icons.

Configuration: ~/.config/project-switcher/config.toml
"""

__version__ = "1.4.0"
